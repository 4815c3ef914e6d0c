"""
Static catalog Pydantic schemas.
"""

from pydantic import BaseModel


class CatalogActivity(BaseModel):
    id: str
    title: str
    type: str
    category: str
    tokens: int
    xp: int
    difficulty: str

    model_config = {"from_attributes": True}


class CatalogPerk(BaseModel):
    id: str
    name: str
    description: str
    cost: int
    category: str

    model_config = {"from_attributes": True}
