"""
Static catalog endpoints: activities, perks and badges.
"""

from typing import List

from fastapi import APIRouter

from schemas.catalog import CatalogActivity, CatalogPerk
from schemas.converters import badge_definition_to_schema
from schemas.gamification import CatalogBadge
from services.catalog import ACTIVITIES, BADGES, PERKS

router = APIRouter()


@router.get("/activities", response_model=List[CatalogActivity])
async def list_activities() -> List[CatalogActivity]:
    return [
        CatalogActivity(
            id=a.id,
            title=a.title,
            type=a.type,
            category=a.category,
            tokens=a.tokens,
            xp=a.xp,
            difficulty=a.difficulty.value,
        )
        for a in ACTIVITIES
    ]


@router.get("/perks", response_model=List[CatalogPerk])
async def list_perks() -> List[CatalogPerk]:
    return [CatalogPerk.model_validate(p) for p in PERKS]


@router.get("/badges", response_model=List[CatalogBadge])
async def list_badges() -> List[CatalogBadge]:
    return [badge_definition_to_schema(b) for b in BADGES]
