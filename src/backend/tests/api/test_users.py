"""
Tests for user progression endpoints.
"""

import pytest
from httpx import AsyncClient

from services.ledger_rules import MAX_AMOUNT


async def complete(client: AsyncClient, headers: dict, activity_id: str, tokens: int, xp: int):
    return await client.post(
        "/api/v1/users/activities",
        headers=headers,
        json={"activity_id": activity_id, "tokens_earned": tokens, "xp_earned": xp},
    )


async def redeem(client: AsyncClient, headers: dict, perk_id: str, cost: int):
    return await client.post(
        "/api/v1/users/perks",
        headers=headers,
        json={"perk_id": perk_id, "perk_name": perk_id.title(), "cost": cost},
    )


@pytest.mark.integration
class TestActivities:
    async def test_complete_activity(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await complete(client, auth_headers, "quiz-1", 50, 25)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["tokens"] == 150
        assert body["user"]["xp"] == 25
        assert body["user"]["completed_activities"] == ["quiz-1"]
        assert [b["id"] for b in body["badges_awarded"]] == ["first-activity"]

    async def test_duplicate_activity(self, client: AsyncClient, auth_headers: dict) -> None:
        await complete(client, auth_headers, "quiz-1", 50, 25)

        response = await complete(client, auth_headers, "quiz-1", 50, 25)

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_ACTIVITY"
        me = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert me.json()["tokens"] == 150

    async def test_negative_rewards(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await complete(client, auth_headers, "quiz-1", -5, 25)
        assert response.status_code == 422

    async def test_oversized_rewards(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await complete(client, auth_headers, "quiz-1", 2**63, 25)

        assert response.status_code == 422
        me = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert me.json()["tokens"] == 100

    async def test_balance_beyond_storage_limit(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await complete(client, auth_headers, "quiz-1", MAX_AMOUNT, 25)

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_AMOUNT"
        me = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert me.json()["completed_activities"] == []

    async def test_list_activities(self, client: AsyncClient, auth_headers: dict) -> None:
        await complete(client, auth_headers, "quiz-1", 50, 25)
        await complete(client, auth_headers, "game-1", 75, 40)

        response = await client.get("/api/v1/users/activities", headers=auth_headers)

        assert response.status_code == 200
        assert {a["activity_id"] for a in response.json()} == {"quiz-1", "game-1"}


@pytest.mark.integration
class TestPerks:
    async def test_scenario(self, client: AsyncClient, auth_headers: dict) -> None:
        assert (await complete(client, auth_headers, "quiz-1", 50, 25)).json()["user"]["tokens"] == 150

        rejected = await redeem(client, auth_headers, "big-perk", 160)
        assert rejected.status_code == 400
        assert rejected.json()["error"] == "INSUFFICIENT_TOKENS"

        body = (await complete(client, auth_headers, "game-1", 75, 40)).json()["user"]
        assert (body["tokens"], body["xp"], body["level"]) == (225, 65, 1)

        response = await redeem(client, auth_headers, "big-perk", 120)
        assert response.status_code == 201
        assert response.json()["tokens"] == 105
        assert len(response.json()["redeemed_perks"]) == 1

        perks = await client.get("/api/v1/users/perks", headers=auth_headers)
        assert [p["perk_id"] for p in perks.json()] == ["big-perk"]

    async def test_zero_cost_rejected(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await redeem(client, auth_headers, "free", 0)
        assert response.status_code == 422


@pytest.mark.integration
class TestGameResults:
    async def test_game_result_awards_badges(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/users/game-results",
            headers=auth_headers,
            json={"activity_id": "game-1", "score": 850, "perfect": True},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["tokens_earned"] == 245
        assert body["xp_earned"] == 60
        assert body["user"]["tokens"] == 345
        assert {b["id"] for b in body["badges_awarded"]} == {"first-activity", "perfectionist", "high-scorer"}
        assert len(body["user"]["badges"]) == 3

    async def test_oversized_score(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/users/game-results",
            headers=auth_headers,
            json={"activity_id": "quiz-1", "score": 10**20},
        )
        assert response.status_code == 422

    async def test_unknown_activity(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            "/api/v1/users/game-results",
            headers=auth_headers,
            json={"activity_id": "nope", "score": 10},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "UNKNOWN_CATALOG_ITEM"


@pytest.mark.integration
class TestBadges:
    async def test_award_badge_once(self, client: AsyncClient, auth_headers: dict) -> None:
        payload = {"badge_id": "welcome", "badge_name": "Welcome Badge", "badge_icon": "👋"}

        first = await client.post("/api/v1/users/badges", headers=auth_headers, json=payload)
        second = await client.post("/api/v1/users/badges", headers=auth_headers, json=payload)

        assert first.status_code == 201
        assert second.status_code == 409
        badges = await client.get("/api/v1/users/badges", headers=auth_headers)
        assert [b["badge_id"] for b in badges.json()] == ["welcome"]
        assert badges.json()[0]["badge_rarity"] == "common"


@pytest.mark.integration
class TestProfile:
    async def test_update_profile(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            headers=auth_headers,
            json={"name": "New Name", "language": "hi", "tts_enabled": True},
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["name"], body["language"], body["tts_enabled"]) == ("New Name", "hi", True)
        assert body["tokens"] == 100

    async def test_progression_fields_ignored(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.put("/api/v1/users/profile", headers=auth_headers, json={"tokens": 99999})
        assert response.json()["tokens"] == 100

    async def test_unsupported_language(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.put("/api/v1/users/profile", headers=auth_headers, json={"language": "fr"})
        assert response.status_code == 422

    async def test_email_taken(self, client: AsyncClient, register, auth_headers: dict) -> None:
        await register(email="taken@example.com")
        response = await client.put(
            "/api/v1/users/profile", headers=auth_headers, json={"email": "taken@example.com"}
        )
        assert response.status_code == 409


@pytest.mark.integration
class TestStreakAndAccount:
    async def test_streak_refresh_same_day(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.put("/api/v1/users/streak", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["streak"] == 1
        assert response.json()["badges_awarded"] == []

    async def test_delete_account(self, client: AsyncClient, register) -> None:
        body = await register(email="gone@example.com", password="password123")
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        await complete(client, headers, "quiz-1", 50, 25)

        response = await client.delete("/api/v1/users/account", headers=headers)
        assert response.status_code == 200

        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401
        login = await client.post(
            "/api/v1/auth/login", json={"email": "gone@example.com", "password": "password123"}
        )
        assert login.status_code == 401
