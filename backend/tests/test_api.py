"""
Test the HTTP endpoints
"""
import pytest

from coffee_pairing.core.security import create_access_token
from coffee_pairing.models.user import UserRole

API = "/api/v1/organizations"


def auth_headers(user_id: int, role: UserRole, organization_id: int) -> dict:
    token = create_access_token(user_id, role, organization_id)
    return {"Authorization": f"Bearer {token}"}


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAlgorithmSettingsEndpoints:

    @pytest.mark.asyncio
    async def test_requires_token(self, client, make_organization):
        org = await make_organization()

        response = await client.get(f"{API}/{org.id}/algorithm-settings")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_garbage_token(self, client, make_organization):
        org = await make_organization()

        response = await client.get(
            f"{API}/{org.id}/algorithm-settings",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_get_creates_defaults(self, client, make_organization):
        org = await make_organization()

        response = await client.get(
            f"{API}/{org.id}/algorithm-settings",
            headers=auth_headers(1, UserRole.ORG_ADMIN, org.id),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["organization_id"] == org.id
        assert data["period_length_days"] == 21
        assert 1 <= data["random_seed"] <= 2147483647

    @pytest.mark.asyncio
    async def test_update_with_warning(self, client, make_organization):
        org = await make_organization()

        response = await client.put(
            f"{API}/{org.id}/algorithm-settings",
            headers=auth_headers(1, UserRole.ORG_ADMIN, org.id),
            json={"period_length_days": 3, "random_seed": 4242},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period_length_days"] == 3
        assert data["random_seed"] == 4242
        assert data["warning"] == "Warning: Period length is too short (< 7 days)"

    @pytest.mark.asyncio
    async def test_invalid_seed_is_bad_request(self, client, make_organization):
        org = await make_organization()

        response = await client.put(
            f"{API}/{org.id}/algorithm-settings",
            headers=auth_headers(1, UserRole.ORG_ADMIN, org.id),
            json={"random_seed": 0},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "randomSeed must be an integer between 1 and 2147483647"

    @pytest.mark.asyncio
    async def test_plain_user_forbidden(self, client, make_organization):
        org = await make_organization()

        response = await client.put(
            f"{API}/{org.id}/algorithm-settings",
            headers=auth_headers(5, UserRole.USER, org.id),
            json={"period_length_days": 14},
        )

        assert response.status_code == 403
        assert response.json() == {
            "detail": f"User 5 is not an administrator of organization {org.id}"
        }

    @pytest.mark.asyncio
    async def test_error_bodies_are_documented(self, client):
        response = await client.get("/api/v1/openapi.json")

        schema = response.json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        put = schema["paths"]["/api/v1/organizations/{organization_id}/algorithm-settings"]["put"]
        for code in ("400", "401", "403", "404"):
            assert put["responses"][code]["content"]["application/json"]["schema"] == {
                "$ref": "#/components/schemas/ErrorResponse"
            }

    @pytest.mark.asyncio
    async def test_admin_of_other_org_forbidden(self, client, make_organization):
        org = await make_organization("ACME")
        other = await make_organization("GLOBEX")

        response = await client.get(
            f"{API}/{org.id}/algorithm-settings",
            headers=auth_headers(1, UserRole.ORG_ADMIN, other.id),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_organization(self, client):
        response = await client.put(
            f"{API}/999/algorithm-settings",
            headers=auth_headers(1, UserRole.SUPER_ADMIN, 1),
            json={"period_length_days": 14},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Organization 999 not found"


class TestPairingEndpoints:

    @pytest.mark.asyncio
    async def test_no_active_period(self, client, make_organization):
        org = await make_organization()

        response = await client.get(
            f"{API}/{org.id}/pairing-periods/active",
            headers=auth_headers(5, UserRole.USER, org.id),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_execute_then_read_active_period(self, client, dispatcher, make_organization, make_users):
        org = await make_organization()
        users = await make_users(org, 4)
        admin = auth_headers(1, UserRole.ORG_ADMIN, org.id)

        response = await client.post(f"{API}/{org.id}/pairing/execute", headers=admin)
        await dispatcher.drain()

        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert result["pairings_created"] == 2
        assert result["unpaired_users"] == 0

        response = await client.get(
            f"{API}/{org.id}/pairing-periods/active",
            headers=auth_headers(users[0].id, UserRole.USER, org.id),
        )

        assert response.status_code == 200
        period = response.json()
        assert period["id"] == result["period_id"]
        assert period["status"] == "active"
        assert len(period["pairings"]) == 2
        paired_ids = {p["user_a_id"] for p in period["pairings"]} | {p["user_b_id"] for p in period["pairings"]}
        assert paired_ids == {user.id for user in users}

    @pytest.mark.asyncio
    async def test_execute_requires_admin(self, client, make_organization, make_users):
        org = await make_organization()
        await make_users(org, 2)

        response = await client.post(
            f"{API}/{org.id}/pairing/execute",
            headers=auth_headers(5, UserRole.USER, org.id),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_execute_with_too_few_users(self, client, make_organization, make_users):
        org = await make_organization()
        await make_users(org, 1)

        response = await client.post(
            f"{API}/{org.id}/pairing/execute",
            headers=auth_headers(1, UserRole.ORG_ADMIN, org.id),
        )

        assert response.status_code == 200
        result = response.json()
        assert result["pairings_created"] == 0
        assert "Insufficient eligible users" in result["message"]

    @pytest.mark.asyncio
    async def test_cycle_participation(self, client, dispatcher, make_organization, make_users):
        org = await make_organization()
        u1, u2, u3 = await make_users(org, 3)

        response = await client.get(
            f"{API}/{org.id}/cycle-participation/{u1.id}",
            headers=auth_headers(u1.id, UserRole.USER, org.id),
        )
        assert response.json()["consecutive_count"] == 0

        await client.post(
            f"{API}/{org.id}/pairing/execute",
            headers=auth_headers(1, UserRole.ORG_ADMIN, org.id),
        )
        await dispatcher.drain()

        counts = []
        for user in (u1, u2, u3):
            response = await client.get(
                f"{API}/{org.id}/cycle-participation/{user.id}",
                headers=auth_headers(u1.id, UserRole.USER, org.id),
            )
            assert response.status_code == 200
            counts.append(response.json()["consecutive_count"])

        # Three users make one pair; the third sits out this period
        assert sorted(counts) == [0, 1, 1]

    @pytest.mark.asyncio
    async def test_cycle_participation_other_org_forbidden(self, client, make_organization):
        org = await make_organization("ACME")
        other = await make_organization("GLOBEX")

        response = await client.get(
            f"{API}/{org.id}/cycle-participation/1",
            headers=auth_headers(1, UserRole.USER, other.id),
        )

        assert response.status_code == 403
