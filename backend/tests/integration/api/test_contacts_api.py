"""API tests for the contacts and groups endpoints.

Requests go through the full application (middleware, identity headers,
module checks and exception handlers) against the test database.
"""

import json
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from granthub.core.exceptions import ContactValidationError
from granthub.core.shared_models import AppModule
from granthub.main import create_app
from tests.fixtures.common import restrict_field


@pytest.fixture
async def client(database):
    """HTTP client bound to an app that uses the test database."""
    app = create_app()
    app.state.db = database
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def identity(team, user=None, roles=None):
    headers = {"X-Team-ID": str(team.id)}
    if user is not None:
        headers["X-User-ID"] = str(user.id)
        headers["X-User-Name"] = user.full_name
    if roles:
        headers["X-User-Roles"] = ",".join(roles)
    return headers


@pytest.fixture
def member(team, member_user, restricted_group):
    """Headers of a user holding the CRM module."""
    return identity(team, member_user)


@pytest.fixture
def admin(team, admin_user):
    """Headers of a user acting with the Admin role, outside every group."""
    return identity(team, admin_user, roles=["Team", "Admin"])


async def post_contact(client, headers, **fields):
    payload = {"team_id": headers["X-Team-ID"], "name": "Jane Doe", "email": "jane@example.com"}
    payload.update(fields)
    response = await client.post("/contacts", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.integration
class TestIdentityAndModules:
    """Identity headers and module gating."""

    async def test_team_header_is_required(self, client):
        response = await client.get("/contacts")

        assert response.status_code == 422
        assert "errors" in response.json()

    async def test_caller_without_user_is_rejected(self, client, team):
        response = await client.get("/contacts", headers=identity(team))

        assert response.status_code == 403

    async def test_user_without_crm_module_is_rejected(self, client, team, outsider_user):
        response = await client.get("/contacts", headers=identity(team, outsider_user))

        assert response.status_code == 403
        assert response.json() == {"detail": "No access to the CRM module"}

    async def test_admin_and_crm_member_are_allowed(self, client, member, admin):
        assert (await client.get("/contacts", headers=member)).status_code == 200
        assert (await client.get("/contacts/", headers=admin)).status_code == 200

    async def test_my_modules(self, client, member, admin):
        as_member = await client.get("/groups/modules/me", headers=member)
        as_admin = await client.get("/groups/modules/me", headers=admin)

        assert as_member.json() == {"modules": ["CRM"]}
        assert as_admin.json() == {"modules": [module.value for module in AppModule]}

    async def test_groups_require_the_admin_module(self, client, member, admin):
        assert (await client.get("/groups", headers=member)).status_code == 403

        response = await client.get("/groups", headers=admin)
        assert response.status_code == 200
        assert [group["is_default"] for group in response.json()] == [True, False]


@pytest.mark.integration
class TestContactsApi:
    """Contact endpoints."""

    async def test_create_and_get(self, client, member):
        created = await post_contact(client, member, email="JANE@Example.com", city="Berlin")

        response = await client.get(f"/contacts/{created['id']}", headers=member)

        assert response.status_code == 200
        assert response.json()["email"] == "jane@example.com"
        assert response.json()["city"] == "Berlin"
        assert response.headers["X-Request-ID"]

    async def test_duplicate_email_is_a_client_error(self, client, member):
        await post_contact(client, member)

        payload = {"team_id": member["X-Team-ID"], "name": "Jane", "email": "Jane@example.com"}
        response = await client.post("/contacts", json=payload, headers=member)

        assert response.status_code == 400
        assert response.json() == {"detail": ContactValidationError.DUPLICATE_EMAIL}

    async def test_contact_cannot_be_created_in_another_team(self, client, member):
        payload = {"team_id": str(uuid.uuid4()), "name": "Jane", "email": "jane@example.com"}

        response = await client.post("/contacts", json=payload, headers=member)

        assert response.status_code == 403

    async def test_malformed_email_is_rejected(self, client, member):
        payload = {"team_id": member["X-Team-ID"], "name": "Jane", "email": "not-an-email"}

        response = await client.post("/contacts", json=payload, headers=member)

        assert response.status_code == 422

    async def test_unknown_contact_is_not_found(self, client, member):
        response = await client.get(f"/contacts/{uuid.uuid4()}", headers=member)

        assert response.status_code == 404
        assert response.json() == {"detail": "Contact not found"}

    async def test_patch_applies_only_sent_fields(self, client, member):
        created = await post_contact(client, member, city="Berlin", phone="+49 30 1234")

        renamed = await client.patch(
            f"/contacts/{created['id']}", json={"name": "Jane Smith"}, headers=member
        )
        assert renamed.status_code == 200
        assert renamed.json()["city"] == "Berlin"

        cleared = await client.patch(
            f"/contacts/{created['id']}", json={"city": "", "phone": None}, headers=member
        )
        assert cleared.json()["city"] is None
        assert cleared.json()["phone"] is None
        assert cleared.json()["name"] == "Jane Smith"

    async def test_list_with_search_and_filters(self, client, member, restricted_group):
        in_group = await post_contact(client, member, group_id=str(restricted_group.id))
        await post_contact(client, member, name="John", email="john@example.com", city="Oslo")

        searched = await client.get("/contacts", params={"query": "oslo"}, headers=member)
        filtered = await client.get(
            "/contacts",
            params={
                "filters": json.dumps([{"type": "group", "group_id": str(restricted_group.id)}])
            },
            headers=member,
        )

        assert [contact["name"] for contact in searched.json()] == ["John"]
        assert [contact["id"] for contact in filtered.json()] == [in_group["id"]]

    async def test_malformed_filters_are_rejected(self, client, member):
        response = await client.get(
            "/contacts",
            params={"filters": json.dumps([{"type": "shoeSize", "value": 42}])},
            headers=member,
        )

        assert response.status_code == 422

    async def test_attribute_keys_and_submodules(self, client, member):
        await post_contact(
            client,
            member,
            profile_attributes=[
                {"key": "role", "type": "STRING", "value": "Mentor"},
                {"key": "languages", "type": "STRING", "value": "de, en"},
            ],
        )

        keys = await client.get("/contacts/attribute-keys", headers=member)
        submodules = await client.get("/contacts/submodules", headers=member)

        assert keys.json() == ["languages", "role"]
        assert submodules.status_code == 200
        assert "SUPERVISION" in submodules.json()

    async def test_bulk_delete(self, client, member):
        created = await post_contact(client, member)

        response = await client.request(
            "DELETE",
            "/contacts",
            json={"ids": [created["id"], str(uuid.uuid4())]},
            headers=member,
        )

        assert response.json() == {"deleted": 1}
        assert (await client.get(f"/contacts/{created['id']}", headers=member)).status_code == 404


@pytest.mark.integration
class TestRestrictedFieldsApi:
    """Field rules as seen through the API."""

    async def test_hidden_field_and_its_history(
        self, client, db, team, member, admin, restricted_group
    ):
        await restrict_field(db, team.id, "gender", restricted_group)
        created = await post_contact(client, member, gender="FEMALE")
        await client.patch(
            f"/contacts/{created['id']}", json={"gender": "MALE", "city": "Kyiv"}, headers=member
        )

        as_member = await client.get(f"/contacts/{created['id']}", headers=member)
        as_admin = await client.get(f"/contacts/{created['id']}", headers=admin)
        member_log = await client.get(f"/contacts/{created['id']}/change-logs", headers=member)
        admin_log = await client.get(f"/contacts/{created['id']}/change-logs", headers=admin)

        assert as_member.json()["gender"] == "MALE"
        assert as_admin.json()["gender"] is None
        assert {entry["field_name"] for entry in member_log.json()} == {None, "gender", "city"}
        assert {entry["field_name"] for entry in admin_log.json()} == {None, "city"}

    async def test_manage_field_access_rules(self, client, admin, restricted_group):
        rule = {"field_key": "phone", "group_ids": [str(restricted_group.id)]}

        saved = await client.put("/groups/field-access", json=rule, headers=admin)
        listed = await client.get("/groups/field-access", headers=admin)

        assert saved.status_code == 200
        assert listed.json() == [rule]
