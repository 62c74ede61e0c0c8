"""
Tests for the public contact form and lead management endpoints
"""

from unittest.mock import AsyncMock, patch

from sitecms.models.form_submission import SubmissionStatus
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.form_submission import ContactFormCreate
from sitecms.services import form_submission_service

SITE_ID = "site-a"
BASE = f"/api/cms/{SITE_ID}/form-submissions"

CONTACT = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "Jane@Example.com",
    "phone": "555-0100",
    "projectType": "Rooftop solar",
    "description": "Need a quote",
}


async def submit(client, **overrides) -> str:
    response = await client.post(BASE, json={**CONTACT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["data"]["submissionId"]


class TestPublicSubmission:
    async def test_submit_is_public(self, client):
        response = await client.post(BASE, json=CONTACT)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["submissionId"].startswith("submission_")

    async def test_invalid_email(self, client):
        response = await client.post(BASE, json={**CONTACT, "email": "nope"})

        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["details"]["errors"]]
        assert "email" in fields

    async def test_missing_name(self, client):
        response = await client.post(BASE, json={"email": "jane@example.com"})
        assert response.status_code == 400

    async def test_values_are_sanitized(self, client, admin_headers):
        submission_id = await submit(client, firstName="<b>Jane</b>", description="<script>x()</script>Hello")

        data = (await client.get(f"{BASE}/{submission_id}", headers=admin_headers)).json()["data"]
        assert data["title"] == "Jane Doe"
        assert data["data"]["email"] == "jane@example.com"
        assert "<script>" not in data["data"]["description"]
        assert data["status"] == "new"

    async def test_fires_form_submitted(self, db):
        with patch("sitecms.services.webhook_service.trigger_event", new_callable=AsyncMock) as trigger:
            submission = await form_submission_service.create_submission(
                db, SITE_ID, ContactFormCreate.model_validate(CONTACT)
            )

        assert trigger.await_args.args[2] == WebhookEvent.FORM_SUBMITTED
        assert trigger.await_args.args[3]["submissionId"] == submission.submission_id


class TestLeadManagement:
    async def test_list_requires_site_user(self, client):
        response = await client.get(BASE)
        assert response.status_code == 401

    async def test_list_filters_and_search(self, client, editor_headers):
        first = await submit(client)
        await submit(client, firstName="Bob", lastName="Stone", email="bob@example.com")
        await client.put(f"{BASE}/{first}", json={"status": "contacted"}, headers=editor_headers)

        contacted = (await client.get(BASE, params={"status": "contacted"}, headers=editor_headers)).json()
        assert [s["submissionId"] for s in contacted["data"]] == [first]

        by_email = (await client.get(BASE, params={"search": "bob@"}, headers=editor_headers)).json()
        assert [s["title"] for s in by_email["data"]] == ["Bob Stone"]
        assert by_email["pagination"]["total"] == 1

    async def test_q_is_an_alias_for_search(self, client, editor_headers):
        await submit(client)
        await submit(client, firstName="Bob", lastName="Stone", email="bob@example.com")

        body = (await client.get(BASE, params={"q": "stone"}, headers=editor_headers)).json()
        assert [s["title"] for s in body["data"]] == ["Bob Stone"]

    async def test_status_update(self, client, editor_headers):
        submission_id = await submit(client)

        response = await client.put(f"{BASE}/{submission_id}", json={"status": "qualified"}, headers=editor_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "qualified"

    async def test_invalid_status(self, client, editor_headers):
        submission_id = await submit(client)
        response = await client.put(f"{BASE}/{submission_id}", json={"status": "maybe"}, headers=editor_headers)
        assert response.status_code == 400

    async def test_delete(self, client, editor_headers):
        submission_id = await submit(client)

        assert (await client.delete(f"{BASE}/{submission_id}", headers=editor_headers)).status_code == 200
        assert (await client.get(f"{BASE}/{submission_id}", headers=editor_headers)).status_code == 404

    async def test_other_site_cannot_see_submission(self, client, other_site_admin, auth_headers):
        submission_id = await submit(client)

        response = await client.get(f"/api/cms/site-b/form-submissions/{submission_id}", headers=auth_headers(other_site_admin))
        assert response.status_code == 404


class TestBulkUpdate:
    async def test_bulk_update_reports_missing_ids(self, client, editor_headers):
        first = await submit(client)
        second = await submit(client, email="other@example.com")

        response = await client.post(
            f"{BASE}/bulk-update",
            json={"submissionIds": [first, second, "submission_missing"], "status": "lost"},
            headers=editor_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["updatedCount"] == 2
        assert data["notFound"] == ["submission_missing"]

        listing = (await client.get(BASE, params={"status": "lost"}, headers=editor_headers)).json()
        assert listing["pagination"]["total"] == 2

    async def test_bulk_update_is_site_scoped(self, db, client, other_site_admin):
        submission_id = await submit(client)

        result = await form_submission_service.bulk_update_status(
            db, "site-b", [submission_id], SubmissionStatus.CONVERTED
        )
        assert result == {"updatedCount": 0, "updated": [], "notFound": [submission_id]}
