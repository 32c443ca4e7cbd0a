"""Tests for the Jira REST client."""

import base64
import json

import httpx
import pytest

from sheetjira.errors import AuthFailed, CreateFailed, FetchFailed, NotConfigured
from sheetjira.integrations.jira_client import JiraClient
from sheetjira.models.ticket import TicketPayload

from conftest import JIRA_EMAIL, JIRA_TOKEN, JIRA_URL


def _payload(**overrides):
    data = {"project_key": "OPS", "summary": "Fix login"}
    data.update(overrides)
    return TicketPayload(**data)


class TestCreateTicket:
    async def test_created(self, client, fake_jira):
        created = await client.create_ticket(_payload(labels=["backend"]))

        assert created.key == "OPS-101"
        assert created.url == f"{JIRA_URL}/browse/OPS-101"

        request = fake_jira.requests[0]
        assert str(request.url) == f"{JIRA_URL}/rest/api/2/issue"
        body = json.loads(request.content)
        assert body == {
            "fields": {
                "project": {"key": "OPS"},
                "summary": "Fix login",
                "issuetype": {"name": "Task"},
                "labels": ["backend"],
            }
        }

    async def test_basic_auth_header(self, client, fake_jira):
        await client.create_ticket(_payload())

        expected = base64.b64encode(f"{JIRA_EMAIL}:{JIRA_TOKEN}".encode()).decode()
        assert fake_jira.requests[0].headers["Authorization"] == f"Basic {expected}"

    async def test_rejected_keeps_response_body(self, client, fake_jira):
        fake_jira.rejected_summaries.add("Fix login")

        with pytest.raises(CreateFailed) as exc_info:
            await client.create_ticket(_payload())

        error = exc_info.value
        assert error.status_code == 400
        assert "Summary rejected by workflow" in error.body
        assert "Summary rejected by workflow" in str(error)

    async def test_html_reply_raises_create_failed(self, client, fake_jira):
        fake_jira.html_summaries.add("Fix login")

        with pytest.raises(CreateFailed) as exc_info:
            await client.create_ticket(_payload())

        assert exc_info.value.status_code == 201
        assert exc_info.value.body == "<html>gateway</html>"

    async def test_non_object_json_reply(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(201, json=["OPS-1"]))

        async with JiraClient(JIRA_URL, JIRA_EMAIL, JIRA_TOKEN, transport=transport) as client:
            with pytest.raises(CreateFailed):
                await client.create_ticket(_payload())
            with pytest.raises(AuthFailed):
                await client.test_auth()

    async def test_connection_error_wrapped(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with JiraClient(JIRA_URL, JIRA_EMAIL, JIRA_TOKEN, transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(CreateFailed) as exc_info:
                await client.create_ticket(_payload())
        assert exc_info.value.status_code is None


class TestGetTicket:
    async def test_status(self, client, fake_jira):
        fake_jira.statuses["OPS-7"] = "In Progress"

        ticket = await client.get_ticket("OPS-7")

        assert ticket.status == "In Progress"
        assert fake_jira.requests[0].url.path == "/rest/api/2/issue/OPS-7"

    async def test_missing_ticket(self, client):
        with pytest.raises(FetchFailed) as exc_info:
            await client.get_ticket("OPS-404")
        assert exc_info.value.status_code == 404

    async def test_html_reply_raises_fetch_failed(self, client, fake_jira):
        fake_jira.html_keys.add("OPS-7")

        with pytest.raises(FetchFailed) as exc_info:
            await client.get_ticket("OPS-7")
        assert "<html>login</html>" in exc_info.value.body


class TestAuth:
    async def test_display_name(self, client):
        user = await client.test_auth()
        assert user.display_name == "Ada Lovelace"

    async def test_rejected_credentials(self, client, fake_jira):
        fake_jira.auth_ok = False
        with pytest.raises(AuthFailed) as exc_info:
            await client.test_auth()
        assert exc_info.value.status_code == 401


class TestNotConfigured:
    @pytest.mark.parametrize(
        "url, email, token, missing",
        [
            ("", JIRA_EMAIL, JIRA_TOKEN, ["jiraUrl"]),
            (JIRA_URL, "", JIRA_TOKEN, ["jiraEmail"]),
            (JIRA_URL, JIRA_EMAIL, "  ", ["jiraApiToken"]),
        ],
    )
    async def test_no_request_without_settings(self, fake_jira, url, email, token, missing):
        async with JiraClient(url, email, token, transport=fake_jira.transport) as client:
            for call in (client.test_auth(), client.get_ticket("OPS-1"), client.create_ticket(_payload())):
                with pytest.raises(NotConfigured) as exc_info:
                    await call
                assert exc_info.value.missing == missing

        assert fake_jira.requests == []
