"""Shared fixtures: a fake Jira server and ready-made configurations."""

import json

import httpx
import pytest

from sheetjira.integrations.jira_client import JiraClient
from sheetjira.models.config import AddonConfig, TabSettings

JIRA_URL = "https://example.atlassian.net"
JIRA_EMAIL = "ada@example.com"
JIRA_TOKEN = "secret-token-123"


class FakeJira:
    """In-process stand-in for the Jira REST v2 API."""

    def __init__(self):
        self.requests = []
        self.created = []
        self.statuses = {}
        self.rejected_summaries = set()
        # Answered with an HTML page instead of JSON
        self.html_summaries = set()
        self.html_keys = set()
        self.auth_ok = True
        self._next_id = 100

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/rest/api/2/issue":
            body = json.loads(request.content)
            fields = body["fields"]
            if fields["summary"] in self.rejected_summaries:
                return httpx.Response(400, json={"errors": {"summary": "Summary rejected by workflow"}})
            if fields["summary"] in self.html_summaries:
                return httpx.Response(201, text="<html>gateway</html>")
            self._next_id += 1
            key = f"{fields['project']['key']}-{self._next_id}"
            self.created.append(body)
            self.statuses.setdefault(key, "To Do")
            return httpx.Response(201, json={"id": str(self._next_id), "key": key})

        if request.method == "GET" and path == "/rest/api/2/myself":
            if not self.auth_ok:
                return httpx.Response(401, text="Unauthorized")
            return httpx.Response(200, json={"displayName": "Ada Lovelace", "emailAddress": JIRA_EMAIL})

        if request.method == "GET" and path.startswith("/rest/api/2/issue/"):
            key = path.rsplit("/", 1)[-1]
            if key in self.html_keys:
                return httpx.Response(200, text="<html>login</html>")
            if key not in self.statuses:
                return httpx.Response(404, json={"errorMessages": ["Issue does not exist"]})
            return httpx.Response(200, json={"key": key, "fields": {"status": {"name": self.statuses[key]}}})

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def create_requests(self):
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_jira():
    return FakeJira()


@pytest.fixture
def config():
    return AddonConfig.from_store({
        "jiraUrl": JIRA_URL,
        "jiraEmail": JIRA_EMAIL,
        "jiraApiToken": JIRA_TOKEN,
        "tabSettings": {
            "Backlog": {"jiraProject": "OPS", "defaultIssueType": "Task"},
        },
        "columnMapping": {
            "Summary": {"mapped": "summary", "required": True},
            "Details": {"mapped": "description"},
            "Component": {"mapped": "components"},
            "Ticket Key": {"mapped": "ticketId"},
        },
    })


@pytest.fixture
def tab_settings():
    return TabSettings(project_key="OPS")


@pytest.fixture
async def client(fake_jira, config):
    jira = JiraClient.from_config(config, transport=fake_jira.transport)
    yield jira
    await jira.close()
