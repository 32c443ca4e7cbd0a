"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from sheetjira.integrations.jira_client import JiraClient
from sheetjira.main import app, get_client_factory, get_config_store, get_workbook
from sheetjira.sheets.grid import InMemorySheet
from sheetjira.utils.config_store import ConfigStore
from sheetjira.utils.health import health_checker


class FakeWorkbook:
    def __init__(self, *sheets):
        self.sheets = {sheet.name: sheet for sheet in sheets}
        self.saves = 0

    def sheet(self, name):
        if name not in self.sheets:
            raise KeyError(f"Sheet '{name}' not found")
        return self.sheets[name]

    def save(self):
        self.saves += 1


@pytest.fixture
def store(tmp_path, config):
    store = ConfigStore(str(tmp_path / "sheetjira.json"))
    store.save(config)
    return store


@pytest.fixture
def workbook():
    return FakeWorkbook(InMemorySheet("Backlog", [
        ["Summary", "Details", "Ticket Key", "Status", "#"],
        ["Fix login", "Users cannot log in", "", None, None],
        ["Old work", "", "OPS-1", "In Progress", None],
    ]))


@pytest.fixture
def api(store, workbook, fake_jira):
    health_checker.clear()
    app.dependency_overrides[get_config_store] = lambda: store
    app.dependency_overrides[get_workbook] = lambda: workbook
    app.dependency_overrides[get_client_factory] = lambda: (
        lambda config: JiraClient.from_config(config, transport=fake_jira.transport)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    health_checker.clear()


def test_root(api):
    response = api.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


class TestSettings:
    def test_token_is_masked(self, api):
        data = api.get("/config/settings").json()
        assert data["jiraApiToken"] == "secr..."
        assert data["configured"] is True

    def test_update_keeps_token_when_omitted(self, api, store):
        response = api.put("/config/settings", json={
            "jiraUrl": "https://other.atlassian.net/",
            "jiraEmail": "grace@example.com",
        })

        assert response.status_code == 200
        config = store.load()
        assert config.jira_url == "https://other.atlassian.net"
        assert config.jira_email == "grace@example.com"
        assert config.jira_api_token == "secret-token-123"

    def test_tab_settings(self, api):
        response = api.put("/config/tabs/Backlog", json={"jiraProject": "WEB", "headerRow": 2})
        assert response.status_code == 200

        data = api.get("/config/tabs/Backlog").json()
        assert data["jiraProject"] == "WEB"
        assert data["headerRow"] == 2
        assert data["epicFieldId"] == "customfield_10014"

    def test_tab_settings_reject_header_row(self, api):
        response = api.put("/config/tabs/Backlog", json={"headerRow": 3})
        assert response.status_code == 422


class TestMapping:
    def test_update_normalizes_entries(self, api):
        response = api.put("/config/mapping", json={
            "Title": "summary",
            "Tag": {"mapped": "prependSummary", "separator": " - "},
        })

        assert response.status_code == 200
        assert response.json() == {
            "Title": {"mapped": "summary", "required": False},
            "Tag": {"mapped": "prependSummary", "required": False, "separator": " - "},
        }
        assert api.get("/config/mapping").json() == response.json()

    def test_unknown_target_rejected(self, api, store):
        response = api.put("/config/mapping", json={"Title": "headline"})

        assert response.status_code == 422
        assert "headline" in response.json()["detail"]
        assert "Summary" in store.load().column_mapping

    def test_targets(self, api):
        data = api.get("/config/mapping/targets").json()
        assert "prependSummary" in data["modifiers"]
        assert "customField" not in data["targets"]


class TestTemplates:
    def test_save_list_delete(self, api):
        response = api.put("/config/templates/Bug", json={"issuetype": {"name": "Bug"}, "summary": "Bug in ${Area}"})
        assert response.status_code == 200

        assert api.get("/config/templates").json()["Bug"]["summary"] == "Bug in ${Area}"
        assert api.delete("/config/templates/Bug").status_code == 200
        assert api.delete("/config/templates/Bug").status_code == 404


class TestAuth:
    def test_success(self, api):
        response = api.post("/auth/test")
        assert response.json() == {"success": True, "displayName": "Ada Lovelace"}

    def test_rejected(self, api, fake_jira):
        fake_jira.auth_ok = False
        assert api.post("/auth/test").status_code == 401

    def test_jira_health(self, api, fake_jira):
        fake_jira.auth_ok = False
        assert api.get("/health/jira").json()["status"] == "authentication_required"


class TestSheetRuns:
    def test_validate(self, api, fake_jira):
        data = api.post("/sheets/Backlog/validate", json={"mode": "sheet"}).json()
        assert data["valid_rows"] == [2]
        assert data["skipped"] == 1
        assert fake_jira.requests == []

    def test_create_tickets(self, api, workbook):
        response = api.post("/sheets/Backlog/tickets", json={"mode": "sheet"})

        assert response.status_code == 200
        data = response.json()
        assert data["created"] == 1
        assert data["skipped"] == 1
        assert data["tickets"][0]["key"] == "OPS-101"
        assert "Created: 1" in data["summary"]
        assert workbook.sheets["Backlog"].get_value(2, 3) == "OPS-101"
        assert workbook.saves == 1

    def test_not_configured(self, api, store, workbook, fake_jira):
        config = store.load()
        config.jira_api_token = ""
        store.save(config)

        response = api.post("/sheets/Backlog/tickets", json={"mode": "sheet"})

        assert response.status_code == 412
        assert "jiraApiToken" in response.json()["detail"]
        assert fake_jira.requests == []
        assert workbook.saves == 0

    def test_unknown_template(self, api):
        response = api.post("/sheets/Backlog/tickets/template", json={"template": "Nope", "rows": [2]})
        assert response.status_code == 404

    def test_unknown_tab(self, api):
        assert api.post("/sheets/Roadmap/tickets", json={}).status_code == 404

    def test_sync_status(self, api, fake_jira, workbook):
        fake_jira.statuses["OPS-1"] = "Done"

        data = api.post("/sheets/Backlog/status").json()

        assert data["updated"] == 1
        assert workbook.sheets["Backlog"].get_value(3, 4) == "Done"
        assert workbook.saves == 1
