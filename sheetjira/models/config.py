"""Configuration models for sheet-jira-sync."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from sheetjira.models.mapping import MappingEntry, parse_column_mapping

DEFAULT_ISSUE_TYPE = "Task"
DEFAULT_EPIC_FIELD_ID = "customfield_10014"


class AppSettings(BaseSettings):
    """Process settings loaded from environment variables."""

    log_level: str = Field(default="INFO")
    environment: str = Field(default="development")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Persisted add-on configuration (credentials, mapping, templates)
    config_path: str = Field(default="sheetjira_config.json")

    # Spreadsheet host
    workbook_path: str = Field(default="tickets.xlsx")

    http_timeout: float = Field(default=30.0)

    class Config:
        env_prefix = "SHEETJIRA_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


class TabSettings(BaseModel):
    """Per sheet-tab Jira settings."""

    project_key: str = Field(default="", alias="jiraProject")
    default_issue_type: str = Field(default=DEFAULT_ISSUE_TYPE, alias="defaultIssueType")
    epic_field_id: str = Field(default=DEFAULT_EPIC_FIELD_ID, alias="epicFieldId")
    header_row: int = Field(default=1, alias="headerRow")

    class Config:
        populate_by_name = True

    @field_validator("header_row")
    @classmethod
    def _check_header_row(cls, v: int) -> int:
        if v not in (1, 2):
            raise ValueError("headerRow must be 1 or 2")
        return v

    @field_validator("default_issue_type", "epic_field_id", mode="before")
    @classmethod
    def _fill_blank(cls, v: Any, info) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_ISSUE_TYPE if info.field_name == "default_issue_type" else DEFAULT_EPIC_FIELD_ID
        return v.strip() if isinstance(v, str) else v


class TicketTemplate(BaseModel):
    """Reusable ticket skeleton with `${VarName}` placeholders."""

    issue_type: str = Field(default=DEFAULT_ISSUE_TYPE, alias="issuetype")
    summary: str = Field(default="")
    description: str = Field(default="")

    class Config:
        populate_by_name = True

    @field_validator("issue_type", mode="before")
    @classmethod
    def _unwrap_issue_type(cls, v: Any) -> Any:
        # Stored as {"name": "Bug"}
        if isinstance(v, dict):
            return v.get("name") or DEFAULT_ISSUE_TYPE
        return v or DEFAULT_ISSUE_TYPE

    def to_store(self) -> Dict[str, Any]:
        return {
            "issuetype": {"name": self.issue_type},
            "summary": self.summary,
            "description": self.description,
        }


class AddonConfig(BaseModel):
    """Connection settings, tab settings, column mapping and templates."""

    jira_url: str = Field(default="", alias="jiraUrl")
    jira_email: str = Field(default="", alias="jiraEmail")
    jira_api_token: str = Field(default="", alias="jiraApiToken")
    tab_settings: Dict[str, TabSettings] = Field(default_factory=dict, alias="tabSettings")
    column_mapping: Dict[str, MappingEntry] = Field(default_factory=dict, alias="columnMapping")
    ticket_templates: Dict[str, TicketTemplate] = Field(default_factory=dict, alias="ticketTemplates")

    class Config:
        populate_by_name = True

    @classmethod
    def from_store(cls, data: Optional[Dict[str, Any]]) -> "AddonConfig":
        """
        Build a config from its persisted form.

        Column mapping entries are normalized here so that legacy string
        entries and unknown targets never reach the core logic.

        Raises:
            InvalidMapping: If a mapping entry names an unknown target
        """
        data = dict(data or {})
        mapping = parse_column_mapping(data.pop("columnMapping", None))
        config = cls.model_validate(data)
        config.column_mapping = mapping
        return config

    def to_store(self) -> Dict[str, Any]:
        return {
            "jiraUrl": self.jira_url,
            "jiraEmail": self.jira_email,
            "jiraApiToken": self.jira_api_token,
            "tabSettings": {
                name: tab.model_dump(by_alias=True) for name, tab in self.tab_settings.items()
            },
            "columnMapping": {
                column: entry.to_store() for column, entry in self.column_mapping.items()
            },
            "ticketTemplates": {
                name: template.to_store() for name, template in self.ticket_templates.items()
            },
        }

    def tab(self, name: str) -> TabSettings:
        """Settings for a tab, defaults when the tab was never configured."""
        return self.tab_settings.get(name) or TabSettings()

    def missing_connection_fields(self) -> List[str]:
        missing = []
        if not self.jira_url.strip():
            missing.append("jiraUrl")
        if not self.jira_email.strip():
            missing.append("jiraEmail")
        if not self.jira_api_token.strip():
            missing.append("jiraApiToken")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing_connection_fields()
