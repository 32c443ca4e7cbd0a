"""Ticket data models for Jira integration."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from sheetjira.errors import RowValidationError


class TicketPayload(BaseModel):
    """Ticket fields collected from one spreadsheet row."""

    project_key: str = Field(..., description="Jira project key (e.g., PROJ)")
    summary: str = Field(..., description="Ticket summary")
    issue_type: str = Field(default="Task")
    description: Optional[str] = Field(None)
    priority: Optional[str] = Field(None)
    labels: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)
    assignee: Optional[str] = Field(None)
    reporter: Optional[str] = Field(None)
    due_date: Optional[Any] = Field(None, description="ISO date or raw cell value")
    epic_link: Optional[str] = Field(None)
    custom_fields: Dict[str, Any] = Field(default_factory=dict, description="Field id to value")

    # Columns that receive the created ticket key
    output_columns: List[str] = Field(default_factory=list, exclude=True)

    def to_jira(self) -> Dict[str, Any]:
        """Create the Jira REST v2 issue-creation body."""
        fields: Dict[str, Any] = {
            "project": {"key": self.project_key},
            "summary": self.summary,
            "issuetype": {"name": self.issue_type},
        }

        if self.description:
            fields["description"] = self.description
        if self.priority:
            fields["priority"] = {"name": self.priority}
        if self.labels:
            fields["labels"] = list(self.labels)
        if self.components:
            fields["components"] = [{"name": name} for name in self.components]
        if self.assignee:
            fields["assignee"] = {"name": self.assignee}
        if self.reporter:
            fields["reporter"] = {"name": self.reporter}
        if self.due_date:
            fields["duedate"] = self.due_date

        fields.update(self.custom_fields)
        return {"fields": fields}


class CreatedTicket(BaseModel):
    key: str = Field(..., description="Jira ticket key (e.g., PROJ-123)")
    url: str = Field(..., description="Direct URL to the ticket")


class TicketStatus(BaseModel):
    key: str
    status: str


class JiraUser(BaseModel):
    display_name: str
    email: Optional[str] = None


class ValidationIssue(BaseModel):
    """One defect found while validating a row."""

    code: str
    message: str
    column: Optional[str] = None

    @classmethod
    def from_error(cls, error: RowValidationError) -> "ValidationIssue":
        return cls(code=error.code, message=str(error), column=error.column)


class ValidationResult(BaseModel):
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> List[str]:
        return [issue.message for issue in self.issues]

    @property
    def codes(self) -> List[str]:
        return [issue.code for issue in self.issues]


class RunMode(str, Enum):
    """Which rows a batch operation considers."""
    SELECTION = "selection"
    SHEET = "sheet"


class RowError(BaseModel):
    row: int = Field(..., description="1-based sheet row number")
    messages: List[str] = Field(default_factory=list)


class CreatedRow(BaseModel):
    row: int
    key: str
    url: str


class BatchValidation(BaseModel):
    """Pre-flight result of a batch operation."""

    valid_rows: List[int] = Field(default_factory=list)
    invalid_rows: List[RowError] = Field(default_factory=list)
    skipped: int = Field(default=0, description="Rows with a ticket already or not opted in")

    @property
    def all_valid(self) -> bool:
        return not self.invalid_rows


class BatchReport(BaseModel):
    """Outcome of a ticket-creation batch."""

    created: int = 0
    skipped: int = 0
    validation_skipped: int = 0
    errored: int = 0
    aborted: bool = False
    tickets: List[CreatedRow] = Field(default_factory=list)
    row_errors: List[RowError] = Field(default_factory=list)

    @property
    def summary_text(self) -> str:
        """Format the report for the user-facing summary dialog."""
        if self.aborted:
            return "Ticket creation cancelled. No tickets were created."

        lines = [
            f"Created: {self.created}",
            f"Skipped: {self.skipped}",
            f"Skipped (validation): {self.validation_skipped}",
            f"Errors: {self.errored}",
        ]
        for error in self.row_errors:
            lines.append(f"Row {error.row}: {'; '.join(error.messages)}")
        return "\n".join(lines)


class StatusSyncReport(BaseModel):
    updated: int = 0
    errored: int = 0
    row_errors: List[RowError] = Field(default_factory=list)

    @property
    def summary_text(self) -> str:
        lines = [f"Updated: {self.updated}", f"Errors: {self.errored}"]
        for error in self.row_errors:
            lines.append(f"Row {error.row}: {'; '.join(error.messages)}")
        return "\n".join(lines)
