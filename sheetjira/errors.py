"""Error types for sheet-to-Jira operations."""

from typing import List, Optional


class SheetJiraError(Exception):
    """Base class for all sheet-jira errors."""


class NotConfigured(SheetJiraError):
    """Connection settings are incomplete."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            f"Jira connection is not configured (missing: {', '.join(self.missing)}). "
            "Open the settings and fill in URL, email and API token."
        )


class InvalidMapping(SheetJiraError):
    """A column mapping entry names an unknown target."""

    def __init__(self, column: str, value: object):
        self.column = column
        self.value = value
        super().__init__(f"Column '{column}' is mapped to unknown target '{value}'")


class TemplateNotFound(SheetJiraError):
    """The requested ticket template is not configured."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Ticket template '{name}' not found")


class TrackerError(SheetJiraError):
    """Jira API error with the HTTP status and response body when available."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthFailed(TrackerError):
    """Credentials were rejected or the auth check could not complete."""


class CreateFailed(TrackerError):
    """Ticket creation did not return 201 Created."""


class FetchFailed(TrackerError):
    """Ticket lookup did not return 200 OK."""


class RowValidationError(SheetJiraError):
    """A row cannot be turned into a ticket."""

    code = "RowValidationError"

    def __init__(self, message: str, column: Optional[str] = None):
        super().__init__(message)
        self.column = column


class EmptyRow(RowValidationError):
    code = "EmptyRow"

    def __init__(self):
        super().__init__("Row is empty")


class MissingSummary(RowValidationError):
    code = "MissingSummary"

    def __init__(self):
        super().__init__("Summary is required")


class MissingProjectKey(RowValidationError):
    code = "MissingProjectKey"

    def __init__(self):
        super().__init__(
            "Project key is required: set it in the tab settings or fill an Epic column (e.g. PROJ-123)"
        )


class MissingRequiredField(RowValidationError):
    code = "MissingRequiredField"

    def __init__(self, column: str):
        super().__init__(f"Required field '{column}' is empty", column=column)
