"""Create and track Jira tickets from spreadsheet rows."""

__version__ = "1.0.0"
