"""Integration modules for external APIs."""

from .jira_client import JiraClient

__all__ = ["JiraClient"]
