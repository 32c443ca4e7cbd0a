"""Utility modules for sheet-jira-sync."""

from .logger import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
