"""Data models for sheet-jira-sync."""

from .config import AppSettings, AddonConfig, TabSettings, TicketTemplate
from .mapping import MappingEntry, MappingTarget
from .ticket import TicketPayload, BatchReport, StatusSyncReport, ValidationResult

__all__ = [
    "AppSettings",
    "AddonConfig",
    "TabSettings",
    "TicketTemplate",
    "MappingEntry",
    "MappingTarget",
    "TicketPayload",
    "BatchReport",
    "StatusSyncReport",
    "ValidationResult",
]
