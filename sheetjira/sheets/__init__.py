"""Spreadsheet access, row validation, payload building and batch sync."""

from .grid import InMemorySheet, WorkbookFile
from .payload_builder import PayloadBuilder
from .sync_controller import SheetSyncController, SyncState
from .validator import RowValidator

__all__ = [
    "InMemorySheet",
    "WorkbookFile",
    "PayloadBuilder",
    "SheetSyncController",
    "SyncState",
    "RowValidator",
]
