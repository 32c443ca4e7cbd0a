"""Header resolution and cell helpers shared by validation, building and sync."""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from sheetjira.models.mapping import MappingEntry, MappingTarget
from sheetjira.sheets.grid import Hyperlink, Sheet

TICKET_KEY_HEADER = "Ticket Key"
STATUS_HEADER = "Status"
LINK_HEADER = "#"
PROCESS_HEADER = "Process"
SUMMARY_HEADER = "Summary"
EPIC_HEADERS = ("EPIC", "Epic")

# Targets implied by well-known headers that are unmapped or mapped to none
_LITERAL_TARGETS = {
    SUMMARY_HEADER: MappingTarget.SUMMARY,
    **{header: MappingTarget.EPIC_LINK for header in EPIC_HEADERS},
    TICKET_KEY_HEADER: MappingTarget.TICKET_ID,
}

PROJECT_KEY_PATTERN = re.compile(r"^([A-Za-z][A-Za-z0-9_]*)-\d+$")

_TRUE_FLAGS = {"true", "yes", "y", "x", "1", "✓", "✔"}


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return not any(not is_blank(v) for v in value)
    return False


def cell_text(value: Any) -> str:
    """Cell value as trimmed text; whole floats lose their `.0`."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def format_date(value: Any) -> Any:
    """ISO `YYYY-MM-DD` for date cells, anything else unchanged."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def derive_project_key(value: Any) -> Optional[str]:
    """Project key from a `PROJ-123` style value, None if it does not parse."""
    match = PROJECT_KEY_PATTERN.match(cell_text(value))
    return match.group(1) if match else None


def is_flag_set(value: Any) -> bool:
    if value is True:
        return True
    if value is None or value is False:
        return False
    return cell_text(value).lower() in _TRUE_FLAGS


def effective_entry(header: str, mapping: Dict[str, MappingEntry]) -> MappingEntry:
    """
    Mapping entry for a header.

    Literal headers (`Summary`, `EPIC`/`Epic`, `Ticket Key`) keep their
    meaning when the header is unmapped or mapped to `none`; any other
    explicit target wins.
    """
    entry = mapping.get(header)
    if entry is not None and entry.target != MappingTarget.NONE:
        return entry
    target = _LITERAL_TARGETS.get(header.strip())
    if target is not None:
        return MappingEntry(target=target)
    return entry or MappingEntry()


def is_epic_column(entry: MappingEntry) -> bool:
    return entry.target == MappingTarget.EPIC_LINK


def row_project_key(
    headers: Sequence[str],
    row: Sequence[Any],
    mapping: Dict[str, MappingEntry]
) -> Optional[str]:
    """Project key derived from the row's epic columns; the last parseable one wins."""
    derived = None
    for index, header in enumerate(headers):
        value = row[index] if index < len(row) else None
        if is_blank(value):
            continue
        if is_epic_column(effective_entry(header, mapping)):
            derived = derive_project_key(value) or derived
    return derived


class SheetTable:
    """Header row plus data rows of one sheet tab."""

    def __init__(self, sheet: Sheet, header_row: int = 1):
        self.sheet = sheet
        self.header_row = header_row
        self.values = sheet.get_values()

        raw_headers = self.values[header_row - 1] if len(self.values) >= header_row else []
        self.headers: List[str] = [cell_text(h) for h in raw_headers]

    @property
    def first_data_row(self) -> int:
        return self.header_row + 1

    @property
    def last_row(self) -> int:
        return len(self.values)

    def row_numbers(self) -> range:
        return range(self.first_data_row, self.last_row + 1)

    def row(self, row_number: int) -> List[Any]:
        """Cells of a row, aligned with the headers."""
        if row_number < self.first_data_row or row_number > self.last_row:
            return [None] * len(self.headers)
        cells = list(self.values[row_number - 1][:len(self.headers)])
        return cells + [None] * (len(self.headers) - len(cells))

    def column(self, header: str) -> Optional[int]:
        """1-based column of the first header with this name."""
        for index, name in enumerate(self.headers):
            if name == header:
                return index + 1
        return None

    def columns_for(self, target: MappingTarget, mapping: Dict[str, MappingEntry]) -> List[int]:
        return [
            index + 1
            for index, header in enumerate(self.headers)
            if header and effective_entry(header, mapping).target == target
        ]

    def ticket_key(self, row_number: int, mapping: Dict[str, MappingEntry]) -> str:
        """Existing ticket key in the row, empty when there is none."""
        cells = self.row(row_number)
        for column in self.columns_for(MappingTarget.TICKET_ID, mapping):
            text = cell_text(cells[column - 1])
            if text:
                return text
        return ""

    def write(self, row_number: int, column: int, value: Any) -> None:
        self.sheet.set_value(row_number, column, value)
        # Keep the cached values in step so later reads see the write
        while len(self.values) < row_number:
            self.values.append([])
        cells = self.values[row_number - 1]
        if not isinstance(cells, list):
            cells = list(cells)
            self.values[row_number - 1] = cells
        while len(cells) < column:
            cells.append(None)
        cells[column - 1] = value

    def write_link(self, row_number: int, url: str, text: str) -> None:
        column = self.column(LINK_HEADER)
        if column is not None:
            self.write(row_number, column, Hyperlink(url, text))
