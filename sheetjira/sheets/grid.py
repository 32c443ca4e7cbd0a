"""Spreadsheet hosts: an in-memory grid and an openpyxl workbook."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from sheetjira.utils.logger import get_logger

logger = get_logger(__name__)


class Hyperlink:
    """Cell value rendered as a link by the host."""

    def __init__(self, url: str, text: str):
        self.url = url
        self.text = text

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Hyperlink) and (self.url, self.text) == (other.url, other.text)

    def __repr__(self) -> str:
        return f"Hyperlink({self.url!r}, {self.text!r})"

    def __str__(self) -> str:
        return self.text


class Sheet(Protocol):
    """Grid of cells; rows and columns are 1-based."""

    name: str

    def get_values(self) -> List[List[Any]]:
        ...

    def set_value(self, row: int, column: int, value: Any) -> None:
        ...


class InMemorySheet:
    """Sheet backed by a list of rows."""

    def __init__(self, name: str, rows: Optional[List[List[Any]]] = None):
        self.name = name
        self.rows: List[List[Any]] = [list(r) for r in (rows or [])]

    def get_values(self) -> List[List[Any]]:
        width = max((len(r) for r in self.rows), default=0)
        return [r + [None] * (width - len(r)) for r in self.rows]

    def set_value(self, row: int, column: int, value: Any) -> None:
        while len(self.rows) < row:
            self.rows.append([])
        cells = self.rows[row - 1]
        while len(cells) < column:
            cells.append(None)
        cells[column - 1] = value

    def get_value(self, row: int, column: int) -> Any:
        try:
            return self.rows[row - 1][column - 1]
        except IndexError:
            return None


class WorksheetSheet:
    """Sheet backed by an openpyxl worksheet."""

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet
        self.name = worksheet.title

    def get_values(self) -> List[List[Any]]:
        return [list(r) for r in self.worksheet.iter_rows(values_only=True)]

    def set_value(self, row: int, column: int, value: Any) -> None:
        cell = self.worksheet.cell(row=row, column=column)
        if isinstance(value, Hyperlink):
            cell.value = value.text
            cell.hyperlink = value.url
            cell.style = "Hyperlink"
        else:
            cell.value = value


class WorkbookFile:
    """An .xlsx file opened for reading and write-back."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._workbook: Optional[Workbook] = None
        self._sheets: Dict[str, WorksheetSheet] = {}

    def open(self) -> "WorkbookFile":
        if not self.path.exists():
            raise FileNotFoundError(f"Workbook not found: {self.path}")
        self._workbook = load_workbook(self.path)
        logger.debug(f"Opened workbook {self.path} with sheets {self._workbook.sheetnames}")
        return self

    @property
    def sheet_names(self) -> List[str]:
        return list(self._require().sheetnames)

    def sheet(self, name: str) -> WorksheetSheet:
        """
        Get a sheet tab by name.

        Raises:
            KeyError: If the workbook has no such tab
        """
        workbook = self._require()
        if name not in workbook.sheetnames:
            raise KeyError(f"Sheet '{name}' not found in {self.path.name}")
        if name not in self._sheets:
            self._sheets[name] = WorksheetSheet(workbook[name])
        return self._sheets[name]

    def save(self) -> None:
        self._require().save(self.path)
        logger.info(f"Saved workbook {self.path}")

    def _require(self) -> Workbook:
        if self._workbook is None:
            self.open()
        return self._workbook
