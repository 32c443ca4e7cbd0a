"""Batch ticket creation and status sync for one sheet tab."""

from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from sheetjira.errors import EmptyRow, RowValidationError, TrackerError
from sheetjira.integrations.jira_client import JiraClient
from sheetjira.models.config import AddonConfig, TicketTemplate
from sheetjira.models.mapping import MappingTarget
from sheetjira.models.ticket import (
    BatchReport,
    BatchValidation,
    CreatedRow,
    RowError,
    RunMode,
    StatusSyncReport,
    TicketPayload,
)
from sheetjira.sheets.columns import PROCESS_HEADER, STATUS_HEADER, SheetTable, is_blank, is_flag_set
from sheetjira.sheets.grid import Sheet
from sheetjira.sheets.payload_builder import PayloadBuilder
from sheetjira.sheets.templates import get_template
from sheetjira.sheets.validator import RowValidator
from sheetjira.utils.logger import get_structured_logger

logger = get_structured_logger(__name__)

ConfirmCallback = Callable[[BatchValidation], bool]


class SyncState(str, Enum):
    IDLE = "Idle"
    VALIDATING = "Validating"
    PARTIALLY_INVALID = "PartiallyInvalid"
    ALL_VALID = "AllValid"
    CREATING = "Creating"
    REPORTING = "Reporting"


class SheetSyncController:
    """
    Creates tickets from sheet rows and writes results back.

    Rows are handled one at a time. A failing row is recorded in the report
    and the batch moves on to the next one.
    """

    def __init__(self, config: AddonConfig, client: JiraClient, sheet: Sheet):
        self.config = config
        self.client = client
        self.sheet = sheet
        self.tab_settings = config.tab(sheet.name)
        self.mapping = config.column_mapping
        self.validator = RowValidator(self.mapping, self.tab_settings)
        self.builder = PayloadBuilder(self.mapping, self.tab_settings)
        self.state = SyncState.IDLE
        self.log = logger.with_context(tab=sheet.name)

    def _enter(self, state: SyncState) -> None:
        self.log.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def _table(self) -> SheetTable:
        return SheetTable(self.sheet, self.tab_settings.header_row)

    def _candidates(self, table: SheetTable, mode: RunMode, rows: Optional[Iterable[int]]) -> Tuple[List[int], int]:
        """Split rows into candidates and a count of skipped ones."""
        if mode == RunMode.SELECTION:
            selected = sorted(set(rows or []))
            row_numbers = [r for r in selected if r >= table.first_data_row]
            if len(row_numbers) < len(selected):
                self.log.debug(f"Ignoring selected rows above row {table.first_data_row}")
        else:
            row_numbers = list(table.row_numbers())

        process_column = table.column(PROCESS_HEADER)
        candidates: List[int] = []
        skipped = 0

        for row_number in row_numbers:
            cells = table.row(row_number)
            if mode == RunMode.SHEET and all(is_blank(v) for v in cells):
                continue
            if table.ticket_key(row_number, self.mapping):
                skipped += 1
                continue
            if mode == RunMode.SHEET and process_column is not None:
                if not is_flag_set(cells[process_column - 1]):
                    skipped += 1
                    continue
            candidates.append(row_number)

        return candidates, skipped

    def validate_batch(self, mode: RunMode = RunMode.SHEET, rows: Optional[Iterable[int]] = None) -> BatchValidation:
        """
        Validate every candidate row without side effects.

        Args:
            mode: Whole sheet or a selection of rows
            rows: 1-based row numbers for selection runs

        Returns:
            Valid rows, invalid rows with their messages, and the skipped count
        """
        self._enter(SyncState.VALIDATING)
        table = self._table()
        candidates, skipped = self._candidates(table, mode, rows)

        validation = BatchValidation(skipped=skipped)
        for row_number in candidates:
            result = self.validator.validate(table.headers, table.row(row_number))
            if result.ok:
                validation.valid_rows.append(row_number)
            else:
                validation.invalid_rows.append(RowError(row=row_number, messages=result.errors))

        self._enter(SyncState.ALL_VALID if validation.all_valid else SyncState.PARTIALLY_INVALID)
        self.log.info(
            f"Validated {len(candidates)} rows: {len(validation.valid_rows)} valid, "
            f"{len(validation.invalid_rows)} invalid, {skipped} skipped",
            mode=mode.value
        )
        return validation

    async def create_tickets(
        self,
        mode: RunMode = RunMode.SHEET,
        rows: Optional[Iterable[int]] = None,
        confirm: Optional[ConfirmCallback] = None
    ) -> BatchReport:
        """
        Create tickets for a selection of rows or the whole sheet.

        Args:
            mode: Whole sheet or a selection of rows
            rows: 1-based row numbers for selection runs
            confirm: Asked whether to go on with the valid rows when some are
                invalid; without it a partially invalid batch is aborted

        Returns:
            Batch report

        Raises:
            NotConfigured: If connection settings are incomplete
        """
        return await self._run(mode, rows, confirm, self.builder.build)

    async def create_single(self, row: int) -> BatchReport:
        """Create a ticket for one row."""
        return await self.create_tickets(RunMode.SELECTION, [row])

    async def create_from_template(
        self,
        template_name: str,
        rows: Iterable[int],
        confirm: Optional[ConfirmCallback] = None
    ) -> BatchReport:
        """
        Create tickets for rows using a stored template.

        Raises:
            TemplateNotFound: If the template is not configured
            NotConfigured: If connection settings are incomplete
        """
        template = get_template(self.config.ticket_templates, template_name)
        self.log.info(f"Creating tickets from template '{template_name}'")
        return await self._run(
            RunMode.SELECTION,
            rows,
            confirm,
            lambda headers, cells: self.builder.build_from_template(template, headers, cells),
            template=template
        )

    def _validate_template_rows(self, table: SheetTable, candidates: List[int], template: TicketTemplate, skipped: int) -> BatchValidation:
        validation = BatchValidation(skipped=skipped)
        for row_number in candidates:
            cells = table.row(row_number)
            try:
                if all(is_blank(v) for v in cells):
                    raise EmptyRow()
                self.builder.build_from_template(template, table.headers, cells)
            except RowValidationError as e:
                validation.invalid_rows.append(RowError(row=row_number, messages=[str(e)]))
            else:
                validation.valid_rows.append(row_number)
        return validation

    async def _run(
        self,
        mode: RunMode,
        rows: Optional[Iterable[int]],
        confirm: Optional[ConfirmCallback],
        build: Callable[[List[str], List[Any]], TicketPayload],
        template: Optional[TicketTemplate] = None
    ) -> BatchReport:
        self.client.ensure_configured()

        if template is None:
            validation = self.validate_batch(mode, rows)
        else:
            self._enter(SyncState.VALIDATING)
            table = self._table()
            candidates, skipped = self._candidates(table, mode, rows)
            validation = self._validate_template_rows(table, candidates, template, skipped)
            self._enter(SyncState.ALL_VALID if validation.all_valid else SyncState.PARTIALLY_INVALID)

        if not validation.all_valid:
            for error in validation.invalid_rows:
                self.log.warning(f"Row {error.row} invalid: {'; '.join(error.messages)}")
            if confirm is None or not confirm(validation):
                self.log.info("Ticket creation aborted after validation")
                self._enter(SyncState.IDLE)
                return BatchReport(aborted=True, skipped=validation.skipped,
                                   validation_skipped=len(validation.invalid_rows),
                                   row_errors=validation.invalid_rows)

        report = BatchReport(
            skipped=validation.skipped,
            validation_skipped=len(validation.invalid_rows),
            row_errors=list(validation.invalid_rows)
        )

        self._enter(SyncState.CREATING)
        table = self._table()
        status_column = table.column(STATUS_HEADER)

        for row_number in validation.valid_rows:
            row_log = self.log.with_context(row=row_number)
            try:
                payload = build(table.headers, table.row(row_number))
                created = await self.client.create_ticket(payload)
            except (RowValidationError, TrackerError) as e:
                row_log.error(f"Ticket creation failed: {e}")
                report.errored += 1
                report.row_errors.append(RowError(row=row_number, messages=[str(e)]))
                continue

            self._write_created(table, row_number, payload, created.key, created.url)
            report.created += 1
            report.tickets.append(CreatedRow(row=row_number, key=created.key, url=created.url))
            row_log.info(f"Created {created.key}")

            if status_column is not None:
                try:
                    status = await self.client.get_ticket(created.key)
                except TrackerError as e:
                    row_log.warning(f"Created {created.key} but could not read its status: {e}")
                else:
                    table.write(row_number, status_column, status.status)

        self._enter(SyncState.REPORTING)
        self.log.info(
            f"Batch finished: {report.created} created, {report.skipped} skipped, "
            f"{report.validation_skipped} invalid, {report.errored} errors"
        )
        self._enter(SyncState.IDLE)
        return report

    def _write_created(self, table: SheetTable, row_number: int, payload: TicketPayload, key: str, url: str) -> None:
        columns = [table.column(header) for header in payload.output_columns]
        columns = [c for c in columns if c is not None]
        if not columns:
            self.log.warning(f"No ticket key column to record {key} in row {row_number}")
        for column in columns:
            table.write(row_number, column, key)
        table.write_link(row_number, url, key)

    async def sync_status(self) -> StatusSyncReport:
        """
        Refresh the Status column of every row that has a ticket key.

        Raises:
            NotConfigured: If connection settings are incomplete
        """
        self.client.ensure_configured()
        report = StatusSyncReport()

        table = self._table()
        status_column = table.column(STATUS_HEADER)
        if status_column is None:
            self.log.warning(f"Sheet has no '{STATUS_HEADER}' column, nothing to sync")
            return report
        if not table.columns_for(MappingTarget.TICKET_ID, self.mapping):
            self.log.warning("Sheet has no ticket key column, nothing to sync")
            return report

        for row_number in table.row_numbers():
            key = table.ticket_key(row_number, self.mapping)
            if not key:
                continue
            try:
                ticket = await self.client.get_ticket(key)
            except TrackerError as e:
                self.log.with_context(row=row_number).error(f"Status sync failed for {key}: {e}")
                report.errored += 1
                report.row_errors.append(RowError(row=row_number, messages=[str(e)]))
                continue
            table.write(row_number, status_column, ticket.status)
            report.updated += 1

        self.log.info(f"Status sync finished: {report.updated} updated, {report.errored} errors")
        return report
