"""Row validation before ticket creation."""

from typing import Any, Dict, Sequence

from sheetjira.errors import EmptyRow, MissingProjectKey, MissingRequiredField, MissingSummary
from sheetjira.models.config import TabSettings
from sheetjira.models.mapping import MappingEntry, MappingTarget
from sheetjira.models.ticket import ValidationIssue, ValidationResult
from sheetjira.sheets.columns import effective_entry, is_blank, row_project_key


class RowValidator:
    """Checks whether a row has enough data to create a ticket."""

    def __init__(self, mapping: Dict[str, MappingEntry], tab_settings: TabSettings):
        self.mapping = mapping
        self.tab_settings = tab_settings

    def validate(self, headers: Sequence[str], row: Sequence[Any]) -> ValidationResult:
        """
        Validate a row against the column mapping.

        Every defect is reported; an empty row reports only EmptyRow.

        Args:
            headers: Header row
            row: Cell values aligned with headers

        Returns:
            Validation result listing all issues found
        """
        result = ValidationResult()

        if all(is_blank(value) for value in row):
            result.issues.append(ValidationIssue.from_error(EmptyRow()))
            return result

        values = {header: row[i] if i < len(row) else None for i, header in enumerate(headers)}

        project_key = row_project_key(headers, row, self.mapping) or self.tab_settings.project_key.strip()
        if not project_key:
            result.issues.append(ValidationIssue.from_error(MissingProjectKey()))

        for column, entry in self.mapping.items():
            if entry.enforces_required and is_blank(values.get(column)):
                result.issues.append(ValidationIssue.from_error(MissingRequiredField(column)))

        has_summary = any(
            effective_entry(header, self.mapping).target == MappingTarget.SUMMARY
            and not is_blank(values.get(header))
            for header in headers
        )
        if not has_summary:
            result.issues.append(ValidationIssue.from_error(MissingSummary()))

        return result
