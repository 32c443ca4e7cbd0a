"""Turns a spreadsheet row into a Jira ticket payload."""

from typing import Any, Dict, List, Sequence, Tuple

from sheetjira.errors import MissingProjectKey, MissingSummary
from sheetjira.models.config import TabSettings, TicketTemplate
from sheetjira.models.mapping import MappingEntry, MappingTarget
from sheetjira.models.ticket import TicketPayload
from sheetjira.sheets.columns import (
    cell_text,
    derive_project_key,
    effective_entry,
    format_date,
    is_blank,
    is_epic_column,
)
from sheetjira.sheets.templates import render_template

_TEXT_FIELDS = {
    MappingTarget.SUMMARY: "summary",
    MappingTarget.DESCRIPTION: "description",
    MappingTarget.ISSUE_TYPE: "issue_type",
    MappingTarget.PRIORITY: "priority",
    MappingTarget.ASSIGNEE: "assignee",
    MappingTarget.REPORTER: "reporter",
}

_LIST_FIELDS = {
    MappingTarget.LABELS: "labels",
    MappingTarget.COMPONENTS: "components",
}


def split_list(value: Any) -> List[str]:
    """Comma-separated cell text as trimmed, non-empty, unique items."""
    if isinstance(value, (list, tuple, set)):
        return list(value)
    items: List[str] = []
    for piece in cell_text(value).split(","):
        piece = piece.strip()
        if piece and piece not in items:
            items.append(piece)
    return items


class PayloadBuilder:
    """
    Builds ticket payloads from rows using the column mapping.

    Direct assignments are applied first and prepend/append columns second,
    so a modifier column always sees the base value regardless of where it
    sits in the sheet.
    """

    def __init__(self, mapping: Dict[str, MappingEntry], tab_settings: TabSettings):
        self.mapping = mapping
        self.tab_settings = tab_settings

    def build(self, headers: Sequence[str], row: Sequence[Any]) -> TicketPayload:
        """
        Build the payload for one row.

        Args:
            headers: Header row
            row: Cell values aligned with headers

        Returns:
            Ticket payload ready for creation

        Raises:
            MissingSummary: If no summary column has a value
            MissingProjectKey: If no project key can be derived or configured
        """
        draft: Dict[str, Any] = {
            "issue_type": self.tab_settings.default_issue_type,
            "labels": [],
            "components": [],
            "custom_fields": {},
            "output_columns": [],
        }
        derived_project = None
        modifiers: List[Tuple[MappingEntry, Any]] = []

        for index, header in enumerate(headers):
            if not header:
                continue
            entry = effective_entry(header, self.mapping)
            value = row[index] if index < len(row) else None

            if entry.target == MappingTarget.TICKET_ID:
                draft["output_columns"].append(header)
                continue
            if is_blank(value):
                continue
            if is_epic_column(entry):
                derived_project = derive_project_key(value) or derived_project
            if entry.target.is_modifier:
                modifiers.append((entry, value))
                continue
            self._assign(draft, entry, value)

        if is_blank(draft.get("summary")):
            raise MissingSummary()

        for entry, value in modifiers:
            self._modify(draft, entry, value)

        draft["project_key"] = derived_project or self.tab_settings.project_key.strip()
        if not draft["project_key"]:
            raise MissingProjectKey()

        return TicketPayload(**draft)

    def build_from_template(
        self,
        template: TicketTemplate,
        headers: Sequence[str],
        row: Sequence[Any]
    ) -> TicketPayload:
        """
        Build a payload from a template filled with the row's values.

        Placeholders name column headers. Project key, epic link and output
        columns come from the row the same way `build` takes them.

        Raises:
            MissingSummary: If the rendered summary is blank
            MissingProjectKey: If no project key can be derived or configured
        """
        variables = {
            header: cell_text(row[i] if i < len(row) else None)
            for i, header in enumerate(headers)
            if header
        }
        rendered = render_template(template, variables)

        summary = rendered.summary.strip()
        if not summary:
            raise MissingSummary()

        payload = TicketPayload(
            project_key="",
            summary=summary,
            issue_type=rendered.issue_type or self.tab_settings.default_issue_type,
            description=rendered.description.strip() or None,
        )

        derived_project = None
        for index, header in enumerate(headers):
            if not header:
                continue
            entry = effective_entry(header, self.mapping)
            value = row[index] if index < len(row) else None
            if entry.target == MappingTarget.TICKET_ID:
                payload.output_columns.append(header)
            elif not is_blank(value) and is_epic_column(entry):
                epic = cell_text(value)
                payload.epic_link = epic
                payload.custom_fields[self.tab_settings.epic_field_id] = epic
                derived_project = derive_project_key(value) or derived_project

        payload.project_key = derived_project or self.tab_settings.project_key.strip()
        if not payload.project_key:
            raise MissingProjectKey()
        return payload

    def _assign(self, draft: Dict[str, Any], entry: MappingEntry, value: Any) -> None:
        target = entry.target

        if target in _TEXT_FIELDS:
            draft[_TEXT_FIELDS[target]] = cell_text(value)
        elif target in _LIST_FIELDS:
            items = draft[_LIST_FIELDS[target]]
            items.extend(item for item in split_list(value) if item not in items)
        elif target == MappingTarget.EPIC_LINK:
            epic = cell_text(value)
            draft["epic_link"] = epic
            draft["custom_fields"][self.tab_settings.epic_field_id] = epic
        elif target == MappingTarget.DUE_DATE:
            draft["due_date"] = format_date(value)
        elif target == MappingTarget.CUSTOM_FIELD:
            formatted = format_date(value)
            draft["custom_fields"][entry.field_id] = formatted.strip() if isinstance(formatted, str) else formatted
        elif target == MappingTarget.NONE:
            pass
        else:
            raise ValueError(f"Unhandled mapping target: {target}")

    def _modify(self, draft: Dict[str, Any], entry: MappingEntry, value: Any) -> None:
        field = _TEXT_FIELDS[entry.target.base_field]
        text = cell_text(value)
        current = draft.get(field)

        if is_blank(current):
            draft[field] = text
        elif entry.target.prepends:
            draft[field] = f"{text}{entry.separator}{current}"
        else:
            draft[field] = f"{current}{entry.separator}{text}"
