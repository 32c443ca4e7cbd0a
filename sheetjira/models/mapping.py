"""Column-to-field mapping models."""

import re
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from sheetjira.errors import InvalidMapping

CUSTOM_FIELD_PATTERN = re.compile(r"^customfield_\d+$")


class MappingTarget(str, Enum):
    """Ticket fields a spreadsheet column can feed."""
    NONE = "none"
    TICKET_ID = "ticketId"
    SUMMARY = "summary"
    DESCRIPTION = "description"
    PREPEND_SUMMARY = "prependSummary"
    APPEND_SUMMARY = "appendSummary"
    PREPEND_DESCRIPTION = "prependDescription"
    APPEND_DESCRIPTION = "appendDescription"
    ISSUE_TYPE = "issueType"
    PRIORITY = "priority"
    LABELS = "labels"
    COMPONENTS = "components"
    EPIC_LINK = "epicLink"
    ASSIGNEE = "assignee"
    REPORTER = "reporter"
    DUE_DATE = "dueDate"
    CUSTOM_FIELD = "customField"

    @property
    def is_modifier(self) -> bool:
        """True for the prepend/append variants."""
        return self in _MODIFIERS

    @property
    def base_field(self) -> Optional["MappingTarget"]:
        """Field a prepend/append target modifies."""
        return _MODIFIERS.get(self, (None, False))[0]

    @property
    def prepends(self) -> bool:
        return _MODIFIERS.get(self, (None, False))[1]

    @property
    def accepts_required(self) -> bool:
        """Whether a required flag on this target is enforced."""
        return self not in (MappingTarget.NONE, MappingTarget.TICKET_ID) and not self.is_modifier


_MODIFIERS = {
    MappingTarget.PREPEND_SUMMARY: (MappingTarget.SUMMARY, True),
    MappingTarget.APPEND_SUMMARY: (MappingTarget.SUMMARY, False),
    MappingTarget.PREPEND_DESCRIPTION: (MappingTarget.DESCRIPTION, True),
    MappingTarget.APPEND_DESCRIPTION: (MappingTarget.DESCRIPTION, False),
}

# Spelling variants seen in stored mappings, compared after _normalize_name
_TARGET_ALIASES = {
    "": MappingTarget.NONE,
    "key": MappingTarget.TICKET_ID,
    "ticketkey": MappingTarget.TICKET_ID,
    "issuekey": MappingTarget.TICKET_ID,
    "epic": MappingTarget.EPIC_LINK,
}


def _normalize_name(value: str) -> str:
    return re.sub(r"[\s_\-]", "", value).lower()


# customField is only reachable through a `customfield_N` id
_TARGETS_BY_NAME = {
    _normalize_name(t.value): t for t in MappingTarget if t != MappingTarget.CUSTOM_FIELD
}
_TARGETS_BY_NAME.update(_TARGET_ALIASES)


class MappingEntry(BaseModel):
    """How one spreadsheet column feeds one ticket field."""

    target: MappingTarget = Field(default=MappingTarget.NONE)
    field_id: Optional[str] = Field(default=None, description="Jira field id for customField targets")
    required: bool = Field(default=False)
    separator: str = Field(default=" ", description="Join string for prepend/append targets")

    @property
    def enforces_required(self) -> bool:
        return self.required and self.target.accepts_required

    def to_store(self) -> Dict[str, Any]:
        """Serialize to the persisted `{mapped, required, separator}` shape."""
        mapped = self.field_id if self.target == MappingTarget.CUSTOM_FIELD else self.target.value
        data: Dict[str, Any] = {"mapped": mapped, "required": self.required}
        if self.target.is_modifier:
            data["separator"] = self.separator
        return data


def parse_target(column: str, value: Any) -> MappingEntry:
    """
    Resolve a stored target name into a bare mapping entry.

    Args:
        column: Column header the entry belongs to (for error messages)
        value: Stored target name

    Returns:
        MappingEntry with target (and field_id for custom fields) set

    Raises:
        InvalidMapping: If the name is not a known target
    """
    if value is None:
        return MappingEntry()
    if not isinstance(value, str):
        raise InvalidMapping(column, value)

    raw = value.strip()
    if CUSTOM_FIELD_PATTERN.match(raw):
        return MappingEntry(target=MappingTarget.CUSTOM_FIELD, field_id=raw)

    target = _TARGETS_BY_NAME.get(_normalize_name(raw))
    if target is None:
        raise InvalidMapping(column, value)
    return MappingEntry(target=target)


def parse_mapping_entry(column: str, raw: Any) -> MappingEntry:
    """
    Normalize a stored mapping entry.

    Accepts both the legacy bare-string form and the
    `{mapped, required, separator}` object form.
    """
    if isinstance(raw, MappingEntry):
        return raw
    if raw is None or isinstance(raw, str):
        return parse_target(column, raw)
    if not isinstance(raw, dict):
        raise InvalidMapping(column, raw)

    entry = parse_target(column, raw.get("mapped"))
    entry.required = bool(raw.get("required", False))
    separator = raw.get("separator")
    if separator is not None:
        entry.separator = str(separator)
    return entry


def parse_column_mapping(raw: Optional[Dict[str, Any]]) -> Dict[str, MappingEntry]:
    """Normalize a whole stored `columnMapping` section."""
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise InvalidMapping("columnMapping", raw)
    return {str(column): parse_mapping_entry(str(column), entry) for column, entry in raw.items()}
