"""`${VarName}` substitution for ticket templates."""

import re
from typing import Any, Dict

from sheetjira.errors import TemplateNotFound
from sheetjira.models.config import TicketTemplate
from sheetjira.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^{}]+)\}")


def render_text(text: str, variables: Dict[str, Any]) -> str:
    """
    Replace `${Name}` placeholders with values.

    Names may contain spaces (they are usually column headers) and are
    matched after trimming. Unknown placeholders are left as they are.
    """
    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1).strip()
        if name not in variables:
            logger.debug(f"No value for template placeholder '{name}'")
            return match.group(0)
        value = variables[name]
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, text or "")


def render_template(template: TicketTemplate, variables: Dict[str, Any]) -> TicketTemplate:
    return TicketTemplate(
        issue_type=render_text(template.issue_type, variables).strip() or template.issue_type,
        summary=render_text(template.summary, variables),
        description=render_text(template.description, variables),
    )


def get_template(templates: Dict[str, TicketTemplate], name: str) -> TicketTemplate:
    """
    Look up a template by name.

    Raises:
        TemplateNotFound: If no template has this name
    """
    template = templates.get(name)
    if template is None:
        raise TemplateNotFound(name)
    return template
