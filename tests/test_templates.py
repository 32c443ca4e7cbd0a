"""Tests for template placeholder substitution."""

import pytest

from sheetjira.errors import TemplateNotFound
from sheetjira.models.config import TicketTemplate
from sheetjira.sheets.templates import get_template, render_template, render_text


def test_placeholders_replaced():
    assert render_text("Hello ${Name}, team ${ Team }", {"Name": "Grace", "Team": "Infra"}) == "Hello Grace, team Infra"


def test_unknown_placeholder_left_alone():
    assert render_text("Due ${Due Date}", {"Name": "Grace"}) == "Due ${Due Date}"


def test_none_renders_empty():
    assert render_text("[${Tag}]", {"Tag": None}) == "[]"


def test_render_template_keeps_issue_type_when_blank():
    template = TicketTemplate(issue_type="${Kind}", summary="${Title}")
    rendered = render_template(template, {"Kind": "", "Title": "Fix"})
    assert rendered.issue_type == "${Kind}"
    assert rendered.summary == "Fix"

    rendered = render_template(template, {"Kind": "Bug", "Title": "Fix"})
    assert rendered.issue_type == "Bug"


def test_stored_issue_type_unwrapped():
    template = TicketTemplate.model_validate({"issuetype": {"name": "Epic"}, "summary": "s"})
    assert template.issue_type == "Epic"
    assert TicketTemplate.model_validate({"summary": "s"}).issue_type == "Task"


def test_get_template():
    templates = {"Bug": TicketTemplate(summary="Bug")}
    assert get_template(templates, "Bug").summary == "Bug"
    with pytest.raises(TemplateNotFound) as exc_info:
        get_template(templates, "Story")
    assert exc_info.value.name == "Story"
