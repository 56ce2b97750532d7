"""
Tests for the input renderer.

Covers canonical value formatting, optional and repeat group emission and
missing-argument errors.
"""

import pytest

from mcp_serve.bridge.input_template import compile_input_template
from mcp_serve.bridge.renderer import render, stringify
from mcp_serve.core.exceptions import RenderError
from mcp_serve.models.schema import JsonSchema

TICKET_TEMPLATE = "--title {{title}} [--parent {{parent_id}}] [--label {{label}}...] {{body}}"


@pytest.fixture
def schema(ticket_input_schema: dict) -> JsonSchema:
    return JsonSchema.model_validate(ticket_input_schema)


@pytest.fixture
def ticket_template(schema: JsonSchema):
    return compile_input_template(TICKET_TEMPLATE, schema)


class TestStringify:
    """Canonical textual form of argument values."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("hello world", "hello world"),
            ("", ""),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (-7, "-7"),
            (3.0, "3"),
            (2.5, "2.5"),
            ({"a": 1}, '{"a":1}'),
            ([1, "x"], '[1,"x"]'),
        ],
    )
    def test_stringify(self, value, expected):
        assert stringify(value) == expected

    def test_strings_are_not_escaped(self):
        value = "$(rm -rf /); echo 'x' \"y\""
        assert stringify(value) == value


class TestRender:
    """Rendering the ticket template."""

    def test_required_only(self, ticket_template):
        argv = render(ticket_template, {"title": "My Ticket", "body": "Details here"})

        assert argv == ["--title", "My Ticket", "Details here"]

    def test_optional_group_included_when_present(self, ticket_template):
        argv = render(
            ticket_template,
            {"title": "My Ticket", "parent_id": "P-1", "body": "Details here"},
        )

        assert argv == ["--title", "My Ticket", "--parent", "P-1", "Details here"]

    def test_optional_group_skipped_when_null(self, ticket_template):
        argv = render(
            ticket_template,
            {"title": "My Ticket", "parent_id": None, "body": "Details here"},
        )

        assert argv == ["--title", "My Ticket", "Details here"]

    def test_repeat_group_once_per_element(self, ticket_template):
        argv = render(
            ticket_template,
            {"title": "T", "label": ["ux", "api"], "body": "B"},
        )

        assert argv == ["--title", "T", "--label", "ux", "--label", "api", "B"]

    def test_repeat_group_empty_array(self, ticket_template):
        argv = render(ticket_template, {"title": "T", "label": [], "body": "B"})

        assert argv == ["--title", "T", "B"]

    def test_repeat_group_non_array_emits_nothing(self, ticket_template):
        argv = render(ticket_template, {"title": "T", "label": "ux", "body": "B"})

        assert argv == ["--title", "T", "B"]

    def test_values_with_spaces_stay_single_arguments(self, ticket_template):
        argv = render(ticket_template, {"title": "a b  c", "body": " leading"})

        assert argv == ["--title", "a b  c", " leading"]

    def test_extra_properties_are_ignored(self, ticket_template):
        argv = render(ticket_template, {"title": "T", "body": "B", "unused": 1})

        assert argv == ["--title", "T", "B"]

    def test_missing_required_property_raises(self, ticket_template):
        with pytest.raises(RenderError) as exc_info:
            render(ticket_template, {"title": "T"})

        assert exc_info.value.property_name == "body"
        assert exc_info.value.message == "Missing required argument: body"

    def test_null_required_property_raises(self, ticket_template):
        with pytest.raises(RenderError):
            render(ticket_template, {"title": None, "body": "B"})


class TestRenderGroups:
    """Less common group shapes."""

    def test_prefix_repeat(self, schema: JsonSchema):
        template = compile_input_template("[-l{{label}}...]", schema)

        assert render(template, {"label": ["a", "b"]}) == ["-la", "-lb"]

    def test_nested_optional_inside_repeat(self, schema: JsonSchema):
        template = compile_input_template(
            "[[--parent {{parent_id}}] --label {{label}}...]", schema
        )

        assert render(template, {"label": ["x", "y"]}) == ["--label", "x", "--label", "y"]
        assert render(template, {"label": ["x"], "parent_id": "P"}) == [
            "--parent",
            "P",
            "--label",
            "x",
        ]

    def test_outer_optional_skipped_when_nested_property_missing(self, schema: JsonSchema):
        template = compile_input_template(
            "[--parent {{parent_id}} [--title {{title}}]]", schema
        )

        assert render(template, {"parent_id": "P"}) == []
        assert render(template, {"parent_id": "P", "title": "T"}) == [
            "--parent",
            "P",
            "--title",
            "T",
        ]

    def test_literal_only_group_always_emitted(self, schema: JsonSchema):
        template = compile_input_template("[--verbose] {{title}}", schema)

        assert render(template, {"title": "T"}) == ["--verbose", "T"]

    def test_numbers_and_booleans_in_bound_tokens(self):
        schema = JsonSchema.model_validate(
            {
                "type": "object",
                "properties": {
                    "count": {"type": "integer"},
                    "force": {"type": "boolean"},
                },
            }
        )
        template = compile_input_template("--count={{count}} --force={{force}}", schema)

        assert render(template, {"count": 3, "force": True}) == ["--count=3", "--force=true"]
