"""
Output Pattern Compiler and Parser

An output template is a regular expression whose named groups, written
``(?<name>...)``, map onto properties of the tool's output schema:

    Ticket created: (?<url>https://.*)
    ID: (?<id>\\d+)

The pattern is compiled once with DOTALL (``.`` also matches newlines) and no
implicit anchors, then searched against the whole of a tool's stdout. The
first match wins; every capture becomes a JSON string.
"""

import re
from dataclasses import dataclass
from typing import Optional

from mcp_serve.core.exceptions import (
    OutputParseError,
    TemplateError,
    TemplateErrorReason,
)
from mcp_serve.models.schema import JsonSchema

_GROUP_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class CompiledOutputPattern:
    """
    Compiled output template.

    Attributes:
        source: The template text as authored.
        regex: Compiled Python pattern (named groups use ``(?P<name>...)``).
        capture_names: Output properties captured, in pattern order.
    """

    source: str
    regex: re.Pattern
    capture_names: tuple[str, ...]


def _translate_named_groups(template: str) -> tuple[str, list[str]]:
    """
    Rewrite ``(?<name>`` into Python's ``(?P<name>`` syntax.

    Escaped characters and character classes are copied untouched, and
    lookbehind assertions ``(?<=`` / ``(?<!`` are left alone. Groups already
    written as ``(?P<name>`` are accepted and reported too.

    Returns:
        Tuple of (translated pattern, capture names in order of appearance).
    """
    out: list[str] = []
    names: list[str] = []
    in_class = False
    i = 0
    length = len(template)

    while i < length:
        ch = template[i]

        if ch == "\\":
            out.append(template[i : i + 2])
            i += 2
            continue

        if in_class:
            if ch == "]":
                in_class = False
            out.append(ch)
            i += 1
            continue

        if ch == "[":
            in_class = True
            out.append(ch)
            i += 1
            # A ']' right after '[' or '[^' is a literal member of the class.
            if template.startswith("^", i):
                out.append("^")
                i += 1
            if template.startswith("]", i):
                out.append("]")
                i += 1
            continue

        if template.startswith("(?<", i) and template[i + 3 : i + 4] not in ("=", "!"):
            start = i + 3
        elif template.startswith("(?P<", i):
            start = i + 4
        else:
            out.append(ch)
            i += 1
            continue

        match = _GROUP_NAME_RE.match(template, start)
        if not match or template[match.end() : match.end() + 1] != ">":
            raise TemplateError(
                f"Malformed named capture at offset {i}",
                reason=TemplateErrorReason.INVALID_PATTERN,
            )
        names.append(match.group(0))
        out.append(f"(?P<{match.group(0)}>")
        i = match.end() + 1

    return "".join(out), names


def compile_output_pattern(
    template: str, schema: Optional[JsonSchema]
) -> CompiledOutputPattern:
    """
    Compile an output template against an output schema.

    Args:
        template: Raw pattern text with ``(?<name>...)`` captures.
        schema: The tool's output schema (None means no captures allowed).

    Returns:
        CompiledOutputPattern ready for parse_output().

    Raises:
        TemplateError: Unknown, duplicate or missing capture name, or the
            pattern is not a valid regular expression.
    """
    translated, names = _translate_named_groups(template)

    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise TemplateError(
                f"Duplicate capture name in output template: {name}",
                reason=TemplateErrorReason.DUPLICATE_CAPTURE,
                property_name=name,
            )
        seen.add(name)
        if schema is None or not schema.has_property(name):
            raise TemplateError(
                f"Capture '{name}' is not declared in the output schema",
                reason=TemplateErrorReason.UNKNOWN_CAPTURE,
                property_name=name,
            )

    try:
        regex = re.compile(translated, re.DOTALL)
    except re.error as e:
        raise TemplateError(
            f"Invalid output pattern: {e}",
            reason=TemplateErrorReason.INVALID_PATTERN,
        ) from e

    # Every declared output property is filled from exactly one capture.
    declared = list(schema.properties or {}) if schema is not None else []
    for name in declared:
        if name not in seen:
            raise TemplateError(
                f"Output property '{name}' has no capture in the output template",
                reason=TemplateErrorReason.MISSING_CAPTURE,
                property_name=name,
            )

    return CompiledOutputPattern(
        source=template,
        regex=regex,
        capture_names=tuple(names),
    )


def parse_output(pattern: CompiledOutputPattern, stdout_text: str) -> dict[str, str]:
    """
    Apply a compiled output pattern to process output.

    Args:
        pattern: Pattern from compile_output_pattern().
        stdout_text: The process's standard output.

    Returns:
        Mapping of capture name to matched text. A capture that matched
        nothing (or did not take part in the match) yields "".

    Raises:
        OutputParseError: The pattern does not match anywhere in the text.
    """
    match = pattern.regex.search(stdout_text)
    if match is None:
        raise OutputParseError(
            "Tool output did not match the output template",
            raw_stdout=stdout_text,
        )
    return {name: match.group(name) or "" for name in pattern.capture_names}
