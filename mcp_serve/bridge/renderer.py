"""
Input Renderer

Walks a CompiledInputTemplate with a tool-call argument object and produces
the argument vector for the child process. Each entry is passed to the
process as one atomic argument; values are never split on whitespace and
never pass through a shell, so no quoting or escaping is applied.
"""

import json
import math
from typing import Any, Mapping

from mcp_serve.bridge.input_template import (
    ArgumentToken,
    Bound,
    CompiledInputTemplate,
    Literal,
    OptionalGroup,
    PropertyRef,
    RepeatGroup,
)
from mcp_serve.core.exceptions import RenderError


def stringify(value: Any) -> str:
    """
    Canonical textual form of a JSON value for use as an argument.

    Booleans render as ``true``/``false``, integral floats drop the
    fractional part, strings are passed through unchanged and any other
    structure is rendered as compact JSON.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def render(template: CompiledInputTemplate, arguments: Mapping[str, Any]) -> list[str]:
    """
    Render a compiled template into an argument vector.

    Args:
        template: Template compiled by compile_input_template().
        arguments: The tool-call argument object. Properties the template
            does not reference are ignored.

    Returns:
        Ordered list of argv entries (excluding the executable itself).

    Raises:
        RenderError: A property substituted outside an optional group is
            absent or null.

    Example:
        >>> tmpl = compile_input_template("--title {{title}} [--parent {{parent}}]", schema)
        >>> render(tmpl, {"title": "My Ticket"})
        ['--title', 'My Ticket']
    """
    argv: list[str] = []
    _emit(template.tokens, arguments, {}, argv)
    return argv


def _lookup(name: str, arguments: Mapping[str, Any], bindings: Mapping[str, Any]) -> Any:
    if name in bindings:
        return bindings[name]
    return arguments.get(name)


def _emit(
    tokens: tuple[ArgumentToken, ...],
    arguments: Mapping[str, Any],
    bindings: Mapping[str, Any],
    argv: list[str],
) -> None:
    for token in tokens:
        if isinstance(token, Literal):
            argv.append(token.text)

        elif isinstance(token, Bound):
            parts: list[str] = []
            for fragment in token.fragments:
                if isinstance(fragment, PropertyRef):
                    value = _lookup(fragment.name, arguments, bindings)
                    if value is None:
                        raise RenderError(
                            f"Missing required argument: {fragment.name}",
                            property_name=fragment.name,
                        )
                    parts.append(stringify(value))
                else:
                    parts.append(fragment)
            argv.append("".join(parts))

        elif isinstance(token, OptionalGroup):
            if all(
                _lookup(name, arguments, bindings) is not None
                for name in token.gating_properties
            ):
                _emit(token.tokens, arguments, bindings, argv)

        elif isinstance(token, RepeatGroup):
            values = _lookup(token.array_property, arguments, bindings)
            if not isinstance(values, list):
                continue
            for element in values:
                scoped = {**bindings, token.array_property: element}
                _emit(token.tokens, arguments, scoped, argv)
