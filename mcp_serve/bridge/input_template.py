"""
Input Template Compiler

Turns an input template such as

    --title {{title}} [--parent {{parent_id}}] [--label {{label}}...] {{body}}

into a small AST that the renderer walks once per tool call. Compilation
happens once, when a tool is registered; every reference is checked against
the tool's input schema here so a bad template rejects the tool instead of
failing a call later.

Grammar (after whitespace tokenisation):
- ``{{name}}`` is a placeholder; text glued to it forms a single argument.
- ``[ ... ]`` is an optional group, emitted only when every property it
  references is present.
- ``[ ... {{name}}... ]`` is a repeat group, emitted once per element of the
  array property ``name``.
- ``[`` and ``]`` are structural even when glued to text; whitespace inside
  ``{{ }}`` does not split a token.
"""

import re
from dataclasses import dataclass, field
from typing import Union

from mcp_serve.core.exceptions import TemplateError, TemplateErrorReason
from mcp_serve.models.schema import JsonSchema

REPEAT_MARKER = "..."

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


# =============================================================================
# AST
# =============================================================================


@dataclass(frozen=True)
class PropertyRef:
    """Substitution slot for a property value inside a Bound token."""

    name: str


Fragment = Union[str, PropertyRef]


@dataclass(frozen=True)
class Literal:
    """Emitted verbatim as one argv entry."""

    text: str


@dataclass(frozen=True)
class Bound:
    """One argv entry built from literal text and property substitutions."""

    fragments: tuple[Fragment, ...]

    @property
    def properties(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fragments if isinstance(f, PropertyRef))


@dataclass(frozen=True)
class OptionalGroup:
    """Tokens emitted only if every gating property is present."""

    tokens: tuple["ArgumentToken", ...]
    gating_properties: frozenset[str]


@dataclass(frozen=True)
class RepeatGroup:
    """Tokens emitted once per element of ``array_property``."""

    tokens: tuple["ArgumentToken", ...]
    array_property: str


ArgumentToken = Union[Literal, Bound, OptionalGroup, RepeatGroup]


@dataclass(frozen=True)
class CompiledInputTemplate:
    """
    Compiled form of an input template.

    Attributes:
        source: The template text it was compiled from.
        tokens: Top-level argument tokens in template order.
        properties: Every property the template references.
    """

    source: str
    tokens: tuple[ArgumentToken, ...]
    properties: frozenset[str] = field(default_factory=frozenset)


# =============================================================================
# Tokeniser
# =============================================================================


@dataclass
class _Word:
    fragments: list[Fragment]
    repeat_marker: bool = False

    @property
    def text(self) -> str:
        return "".join(f if isinstance(f, str) else "{{%s}}" % f.name for f in self.fragments)


@dataclass
class _Group:
    children: list[Union["_Word", "_Group"]]


_OPEN = object()
_CLOSE = object()


def _tokenize(template: str) -> list[Union[_Word, object]]:
    """Split the template into words and bracket markers."""
    items: list[Union[_Word, object]] = []
    fragments: list[Fragment] = []
    text: list[str] = []
    repeat_marker = False

    def flush_text() -> None:
        if text:
            fragments.append("".join(text))
            text.clear()

    def flush_word() -> None:
        nonlocal repeat_marker
        flush_text()
        if fragments:
            items.append(_Word(list(fragments), repeat_marker))
            fragments.clear()
        repeat_marker = False

    i = 0
    length = len(template)
    while i < length:
        ch = template[i]

        if repeat_marker and not (ch.isspace() or ch in "[]"):
            raise TemplateError(
                f"Repeat marker '{REPEAT_MARKER}' must end its token (at offset {i})",
                reason=TemplateErrorReason.MALFORMED_REPEAT,
            )

        if ch.isspace():
            flush_word()
            i += 1
        elif ch == "[":
            flush_word()
            items.append(_OPEN)
            i += 1
        elif ch == "]":
            flush_word()
            items.append(_CLOSE)
            i += 1
        elif template.startswith("{{", i):
            end = template.find("}}", i + 2)
            if end == -1:
                raise TemplateError(
                    f"Unterminated placeholder at offset {i}",
                    reason=TemplateErrorReason.MALFORMED_PLACEHOLDER,
                )
            name = template[i + 2 : end].strip()
            if not _IDENTIFIER_RE.match(name):
                raise TemplateError(
                    f"Invalid placeholder name: {name!r}",
                    reason=TemplateErrorReason.MALFORMED_PLACEHOLDER,
                    property_name=name,
                )
            flush_text()
            fragments.append(PropertyRef(name))
            i = end + 2
            if template.startswith(REPEAT_MARKER, i):
                repeat_marker = True
                i += len(REPEAT_MARKER)
        else:
            text.append(ch)
            i += 1

    flush_word()
    return items


def _build_tree(items: list[Union[_Word, object]]) -> list[Union[_Word, _Group]]:
    """Nest words into groups, checking bracket balance."""
    stack: list[list[Union[_Word, _Group]]] = [[]]
    for item in items:
        if item is _OPEN:
            stack.append([])
        elif item is _CLOSE:
            if len(stack) == 1:
                raise TemplateError(
                    "Unbalanced ']' in template",
                    reason=TemplateErrorReason.UNBALANCED_BRACKETS,
                )
            children = stack.pop()
            stack[-1].append(_Group(children))
        else:
            stack[-1].append(item)
    if len(stack) != 1:
        raise TemplateError(
            "Unclosed '[' in template",
            reason=TemplateErrorReason.UNBALANCED_BRACKETS,
        )
    return stack[0]


# =============================================================================
# Resolution against the schema
# =============================================================================


class _Resolver:
    def __init__(self, schema: JsonSchema) -> None:
        self.schema = schema
        self.referenced: set[str] = set()

    def sequence(
        self, nodes: list[Union[_Word, _Group]], bound: frozenset[str]
    ) -> tuple[tuple[ArgumentToken, ...], set[str]]:
        tokens: list[ArgumentToken] = []
        refs: set[str] = set()
        for node in nodes:
            if isinstance(node, _Group):
                token, group_refs = self.group(node, bound)
            else:
                if node.repeat_marker:
                    raise TemplateError(
                        f"Repeat marker in '{node.text}' must be the last token of a '[...]' group",
                        reason=TemplateErrorReason.MALFORMED_REPEAT,
                    )
                token, group_refs = self.word(node, bound)
            tokens.append(token)
            refs |= group_refs
        return tuple(tokens), refs

    def word(self, node: _Word, bound: frozenset[str]) -> tuple[ArgumentToken, set[str]]:
        refs: set[str] = set()
        for fragment in node.fragments:
            if isinstance(fragment, PropertyRef):
                self.check_property(fragment.name, bound)
                refs.add(fragment.name)
        if not refs:
            return Literal("".join(node.fragments)), refs
        return Bound(tuple(node.fragments)), refs

    def group(self, node: _Group, bound: frozenset[str]) -> tuple[ArgumentToken, set[str]]:
        children = list(node.children)
        last = children[-1] if children else None

        if isinstance(last, _Word) and last.repeat_marker:
            array_ref = last.fragments[-1]
            array_property = array_ref.name
            if not self.schema.has_property(array_property):
                raise TemplateError(
                    f"Unknown property in template: {array_property}",
                    reason=TemplateErrorReason.UNKNOWN_PROPERTY,
                    property_name=array_property,
                )
            if not self.schema.is_array_property(array_property):
                raise TemplateError(
                    f"Repeat source '{array_property}' is not an array property",
                    reason=TemplateErrorReason.NOT_AN_ARRAY,
                    property_name=array_property,
                )
            children[-1] = _Word(last.fragments, repeat_marker=False)
            self.referenced.add(array_property)
            tokens, refs = self.sequence(children, bound | {array_property})
            return RepeatGroup(tokens, array_property), refs | {array_property}

        if isinstance(last, _Word) and last.text == REPEAT_MARKER:
            raise TemplateError(
                f"Repeat marker '{REPEAT_MARKER}' must directly follow a placeholder",
                reason=TemplateErrorReason.MALFORMED_REPEAT,
            )

        tokens, refs = self.sequence(children, bound)
        return OptionalGroup(tokens, frozenset(refs)), refs

    def check_property(self, name: str, bound: frozenset[str]) -> None:
        if not self.schema.has_property(name):
            raise TemplateError(
                f"Unknown property in template: {name}",
                reason=TemplateErrorReason.UNKNOWN_PROPERTY,
                property_name=name,
            )
        if self.schema.is_array_property(name) and name not in bound:
            raise TemplateError(
                f"Array property '{name}' must be used as '[... {{{{{name}}}}}...]'",
                reason=TemplateErrorReason.ARRAY_OUTSIDE_REPEAT,
                property_name=name,
            )
        self.referenced.add(name)


def compile_input_template(template: str, schema: JsonSchema) -> CompiledInputTemplate:
    """
    Compile an input template against an input schema.

    Args:
        template: Raw template text.
        schema: The tool's input schema.

    Returns:
        CompiledInputTemplate ready for render().

    Raises:
        TemplateError: Unknown property, misused array property, unbalanced
            brackets or a malformed repeat marker.
    """
    tree = _build_tree(_tokenize(template))
    resolver = _Resolver(schema)
    tokens, _ = resolver.sequence(tree, frozenset())
    return CompiledInputTemplate(
        source=template,
        tokens=tokens,
        properties=frozenset(resolver.referenced),
    )
