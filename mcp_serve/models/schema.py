"""
Schema Models - JSON-Schema-like description of tool inputs and outputs.

A tool declares an object schema for its input and, optionally, for its
output. Templates are checked against these schemas at compile time, and
tool-call arguments are checked structurally against the input schema before
rendering.

Only the subset of JSON Schema that tool metadata actually uses is modelled.
Unknown keywords are ignored.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SchemaType(str, Enum):
    """JSON Schema primitive type names."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"


class JsonSchema(BaseModel):
    """
    A JSON Schema node.

    Attributes:
        type: Schema type of this node.
        description: Human-readable description.
        properties: Named properties (object schemas only).
        required: Names of required properties (object schemas only).
        items: Element schema (array schemas only).
        enum_values: Allowed values ("enum" in metadata).
        default: Default value, reported in the catalog only.

    Example:
        >>> schema = JsonSchema.model_validate({
        ...     "type": "object",
        ...     "properties": {"title": {"type": "string"}},
        ...     "required": ["title"],
        ... })
        >>> schema.property_type("title")
        <SchemaType.STRING: 'string'>
    """

    type: Optional[SchemaType] = Field(default=None, description="Schema type")
    description: Optional[str] = Field(default=None)
    properties: Optional[dict[str, "JsonSchema"]] = Field(default=None)
    required: Optional[list[str]] = Field(default=None)
    items: Optional["JsonSchema"] = Field(default=None)
    enum_values: Optional[list[Any]] = Field(default=None, alias="enum")
    default: Optional[Any] = Field(default=None)
    additional_properties: Optional[bool] = Field(
        default=None, alias="additionalProperties"
    )
    minimum: Optional[float] = Field(default=None)
    maximum: Optional[float] = Field(default=None)
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    pattern: Optional[str] = Field(default=None)

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    # =========================================================================
    # Property lookup
    # =========================================================================

    def has_property(self, name: str) -> bool:
        """True if this object schema declares the named property."""
        return bool(self.properties) and name in self.properties

    def property_type(self, name: str) -> Optional[SchemaType]:
        """Declared type of a property, or None if untyped or undeclared."""
        if not self.has_property(name):
            return None
        return self.properties[name].type

    def is_array_property(self, name: str) -> bool:
        """True if the named property is declared as an array."""
        return self.property_type(name) == SchemaType.ARRAY

    @property
    def required_names(self) -> list[str]:
        """Required property names (empty list if none declared)."""
        return list(self.required or [])

    def to_json_schema(self) -> dict[str, Any]:
        """Render back to a plain JSON Schema dict for catalog responses."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    # =========================================================================
    # Structural validation
    # =========================================================================

    def validate_arguments(self, arguments: dict[str, Any]) -> list[str]:
        """
        Check an argument object against this object schema.

        Performs basic validation:
        - Required properties are present and not null
        - Declared types match (array items are checked one level deep)

        Extra properties are allowed.

        Args:
            arguments: The tool-call argument object.

        Returns:
            List of error messages; empty if the arguments are valid.
        """
        errors: list[str] = []

        for name in self.required_names:
            if arguments.get(name) is None:
                errors.append(f"Missing required argument: {name}")

        for name, value in arguments.items():
            if value is None or not self.has_property(name):
                continue
            prop = self.properties[name]
            if prop.type and not _check_type(value, prop.type):
                errors.append(
                    f"Invalid type for '{name}': expected {prop.type.value}, "
                    f"got {type(value).__name__}"
                )
                continue
            if prop.type == SchemaType.ARRAY and prop.items and prop.items.type:
                for index, item in enumerate(value):
                    if not _check_type(item, prop.items.type):
                        errors.append(
                            f"Invalid type for '{name}[{index}]': expected "
                            f"{prop.items.type.value}, got {type(item).__name__}"
                        )
            if prop.enum_values is not None and value not in prop.enum_values:
                errors.append(f"Invalid value for '{name}': {value!r}")

        return errors


def _check_type(value: Any, expected: SchemaType) -> bool:
    """
    Check if a value matches the expected JSON Schema type.

    Booleans are not numbers, even though bool subclasses int.
    """
    if expected in (SchemaType.NUMBER, SchemaType.INTEGER) and isinstance(value, bool):
        return False

    type_map: dict[SchemaType, Any] = {
        SchemaType.STRING: str,
        SchemaType.INTEGER: int,
        SchemaType.NUMBER: (int, float),
        SchemaType.BOOLEAN: bool,
        SchemaType.ARRAY: list,
        SchemaType.OBJECT: dict,
        SchemaType.NULL: type(None),
    }
    if expected == SchemaType.INTEGER and isinstance(value, float):
        return value.is_integer()
    return isinstance(value, type_map[expected])


JsonSchema.model_rebuild()
