"""Conversion of MCP input schemas into local argument validators.

Remote servers describe tool arguments with a small JSON-Schema subset. This
module turns such a schema into a dynamically created pydantic model so that
arguments can be checked locally before a call goes over the wire. The
conversion never raises: anything it does not understand is accepted as-is.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic import ValidationError, create_model

# JSON numbers; bool is rejected because the strict types do not coerce it.
StrictNumber = Union[StrictInt, StrictFloat]

SCALAR_TYPES: dict[str, Any] = {
    "string": StrictStr,
    "number": StrictNumber,
    "integer": StrictNumber,
    "boolean": StrictBool,
}


@dataclass(frozen=True)
class FieldDescriptor:
    """One property of an input schema as understood by the bridge."""

    name: str
    kind: str
    required: bool
    description: Optional[str] = None
    item_kind: Optional[str] = None


class _ArgumentsBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=False)


@dataclass(frozen=True)
class ValidatorDescriptor:
    """Immutable validator derived from one input schema.

    Attributes:
        model: Generated pydantic model enforcing the schema
        fields: Descriptions of the recognised properties
    """

    model: type[BaseModel]
    fields: tuple[FieldDescriptor, ...] = field(default_factory=tuple)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    def validate(self, arguments: Optional[dict[str, Any]]) -> dict[str, Any]:
        """Validate arguments and return them keyed by original property names.

        Raises:
            pydantic.ValidationError: If the arguments do not satisfy the schema
        """
        instance = self.model.model_validate(arguments or {})
        return instance.model_dump(by_alias=True, exclude_unset=True)

    def is_valid(self, arguments: Optional[dict[str, Any]]) -> bool:
        try:
            self.validate(arguments)
        except ValidationError:
            return False
        return True

    def json_schema(self) -> dict[str, Any]:
        """Return the JSON schema of the generated model (for prompting)."""
        return self.model.model_json_schema(by_alias=True)


def to_validator(schema: Any, model_name: str = "ToolArguments") -> ValidatorDescriptor:
    """Convert an MCP input schema into a :class:`ValidatorDescriptor`.

    Mapping:
    - ``string``/``number``/``integer``/``boolean`` -> strict scalars
      (``integer`` is treated as ``number``)
    - ``array`` -> list of the ``items.type`` scalar, else list of anything
    - ``object`` -> open mapping (first level only)
    - unknown or missing type -> anything

    Properties not listed in ``required`` may be omitted but not sent as null.
    Type keywords that are not plain strings are treated as unknown. A top-level type other
    than ``object`` yields a validator for an empty object.

    Args:
        schema: The ``inputSchema`` of a capability (any value is accepted)
        model_name: Name given to the generated model

    Returns:
        The validator descriptor
    """
    if not isinstance(schema, dict) or schema.get("type") != "object":
        return ValidatorDescriptor(model=create_model(model_name, __base__=_ArgumentsBase))

    properties = schema.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    required_raw = schema.get("required")
    required = (
        {r for r in required_raw if isinstance(r, str)} if isinstance(required_raw, list) else set()
    )

    definitions: dict[str, Any] = {}
    descriptors: list[FieldDescriptor] = []

    for index, (name, prop) in enumerate(properties.items()):
        prop = prop if isinstance(prop, dict) else {}
        kind = prop.get("type") if isinstance(prop.get("type"), str) else "any"
        item_kind = _item_kind(prop) if kind == "array" else None
        description = prop.get("description") if isinstance(prop.get("description"), str) else None
        is_required = name in required

        annotation = _annotation_for(kind, item_kind)
        if is_required:
            field_info = Field(..., alias=str(name), description=description)
        else:
            # May be omitted, not null; the default is never validated.
            field_info = Field(default=None, alias=str(name), description=description)

        # Property names come from an untrusted server; aliasing keeps any
        # string usable without clashing with pydantic attributes.
        definitions[f"f_{index}"] = (annotation, field_info)
        descriptors.append(
            FieldDescriptor(
                name=str(name),
                kind=kind,
                required=is_required,
                description=description,
                item_kind=item_kind,
            )
        )

    model = create_model(model_name, __base__=_ArgumentsBase, **definitions)
    return ValidatorDescriptor(model=model, fields=tuple(descriptors))


def _item_kind(prop: dict[str, Any]) -> Optional[str]:
    items = prop.get("items")
    if not isinstance(items, dict):
        return None
    item_type = items.get("type")
    if isinstance(item_type, str) and item_type in SCALAR_TYPES:
        return item_type
    return None


def _annotation_for(kind: str, item_kind: Optional[str]) -> Any:
    if kind in SCALAR_TYPES:
        return SCALAR_TYPES[kind]
    if kind == "array":
        return list[SCALAR_TYPES[item_kind]] if item_kind else list[Any]
    if kind == "object":
        return dict[str, Any]
    return Any


def summarize_errors(exc: ValidationError) -> str:
    """Render a pydantic ValidationError as ``name: message; ...``.

    Locations use the original property names, not the generated field names.
    """
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)
