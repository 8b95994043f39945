"""
Core type definitions for the schema-delta type generator.

This module defines the data model shared by every stage of a run:
- FieldKind: closed set of scalar kinds a snapshot field can declare
- FieldAttribute: one field of an entity as reported by a snapshot
- EntitySnapshot: entity name -> field key -> FieldAttribute
- ExtensionDescriptor: an extension the generator can activate

Invariants:
    - Snapshots are read-only once frozen (freeze_snapshot)
    - Entity and field order is the order the provider reported
    - FieldAttribute.type keeps the declared kind verbatim, even when it is
      outside FieldKind, so the emitter can report it

How to change safely:
    - Add a new scalar kind to FieldKind and to TS_TYPES in
      codegen.typescript at the same time
    - Never reorder snapshot contents; emission order depends on it

Example:
    >>> from typegen.schema.types import FieldAttribute, freeze_snapshot
    >>> base = freeze_snapshot({
    ...     "user": {"email": {"type": "string", "required": True}},
    ... })
    >>> base["user"]["email"].required
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

EntitySnapshot = Mapping[str, Mapping[str, "FieldAttribute"]]


class FieldKind(Enum):
    """Scalar kinds a field can declare.

    Values match the strings snapshot providers report.
    """

    BOOLEAN = "boolean"
    DATE = "date"
    NUMBER = "number"
    STRING = "string"
    NUMBER_LIST = "number[]"
    STRING_LIST = "string[]"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> Optional[FieldKind]:
        """Convert a declared kind to FieldKind.

        Args:
            value: Declared kind (string or FieldKind)

        Returns:
            The matching FieldKind, or None if the kind is not part of
            the enumeration
        """
        if isinstance(value, FieldKind):
            return value
        for kind in cls:
            if kind.value == value:
                return kind
        return None


@dataclass(frozen=True)
class FieldAttribute:
    """A single field of an entity as reported by a snapshot.

    Attributes:
        type: Declared scalar kind (see FieldKind)
        required: Whether the field is required
        field_name: On-wire name overriding the field key, if any

    Example:
        >>> attr = FieldAttribute(type="string", required=True, field_name="user_id")
        >>> attr.wire_name("userId")
        'user_id'
    """

    type: str
    required: bool = False
    field_name: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.type, FieldKind):
            object.__setattr__(self, "type", self.type.value)

    @property
    def kind(self) -> Optional[FieldKind]:
        """Declared kind as FieldKind (None if not in the enumeration)."""
        return FieldKind.parse(self.type)

    def wire_name(self, key: str) -> str:
        """Name the field carries on the wire."""
        return self.field_name or key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"type": self.type}
        if self.required:
            result["required"] = True
        if self.field_name:
            result["fieldName"] = self.field_name
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldAttribute:
        """Create from dictionary representation.

        Accepts both ``fieldName`` and ``field_name`` for the wire override.
        Missing or null types are treated as ``unknown``. Any other type that
        is not a string (a list of literals, for example) is kept as its text
        so that it maps to ``unknown`` and shows in the mapping warning.
        """
        kind = data.get("type")
        if kind is None:
            kind = FieldKind.UNKNOWN.value
        elif not isinstance(kind, (str, FieldKind)):
            kind = str(kind)
        return cls(
            type=kind,
            required=bool(data.get("required", False)),
            field_name=data.get("fieldName", data.get("field_name")),
        )


@dataclass(frozen=True)
class ExtensionDescriptor:
    """An extension the generator can activate.

    Attributes:
        id: Extension identifier, expected unique among active extensions
        activation: Opaque payload handed to the snapshot provider
    """

    id: str
    activation: Any = None


def _coerce_field(value: Any) -> FieldAttribute:
    if isinstance(value, FieldAttribute):
        return value
    if isinstance(value, Mapping):
        return FieldAttribute.from_dict(value)
    raise TypeError(f"Cannot interpret {type(value).__name__} as a field attribute")


def _is_wrapped(body: Mapping[str, Any]) -> bool:
    # {"fields": {...}, "modelName": ...} as opposed to a field named "fields"
    inner = body.get("fields")
    if not isinstance(inner, Mapping):
        return False
    return all(isinstance(v, (Mapping, FieldAttribute)) for v in inner.values())


def freeze_snapshot(raw: Mapping[str, Any]) -> EntitySnapshot:
    """Build a read-only EntitySnapshot from a nested mapping.

    Entities may be given directly as ``{field: attr}`` or wrapped as
    ``{"fields": {field: attr}}``. Attributes may be FieldAttribute
    instances or plain dicts.

    Args:
        raw: Entity name -> fields mapping

    Returns:
        Read-only snapshot preserving the input order

    Raises:
        TypeError: If an attribute is neither a mapping nor a FieldAttribute
    """
    entities: dict[str, Mapping[str, FieldAttribute]] = {}
    for entity, body in raw.items():
        fields = body or {}
        if _is_wrapped(fields):
            fields = fields["fields"]
        entities[entity] = MappingProxyType(
            {key: _coerce_field(attr) for key, attr in fields.items()}
        )
    return MappingProxyType(entities)
