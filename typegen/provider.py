"""
Snapshot providers.

A snapshot provider maps a set of active extensions to the entity
snapshot the host system would produce with exactly those extensions
enabled. How a real host computes that snapshot is outside this package;
the generator only calls the provider.

StaticSnapshotProvider is a deterministic provider built from a document
listing the base entities and what each extension contributes. It serves
as a fixture format:

    base:
      user:
        email: {type: string, required: true}
    extensions:
      admin:
        user:
          banned: {type: boolean}
      jwt:
        jwks:
          publicKey: {type: string, required: true}

Invariants:
    - Calling a provider never mutates a snapshot it returned earlier
    - Activating an extension overlays its fields on the base: new keys
      are appended, existing keys are replaced in place
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Mapping, Protocol, Sequence, Tuple, Union

import yaml

from .errors import ProviderConfigError, SnapshotError
from .schema.types import EntitySnapshot, ExtensionDescriptor, freeze_snapshot

SnapshotResult = Union[EntitySnapshot, Awaitable[EntitySnapshot]]


class SnapshotProvider(Protocol):
    """Callable returning the snapshot for a set of active extensions.

    May return the snapshot directly or an awaitable resolving to it.
    """

    def __call__(self, active: Sequence[ExtensionDescriptor]) -> SnapshotResult:
        ...


class StaticSnapshotProvider:
    """Provider backed by a fixed base schema and per-extension fields.

    Attributes:
        calls: Extension ids of every call, in call order

    Example:
        >>> provider = StaticSnapshotProvider.from_yaml(document)
        >>> provider([ExtensionDescriptor("admin")])["user"].keys()
        dict_keys(['email', 'banned'])
    """

    def __init__(
        self,
        base: Mapping[str, Any],
        extensions: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._base = freeze_snapshot(base)
        self._extensions = {
            ext_id: freeze_snapshot(entities or {})
            for ext_id, entities in (extensions or {}).items()
        }
        self.calls: List[Tuple[str, ...]] = []

    @property
    def extension_ids(self) -> List[str]:
        """Known extension ids, in document order."""
        return list(self._extensions)

    def descriptors(self) -> List[ExtensionDescriptor]:
        """One descriptor per known extension, in document order."""
        return [ExtensionDescriptor(ext_id) for ext_id in self._extensions]

    def __call__(self, active: Sequence[ExtensionDescriptor]) -> EntitySnapshot:
        self.calls.append(tuple(d.id for d in active))

        merged: Dict[str, Dict[str, Any]] = {
            entity: dict(fields) for entity, fields in self._base.items()
        }
        for descriptor in active:
            contribution = self._extensions.get(descriptor.id)
            if contribution is None:
                raise SnapshotError(
                    f"Unknown extension '{descriptor.id}'",
                    extension_id=descriptor.id,
                )
            for entity, fields in contribution.items():
                merged.setdefault(entity, {}).update(fields)

        return freeze_snapshot(merged)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StaticSnapshotProvider:
        """Create a provider from a ``{base, extensions}`` document.

        Raises:
            ProviderConfigError: If the document is malformed
        """
        errors = validate_document(data)
        if errors:
            raise ProviderConfigError("Invalid snapshot document", errors)
        try:
            return cls(data.get("base") or {}, data.get("extensions") or {})
        except TypeError as e:
            raise ProviderConfigError("Invalid snapshot document", [str(e)]) from e

    @classmethod
    def from_yaml(cls, yaml_str: str) -> StaticSnapshotProvider:
        """Create a provider from a YAML document."""
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ProviderConfigError(f"Invalid YAML: {e}") from e
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, json_str: str) -> StaticSnapshotProvider:
        """Create a provider from a JSON document."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ProviderConfigError(f"Invalid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> StaticSnapshotProvider:
        """Load a provider from a ``.json``, ``.yaml`` or ``.yml`` file."""
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            return cls.from_json(text)
        return cls.from_yaml(text)


def validate_document(data: Any) -> List[str]:
    """Validate a static provider document.

    Returns:
        List of problems, empty if the document is usable
    """
    if not isinstance(data, Mapping):
        return ["document must be a mapping"]

    errors = []
    unknown = set(data) - {"base", "extensions"}
    if unknown:
        errors.append(f"unknown top-level keys: {sorted(unknown)}")

    base = data.get("base") or {}
    if not isinstance(base, Mapping):
        errors.append("'base' must map entity names to fields")
    else:
        errors.extend(_validate_entities(base, "base"))

    extensions = data.get("extensions") or {}
    if not isinstance(extensions, Mapping):
        errors.append("'extensions' must map extension ids to entities")
    else:
        for ext_id, entities in extensions.items():
            if not isinstance(entities or {}, Mapping):
                errors.append(f"extension '{ext_id}' must map entity names to fields")
                continue
            errors.extend(_validate_entities(entities or {}, f"extensions.{ext_id}"))

    return errors


def _validate_entities(entities: Mapping[str, Any], where: str) -> List[str]:
    errors = []
    for entity, fields in entities.items():
        if not isinstance(fields or {}, Mapping):
            errors.append(f"{where}.{entity}: fields must be a mapping")
            continue
        for key, attr in (fields or {}).items():
            if not isinstance(attr, Mapping):
                errors.append(f"{where}.{entity}.{key}: attribute must be a mapping")
    return errors
