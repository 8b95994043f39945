"""
Per-extension schema deltas.

An extension's contribution is observed by activating it alone and
comparing the resulting snapshot with the base snapshot. Only fields whose
keys are missing from the base entity count as contributed.

Invariants:
    - Presence is decided by key membership, never by value equality
    - A key already in the base entity is never part of a delta, even when
      the extension reports it with another type or optionality
    - Entities contributing nothing are absent from the result
    - Field order follows the extension snapshot

How to change safely:
    - Keep compute_delta a pure function of its two snapshots
    - Report redefinitions through find_redefinitions, never by
      changing what compute_delta returns

Example:
    >>> delta = compute_delta(base, with_admin)
    >>> list(delta["user"])
    ['banned', 'banReason', 'banExpires']
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping

from .types import EntitySnapshot, FieldAttribute

EntityDelta = Dict[str, Dict[str, FieldAttribute]]

_EMPTY: Mapping[str, FieldAttribute] = {}


def compute_delta(base: EntitySnapshot, with_extension: EntitySnapshot) -> EntityDelta:
    """Compute the fields an extension adds on top of the base snapshot.

    Args:
        base: Snapshot with no extension active
        with_extension: Snapshot with exactly one extension active

    Returns:
        Entity name -> field key -> FieldAttribute, holding only fields
        absent from the base entity
    """
    delta: EntityDelta = {}
    for entity, fields in with_extension.items():
        base_fields = base.get(entity, _EMPTY)
        added = {key: attr for key, attr in fields.items() if key not in base_fields}
        if added:
            delta[entity] = added
    return delta


@dataclass(frozen=True)
class FieldRedefinition:
    """A base field reported differently while an extension is active.

    Attributes:
        entity: Entity name
        key: Field key
        base: Attribute in the base snapshot (the one that is emitted)
        extension: Attribute in the extension snapshot (dropped)
    """

    entity: str
    key: str
    base: FieldAttribute
    extension: FieldAttribute

    def __str__(self) -> str:
        return (
            f"{self.entity}.{self.key}: base {self.base.to_dict()} "
            f"kept over {self.extension.to_dict()}"
        )


def find_redefinitions(
    base: EntitySnapshot,
    with_extension: EntitySnapshot,
) -> List[FieldRedefinition]:
    """List base fields whose attributes change while an extension is active.

    These fields never reach the delta; the base definition wins.
    """
    changes: List[FieldRedefinition] = []
    for entity, fields in with_extension.items():
        base_fields = base.get(entity, _EMPTY)
        for key, attr in fields.items():
            original = base_fields.get(key)
            if original is not None and original != attr:
                changes.append(FieldRedefinition(entity, key, original, attr))
    return changes
