"""
Aggregation of per-extension deltas into one model.

The aggregator evaluates every known extension alone against the shared
base snapshot and merges the results into a per-entity, per-extension
delta table. It also decides which entities are emitted, in which order,
and with which shape.

Invariants:
    - Extensions are evaluated one at a time; interaction effects between
      two active extensions are never observed
    - The first extension with a given id wins; later duplicates never
      contribute fields
    - Entity order: base entities first (provider order), then entities
      introduced by extensions in extension order
    - Entities without any base field or delta field are not emitted
    - Each entity's shape is classified exactly once, here

How to change safely:
    - Keep the duplicate policy default at IGNORE unless the generated
      output is expected to change
    - New shape kinds need a matching branch in codegen.typescript
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import DuplicateExtensionError
from .delta import compute_delta, find_redefinitions
from .types import EntitySnapshot, FieldAttribute

logger = logging.getLogger(__name__)

# entity -> extension id -> field key -> attribute
DeltaMap = Dict[str, Dict[str, Dict[str, FieldAttribute]]]


class DuplicatePolicy(Enum):
    """Reaction to an extension id declared more than once."""

    IGNORE = "ignore"  # drop silently (debug log only)
    WARN = "warn"  # drop with a warning
    ERROR = "error"  # raise DuplicateExtensionError


class ShapeKind(Enum):
    """How an entity's merged type is put together."""

    BASE_ONLY = "base_only"
    EXTENSION_ONLY = "extension_only"
    MERGED = "merged"


@dataclass(frozen=True)
class EntityShape:
    """Shape classification of one entity.

    Attributes:
        kind: Shape kind
        has_base: Whether the base snapshot has at least one field
        extension_ids: Contributing extensions, in extension order

    Example:
        >>> EntityShape.classify(False, ["jwt"])
        EntityShape(kind=<ShapeKind.EXTENSION_ONLY: 'extension_only'>, has_base=False, extension_ids=('jwt',))
    """

    kind: ShapeKind
    has_base: bool
    extension_ids: Tuple[str, ...] = ()

    @classmethod
    def classify(cls, has_base: bool, extension_ids: Iterable[str]) -> EntityShape:
        ids = tuple(extension_ids)
        if has_base and not ids:
            return cls(ShapeKind.BASE_ONLY, True)
        if not has_base and len(ids) == 1:
            return cls(ShapeKind.EXTENSION_ONLY, False, ids)
        return cls(ShapeKind.MERGED, has_base, ids)

    @property
    def needs_plugin_map(self) -> bool:
        """Whether extension fields are wrapped in a per-id mapping type."""
        return self.kind is ShapeKind.MERGED and bool(self.extension_ids)

    @property
    def extension_id(self) -> Optional[str]:
        """The single contributing extension of an EXTENSION_ONLY shape."""
        if self.kind is ShapeKind.EXTENSION_ONLY:
            return self.extension_ids[0]
        return None


@dataclass
class AggregateModel:
    """Result of aggregating the base snapshot with every extension.

    Attributes:
        base: Base snapshot
        deltas: Entity -> extension id -> contributed fields
        entity_names: Entities to emit, in emission order
        extension_ids: Every processed extension id, first-seen order
        shapes: Entity -> shape classification
        skipped_ids: Duplicate ids that were dropped, in encounter order
            (TypeGenerator fills it with the ids it dropped before resolving)
    """

    base: EntitySnapshot
    deltas: DeltaMap = field(default_factory=dict)
    entity_names: List[str] = field(default_factory=list)
    extension_ids: List[str] = field(default_factory=list)
    shapes: Dict[str, EntityShape] = field(default_factory=dict)
    skipped_ids: List[str] = field(default_factory=list)

    def base_fields(self, entity: str) -> Mapping[str, FieldAttribute]:
        """Base fields of an entity (empty if the base lacks it)."""
        return self.base.get(entity, {})

    def extension_fields(self, entity: str) -> Dict[str, Dict[str, FieldAttribute]]:
        """Extension id -> contributed fields for an entity."""
        return self.deltas.get(entity, {})


def aggregate(
    base: EntitySnapshot,
    extensions: Sequence[Tuple[str, EntitySnapshot]],
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.IGNORE,
) -> AggregateModel:
    """Merge every extension's delta against the base into one model.

    Args:
        base: Snapshot with no extension active
        extensions: (id, snapshot with only that extension active) pairs,
            in declaration order
        duplicate_policy: Reaction to a repeated extension id

    Returns:
        AggregateModel with deltas, entity order and shapes

    Raises:
        DuplicateExtensionError: If an id repeats under DuplicatePolicy.ERROR
    """
    model = AggregateModel(base=base)
    seen: set[str] = set()

    for ext_id, snapshot in extensions:
        if ext_id in seen:
            apply_duplicate_policy(ext_id, duplicate_policy)
            model.skipped_ids.append(ext_id)
            continue
        seen.add(ext_id)
        model.extension_ids.append(ext_id)

        for change in find_redefinitions(base, snapshot):
            logger.info(f"Extension '{ext_id}' redefines base field {change}")

        delta = compute_delta(base, snapshot)
        logger.debug(
            f"Extension '{ext_id}' adds "
            f"{sum(len(f) for f in delta.values())} field(s) to {len(delta)} entity(ies)"
        )
        for entity, fields in delta.items():
            model.deltas.setdefault(entity, {})[ext_id] = fields

    for entity, fields in base.items():
        if fields or entity in model.deltas:
            model.entity_names.append(entity)
    for entity in model.deltas:
        if entity not in base:
            model.entity_names.append(entity)

    for entity in model.entity_names:
        model.shapes[entity] = EntityShape.classify(
            bool(model.base_fields(entity)),
            model.extension_fields(entity).keys(),
        )

    return model


def apply_duplicate_policy(ext_id: str, policy: DuplicatePolicy) -> None:
    """Apply the duplicate policy to a repeated extension id.

    Raises:
        DuplicateExtensionError: Under DuplicatePolicy.ERROR
    """
    if policy is DuplicatePolicy.ERROR:
        raise DuplicateExtensionError(ext_id)
    if policy is DuplicatePolicy.WARN:
        logger.warning(f"Dropping duplicate extension id '{ext_id}'; first declaration wins")
    else:
        logger.debug(f"Skipping duplicate extension id '{ext_id}'")
