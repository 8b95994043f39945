"""
Schema module for the type generator.

This module provides the snapshot data model and the delta analysis:
- Type definitions (FieldKind, FieldAttribute, ExtensionDescriptor)
- Per-extension deltas against the base snapshot
- Aggregation of all deltas with entity shape classification

Invariants:
    - Each extension is evaluated alone against the base snapshot
    - Deltas are computed by key presence only
    - Aggregation output is fully determined by input order
"""

from .aggregate import (
    AggregateModel,
    DeltaMap,
    DuplicatePolicy,
    EntityShape,
    ShapeKind,
    apply_duplicate_policy,
    aggregate,
)
from .delta import FieldRedefinition, compute_delta, find_redefinitions
from .types import (
    EntitySnapshot,
    ExtensionDescriptor,
    FieldAttribute,
    FieldKind,
    freeze_snapshot,
)

__all__ = [
    # Types
    "EntitySnapshot",
    "ExtensionDescriptor",
    "FieldAttribute",
    "FieldKind",
    "freeze_snapshot",
    # Delta
    "FieldRedefinition",
    "compute_delta",
    "find_redefinitions",
    # Aggregation
    "AggregateModel",
    "DeltaMap",
    "DuplicatePolicy",
    "EntityShape",
    "ShapeKind",
    "aggregate",
    "apply_duplicate_policy",
]
