"""
typegen - Merged type declarations for a base schema and its extensions.

This package turns schema snapshots into TypeScript declarations:
- Snapshot data model (FieldAttribute, ExtensionDescriptor)
- Per-extension deltas against the base schema
- Aggregation and entity shape classification
- TypeScript emission
- TypeGenerator orchestrating one run over a snapshot provider

Architecture:
    ┌──────────────┐  active set  ┌──────────────────┐
    │ TypeGenerator│─────────────▶│ SnapshotProvider │
    └──────┬───────┘◀─────────────└──────────────────┘
           │          snapshot
           ▼
    ┌──────────────┐     ┌──────────────┐     ┌────────────────┐
    │ compute_delta│────▶│  aggregate   │────▶│ generate_      │
    │ (per ext.)   │     │ (+ shapes)   │     │ typescript     │
    └──────────────┘     └──────────────┘     └────────────────┘

Invariants:
    - Extensions are evaluated one at a time against the base schema
    - Fields already in the base entity never count as extension fields
    - Identical inputs give byte-identical output

Example:
    >>> from typegen import StaticSnapshotProvider, TypeGenerator
    >>> provider = StaticSnapshotProvider.from_yaml(document)
    >>> print(TypeGenerator(provider, provider.descriptors()).generate())
"""

from ._version import __version__
from .codegen import generate_typescript, pascal_case
from .config import GeneratorSettings, setup_logging
from .errors import (
    DuplicateExtensionError,
    GeneratorStateError,
    ProviderConfigError,
    SnapshotError,
    TypeGenError,
)
from .generator import GeneratorState, TypeGenerator, generate_types
from .provider import SnapshotProvider, StaticSnapshotProvider
from .schema import (
    AggregateModel,
    DuplicatePolicy,
    EntityShape,
    ExtensionDescriptor,
    FieldAttribute,
    FieldKind,
    ShapeKind,
    aggregate,
    compute_delta,
    freeze_snapshot,
)

__all__ = [
    "__version__",
    # Schema
    "AggregateModel",
    "DuplicatePolicy",
    "EntityShape",
    "ExtensionDescriptor",
    "FieldAttribute",
    "FieldKind",
    "ShapeKind",
    "aggregate",
    "compute_delta",
    "freeze_snapshot",
    # Codegen
    "generate_typescript",
    "pascal_case",
    # Orchestration
    "GeneratorState",
    "TypeGenerator",
    "generate_types",
    "SnapshotProvider",
    "StaticSnapshotProvider",
    # Config
    "GeneratorSettings",
    "setup_logging",
    # Errors
    "TypeGenError",
    "SnapshotError",
    "DuplicateExtensionError",
    "GeneratorStateError",
    "ProviderConfigError",
]
