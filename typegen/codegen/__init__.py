"""Code generation from an aggregated schema model."""

from .typescript import TS_TYPES, generate_entity, generate_typescript, pascal_case, ts_type

__all__ = [
    "TS_TYPES",
    "generate_entity",
    "generate_typescript",
    "pascal_case",
    "ts_type",
]
