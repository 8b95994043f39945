"""
TypeScript declaration generation from an AggregateModel.

For every entity the generator emits, depending on its shape:
- Base<Entity>Fields: the base fields
- <Entity>PluginFields: extension fields keyed by extension id
- <Entity>Fields: the fields of an entity only one extension introduces
- <Entity>: the merged type consumers import

followed by the PluginId union, the full schema mapping and the ModelKey
union. The model is the source of truth - the text is always derived.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Dict, List, Mapping, Optional

from ..config import GeneratorSettings
from ..schema.aggregate import AggregateModel, EntityShape, ShapeKind
from ..schema.types import FieldAttribute, FieldKind

logger = logging.getLogger(__name__)

TS_TYPES: Dict[FieldKind, str] = {
    FieldKind.BOOLEAN: "boolean",
    FieldKind.DATE: "Date",
    FieldKind.NUMBER: "number",
    FieldKind.STRING: "string",
    FieldKind.NUMBER_LIST: "number[]",
    FieldKind.STRING_LIST: "string[]",
    FieldKind.UNKNOWN: "unknown",
}

_SEPARATORS = re.compile(r"[-_]")


def pascal_case(name: str) -> str:
    """Convert a wire name to a type identifier.

    Splits on ``-`` and ``_`` and upper-cases the first character of each
    segment, leaving the rest untouched.

    Example:
        >>> pascal_case("phone-number")
        'PhoneNumber'
        >>> pascal_case("oauthAccessToken")
        'OauthAccessToken'
    """
    return "".join(part[:1].upper() + part[1:] for part in _SEPARATORS.split(name))


def ts_type(attr: FieldAttribute, where: str = "") -> str:
    """Map a field's declared kind to a TypeScript type.

    Kinds without a table entry become ``unknown``.
    """
    kind = attr.kind
    mapped = TS_TYPES.get(kind) if kind is not None else None
    if mapped is None:
        logger.warning(f"No TypeScript type for kind {attr.type!r} ({where or 'field'}), using unknown")
        return "unknown"
    return mapped


def _literal(value: str) -> str:
    # Non-ASCII characters stay as-is, as JSON.stringify writes them
    return json.dumps(value, ensure_ascii=False)


def _member_lines(
    fields: Mapping[str, FieldAttribute],
    indent: str,
    where: str,
) -> List[str]:
    lines = []
    for key, attr in fields.items():
        optional = "" if attr.required else "?"
        lines.append(f"{indent}{attr.wire_name(key)}{optional}: {ts_type(attr, f'{where}.{key}')}")
    return lines


def _record_block(name: str, fields: Mapping[str, FieldAttribute], where: str) -> str:
    lines = [f"export type {name} = {{"]
    lines.extend(_member_lines(fields, "  ", where))
    lines.append("}")
    return "\n".join(lines)


def _plugin_map_block(
    name: str,
    plugin_fields: Mapping[str, Mapping[str, FieldAttribute]],
    where: str,
) -> str:
    lines = [f"export type {name} = {{"]
    for ext_id, fields in plugin_fields.items():
        lines.append(f"  {_literal(ext_id)}: {{")
        lines.extend(_member_lines(fields, "    ", f"{where}[{ext_id}]"))
        lines.append("  }")
    lines.append("}")
    return "\n".join(lines)


def generate_entity(
    model: AggregateModel,
    entity: str,
    settings: Optional[GeneratorSettings] = None,
) -> List[str]:
    """Generate the declaration blocks of one entity."""
    settings = settings or GeneratorSettings()
    shape: EntityShape = model.shapes[entity]
    name = pascal_case(entity)
    base_name = f"{settings.base_prefix}{name}{settings.fields_suffix}"
    blocks: List[str] = []

    if shape.kind is ShapeKind.EXTENSION_ONLY:
        fields_name = f"{name}{settings.fields_suffix}"
        only = model.extension_fields(entity)[shape.extension_id]
        blocks.append(_record_block(fields_name, only, entity))
        blocks.append(f"export type {name} = {fields_name}")
        return blocks

    parts: List[str] = []
    if shape.has_base:
        blocks.append(_record_block(base_name, model.base_fields(entity), entity))
        parts.append(base_name)

    if shape.needs_plugin_map:
        map_name = f"{name}{settings.plugin_fields_suffix}"
        blocks.append(_plugin_map_block(map_name, model.extension_fields(entity), entity))
        parts.extend(f"{map_name}[{_literal(ext_id)}]" for ext_id in shape.extension_ids)

    merged = " & ".join(parts) or "{}"
    blocks.append(f"export type {name} = {merged}")
    return blocks


def _plugin_id_block(model: AggregateModel, settings: GeneratorSettings) -> str:
    union = " | ".join(_literal(ext_id) for ext_id in model.extension_ids) or "never"
    return "\n".join([
        "/**",
        " * Union of all supported plugin identifiers.",
        " */",
        f"export type {settings.plugin_id_type} = {union}",
    ])


def _full_schema_block(model: AggregateModel, settings: GeneratorSettings) -> str:
    lines = [
        "/**",
        " * Complete schema mapping of all models to their types.",
        " */",
        f"export type {settings.full_schema_type} = {{",
    ]
    for entity in model.entity_names:
        lines.append(f"  {_literal(entity)}: {pascal_case(entity)}")
    lines.append("}")
    return "\n".join(lines)


def _model_key_block(settings: GeneratorSettings) -> str:
    return "\n".join([
        "/**",
        " * Union of all model names in the schema.",
        " */",
        f"export type {settings.model_key_type} = keyof {settings.full_schema_type}",
    ])


def generate_typescript(
    model: AggregateModel,
    settings: Optional[GeneratorSettings] = None,
) -> str:
    """Generate the full TypeScript declaration file.

    Args:
        model: Aggregated base and extension deltas
        settings: Naming and header settings

    Returns:
        Declaration text, blocks separated by one blank line, ending with
        a newline
    """
    settings = settings or GeneratorSettings()
    blocks = [settings.header]

    for entity in model.entity_names:
        blocks.extend(generate_entity(model, entity, settings))

    blocks.append(_plugin_id_block(model, settings))
    blocks.append(_full_schema_block(model, settings))
    blocks.append(_model_key_block(settings))

    return "\n\n".join(blocks) + "\n"
