"""
Unit tests for delta aggregation.

Tests cover:
- Per-entity, per-extension delta table
- Entity ordering
- Duplicate extension ids under each policy
- Shape classification
"""

import logging

import pytest

from typegen.errors import DuplicateExtensionError
from typegen.schema.aggregate import (
    DuplicatePolicy,
    EntityShape,
    ShapeKind,
    aggregate,
)
from typegen.schema.types import freeze_snapshot


def snap(**entities):
    """Helper to build a snapshot from keyword entities."""
    return freeze_snapshot(entities)


BASE = snap(
    user={"email": {"type": "string", "required": True}},
    account={"providerId": {"type": "string", "required": True}},
)


def with_base(**entities):
    """Base snapshot plus extra entities/fields."""
    merged = {k: {f: a.to_dict() for f, a in v.items()} for k, v in BASE.items()}
    for entity, fields in entities.items():
        merged.setdefault(entity, {}).update(fields)
    return freeze_snapshot(merged)


ADMIN = with_base(user={"banned": {"type": "boolean"}}, session={"impersonatedBy": {"type": "string"}})
USERNAME = with_base(user={"username": {"type": "string"}})
JWT = with_base(jwks={"publicKey": {"type": "string", "required": True}})


class TestEntityShape:
    """Tests for EntityShape.classify."""

    def test_base_only(self):
        shape = EntityShape.classify(True, [])
        assert shape.kind is ShapeKind.BASE_ONLY
        assert not shape.needs_plugin_map
        assert shape.extension_id is None

    def test_extension_only(self):
        shape = EntityShape.classify(False, ["jwt"])
        assert shape.kind is ShapeKind.EXTENSION_ONLY
        assert shape.extension_id == "jwt"
        assert not shape.needs_plugin_map

    def test_merged_with_base(self):
        shape = EntityShape.classify(True, ["admin"])
        assert shape.kind is ShapeKind.MERGED
        assert shape.has_base
        assert shape.needs_plugin_map

    def test_merged_without_base(self):
        """Two extensions and no base still need the plugin map."""
        shape = EntityShape.classify(False, ["a", "b"])
        assert shape.kind is ShapeKind.MERGED
        assert not shape.has_base
        assert shape.extension_ids == ("a", "b")
        assert shape.needs_plugin_map

    def test_degenerate(self):
        """No base and no extensions is an empty merged shape."""
        shape = EntityShape.classify(False, [])
        assert shape.kind is ShapeKind.MERGED
        assert not shape.needs_plugin_map


class TestAggregate:
    """Tests for aggregate."""

    def test_no_extensions(self):
        """Without extensions every base entity is base-only."""
        model = aggregate(BASE, [])
        assert model.entity_names == ["user", "account"]
        assert model.deltas == {}
        assert model.extension_ids == []
        assert all(s.kind is ShapeKind.BASE_ONLY for s in model.shapes.values())

    def test_delta_table(self):
        """Deltas are grouped by entity, then extension id."""
        model = aggregate(BASE, [("admin", ADMIN), ("username", USERNAME)])
        assert list(model.deltas["user"]) == ["admin", "username"]
        assert list(model.deltas["user"]["admin"]) == ["banned"]
        assert list(model.deltas["session"]) == ["admin"]

    def test_entity_order(self):
        """Base entities come first, then extension entities in extension order."""
        model = aggregate(BASE, [("jwt", JWT), ("admin", ADMIN)])
        assert model.entity_names == ["user", "account", "jwks", "session"]

    def test_shapes(self):
        model = aggregate(BASE, [("admin", ADMIN), ("username", USERNAME), ("jwt", JWT)])
        assert model.shapes["user"] == EntityShape(ShapeKind.MERGED, True, ("admin", "username"))
        assert model.shapes["account"].kind is ShapeKind.BASE_ONLY
        assert model.shapes["jwks"] == EntityShape(ShapeKind.EXTENSION_ONLY, False, ("jwt",))
        assert model.shapes["session"].kind is ShapeKind.EXTENSION_ONLY

    def test_extension_ids_include_silent_extensions(self):
        """Extensions adding nothing still appear in extension_ids."""
        model = aggregate(BASE, [("bearer", BASE), ("admin", ADMIN)])
        assert model.extension_ids == ["bearer", "admin"]
        assert "bearer" not in model.deltas.get("user", {})

    def test_empty_base_entity_not_emitted(self):
        """A base entity with no fields and no deltas is skipped."""
        base = snap(user={"email": {"type": "string"}}, verification={})
        model = aggregate(base, [])
        assert model.entity_names == ["user"]

    def test_empty_base_entity_gaining_fields(self):
        """A fieldless base entity keeps its base position when extended."""
        base = snap(verification={}, user={"email": {"type": "string"}})
        ext = snap(verification={"code": {"type": "string"}}, user={"email": {"type": "string"}})
        model = aggregate(base, [("otp", ext)])
        assert model.entity_names == ["verification", "user"]
        assert model.shapes["verification"].kind is ShapeKind.EXTENSION_ONLY

    def test_conflicting_fields_kept_per_extension(self):
        """Two extensions adding the same key keep their own definitions."""
        a = with_base(session={"foo": {"type": "string"}})
        b = with_base(session={"foo": {"type": "number"}})
        model = aggregate(BASE, [("A", a), ("B", b)])
        assert model.deltas["session"]["A"]["foo"].type == "string"
        assert model.deltas["session"]["B"]["foo"].type == "number"
        assert model.shapes["session"] == EntityShape(ShapeKind.MERGED, False, ("A", "B"))

    def test_base_field_redefinition_base_wins(self, caplog):
        """A redefined base field stays out of the delta and is logged."""
        redefining = snap(user={"email": {"type": "number"}, "extra": {"type": "string"}})
        with caplog.at_level(logging.INFO, logger="typegen"):
            model = aggregate(BASE, [("odd", redefining)])
        assert list(model.deltas["user"]["odd"]) == ["extra"]
        assert model.base_fields("user")["email"].type == "string"
        assert "redefines base field user.email" in caplog.text


class TestDuplicateIds:
    """Tests for repeated extension ids."""

    FIRST = with_base(user={"banned": {"type": "boolean"}})
    SECOND = with_base(user={"role": {"type": "string"}}, team={"name": {"type": "string"}})

    def test_first_declaration_wins(self):
        """Only the first 'admin' contributes; no error is raised."""
        model = aggregate(BASE, [("admin", self.FIRST), ("admin", self.SECOND)])
        assert list(model.deltas["user"]["admin"]) == ["banned"]
        assert "team" not in model.deltas
        assert "team" not in model.entity_names
        assert model.extension_ids == ["admin"]
        assert model.skipped_ids == ["admin"]

    def test_ignore_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="typegen"):
            aggregate(BASE, [("admin", self.FIRST), ("admin", self.SECOND)])
        assert caplog.records == []

    def test_warn_policy(self, caplog):
        with caplog.at_level(logging.WARNING, logger="typegen"):
            aggregate(BASE, [("admin", self.FIRST), ("admin", self.SECOND)], DuplicatePolicy.WARN)
        assert "duplicate extension id 'admin'" in caplog.text

    def test_error_policy(self):
        with pytest.raises(DuplicateExtensionError) as exc_info:
            aggregate(BASE, [("admin", self.FIRST), ("admin", self.SECOND)], DuplicatePolicy.ERROR)
        assert exc_info.value.extension_id == "admin"
        assert exc_info.value.code == "DUPLICATE_EXTENSION"
