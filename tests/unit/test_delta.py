"""
Unit tests for per-extension deltas.

Tests cover:
- Fields added to existing entities
- Entities introduced by an extension
- Key-presence semantics for redefined fields
- Redefinition reporting
"""

from typegen.schema.delta import compute_delta, find_redefinitions
from typegen.schema.types import FieldAttribute, freeze_snapshot

BASE = freeze_snapshot({
    "user": {
        "email": {"type": "string", "required": True},
        "name": {"type": "string", "required": True},
    },
    "session": {"token": {"type": "string", "required": True}},
})


class TestComputeDelta:
    """Tests for compute_delta."""

    def test_no_changes(self):
        """A snapshot equal to the base has an empty delta."""
        assert compute_delta(BASE, BASE) == {}

    def test_added_field(self):
        """Fields missing from the base entity are the delta."""
        with_admin = freeze_snapshot({
            "user": {
                "email": {"type": "string", "required": True},
                "name": {"type": "string", "required": True},
                "banned": {"type": "boolean"},
            },
            "session": {"token": {"type": "string", "required": True}},
        })
        delta = compute_delta(BASE, with_admin)
        assert delta == {"user": {"banned": FieldAttribute(type="boolean")}}

    def test_new_entity(self):
        """An entity absent from the base contributes all its fields."""
        with_jwt = freeze_snapshot({
            **{k: {f: a.to_dict() for f, a in v.items()} for k, v in BASE.items()},
            "jwks": {
                "publicKey": {"type": "string", "required": True},
                "expiresAt": {"type": "date"},
            },
        })
        delta = compute_delta(BASE, with_jwt)
        assert list(delta) == ["jwks"]
        assert list(delta["jwks"]) == ["publicKey", "expiresAt"]

    def test_field_order_follows_snapshot(self):
        """Delta field order is the extension snapshot's order."""
        snap = freeze_snapshot({
            "user": {
                "zeta": {"type": "string"},
                "email": {"type": "string", "required": True},
                "alpha": {"type": "string"},
            },
        })
        assert list(compute_delta(BASE, snap)["user"]) == ["zeta", "alpha"]

    def test_redefined_field_not_in_delta(self):
        """A base key reported with another type is not a delta field."""
        snap = freeze_snapshot({
            "user": {
                "email": {"type": "number"},
                "name": {"type": "string", "required": True},
            },
        })
        assert compute_delta(BASE, snap) == {}

    def test_entities_missing_from_extension_ignored(self):
        """Base entities absent from the extension snapshot are not deltas."""
        snap = freeze_snapshot({"user": {"phone": {"type": "string"}}})
        assert list(compute_delta(BASE, snap)) == ["user"]

    def test_empty_entity_omitted(self):
        """Entities with no fields at all are omitted."""
        snap = freeze_snapshot({"verification": {}})
        assert compute_delta(BASE, snap) == {}


class TestFindRedefinitions:
    """Tests for find_redefinitions."""

    def test_reports_changed_type(self):
        """A base key with another type is reported."""
        snap = freeze_snapshot({"user": {"email": {"type": "number", "required": True}}})
        changes = find_redefinitions(BASE, snap)
        assert len(changes) == 1
        assert changes[0].entity == "user"
        assert changes[0].key == "email"
        assert changes[0].base.type == "string"
        assert changes[0].extension.type == "number"
        assert "user.email" in str(changes[0])

    def test_reports_changed_optionality(self):
        """A base key with other optionality is reported."""
        snap = freeze_snapshot({"session": {"token": {"type": "string"}}})
        assert [c.key for c in find_redefinitions(BASE, snap)] == ["token"]

    def test_identical_fields_not_reported(self):
        """Unchanged base fields and new fields are not redefinitions."""
        snap = freeze_snapshot({
            "user": {"email": {"type": "string", "required": True}, "banned": {"type": "boolean"}},
            "jwks": {"publicKey": {"type": "string"}},
        })
        assert find_redefinitions(BASE, snap) == []
