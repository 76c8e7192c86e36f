"""Tests for doctrine.core.audit: append-only audit entries and logs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from doctrine.core.audit import AuditEntry, AuditLog, thaw, validate_changes
from doctrine.core.enums import AuditAction
from doctrine.core.errors import InvalidFieldError

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _entry(offset: int = 0, action: AuditAction = AuditAction.UPDATE, **changes) -> AuditEntry:
    return AuditEntry.build(T0 + timedelta(seconds=offset), action, "tester", changes, True)


class TestValidateChanges:
    def test_accepts_json_like_values(self):
        payload = {
            "created": True,
            "title": "New",
            "count": 3,
            "ratio": 0.5,
            "nothing": None,
            "tags": ["a", "b"],
            "nested": {"inner": {"deep": 1}},
        }
        assert validate_changes(payload) == payload

    def test_returns_copy(self):
        payload = {"nested": {"k": 1}}
        result = validate_changes(payload)
        result["nested"]["k"] = 2
        assert payload["nested"]["k"] == 1

    def test_rejects_non_json_values(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            validate_changes({"when": object()})
        assert exc_info.value.field == "changes"

    def test_rejects_non_string_keys(self):
        with pytest.raises(InvalidFieldError):
            validate_changes({1: "x"})


class TestAuditEntry:
    def test_build_coerces_action(self):
        entry = AuditEntry.build(T0, "CREATE", "agent", {"created": True}, True)
        assert entry.action is AuditAction.CREATE

    def test_changes_read_only(self):
        entry = _entry(title="x")
        with pytest.raises(TypeError):
            entry.changes["title"] = "y"  # type: ignore[index]

    def test_entry_frozen(self):
        entry = _entry()
        with pytest.raises(AttributeError):
            entry.agent = "someone-else"  # type: ignore[misc]

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            AuditEntry.build(T0, "ERASE", "agent", {}, True)

    def test_nested_payload_frozen(self):
        entry = _entry(neon={"no_orphan_data": True}, tags=["a", {"k": 1}])
        with pytest.raises(TypeError):
            entry.changes["neon"]["no_orphan_data"] = False  # type: ignore[index]
        with pytest.raises(AttributeError):
            entry.changes["tags"].append("b")  # type: ignore[union-attr]
        with pytest.raises(TypeError):
            entry.changes["tags"][1]["k"] = 2  # type: ignore[index]
        assert entry.changes["neon"]["no_orphan_data"] is True

    def test_caller_payload_not_aliased(self):
        payload = {"neon": {"ok": True}}
        entry = AuditEntry.build(T0, AuditAction.VALIDATE, "agent", payload, True)
        payload["neon"]["ok"] = False
        assert entry.changes["neon"]["ok"] is True

    def test_thaw_returns_plain_copy(self):
        entry = _entry(neon={"ok": True}, tags=["a", "b"])
        plain = thaw(entry.changes)
        assert plain == {"neon": {"ok": True}, "tags": ["a", "b"]}
        plain["neon"]["ok"] = False
        assert entry.changes["neon"]["ok"] is True

    def test_equality_ignores_freezing(self):
        assert _entry(tags=["a"]) == _entry(tags=["a"])
        assert _entry(tags=["a"]) != _entry(tags=["b"])


class TestAuditLog:
    def test_empty(self):
        log = AuditLog()
        assert len(log) == 0
        assert not log
        assert log.last is None

    def test_append_returns_new_log(self):
        log = AuditLog()
        appended = log.append(_entry(0, AuditAction.CREATE))
        assert len(log) == 0
        assert len(appended) == 1
        assert appended.last.action is AuditAction.CREATE

    def test_order_preserved(self):
        log = AuditLog()
        for i, action in enumerate([AuditAction.CREATE, AuditAction.UPDATE, AuditAction.VALIDATE]):
            log = log.append(_entry(i, action))
        assert [e.action for e in log] == [
            AuditAction.CREATE,
            AuditAction.UPDATE,
            AuditAction.VALIDATE,
        ]
        assert log[0].action is AuditAction.CREATE
        assert log.entries[-1].action is AuditAction.VALIDATE

    def test_equal_timestamps_allowed(self):
        log = AuditLog().append(_entry(5)).append(_entry(5))
        assert len(log) == 2

    def test_append_out_of_order_rejected(self):
        log = AuditLog().append(_entry(10))
        with pytest.raises(InvalidFieldError):
            log.append(_entry(5))
        assert len(log) == 1

    def test_constructor_rejects_out_of_order(self):
        with pytest.raises(InvalidFieldError):
            AuditLog([_entry(10), _entry(0)])

    def test_by_action(self):
        log = AuditLog([_entry(0, AuditAction.CREATE), _entry(1), _entry(2)])
        assert len(log.by_action(AuditAction.UPDATE)) == 2
        assert log.by_action(AuditAction.DELETE) == []

    def test_equality(self):
        a = AuditLog([_entry(0, AuditAction.CREATE, created=True)])
        b = AuditLog([_entry(0, AuditAction.CREATE, created=True)])
        assert a == b
        assert a != AuditLog()
