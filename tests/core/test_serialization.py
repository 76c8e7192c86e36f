"""Tests for snapshot serialization of records and registries."""

from __future__ import annotations

import copy
import dataclasses
import json

import pytest

from doctrine.core.enums import AuditAction, Category, Phase
from doctrine.core.errors import (
    CategoryMismatchError,
    DuplicateIdentifierError,
    InvalidFieldError,
    InvalidIdentifierError,
)
from doctrine.core.models import StampedProcess
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.serialization import (
    SNAPSHOT_VERSION,
    record_from_dict,
    record_to_dict,
    registry_from_dict,
    registry_to_dict,
)


@pytest.fixture
def populated(seeded_registry, clock):
    clock.advance(60)
    seeded_registry.update("1.1.1.20.1", {"title": "Renamed", "status": "DEPRECATED"})
    seeded_registry.validate("1.1.1.10.1")
    seeded_registry.track_process(StampedProcess("proc-1", structured=True, traceable=True))
    return seeded_registry


class TestRecordDict:
    def test_shape(self, seeded_registry):
        data = record_to_dict(seeded_registry.get("1.1.1.20.1"))
        assert data["barton_id"] == "1.1.1.20.1"
        assert data["category"] == "process"
        assert data["phase"] == "FRAME"
        assert data["status"] == "ACTIVE"
        assert data["created_at"] == "2026-01-01T12:00:00+00:00"
        assert data["audit_trail"][0]["action"] == "CREATE"
        assert data["audit_trail"][0]["changes"] == {"created": True}

    def test_json_safe(self, populated):
        json.dumps(registry_to_dict(populated))

    def test_record_round_trip(self, populated):
        record = populated.get("1.1.1.20.1")
        assert record_from_dict(record_to_dict(record)) == record

    @pytest.mark.parametrize("key", ["title", "audit_trail", "created_at"])
    def test_missing_key(self, seeded_registry, key):
        data = record_to_dict(seeded_registry.get("1.1.1.20.1"))
        del data[key]
        with pytest.raises(InvalidFieldError):
            record_from_dict(data)

    def test_unknown_enum_value(self, seeded_registry):
        data = record_to_dict(seeded_registry.get("1.1.1.20.1"))
        data["phase"] = "LAUNCH"
        with pytest.raises(InvalidFieldError):
            record_from_dict(data)

    def test_bad_audit_action(self, seeded_registry):
        data = record_to_dict(seeded_registry.get("1.1.1.20.1"))
        data["audit_trail"][0]["action"] = "ERASE"
        with pytest.raises(InvalidFieldError):
            record_from_dict(data)


class TestRegistryDict:
    def test_snapshot_layout(self, populated):
        data = registry_to_dict(populated)
        assert data["version"] == SNAPSHOT_VERSION
        assert [d["barton_id"] for d in data["doctrines"]] == [
            "1.1.1.20.1",
            "1.1.1.10.1",
            "1.1.1.30.1",
        ]
        assert data["processes"][0]["process_id"] == "proc-1"

    def test_round_trip_preserves_everything(self, populated):
        restored = registry_from_dict(registry_to_dict(populated))
        assert restored.records() == populated.records()
        assert restored.processes() == populated.processes()
        assert restored.process_count == 1
        renamed = restored.get("1.1.1.20.1")
        assert [e.action for e in renamed.audit_trail] == [AuditAction.CREATE, AuditAction.UPDATE]

    def test_restored_registry_is_usable(self, populated, clock):
        restored = registry_from_dict(registry_to_dict(populated), clock=clock)
        restored.update("1.1.1.30.1", {"owner": "auditor"})
        assert len(restored.get("1.1.1.30.1").audit_trail) == 2
        assert restored.generate_report().total_doctrines == 3

    def test_filters_after_restore(self, populated):
        restored = registry_from_dict(registry_to_dict(populated))
        assert [r.barton_id for r in restored.list_by_phase(Phase.BLUEPRINT)] == ["1.1.1.10.1"]
        assert len(restored.list_by_category(Category.COMPLIANCE)) == 1

    def test_empty_registry(self):
        restored = registry_from_dict(registry_to_dict(DoctrineRegistry()))
        assert len(restored) == 0

    @pytest.mark.parametrize("version", [None, 0, 2, "1"])
    def test_unsupported_version(self, populated, version):
        data = registry_to_dict(populated)
        data["version"] = version
        with pytest.raises(InvalidFieldError):
            registry_from_dict(data)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidFieldError):
            registry_from_dict([])  # type: ignore[arg-type]


class TestRestoreInvariants:
    def _snapshot(self, registry):
        return copy.deepcopy(registry_to_dict(registry))

    def test_non_canonical_identifier(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["doctrines"][0]["barton_id"] = "01.1.1.20.1"
        with pytest.raises(InvalidIdentifierError):
            registry_from_dict(data)

    def test_category_out_of_band(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["doctrines"][0]["category"] = "tone"
        with pytest.raises(CategoryMismatchError):
            registry_from_dict(data)

    def test_duplicate_identifier(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["doctrines"].append(copy.deepcopy(data["doctrines"][0]))
        with pytest.raises(DuplicateIdentifierError):
            registry_from_dict(data)

    def test_empty_audit_trail(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["doctrines"][1]["audit_trail"] = []
        with pytest.raises(InvalidFieldError) as exc_info:
            registry_from_dict(data)
        assert exc_info.value.field == "audit_trail"

    def test_restore_requires_empty_registry(self, seeded_registry):
        with pytest.raises(InvalidFieldError):
            seeded_registry.restore(seeded_registry.records())

    def test_malformed_process(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["processes"] = [{"process_id": "p", "bogus": True}]
        with pytest.raises(InvalidFieldError):
            registry_from_dict(data)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("owner", 5),
            ("owner", None),
            ("description", None),
            ("title", 7),
            ("barton_id", 11120),
            ("created_at", 0),
        ],
    )
    def test_record_field_types(self, seeded_registry, key, value):
        data = self._snapshot(seeded_registry)
        data["doctrines"][0][key] = value
        with pytest.raises(InvalidFieldError) as exc_info:
            registry_from_dict(data)
        assert exc_info.value.field == key

    @pytest.mark.parametrize(
        "key,value",
        [
            ("compliance", "false"),
            ("compliance", 0),
            ("agent", 3),
            ("changes", [["created", True]]),
            ("timestamp", None),
        ],
    )
    def test_audit_entry_field_types(self, seeded_registry, key, value):
        data = self._snapshot(seeded_registry)
        data["doctrines"][0]["audit_trail"][0][key] = value
        with pytest.raises(InvalidFieldError) as exc_info:
            registry_from_dict(data)
        assert exc_info.value.context.identifier == "1.1.1.20.1"

    @pytest.mark.parametrize("key", ["doctrines", "processes"])
    @pytest.mark.parametrize("value", [None, {}, "x"])
    def test_sections_must_be_lists(self, seeded_registry, key, value):
        data = self._snapshot(seeded_registry)
        data[key] = value
        with pytest.raises(InvalidFieldError) as exc_info:
            registry_from_dict(data)
        assert exc_info.value.field == key

    @pytest.mark.parametrize(
        "process",
        [None, ["proc-1"], {"process_id": 9}, {"process_id": "p", "structured": "yes"}],
    )
    def test_process_entry_types(self, seeded_registry, process):
        data = self._snapshot(seeded_registry)
        data["processes"] = [process]
        with pytest.raises(InvalidFieldError):
            registry_from_dict(data)

    @pytest.mark.parametrize("item", [None, "1.1.1.20.1", []])
    def test_doctrine_entry_must_be_mapping(self, seeded_registry, item):
        data = self._snapshot(seeded_registry)
        data["doctrines"] = [item]
        with pytest.raises(InvalidFieldError):
            registry_from_dict(data)

    def test_boolean_version_rejected(self, seeded_registry):
        data = self._snapshot(seeded_registry)
        data["version"] = True
        with pytest.raises(InvalidFieldError):
            registry_from_dict(data)

    def test_restore_rejects_non_string_owner(self, registry, seeded_registry):
        record = dataclasses.replace(seeded_registry.get("1.1.1.20.1"), owner=5)
        with pytest.raises(InvalidFieldError) as exc_info:
            registry.restore([record])
        assert exc_info.value.field == "owner"
        assert len(registry) == 0
