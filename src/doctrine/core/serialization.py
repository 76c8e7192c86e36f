"""Lossless dict conversion for doctrine records and registry snapshots.

Snapshot layout::

    {
      "version": 1,
      "doctrines": [ {record}, ... ],      # registry iteration order
      "processes": [ {process}, ... ]
    }

Timestamps are ISO 8601 strings. Audit entries keep their order. Loading a
snapshot goes through ``DoctrineRegistry.restore`` so every registry
invariant is re-checked.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any

from doctrine.core.audit import AuditEntry, AuditLog, thaw
from doctrine.core.enums import AuditAction, Category, DoctrineStatus, Phase
from doctrine.core.errors import InvalidFieldError
from doctrine.core.models import DoctrineRecord, StampedProcess
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.timestamps import from_iso8601, to_iso8601

SNAPSHOT_VERSION = 1

_PROCESS_FIELDS = tuple(f.name for f in fields(StampedProcess))


def entry_to_dict(entry: AuditEntry) -> dict[str, Any]:
    return {
        "timestamp": to_iso8601(entry.timestamp),
        "action": entry.action.value,
        "agent": entry.agent,
        "changes": thaw(entry.changes),
        "compliance": entry.compliance,
    }


def _typed(data: dict[str, Any], key: str, expected: type, field: str) -> Any:
    """Fetch ``data[key]`` and require it to be an instance of ``expected``."""
    value = data[key]
    if not isinstance(value, expected):
        raise InvalidFieldError(
            f"{key} must be {expected.__name__}, got {type(value).__name__}",
            field=field,
            value=value,
        )
    return value


def _require_mapping(data: Any, what: str, field: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidFieldError(f"{what} must be a mapping", field=field, value=data)
    return data


def _require_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise InvalidFieldError(f"Snapshot {key} must be a list", field=key, value=value)
    return value


def entry_from_dict(data: dict[str, Any]) -> AuditEntry:
    _require_mapping(data, "Audit entry", "audit_trail")
    try:
        return AuditEntry.build(
            timestamp=from_iso8601(_typed(data, "timestamp", str, "audit_trail")),
            action=AuditAction(data["action"]),
            agent=_typed(data, "agent", str, "audit_trail"),
            changes=_typed(data, "changes", dict, "audit_trail"),
            compliance=_typed(data, "compliance", bool, "audit_trail"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidFieldError(f"Malformed audit entry: {e}", field="audit_trail", cause=e) from e


def record_to_dict(record: DoctrineRecord) -> dict[str, Any]:
    return {
        "barton_id": record.barton_id,
        "title": record.title,
        "description": record.description,
        "category": record.category.value,
        "phase": record.phase.value,
        "status": record.status.value,
        "owner": record.owner,
        "created_at": to_iso8601(record.created_at),
        "updated_at": to_iso8601(record.updated_at),
        "audit_trail": [entry_to_dict(e) for e in record.audit_trail],
    }


def record_from_dict(data: dict[str, Any]) -> DoctrineRecord:
    """Rebuild a record. Field values are type-checked, not re-validated
    against registry invariants (``DoctrineRegistry.restore`` does that)."""
    _require_mapping(data, "Doctrine record", "doctrine")
    try:
        trail = _typed(data, "audit_trail", list, "audit_trail")
        return DoctrineRecord(
            barton_id=_typed(data, "barton_id", str, "barton_id"),
            title=_typed(data, "title", str, "title"),
            description=_typed(data, "description", str, "description"),
            category=Category(data["category"]),
            phase=Phase(data["phase"]),
            status=DoctrineStatus(data["status"]),
            owner=_typed(data, "owner", str, "owner"),
            created_at=from_iso8601(_typed(data, "created_at", str, "created_at")),
            updated_at=from_iso8601(_typed(data, "updated_at", str, "updated_at")),
            audit_trail=AuditLog([entry_from_dict(e) for e in trail]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidFieldError(
            f"Malformed doctrine record: {e}",
            field="doctrine",
            cause=e,
        ).with_context(identifier=data.get("barton_id")) from e
    except InvalidFieldError as e:
        e.with_context(identifier=data.get("barton_id"))
        raise


def process_to_dict(process: StampedProcess) -> dict[str, Any]:
    return asdict(process)


def process_from_dict(data: dict[str, Any]) -> StampedProcess:
    _require_mapping(data, "STAMPED process", "processes")
    unknown = set(data) - set(_PROCESS_FIELDS)
    if unknown or "process_id" not in data:
        raise InvalidFieldError(f"Malformed STAMPED process: {sorted(data)}", field="processes")
    _typed(data, "process_id", str, "process_id")
    for name in _PROCESS_FIELDS[1:]:
        if name in data:
            _typed(data, name, bool, name)
    return StampedProcess(**data)


def registry_to_dict(registry: DoctrineRegistry) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "doctrines": [record_to_dict(r) for r in registry.records()],
        "processes": [process_to_dict(p) for p in registry.processes()],
    }


def registry_from_dict(data: dict[str, Any], **registry_kwargs: Any) -> DoctrineRegistry:
    """Build a new registry from a snapshot produced by ``registry_to_dict``."""
    _require_mapping(data, "Snapshot", "snapshot")
    version = data.get("version")
    if isinstance(version, bool) or version != SNAPSHOT_VERSION:
        raise InvalidFieldError(
            f"Unsupported snapshot version: {version!r}",
            field="version",
            value=version,
        )
    doctrines = _require_list(data, "doctrines")
    processes = _require_list(data, "processes")
    registry = DoctrineRegistry(**registry_kwargs)
    registry.restore(
        [record_from_dict(r) for r in doctrines],
        [process_from_dict(p) for p in processes],
    )
    return registry


__all__ = [
    "SNAPSHOT_VERSION",
    "record_from_dict",
    "record_to_dict",
    "registry_from_dict",
    "registry_to_dict",
]
