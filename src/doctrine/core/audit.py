"""
Append-only audit trail for doctrine records.

Each doctrine carries an ``AuditLog``: the ordered history of every action
taken on it. Entries are immutable and the log itself is a persistent value;
``append`` returns a new log and leaves the original untouched. Nothing
removes, edits or reorders an entry.

The ``changes`` payload is an open mapping from field name to a JSON-like
value (str, int, float, bool, None, lists, nested mappings). It is validated
with pydantic's ``JsonValue`` adapter on the way in, so a trail can always be
serialized without loss.

Manifesto:
    - **Append-only:** History is never rewritten
    - **Chronological:** Timestamps never go backwards within one log
    - **Typed payloads:** Change values are JSON-like, checked at the boundary

Examples:
    >>> entry = AuditEntry.build(now, AuditAction.CREATE, "agent", {"created": True}, True)
    >>> log = AuditLog().append(entry)
    >>> len(log), log.last.action
    (1, <AuditAction.CREATE: 'CREATE'>)

Tags:
    audit-trail, append-only, immutable, doctrine-registry

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import JsonValue, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from doctrine.core.enums import AuditAction
from doctrine.core.errors import InvalidFieldError

_CHANGES_ADAPTER = TypeAdapter(dict[str, JsonValue])


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Return a plain, mutable copy of a frozen changes payload (dicts and lists)."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def validate_changes(changes: Mapping[str, Any]) -> dict[str, JsonValue]:
    """Return a validated copy of a changes payload.

    Raises:
        InvalidFieldError: a key is not a string or a value is not JSON-like.
    """
    try:
        return _CHANGES_ADAPTER.validate_python(dict(changes))
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise InvalidFieldError(
            f"Audit changes must map field names to JSON-like values: {e}",
            field="changes",
            cause=e,
        ) from e


@dataclass(frozen=True, eq=False)
class AuditEntry:
    """One immutable action on a doctrine record."""

    timestamp: datetime
    action: AuditAction
    agent: str
    changes: Mapping[str, JsonValue]
    compliance: bool

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuditEntry):
            return NotImplemented
        return (
            self.timestamp == other.timestamp
            and self.action == other.action
            and self.agent == other.agent
            and thaw(self.changes) == thaw(other.changes)
            and self.compliance == other.compliance
        )

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def build(
        cls,
        timestamp: datetime,
        action: AuditAction | str,
        agent: str,
        changes: Mapping[str, Any],
        compliance: bool,
    ) -> AuditEntry:
        """Validate inputs and construct an entry with a read-only payload.

        The payload is frozen all the way down: mappings become read-only
        views and lists become tuples. Use ``thaw`` for a mutable copy.
        """
        return cls(
            timestamp=timestamp,
            action=AuditAction(action),
            agent=agent,
            changes=_freeze(validate_changes(changes)),
            compliance=bool(compliance),
        )


class AuditLog:
    """Immutable, chronologically ordered sequence of ``AuditEntry``."""

    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[AuditEntry, ...] | list[AuditEntry] = ()):
        entries = tuple(entries)
        for earlier, later in zip(entries, entries[1:]):
            if later.timestamp < earlier.timestamp:
                raise InvalidFieldError(
                    "Audit entries must be in chronological order",
                    field="audit_trail",
                    value=later.timestamp.isoformat(),
                )
        self._entries = entries

    def append(self, entry: AuditEntry) -> AuditLog:
        """Return a new log with ``entry`` at the end."""
        if self._entries and entry.timestamp < self._entries[-1].timestamp:
            raise InvalidFieldError(
                "Audit entry predates the last recorded entry",
                field="timestamp",
                value=entry.timestamp.isoformat(),
            )
        log = AuditLog.__new__(AuditLog)
        log._entries = self._entries + (entry,)
        return log

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        return self._entries

    @property
    def last(self) -> AuditEntry | None:
        return self._entries[-1] if self._entries else None

    def by_action(self, action: AuditAction) -> list[AuditEntry]:
        return [e for e in self._entries if e.action == action]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> AuditEntry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuditLog):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"AuditLog({len(self._entries)} entries)"


__all__ = ["AuditEntry", "AuditLog", "thaw", "validate_changes"]
