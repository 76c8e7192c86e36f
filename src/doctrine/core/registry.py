"""
Doctrine registry - the authoritative in-memory set of doctrine records.

The registry owns every ``DoctrineRecord``. It is the only component that
creates or changes one, and every change appends an entry to that record's
audit trail. Records themselves are frozen; a mutation builds a new record
and swaps it in under the registry lock, so readers see either the old or
the new record and never a half-applied one.

Manifesto:
    - **Explicit instances:** No module-level store. Callers construct a
      registry, optionally seed it, and pass it around.
    - **Validate before insert:** identifier, category band, uniqueness and
      required fields are all checked before anything is written.
    - **Atomic create:** a failed create leaves no trace.
    - **Audit everything:** CREATE, UPDATE and VALIDATE each append one entry.

Architecture:
    ::

        create(candidate)
          │ 1. parse identifier ─────────────► InvalidIdentifierError
          │ 2. category_of(nested) == declared ► CategoryMismatchError
          │ 3. key not present ──────────────► DuplicateIdentifierError
          │ 4. title / owner / phase / status ► InvalidFieldError
          ▼
        stamp created_at = updated_at = clock()
        audit  {CREATE, agent, {"created": True}, compliance=True}
        insert under lock, return canonical id

Examples:
    >>> registry = DoctrineRegistry.seeded()
    >>> [r.barton_id for r in registry.list_by_phase(Phase.FRAME)]
    ['1.1.1.20.1']
    >>> registry.generate_report().neon_compliant
    3

Tags:
    registry, doctrine, validation, audit-trail, thread-safe

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from doctrine.core.audit import AuditEntry
from doctrine.core.barton import category_of, format_identifier, parse
from doctrine.core.compliance import (
    ComplianceReport,
    NEONCompliance,
    check_neon,
    generate_report,
)
from doctrine.core.enums import AuditAction, Category, DoctrineStatus, Phase
from doctrine.core.errors import (
    CategoryMismatchError,
    DoctrineError,
    DuplicateIdentifierError,
    InvalidFieldError,
    InvalidIdentifierError,
    NotFoundError,
)
from doctrine.core.logging import get_logger
from doctrine.core.models import (
    MUTABLE_FIELDS,
    DoctrineCandidate,
    DoctrineRecord,
    StampedProcess,
)
from doctrine.core.settings import DEFAULT_AGENT
from doctrine.core.timestamps import Clock, utc_now

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

SYSTEM_OWNER = "UltimateBlueprint_System"

# Starter doctrines for a new blueprint registry
BLUEPRINT_DOCTRINES: tuple[DoctrineCandidate, ...] = (
    DoctrineCandidate(
        barton_id="1.1.1.20.1",
        title="Blueprint Phase Structure",
        description="Defines the three-phase structure: FRAME -> BLUEPRINT -> PROCESS",
        category=Category.PROCESS,
        phase=Phase.FRAME,
        status=DoctrineStatus.ACTIVE,
        owner=SYSTEM_OWNER,
    ),
    DoctrineCandidate(
        barton_id="1.1.1.10.1",
        title="Component Architecture Standards",
        description="Component architecture following Barton Doctrine principles",
        category=Category.STRUCTURE,
        phase=Phase.BLUEPRINT,
        status=DoctrineStatus.ACTIVE,
        owner=SYSTEM_OWNER,
    ),
    DoctrineCandidate(
        barton_id="1.1.1.30.1",
        title="Full Automation Compliance",
        description="Ensures all operations follow Barton Doctrine full automation principles",
        category=Category.COMPLIANCE,
        phase=Phase.PROCESS,
        status=DoctrineStatus.ACTIVE,
        owner=SYSTEM_OWNER,
    ),
)


def _coerce(enum_cls: type[E], value: Any, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise InvalidFieldError(
            f"Invalid {field}: {value!r} (expected one of {allowed})",
            field=field,
            value=value,
            cause=e,
        ) from e


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidFieldError(f"{field} must be a non-empty string", field=field, value=value)
    return value


def _audit_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class DoctrineRegistry:
    """Thread-safe registry of doctrine records keyed by canonical Barton number.

    Args:
        clock: Time source for ``created_at``, ``updated_at`` and audit entries
        default_agent: Audit agent recorded when a caller supplies none
    """

    def __init__(self, *, clock: Clock = utc_now, default_agent: str = DEFAULT_AGENT):
        self._records: dict[str, DoctrineRecord] = {}
        self._processes: dict[str, StampedProcess] = {}
        self._clock = clock
        self._default_agent = default_agent
        self._lock = threading.RLock()

    @classmethod
    def seeded(cls, **kwargs: Any) -> DoctrineRegistry:
        """Construct a registry and seed the starter blueprint doctrines."""
        registry = cls(**kwargs)
        registry.initialize_blueprint_doctrines()
        return registry

    def initialize_blueprint_doctrines(self, agent: str | None = None) -> list[str]:
        """Create the starter doctrines. Fails like ``create`` if any already exist."""
        created = [self.create(candidate, agent=agent) for candidate in BLUEPRINT_DOCTRINES]
        logger.info("blueprint_doctrines_seeded", count=len(created))
        return created

    # ── Mutations ────────────────────────────────────────────────

    def create(self, candidate: DoctrineCandidate, agent: str | None = None) -> str:
        """Validate and register a new doctrine.

        Returns:
            The canonical Barton number of the new record.

        Raises:
            InvalidIdentifierError: identifier does not parse
            CategoryMismatchError: declared category differs from the section band
            DuplicateIdentifierError: identifier already registered
            InvalidFieldError: empty title/owner, unknown phase/status
        """
        agent = agent or self._default_agent
        try:
            with self._lock:
                number = parse(candidate.barton_id)
                barton_id = format_identifier(number)

                expected = category_of(number.nested)
                try:
                    declared = Category(candidate.category)
                except ValueError:
                    declared = None
                if declared is not expected:
                    raise CategoryMismatchError(
                        barton_id,
                        expected=expected.value,
                        actual=str(_audit_value(candidate.category)),
                    )

                if barton_id in self._records:
                    raise DuplicateIdentifierError(barton_id)

                title = _require_text(candidate.title, "title")
                owner = _require_text(candidate.owner, "owner")
                if not isinstance(candidate.description, str):
                    raise InvalidFieldError(
                        "description must be a string",
                        field="description",
                        value=candidate.description,
                    )
                phase = _coerce(Phase, candidate.phase, "phase")
                status = _coerce(DoctrineStatus, candidate.status, "status")

                now = self._clock()
                entry = AuditEntry.build(now, AuditAction.CREATE, agent, {"created": True}, True)
                record = DoctrineRecord(
                    barton_id=barton_id,
                    title=title,
                    description=candidate.description,
                    category=expected,
                    phase=phase,
                    status=status,
                    owner=owner,
                    created_at=now,
                    updated_at=now,
                )
                record = replace(record, audit_trail=record.audit_trail.append(entry))
                self._records[barton_id] = record
        except DoctrineError as e:
            logger.warning(
                "doctrine_rejected",
                operation="create",
                barton_id=getattr(candidate, "barton_id", None),
                agent=agent,
                error=e.kind,
                reason=e.message,
            )
            e.with_context(operation="create", agent=agent)
            raise

        logger.info(
            "doctrine_created",
            barton_id=barton_id,
            category=expected.value,
            phase=phase.value,
            agent=agent,
        )
        return barton_id

    def update(
        self,
        barton_id: str,
        changes: Mapping[str, Any],
        agent: str | None = None,
    ) -> DoctrineRecord:
        """Apply field changes to an existing doctrine.

        Only ``title``, ``description``, ``category``, ``phase``, ``status``
        and ``owner`` may change. A new category must still match the
        identifier's section band. Emptying ``owner`` is allowed and is
        reflected in the entry's compliance flag.

        Raises:
            NotFoundError: no doctrine with this identifier
            InvalidFieldError: unknown/immutable field, empty title, bad enum value
            CategoryMismatchError: category disagrees with the section band
        """
        agent = agent or self._default_agent
        try:
            with self._lock:
                current = self._records.get(barton_id)
                if current is None:
                    raise NotFoundError(barton_id)

                updates = self._normalize_changes(current, changes)
                now = self._stamp(current)
                updated = replace(current, **updates, updated_at=now)
                neon = check_neon(updated)
                entry = AuditEntry.build(
                    now,
                    AuditAction.UPDATE,
                    agent,
                    {name: _audit_value(value) for name, value in updates.items()},
                    neon.compliant,
                )
                updated = replace(updated, audit_trail=current.audit_trail.append(entry))
                self._records[barton_id] = updated
        except DoctrineError as e:
            logger.warning(
                "doctrine_rejected",
                operation="update",
                barton_id=barton_id,
                agent=agent,
                error=e.kind,
                reason=e.message,
            )
            e.with_context(identifier=barton_id, operation="update", agent=agent)
            raise

        logger.info(
            "doctrine_updated",
            barton_id=barton_id,
            fields=sorted(updates),
            compliance=neon.compliant,
            agent=agent,
        )
        return updated

    def validate(self, barton_id: str, agent: str | None = None) -> NEONCompliance:
        """Recompute NEON compliance and record a VALIDATE audit entry.

        ``updated_at`` is left alone; the doctrine's content did not change.

        Raises:
            NotFoundError: no doctrine with this identifier
        """
        agent = agent or self._default_agent
        try:
            with self._lock:
                current = self._records.get(barton_id)
                if current is None:
                    raise NotFoundError(barton_id)
                neon = check_neon(current)
                entry = AuditEntry.build(
                    self._stamp(current),
                    AuditAction.VALIDATE,
                    agent,
                    {"neon": neon.to_dict()},
                    neon.compliant,
                )
                self._records[barton_id] = replace(
                    current, audit_trail=current.audit_trail.append(entry)
                )
        except DoctrineError as e:
            logger.warning(
                "doctrine_rejected",
                operation="validate",
                barton_id=barton_id,
                agent=agent,
                error=e.kind,
                reason=e.message,
            )
            e.with_context(identifier=barton_id, operation="validate", agent=agent)
            raise

        logger.info(
            "doctrine_validated",
            barton_id=barton_id,
            compliant=neon.compliant,
            failed=neon.failed_checks(),
            agent=agent,
        )
        return neon

    def track_process(self, process: StampedProcess) -> None:
        """Track (or replace) a STAMPED process by id."""
        if not isinstance(process.process_id, str) or not process.process_id.strip():
            raise InvalidFieldError("process_id must be a non-empty string", field="process_id")
        with self._lock:
            self._processes[process.process_id] = process
        logger.debug("stamped_process_tracked", process_id=process.process_id)

    # ── Reads ────────────────────────────────────────────────────

    def get(self, barton_id: str) -> DoctrineRecord | None:
        """Exact-match lookup. Returns None when absent."""
        with self._lock:
            return self._records.get(barton_id)

    def records(self) -> list[DoctrineRecord]:
        """Snapshot of all records in insertion order."""
        with self._lock:
            return list(self._records.values())

    def list_by_phase(self, phase: Phase | str) -> list[DoctrineRecord]:
        phase = _coerce(Phase, phase, "phase")
        return [r for r in self.records() if r.phase is phase]

    def list_by_category(self, category: Category | str) -> list[DoctrineRecord]:
        category = _coerce(Category, category, "category")
        return [r for r in self.records() if r.category is category]

    def get_process(self, process_id: str) -> StampedProcess:
        """Return the tracked process, or an all-false placeholder if untracked."""
        with self._lock:
            return self._processes.get(process_id) or StampedProcess(process_id=process_id)

    def processes(self) -> list[StampedProcess]:
        with self._lock:
            return list(self._processes.values())

    @property
    def process_count(self) -> int:
        with self._lock:
            return len(self._processes)

    def generate_report(self) -> ComplianceReport:
        """Compliance report over a snapshot of this registry."""
        with self._lock:
            records = list(self._records.values())
            stamped = len(self._processes)
        return generate_report(records, stamped_count=stamped)

    # ── Restore ──────────────────────────────────────────────────

    def restore(
        self,
        records: Iterable[DoctrineRecord],
        processes: Iterable[StampedProcess] = (),
    ) -> None:
        """Load previously persisted records into an empty registry.

        Every invariant ``create`` guarantees is re-checked; the registry is
        left empty if any record fails.

        Raises:
            InvalidFieldError: registry not empty, empty title, non-string owner
                or description, empty audit trail
            InvalidIdentifierError: identifier not canonical or not valid
            CategoryMismatchError: stored category disagrees with the band
            DuplicateIdentifierError: two records share an identifier
        """
        with self._lock:
            if self._records or self._processes:
                raise InvalidFieldError("restore requires an empty registry", field="registry")
            staged: dict[str, DoctrineRecord] = {}
            for record in records:
                number = parse(record.barton_id)
                if format_identifier(number) != record.barton_id:
                    raise InvalidIdentifierError(record.barton_id, "identifier is not canonical")
                expected = category_of(number.nested)
                if record.category is not expected:
                    raise CategoryMismatchError(
                        record.barton_id,
                        expected=expected.value,
                        actual=str(_audit_value(record.category)),
                    )
                if record.barton_id in staged:
                    raise DuplicateIdentifierError(record.barton_id)
                _require_text(record.title, "title")
                for name in ("owner", "description"):
                    if not isinstance(getattr(record, name), str):
                        raise InvalidFieldError(
                            f"{name} must be a string", field=name, value=getattr(record, name)
                        ).with_context(identifier=record.barton_id)
                if not record.audit_trail:
                    raise InvalidFieldError(
                        f"Doctrine {record.barton_id} has an empty audit trail",
                        field="audit_trail",
                    ).with_context(identifier=record.barton_id)
                staged[record.barton_id] = record
            self._records = staged
            self._processes = {p.process_id: p for p in processes}
        logger.info("registry_restored", doctrines=len(staged), processes=len(self._processes))

    # ── Helpers ──────────────────────────────────────────────────

    def _stamp(self, record: DoctrineRecord) -> datetime:
        """Current time, never earlier than the record's last audit entry."""
        now = self._clock()
        last = record.audit_trail.last
        if last is not None and now < last.timestamp:
            return last.timestamp
        return now

    def _normalize_changes(
        self, current: DoctrineRecord, changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        if not changes:
            raise InvalidFieldError("No changes supplied", field="changes")
        non_text = [key for key in changes if not isinstance(key, str)]
        if non_text:
            raise InvalidFieldError(
                f"Field names must be strings: {non_text!r}", field="changes", value=non_text
            )
        unknown = sorted(set(changes) - MUTABLE_FIELDS)
        if unknown:
            raise InvalidFieldError(
                f"Fields cannot be updated: {', '.join(unknown)}",
                field=unknown[0],
                constraint=f"one of {', '.join(sorted(MUTABLE_FIELDS))}",
            )

        updates: dict[str, Any] = {}
        for name, value in changes.items():
            if name == "category":
                expected = category_of(parse(current.barton_id).nested)
                try:
                    declared = Category(value)
                except ValueError:
                    declared = None
                if declared is not expected:
                    raise CategoryMismatchError(
                        current.barton_id, expected=expected.value, actual=str(_audit_value(value))
                    )
                updates[name] = expected
            elif name == "phase":
                updates[name] = _coerce(Phase, value, "phase")
            elif name == "status":
                updates[name] = _coerce(DoctrineStatus, value, "status")
            elif name == "title":
                updates[name] = _require_text(value, "title")
            else:
                if not isinstance(value, str):
                    raise InvalidFieldError(f"{name} must be a string", field=name, value=value)
                updates[name] = value
        return updates

    # ── Container protocol ───────────────────────────────────────

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, barton_id: object) -> bool:
        with self._lock:
            return barton_id in self._records

    def __iter__(self) -> Iterator[DoctrineRecord]:
        return iter(self.records())

    def __repr__(self) -> str:
        return f"DoctrineRegistry({len(self)} doctrines, {self.process_count} processes)"


__all__ = ["BLUEPRINT_DOCTRINES", "DoctrineRegistry", "SYSTEM_OWNER"]
