"""Doctrine registry data models.

Manifesto:
    The registry hands out records, it never hands out the means to change
    them. Every model here is a frozen dataclass; the registry produces a new
    record (with a longer audit trail) for every mutation and swaps it in.

Models:
    DoctrineCandidate   caller-supplied fields for ``DoctrineRegistry.create``
    DoctrineRecord      a registered doctrine with timestamps and audit trail
    StampedProcess      a tracked STAMPED process (flags are carried, not scored)

Tags:
    models, dataclasses, doctrine-registry

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from doctrine.core.audit import AuditLog
from doctrine.core.enums import Category, DoctrineStatus, Phase

# Fields a caller may change through DoctrineRegistry.update
MUTABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "description", "category", "phase", "status", "owner"}
)


@dataclass(frozen=True)
class DoctrineCandidate:
    """Input to ``DoctrineRegistry.create``.

    Enum fields accept either the enum member or its string value; the
    registry coerces and validates them.
    """

    barton_id: str
    title: str
    category: Category | str
    phase: Phase | str
    owner: str
    description: str = ""
    status: DoctrineStatus | str = DoctrineStatus.DRAFT


@dataclass(frozen=True)
class DoctrineRecord:
    """A registered doctrine. Owned by the registry, immutable to callers."""

    barton_id: str
    title: str
    description: str
    category: Category
    phase: Phase
    status: DoctrineStatus
    owner: str
    created_at: datetime
    updated_at: datetime
    audit_trail: AuditLog = field(default_factory=AuditLog)


@dataclass(frozen=True)
class StampedProcess:
    """A STAMPED-tracked process.

    Attributes:
        process_id: Process identifier
        structured: S - consistent organization
        traceable: T - complete audit trail
        audit_ready: A - compliance-ready structures
        mapped: M - clear relationships
        promotable: P - version-controlled changes
        enforced: E - automated validation
        documented: D - comprehensive documentation
    """

    process_id: str
    structured: bool = False
    traceable: bool = False
    audit_ready: bool = False
    mapped: bool = False
    promotable: bool = False
    enforced: bool = False
    documented: bool = False
