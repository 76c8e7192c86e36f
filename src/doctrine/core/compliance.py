"""
Compliance engine - NEON checks and registry-wide compliance reporting.

Read-only aggregation over doctrine records. Two independent checks run per
record:

    ┌────────────────────────────────────────────────────────────┐
    │ NEON                                                       │
    │   N  nuclear_enforcement       identifier is a valid       │
    │                                Barton number               │
    │   E  explicit_ownership        owner is non-empty          │
    │   O  operational_normalization category is set             │
    │   N  no_orphan_data            audit trail is non-empty    │
    ├────────────────────────────────────────────────────────────┤
    │ Barton numbering                                           │
    │   identifier re-validated through the codec, even though   │
    │   the registry already validated it on create              │
    └────────────────────────────────────────────────────────────┘

Failures become human-readable issue strings. STAMPED compliance is not
computed here: the caller supplies the number of tracked processes and the
report carries it through unchanged.

The engine only counts and never divides. Percentages are a presentation
concern.

Examples:
    >>> report = generate_report(registry, stamped_count=0)
    >>> report.total_doctrines == report.neon_compliant + len(report.neon_failures)
    True

Tags:
    compliance, neon, quality, audit, reporting, doctrine-registry

Doc-Types:
    - API Reference
    - Compliance Guide
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from doctrine.core.barton import is_valid
from doctrine.core.logging import get_logger
from doctrine.core.models import DoctrineRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class NEONCompliance:
    """Four-part NEON check result for one record."""

    nuclear_enforcement: bool
    explicit_ownership: bool
    operational_normalization: bool
    no_orphan_data: bool

    @property
    def compliant(self) -> bool:
        return all(
            (
                self.nuclear_enforcement,
                self.explicit_ownership,
                self.operational_normalization,
                self.no_orphan_data,
            )
        )

    def failed_checks(self) -> list[str]:
        return [name for name, ok in self.to_dict().items() if not ok]

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


def check_neon(record: DoctrineRecord) -> NEONCompliance:
    """Compute NEON compliance for a record. Never raises, never mutates."""
    return NEONCompliance(
        nuclear_enforcement=is_valid(record.barton_id),
        explicit_ownership=bool(record.owner and record.owner.strip()),
        operational_normalization=record.category is not None,
        no_orphan_data=len(record.audit_trail) > 0,
    )


@dataclass
class ComplianceReport:
    """Aggregate compliance counts over a set of doctrines.

    Attributes:
        total_doctrines: Number of records examined
        neon_compliant: Records passing all four NEON checks
        stamped_compliant: Tracked STAMPED process count, as supplied
        barton_compliant: Records whose identifier re-validates
        issues: One human-readable line per failed check
        neon_failures: Identifiers of NEON-noncompliant records
    """

    total_doctrines: int = 0
    neon_compliant: int = 0
    stamped_compliant: int = 0
    barton_compliant: int = 0
    issues: list[str] = field(default_factory=list)
    neon_failures: list[str] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_doctrines": self.total_doctrines,
            "neon_compliant": self.neon_compliant,
            "stamped_compliant": self.stamped_compliant,
            "barton_compliant": self.barton_compliant,
            "issues": list(self.issues),
        }


def generate_report(
    records: Iterable[DoctrineRecord],
    stamped_count: int = 0,
) -> ComplianceReport:
    """Build a ``ComplianceReport`` over ``records``.

    Args:
        records: Any iterable of records; a ``DoctrineRegistry`` iterates
            over a consistent snapshot of its own.
        stamped_count: Number of tracked STAMPED processes, reported as is.
    """
    report = ComplianceReport(stamped_compliant=stamped_count)

    for record in records:
        report.total_doctrines += 1

        neon = check_neon(record)
        if neon.compliant:
            report.neon_compliant += 1
        else:
            report.neon_failures.append(record.barton_id)
            report.issues.append(f"NEON compliance issue in {record.barton_id}")

        if is_valid(record.barton_id):
            report.barton_compliant += 1
        else:
            report.issues.append(f"Invalid Barton numbering in {record.barton_id}")

    logger.debug(
        "compliance_report_generated",
        total=report.total_doctrines,
        neon_compliant=report.neon_compliant,
        barton_compliant=report.barton_compliant,
        stamped_compliant=report.stamped_compliant,
        issues=len(report.issues),
    )
    return report


__all__ = ["ComplianceReport", "NEONCompliance", "check_neon", "generate_report"]
