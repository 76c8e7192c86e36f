"""Doctrine core -- identifier codec, registry, audit trail and compliance.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (DoctrineError, ValidationError)
        enums.py           Category, Phase, DoctrineStatus, AuditAction
        timestamps.py      UTC helpers + Clock type (stdlib-only)

    Layer 2 -- Domain
        barton.py          Barton number codec + category band table
        audit.py           Append-only AuditEntry / AuditLog
        models.py          DoctrineCandidate, DoctrineRecord, StampedProcess
        registry.py        DoctrineRegistry (validation, mutation, lookup)
        compliance.py      NEON checks + ComplianceReport

    Layer 3 -- Boundaries & Cross-cutting
        serialization.py   Lossless snapshot dicts
        storage.py         RegistryStore protocol, in-memory + JSON file stores
        logging.py         Structured logging (structlog)
        settings.py        DoctrineSettings (pydantic-settings)
"""

from doctrine.core.audit import AuditEntry, AuditLog
from doctrine.core.barton import BartonNumber, category_of, format_identifier, is_valid, parse
from doctrine.core.compliance import ComplianceReport, NEONCompliance, check_neon, generate_report
from doctrine.core.enums import AuditAction, Category, Database, DoctrineStatus, Phase
from doctrine.core.errors import (
    CategoryMismatchError,
    ConfigError,
    DoctrineError,
    DuplicateIdentifierError,
    ErrorCategory,
    ErrorContext,
    InvalidFieldError,
    InvalidIdentifierError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from doctrine.core.models import DoctrineCandidate, DoctrineRecord, StampedProcess
from doctrine.core.registry import BLUEPRINT_DOCTRINES, DoctrineRegistry

__all__ = [
    # codec
    "BartonNumber",
    "category_of",
    "format_identifier",
    "is_valid",
    "parse",
    # enums
    "AuditAction",
    "Category",
    "Database",
    "DoctrineStatus",
    "Phase",
    # models
    "AuditEntry",
    "AuditLog",
    "DoctrineCandidate",
    "DoctrineRecord",
    "StampedProcess",
    # registry + compliance
    "BLUEPRINT_DOCTRINES",
    "DoctrineRegistry",
    "ComplianceReport",
    "NEONCompliance",
    "check_neon",
    "generate_report",
    # errors
    "ErrorCategory",
    "ErrorContext",
    "DoctrineError",
    "ValidationError",
    "InvalidIdentifierError",
    "CategoryMismatchError",
    "DuplicateIdentifierError",
    "InvalidFieldError",
    "NotFoundError",
    "StorageError",
    "ConfigError",
]
