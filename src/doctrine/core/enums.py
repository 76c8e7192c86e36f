"""
Shared domain enums for the doctrine registry.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class Category(str, Enum):
    """
    Doctrine classification, derived from the NESTED section band.

    The band table lives in ``doctrine.core.barton.category_of``; this enum
    only names the values.
    """

    TONE = "tone"
    STRUCTURE = "structure"
    PROCESS = "process"
    COMPLIANCE = "compliance"
    MESSAGING = "messaging"


class Phase(str, Enum):
    """Blueprint lifecycle phase. Independent of the identifier."""

    FRAME = "FRAME"
    BLUEPRINT = "BLUEPRINT"
    PROCESS = "PROCESS"


class DoctrineStatus(str, Enum):
    """Publication status of a doctrine."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    DEPRECATED = "DEPRECATED"


class AuditAction(str, Enum):
    """Kind of action recorded in an audit entry."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VALIDATE = "VALIDATE"


class Database(int, Enum):
    """Top-level Barton database (first identifier field)."""

    COMMAND_OPS = 1
    MARKETING = 2
