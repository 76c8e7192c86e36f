"""
Doctrine - Barton-numbered doctrine registry with audit trails and NEON compliance.

- doctrine.core: codec, registry, audit log, compliance engine, persistence
- doctrine.cli: ``doctrine`` command line
"""

__version__ = "0.1.0"

from doctrine.core import *  # noqa
