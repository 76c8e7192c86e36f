"""
CLI layer for the doctrine registry.

Provides a Typer application whose commands load a registry snapshot,
delegate to ``doctrine.core`` and save it back. All business logic lives in
core; this package handles only terminal transport: argument parsing,
coloured output and table formatting.

Entry point::

    doctrine --help
"""

from doctrine.cli.app import app

__all__ = ["app"]
