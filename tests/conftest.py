"""
Shared pytest fixtures and configuration for doctrine tests.

This module provides:
- A controllable clock for deterministic timestamps
- Fresh and seeded registries
- A candidate factory with sensible defaults
- Settings/logging cleanup between tests

Usage:
    Fixtures are auto-discovered by pytest; request them as function
    arguments.
"""

import logging
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

# Ensure doctrine package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from doctrine.core.enums import Category, DoctrineStatus, Phase
from doctrine.core.models import DoctrineCandidate
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.settings import reset_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_and_logging() -> Generator[None, None, None]:
    """
    Reset cached settings and any logging configuration a test installed.

    ``configure_logging`` points structlog at the stdlib root logger and
    attaches a stream handler; both outlive the test unless undone here.
    """
    reset_settings()
    yield
    reset_settings()
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Deterministic clock; call ``advance`` to move time forward (or back)."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture
def registry(clock: FakeClock) -> DoctrineRegistry:
    """Empty registry on the fake clock."""
    return DoctrineRegistry(clock=clock)


@pytest.fixture
def seeded_registry(clock: FakeClock) -> DoctrineRegistry:
    """Registry seeded with the three starter blueprint doctrines."""
    return DoctrineRegistry.seeded(clock=clock)


def make_candidate(**overrides: Any) -> DoctrineCandidate:
    """Candidate for ``1.1.1.20.1`` (process band) unless overridden."""
    fields: dict[str, Any] = {
        "barton_id": "1.1.1.20.1",
        "title": "Blueprint Phase Structure",
        "description": "FRAME -> BLUEPRINT -> PROCESS",
        "category": Category.PROCESS,
        "phase": Phase.FRAME,
        "status": DoctrineStatus.ACTIVE,
        "owner": "system",
    }
    fields.update(overrides)
    return DoctrineCandidate(**fields)


@pytest.fixture
def candidate_factory():
    """Factory fixture returning ``make_candidate``."""
    return make_candidate
