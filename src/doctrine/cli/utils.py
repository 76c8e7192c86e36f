"""
CLI utility helpers: output formatting, snapshot access and error display.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from doctrine.core.errors import DoctrineError
from doctrine.core.models import DoctrineRecord
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.serialization import record_to_dict
from doctrine.core.settings import DoctrineSettings
from doctrine.core.storage import JsonFileStore

console = Console()
err_console = Console(stderr=True)


# ── Snapshot access ──────────────────────────────────────────────────────


@dataclass
class CliState:
    """Per-invocation options resolved in the root callback."""

    settings: DoctrineSettings
    store: JsonFileStore
    name: str

    def registry_kwargs(self) -> dict[str, Any]:
        return {"default_agent": self.settings.default_agent}

    def load(self) -> DoctrineRegistry:
        return self.store.load(self.name, **self.registry_kwargs())

    def save(self, registry: DoctrineRegistry) -> None:
        self.store.save(self.name, registry)


def make_state(settings: DoctrineSettings, store: Path | None, name: str | None) -> CliState:
    return CliState(
        settings=settings,
        store=JsonFileStore(store or settings.data_dir),
        name=name or settings.snapshot_name,
    )


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print doctrine errors as ``Error (<Kind>): <message>`` and exit 1."""
    try:
        yield
    except DoctrineError as e:
        err_console.print(
            f"[bold red]Error[/bold red] ({e.kind}): {escape(e.message)}",
            highlight=False,
            soft_wrap=True,
        )
        raise typer.Exit(code=1) from e


def parse_assignments(values: list[str]) -> dict[str, str]:
    """Turn ``["title=New", "owner=ops"]`` into a dict."""
    changes: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected FIELD=VALUE, got {item!r}", param_hint="--set")
        changes[key.strip()] = value
    return changes


def percent(count: int, total: int) -> str:
    """Format ``count/total`` as a percentage; an empty total is 0%."""
    if total <= 0:
        return "0.0%"
    return f"{count / total * 100:.1f}%"


# ── Output helpers ───────────────────────────────────────────────────────


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def print_records(records: list[DoctrineRecord], *, as_json: bool = False, title: str = "") -> None:
    """Render records as a table (or a JSON list)."""
    if as_json:
        echo_json([record_to_dict(r) for r in records])
        return
    if not records:
        console.print("[dim]No doctrines.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in ("barton_id", "title", "category", "phase", "status", "owner"):
        table.add_column(col, overflow="fold", no_wrap=col == "barton_id")
    for r in records:
        table.add_row(
            r.barton_id, r.title, r.category.value, r.phase.value, r.status.value, r.owner
        )
    console.print(table)


def print_record(record: DoctrineRecord, *, as_json: bool = False) -> None:
    """Render one record with its audit trail."""
    data = record_to_dict(record)
    if as_json:
        echo_json(data)
        return
    trail = data.pop("audit_trail")
    console.print(f"[bold]{record.barton_id}[/bold]", highlight=False)
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)
    table = Table(title="Audit trail", pad_edge=False)
    for col in ("timestamp", "action", "agent", "changes", "compliance"):
        table.add_column(col, overflow="fold")
    for entry in trail:
        table.add_row(
            entry["timestamp"],
            entry["action"],
            entry["agent"],
            json.dumps(entry["changes"], default=str),
            str(entry["compliance"]),
        )
    console.print(table)
