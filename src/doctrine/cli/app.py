"""
Root Typer application for the doctrine CLI.

Every command works on a JSON snapshot (``<store>/<name>.json``); mutating
commands load it, apply one registry operation and save it back.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from doctrine.cli.utils import (
    CliState,
    console,
    echo_json,
    handle_errors,
    make_state,
    parse_assignments,
    percent,
    print_record,
    print_records,
)
from doctrine.core.barton import parse
from doctrine.core.enums import Category, DoctrineStatus, Phase
from doctrine.core.errors import NotFoundError, StorageError
from doctrine.core.logging import configure_logging
from doctrine.core.models import DoctrineCandidate
from doctrine.core.registry import DoctrineRegistry
from doctrine.core.settings import get_settings

app = Typer(
    name="doctrine",
    help="doctrine: Barton-numbered doctrine registry with audit trails and NEON compliance.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("doctrine-registry")
        except PackageNotFoundError:
            from doctrine import __version__ as v
        typer.echo(f"doctrine {v}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    store: Path | None = typer.Option(
        None, "--store", "-s", help="Snapshot directory (default: DOCTRINE_DATA_DIR)."
    ),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Snapshot name (default: DOCTRINE_SNAPSHOT_NAME)."
    ),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """doctrine CLI: create, inspect, validate and report on doctrines."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    ctx.obj = make_state(settings, store, name)


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("init")
def init_registry(
    ctx: typer.Context,
    seed: bool | None = typer.Option(
        None, "--seed/--no-seed", help="Seed starter doctrines (default: DOCTRINE_SEED_ON_INIT)."
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing snapshot."),
) -> None:
    """Create a new registry snapshot."""
    state = _state(ctx)
    with handle_errors():
        if state.store.exists(state.name) and not force:
            raise StorageError(f"Snapshot already exists: {state.name} (use --force to overwrite)")
        registry = DoctrineRegistry(**state.registry_kwargs())
        if state.settings.seed_on_init if seed is None else seed:
            registry.initialize_blueprint_doctrines()
        state.save(registry)
    console.print(f"Initialized [bold]{state.name}[/bold] with {len(registry)} doctrines.")


@app.command("create")
def create_doctrine(
    ctx: typer.Context,
    barton_id: str = typer.Argument(..., help="Barton number DB.HQ.SUB.NESTED.INDEX"),
    title: str = typer.Option(..., "--title", "-t"),
    category: Category = typer.Option(..., "--category", "-c"),
    phase: Phase = typer.Option(..., "--phase", "-p"),
    owner: str = typer.Option(..., "--owner", "-o"),
    description: str = typer.Option("", "--description", "-d"),
    status: DoctrineStatus = typer.Option(DoctrineStatus.DRAFT, "--status"),
    agent: str | None = typer.Option(None, "--agent", help="Audit agent."),
) -> None:
    """Register a new doctrine."""
    state = _state(ctx)
    with handle_errors():
        registry = state.load()
        created = registry.create(
            DoctrineCandidate(
                barton_id=barton_id,
                title=title,
                description=description,
                category=category,
                phase=phase,
                status=status,
                owner=owner,
            ),
            agent=agent,
        )
        state.save(registry)
    console.print(f"Created {created}", highlight=False)


@app.command("show")
def show_doctrine(
    ctx: typer.Context,
    barton_id: str = typer.Argument(...),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one doctrine and its audit trail."""
    with handle_errors():
        record = _state(ctx).load().get(barton_id)
        if record is None:
            raise NotFoundError(barton_id)
    print_record(record, as_json=json_out)


@app.command("list")
def list_doctrines(
    ctx: typer.Context,
    phase: Phase | None = typer.Option(None, "--phase", "-p"),
    category: Category | None = typer.Option(None, "--category", "-c"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List doctrines, optionally filtered by phase and/or category."""
    with handle_errors():
        registry = _state(ctx).load()
        if phase and category:
            records = [r for r in registry.list_by_phase(phase) if r.category is category]
        elif phase:
            records = registry.list_by_phase(phase)
        elif category:
            records = registry.list_by_category(category)
        else:
            records = registry.records()
    print_records(records, as_json=json_out, title="Doctrines")


@app.command("update")
def update_doctrine(
    ctx: typer.Context,
    barton_id: str = typer.Argument(...),
    assignments: list[str] = typer.Option(..., "--set", help="FIELD=VALUE, repeatable."),
    agent: str | None = typer.Option(None, "--agent", help="Audit agent."),
) -> None:
    """Change fields on an existing doctrine."""
    state = _state(ctx)
    changes = parse_assignments(assignments)
    with handle_errors():
        registry = state.load()
        record = registry.update(barton_id, changes, agent=agent)
        state.save(registry)
    compliant = record.audit_trail.last.compliance
    console.print(
        f"Updated {barton_id} ({', '.join(sorted(changes))}); compliant={compliant}",
        highlight=False,
    )


@app.command("validate")
def validate_doctrine(
    ctx: typer.Context,
    barton_id: str = typer.Argument(...),
    agent: str | None = typer.Option(None, "--agent", help="Audit agent."),
) -> None:
    """Run NEON checks on a doctrine and record the result."""
    state = _state(ctx)
    with handle_errors():
        registry = state.load()
        neon = registry.validate(barton_id, agent=agent)
        state.save(registry)
    for check, ok in neon.to_dict().items():
        mark = "[green]PASS[/green]" if ok else "[red]FAIL[/red]"
        console.print(f"  {mark} {check}")
    if not neon.compliant:
        raise typer.Exit(code=1)


@app.command("report")
def compliance_report(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Registry-wide compliance report."""
    with handle_errors():
        report = _state(ctx).load().generate_report()
    if json_out:
        echo_json(report.to_dict())
        return
    total = report.total_doctrines
    console.print(f"[bold]Total doctrines[/bold]: {total}")
    neon, barton = report.neon_compliant, report.barton_compliant
    console.print(f"  NEON compliant:    {neon} ({percent(neon, total)})")
    console.print(f"  Barton compliant:  {barton} ({percent(barton, total)})")
    console.print(f"  STAMPED processes: {report.stamped_compliant}")
    if report.issues:
        console.print("[bold yellow]Issues[/bold yellow]")
        for issue in report.issues:
            console.print(f"  - {issue}", highlight=False)
    else:
        console.print("[green]No issues.[/green]")


@app.command("parse")
def parse_identifier(
    text: str = typer.Argument(..., help="Barton number to check"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Parse a Barton number and show its fields and category."""
    with handle_errors():
        number = parse(text)
    data = {
        "barton_id": str(number),
        "database": number.database,
        "hq": number.hq,
        "sub": number.sub,
        "nested": number.nested,
        "index": number.index,
        "category": number.category.value,
    }
    if json_out:
        echo_json(data)
        return
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)
