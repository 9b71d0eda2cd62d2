"""
CLI commands for migrating apps from a legacy management system.

Thin wrappers over ``deploykit.core.services.migration``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from deploykit.core.config.loader import EngineSettings
from deploykit.core.models.migration import MigrationOptions


def _load_batch(path: str):  # type: ignore[no-untyped-def]
    from deploykit.core.services.inputs import InputError, load_document, parse_migration_input

    try:
        return parse_migration_input(load_document(Path(path)))
    except InputError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _resolve_options(
    settings: EngineSettings,
    document: MigrationOptions | None,
    overrides: dict[str, bool | None],
) -> MigrationOptions:
    """CLI flags > document ``options`` > settings file > defaults."""
    base = document or settings.migration
    changes = {k: v for k, v in overrides.items() if v is not None}
    return base.model_copy(update=changes)


def _prepare(ctx: click.Context, batch_file: str, overrides: dict[str, bool | None]):  # type: ignore[no-untyped-def]
    from deploykit.core.services.migration import prepare_migrations

    settings: EngineSettings = ctx.obj["settings"]
    batch = _load_batch(batch_file)
    options = _resolve_options(settings, batch.options, overrides)

    def _progress(done: int, total: int, name: str) -> None:
        if ctx.obj.get("verbose"):
            click.echo(f"   [{done}/{total}] {name}", err=True)

    return prepare_migrations(
        batch.apps,
        options,
        batch.fetch_package,
        batch.fetch_installer,
        on_progress=_progress,
        settings=settings,
    )


_option_flags = [
    click.option(
        "--preserve-detection/--no-preserve-detection",
        default=None,
        help="Keep the legacy detection rules when they convert.",
    ),
    click.option(
        "--preserve-commands/--no-preserve-commands",
        "preserve_install_commands",
        default=None,
        help="Keep the legacy install/uninstall commands.",
    ),
    click.option(
        "--engine-defaults/--no-engine-defaults",
        "use_engine_defaults",
        default=None,
        help="Use engine commands and mark kept legacy rules as hybrid.",
    ),
]


def _with_option_flags(func):  # type: ignore[no-untyped-def]
    for flag in reversed(_option_flags):
        func = flag(func)
    return func


@click.group()
def migrate() -> None:
    """Migrate — preview and summarise legacy app migrations."""


@migrate.command()
@click.argument("batch_file", type=click.Path(exists=True, dir_okay=False))
@_with_option_flags
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def preview(
    ctx: click.Context,
    batch_file: str,
    preserve_detection: bool | None,
    preserve_install_commands: bool | None,
    use_engine_defaults: bool | None,
    as_json: bool,
) -> None:
    """Preview what migrating each app in BATCH_FILE would produce."""
    from deploykit.core.services.migration import group_by_migration_status

    preparations = _prepare(ctx, batch_file, {
        "preserve_detection": preserve_detection,
        "preserve_install_commands": preserve_install_commands,
        "use_engine_defaults": use_engine_defaults,
    })

    if as_json:
        click.echo(json.dumps(
            [p.preview.model_dump(mode="json", by_alias=True) for p in preparations],
            indent=2,
        ))
        return

    groups = group_by_migration_status(preparations)
    headers = {
        "ready": ("✅ Ready", "green"),
        "needs_review": ("⚠️  Needs review", "yellow"),
        "blocked": ("❌ Blocked", "red"),
    }
    for key, (title, color) in headers.items():
        items = groups[key]
        if not items:
            continue
        click.secho(f"\n{title} ({len(items)})", fg=color, bold=True)
        for prep in items:
            item = prep.preview
            if not item.can_migrate:
                click.echo(f"   • {item.legacy_name}")
                for reason in item.blocking_reasons:
                    click.echo(f"       ✗ {reason}")
                continue
            click.echo(f"   • {item.legacy_name} → {item.package_name} ({item.package_id})")
            click.echo(
                f"       detection: {item.detection_source}  commands: {item.command_source}"
            )
            if ctx.obj.get("verbose"):
                click.echo(f"       install:   {item.install_command}")
                click.echo(f"       uninstall: {item.uninstall_command}")
            for warn in item.warnings:
                click.secho(f"       ⚠ {warn}", fg="yellow")
    click.echo()


@migrate.command()
@click.argument("batch_file", type=click.Path(exists=True, dir_okay=False))
@_with_option_flags
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def stats(
    ctx: click.Context,
    batch_file: str,
    preserve_detection: bool | None,
    preserve_install_commands: bool | None,
    use_engine_defaults: bool | None,
    as_json: bool,
) -> None:
    """Summarise a migration batch: migratable, blocked, provenance."""
    from deploykit.core.services.migration import calculate_migration_stats

    preparations = _prepare(ctx, batch_file, {
        "preserve_detection": preserve_detection,
        "preserve_install_commands": preserve_install_commands,
        "use_engine_defaults": use_engine_defaults,
    })
    summary = calculate_migration_stats(preparations)

    if as_json:
        click.echo(json.dumps(summary.model_dump(), indent=2))
        return

    click.secho("\n📊 Migration summary", fg="cyan", bold=True)
    click.echo(f"   Total:                {summary.total}")
    click.secho(f"   Migratable:           {summary.migratable}", fg="green")
    click.secho(f"   Blocked:              {summary.blocked}", fg="red" if summary.blocked else "white")
    click.echo(f"   External detection:   {summary.with_external_detection}")
    click.echo(f"   External commands:    {summary.with_external_commands}")
    click.echo(f"   Warnings:             {summary.warnings}")
    click.echo()
