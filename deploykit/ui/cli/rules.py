"""
CLI commands for detection rules and install/uninstall commands.

Thin wrappers over ``deploykit.core.services.detection_rules``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, TypeVar

import click

T = TypeVar("T")


def _load(path: str, parse: Callable[[Any], T]) -> T:
    """Load and parse an input document, exiting with a message on failure."""
    from deploykit.core.services.inputs import InputError, load_document

    try:
        return parse(load_document(Path(path)))
    except InputError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@click.group()
def rules() -> None:
    """Rules — synthesize detection rules, commands, validate rule sets."""


@rules.command()
@click.argument("package_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def synthesize(ctx: click.Context, package_file: str, as_json: bool) -> None:
    """Synthesize the detection rule for each package in PACKAGE_FILE."""
    from deploykit.core.models.detection import dump_rules
    from deploykit.core.services.detection_rules import synthesize as synthesize_rules
    from deploykit.core.services.inputs import parse_package_requests

    settings = ctx.obj["settings"]
    requests = _load(package_file, parse_package_requests)

    results = []
    for req in requests:
        synthesized = synthesize_rules(
            req.installer,
            req.display_name,
            req.package_id,
            req.version,
            vendor=settings.registry_vendor,
        )
        results.append({"packageId": req.package_id, "detectionRules": dump_rules(synthesized)})

    if as_json:
        click.echo(json.dumps(results, indent=2))
        return

    for result in results:
        click.secho(f"\n🔍 {result['packageId']}", fg="cyan", bold=True)
        for rule in result["detectionRules"]:
            click.secho(f"   [{rule['type']}]", fg="white", bold=True)
            for key, value in rule.items():
                if key == "type":
                    continue
                if key == "scriptContent":
                    click.echo(f"     {key}:")
                    for line in str(value).splitlines():
                        click.echo(f"       │ {line}")
                    continue
                click.echo(f"     {key}: {value}")
    click.echo()


@rules.command()
@click.argument("package_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def commands(ctx: click.Context, package_file: str, as_json: bool) -> None:
    """Build install/uninstall commands for each package in PACKAGE_FILE."""
    from deploykit.core.services.detection_rules import (
        build_install_command,
        build_uninstall_command,
        validate_commands,
    )
    from deploykit.core.services.inputs import parse_package_requests

    requests = _load(package_file, parse_package_requests)

    results = []
    for req in requests:
        install = build_install_command(req.installer, req.install_scope, req.display_name)
        uninstall = build_uninstall_command(req.installer, req.display_name)
        check = validate_commands(install, uninstall)
        results.append({
            "packageId": req.package_id,
            "installCommand": install,
            "uninstallCommand": uninstall,
            "warnings": check.warnings,
        })

    if as_json:
        click.echo(json.dumps(results, indent=2))
        return

    for result in results:
        click.secho(f"\n⚙️  {result['packageId']}", fg="cyan", bold=True)
        click.echo(f"   Install:   {result['installCommand']}")
        click.echo(f"   Uninstall: {result['uninstallCommand']}")
        for warn in result["warnings"]:
            click.secho(f"   ⚠️  {warn}", fg="yellow")
    click.echo()


@rules.command()
@click.argument("rules_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(rules_file: str, as_json: bool) -> None:
    """Validate the detection rule set in RULES_FILE."""
    from deploykit.core.services.detection_rules import validate_rules
    from deploykit.core.services.inputs import parse_rule_document

    result = validate_rules(_load(rules_file, parse_rule_document))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        click.secho("✅ Detection rules are valid", fg="green", bold=True)
    else:
        click.secho("❌ Detection rule errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        sys.exit(1)
