"""
CLI commands for version resolution and batch version checks.

Thin wrappers over ``trustpin.core.use_cases``.
"""

from __future__ import annotations

import sys

import click

from trustpin.ui.cli.common import emit_json, get_session


@click.group()
def versions() -> None:
    """Versions — resolve specs, check tracked tools."""


@versions.command()
@click.argument("tool")
@click.argument("spec")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, tool: str, spec: str, as_json: bool) -> None:
    """Resolve SPEC (e.g. 3.12, 22, stable) to a concrete TOOL release."""
    from trustpin.core.use_cases.resolve import resolve_version

    result = resolve_version(get_session(ctx), tool, spec)

    if as_json:
        emit_json(result.to_dict())
        sys.exit(result.exit_code)

    if result.error is not None:
        click.secho(f"❌ {result.error.message}", fg="red", err=True)
        sys.exit(result.exit_code)

    assert result.resolved is not None
    if ctx.find_root().obj.get("quiet"):
        click.echo(result.resolved.version)
        return
    click.secho(f"✅ {tool} {spec} → {result.resolved.version}", fg="green", bold=True)
    click.echo(f"   Method: {result.resolved.method}")


@versions.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Compare every tracked tool against its latest release."""
    from trustpin.core.use_cases.check_versions import check_versions

    session = get_session(ctx)
    if not session.settings.tracked:
        click.secho("⚠️  No tracked tools configured (add 'tracked:' to trustpin.yml)", fg="yellow")
        return

    report = check_versions(session)

    if as_json:
        emit_json(report.to_dict())
        sys.exit(report.exit_code)

    colors = {"current": "green", "outdated": "yellow", "error": "red"}
    click.secho("🔎 Version check", fg="cyan", bold=True)
    for t in report.tools:
        click.echo(f"   {t.tool:<12} {t.current or '-':<14} latest {t.latest or '-':<14} ", nl=False)
        click.secho(str(t.status), fg=colors[str(t.status)])
        if t.error:
            click.echo(f"      {t.error}")
        elif t.latest_patch and t.latest_patch != t.current:
            click.echo(f"      newer patch in series: {t.latest_patch}")

    summary = report.to_dict()["summary"]
    click.echo()
    click.echo(
        f"   {summary['total']} checked: {summary['current']} current, "
        f"{summary['outdated']} outdated, {summary['errors']} errors"
    )
    sys.exit(report.exit_code)
