"""
CLI commands for the pinned checksum database.

Thin wrappers over ``trustpin.core.use_cases.checksums``.
"""

from __future__ import annotations

import sys

import click

from trustpin.ui.cli.common import emit_json, get_session


@click.group()
def checksums() -> None:
    """Checksums — look up, validate and refresh pinned digests."""


@checksums.command("get")
@click.argument("tool")
@click.argument("version")
@click.option("--platform", "-p", default="amd64", show_default=True, help="Target architecture.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def get_cmd(ctx: click.Context, tool: str, version: str, platform: str, as_json: bool) -> None:
    """Show the pinned checksum for TOOL VERSION."""
    from trustpin.core.use_cases.checksums import get_checksum

    result = get_checksum(get_session(ctx), tool, version, platform)

    if as_json:
        emit_json(result.to_dict())
        sys.exit(result.exit_code)

    if result.error is not None:
        click.secho(f"❌ {result.error.message}", fg="red", err=True)
        sys.exit(result.exit_code)

    if result.record is None:
        click.secho(f"⚠️  No pinned checksum for {tool} {version} ({result.platform})", fg="yellow")
        if result.other_platforms:
            click.echo(f"   Pinned for: {', '.join(result.other_platforms)}")
        sys.exit(result.exit_code)

    record = result.record
    click.echo(f"{record.algorithm}:{record.digest}")
    if not ctx.find_root().obj.get("quiet"):
        click.echo(f"   captured {record.captured_at}")
        if record.source:
            click.echo(f"   from {record.source}")


@checksums.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate(ctx: click.Context, as_json: bool) -> None:
    """Validate the pinned database structure."""
    from trustpin.core.use_cases.checksums import validate_store

    result = validate_store(get_session(ctx))

    if as_json:
        emit_json(result.to_dict())
        sys.exit(result.exit_code)

    if result.valid:
        click.secho(f"✅ {result.path} is valid", fg="green", bold=True)
        click.echo(f"   Entries: {result.entry_count}")
        click.echo(f"   Generated: {result.generated or 'never (no file yet)'}")
        return

    click.secho(f"❌ {result.path} is invalid:", fg="red", bold=True)
    for err in result.errors:
        click.echo(f"   • {err}")
    sys.exit(result.exit_code)


@checksums.command()
@click.option("--dry-run", is_flag=True, help="Derive and validate, but don't write.")
@click.option("--refresh-existing", is_flag=True, help="Also re-check every pinned record.")
@click.option(
    "--allow-calculated",
    is_flag=True,
    help="Pin a locally calculated digest when the publisher posts none.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(
    ctx: click.Context,
    dry_run: bool,
    refresh_existing: bool,
    allow_calculated: bool,
    as_json: bool,
) -> None:
    """Refresh pinned checksums for tracked tools."""
    from trustpin.core.use_cases.checksums import update_checksums

    result = update_checksums(
        get_session(ctx),
        dry_run=dry_run,
        refresh_existing=refresh_existing,
        allow_calculated=allow_calculated,
    )

    if as_json:
        emit_json(result.to_dict())
        sys.exit(result.exit_code)

    report = result.report
    if report is not None:
        icons = {"added": "➕", "updated": "🔄", "unchanged": "✓", "conflict": "⛔", "failed": "❌"}
        header = "🧪 Checksum update (dry run)" if dry_run else "🔐 Checksum update"
        click.secho(header, fg="cyan", bold=True)
        for item in report.items:
            click.echo(f"   {icons[str(item.status)]} {item.tool} {item.version} {item.platform}: {item.status}")
            if item.error:
                click.echo(f"      {item.error}")

        summary = report.to_dict()["summary"]
        click.echo()
        click.echo(
            f"   Added: {summary['added']}  Updated: {summary['updated']}  "
            f"Unchanged: {summary['unchanged']}  Failed: {summary['failed']}"
        )
        if report.commit and report.commit.backup_path:
            click.echo(f"   Backup: {report.commit.backup_path}")

    if result.error is not None:
        click.secho(f"❌ {result.error.message}", fg="red", err=True)
        for err in getattr(result.error, "errors", []):
            click.echo(f"   • {err}", err=True)
    sys.exit(result.exit_code)
