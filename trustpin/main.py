"""
trustpin — CLI entrypoint.

Usage:
    trustpin --help
    trustpin versions resolve python 3.12
    trustpin verify k9s 0.50.16 --platform amd64 --output ./k9s.tar.gz
    trustpin checksums update --dry-run
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from trustpin import __version__
from trustpin.core.observability.logging_config import FILE_ENV, FILE_LEVEL_ENV, resolve_level, setup_logging
from trustpin.ui.cli.checksums import checksums
from trustpin.ui.cli.common import emit_json, get_session
from trustpin.ui.cli.versions import versions


@click.group()
@click.version_option(version=__version__, prog_name="trustpin")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to trustpin.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """trustpin — resolve tool versions and verify downloads by trust tier."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet, env=os.environ),
        log_file=os.environ.get(FILE_ENV),
        log_file_level=os.environ.get(FILE_LEVEL_ENV),
        quiet_third_party=not debug,
    )


@cli.command()
@click.argument("tool")
@click.argument("version")
@click.argument("url", required=False)
@click.option("--platform", "-p", default="amd64", show_default=True, help="Target architecture.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to save the verified artifact (default: verify and discard).",
)
@click.option(
    "--require-verified/--allow-calculated",
    "require_verified",
    default=None,
    help="Forbid (or allow) trust-on-first-use for this run.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def verify(
    ctx: click.Context,
    tool: str,
    version: str,
    url: str | None,
    platform: str,
    output: Path | None,
    require_verified: bool | None,
    as_json: bool,
) -> None:
    """Download TOOL VERSION (from URL, or the tool's default) and verify it."""
    from trustpin.core.use_cases.verify import verify_artifact

    result = verify_artifact(
        get_session(ctx),
        tool,
        version,
        platform=platform,
        url=url,
        output=output,
        require_verified=require_verified,
    )

    if as_json:
        emit_json(result.to_dict())
        sys.exit(result.exit_code)

    if result.error is not None:
        click.secho(f"❌ {result.error.message}", fg="red", err=True)
        sys.exit(result.exit_code)

    outcome = result.outcome
    assert outcome is not None
    if outcome.warning:
        click.secho(f"⚠️  {tool} {version}: tier {int(outcome.tier)} ({outcome.tier.label})", fg="yellow", bold=True)
        click.secho(f"   {outcome.warning}", fg="yellow")
    else:
        click.secho(f"✅ {tool} {version}: tier {int(outcome.tier)} ({outcome.tier.label})", fg="green", bold=True)
    click.echo(f"   {outcome.algorithm}: {outcome.digest}")
    if outcome.path:
        click.echo(f"   Saved to {outcome.path}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def tools(ctx: click.Context, as_json: bool) -> None:
    """List registered tools and what their publishers provide."""
    described = get_session(ctx).registry.describe()

    if as_json:
        emit_json(described)
        return

    click.secho(f"🧰 Registered tools: {len(described)}", fg="cyan", bold=True)
    for entry in described:
        tiers = ["sig" if entry["signature"] else None, "published" if entry["published_digest"] else None]
        label = ", ".join(t for t in tiers if t) or "pinned/calculated only"
        click.echo(f"   • {entry['name']:<12} [{entry['kind']}] {entry['description']}  ({label})")


cli.add_command(versions)
cli.add_command(checksums)


if __name__ == "__main__":
    cli()
