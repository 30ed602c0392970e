"""
Shared CLI helpers.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from trustpin.core.session import Session


def get_session(ctx: click.Context) -> Session:
    """The invocation's session, built from settings on first use."""
    obj = ctx.find_root().obj
    session = obj.get("session")
    if session is not None:
        return session

    from trustpin.core.config.loader import ConfigError, load_settings
    from trustpin.core.session import open_session

    try:
        settings = load_settings(obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    session = open_session(settings)
    obj["session"] = session
    return session


def emit_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))
