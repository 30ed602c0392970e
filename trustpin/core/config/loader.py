"""
Configuration loader — reads trustpin.yml into Settings.

Precedence, lowest to highest: built-in defaults, trustpin.yml,
environment variables. CLI flags are applied on top by the caller.

Environment overrides:
    REQUIRE_VERIFIED_DOWNLOADS   true/false; falls back to PRODUCTION_MODE
    GITHUB_TOKEN                 GitHub API token (raises rate limits)
    TRUSTPIN_CHECKSUMS_DB        path to the pinned database
    RETRY_MAX_ATTEMPTS / RETRY_INITIAL_DELAY / RETRY_MAX_DELAY
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from trustpin.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_FILE = "trustpin.yml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when trustpin configuration is invalid."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for trustpin.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to trustpin.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be true or false, got {value!r}")


def _env_number(env: Mapping[str, str], name: str, cast):
    try:
        return cast(env[name])
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {env[name]!r}") from e


def apply_env_overrides(settings: Settings, env: Mapping[str, str]) -> Settings:
    """Return a copy of ``settings`` with environment overrides applied."""
    updated = settings.model_copy(deep=True)

    if "REQUIRE_VERIFIED_DOWNLOADS" in env:
        updated.require_verified = parse_bool(env["REQUIRE_VERIFIED_DOWNLOADS"], "REQUIRE_VERIFIED_DOWNLOADS")
    elif "PRODUCTION_MODE" in env:
        updated.require_verified = parse_bool(env["PRODUCTION_MODE"], "PRODUCTION_MODE")

    if env.get("GITHUB_TOKEN"):
        updated.github_token = env["GITHUB_TOKEN"]
    if env.get("TRUSTPIN_CHECKSUMS_DB"):
        updated.checksums_db = env["TRUSTPIN_CHECKSUMS_DB"]

    if "RETRY_MAX_ATTEMPTS" in env:
        updated.retry.max_attempts = max(1, _env_number(env, "RETRY_MAX_ATTEMPTS", int))
    if "RETRY_INITIAL_DELAY" in env:
        updated.retry.initial_delay = max(0.0, _env_number(env, "RETRY_INITIAL_DELAY", float))
    if "RETRY_MAX_DELAY" in env:
        updated.retry.max_delay = max(0.0, _env_number(env, "RETRY_MAX_DELAY", float))

    return updated


def load_settings(path: Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Load settings from trustpin.yml (if any) plus the environment.

    Args:
        path: Explicit config path. If None, searches upward from cwd;
            when nothing is found, defaults apply relative to cwd.
        env: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: The file is unreadable or invalid.
    """
    env = os.environ if env is None else env

    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
        return apply_env_overrides(Settings(base_dir=str(Path.cwd())), env)

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    data = {k: v for k, v in data.items() if k != "base_dir"}
    try:
        settings = Settings.model_validate({**data, "base_dir": str(path.parent.resolve())})
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded settings from %s (%d tracked tools)", path, len(settings.tracked))
    return apply_env_overrides(settings, env)
