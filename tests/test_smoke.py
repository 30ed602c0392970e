"""
Smoke tests — verify the package wiring is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- The default session builds without touching the network
"""

from click.testing import CliRunner

from trustpin import __version__
from trustpin.core.models.settings import Settings
from trustpin.core.services.http_client import HttpClient
from trustpin.core.session import open_session
from trustpin.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        """Version string should be defined and non-empty."""
        assert __version__
        assert isinstance(__version__, str)

    def test_cli_help(self):
        """CLI --help should exit cleanly with usage info."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "trust tier" in result.output

    def test_open_session_defaults(self, tmp_path):
        """A session from default settings wires real collaborators."""
        settings = Settings(base_dir=str(tmp_path), report_log="reports.ndjson")
        session = open_session(settings, sleep=lambda _: None)

        assert isinstance(session.http, HttpClient)
        assert session.store.path == tmp_path / "checksums.json"
        assert session.report_log.path == tmp_path / "reports.ndjson"
        assert "python" in session.registry
        assert session.http.request_count == 0

    def test_sessions_do_not_share_state(self, tmp_path):
        a = open_session(Settings(base_dir=str(tmp_path)))
        b = open_session(Settings(base_dir=str(tmp_path)))
        assert a.http is not b.http
        assert a.http.cache is not b.http.cache
