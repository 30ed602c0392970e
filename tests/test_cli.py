"""
Tests for CLI commands — resolve, verify, checksums, version checks, global options.
"""

import json
from unittest.mock import patch

from click.testing import CliRunner
from conftest import FakeHttp, FakeTool, pinned_entry, sha256_hex, write_store

from trustpin.core.models.version import ReleaseCandidate
from trustpin.main import cli

ARTIFACT = b"k9s tarball"
K9S_URL = "https://dl.example.com/k9s-0.50.16-amd64.tar.gz"
PY_FEED = "https://dl.example.com/python/releases.json"


def _invoke(session, args: list[str]):
    runner = CliRunner()
    return runner.invoke(cli, args, obj={"session": session}, env={"TRUSTPIN_LOG_LEVEL": "CRITICAL"})


def _python() -> FakeTool:
    versions = ("3.11.9", "3.12.6", "3.12.7", "3.13.0")
    return FakeTool("python", releases=[ReleaseCandidate(version=v) for v in versions])


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "verify" in result.output
        assert "versions" in result.output
        assert "checksums" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "tools"])
        assert result.exit_code == 2
        assert "not found" in result.output


class TestToolsCommand:
    def test_lists_registered(self, make_session):
        result = _invoke(make_session(FakeHttp(), [_python(), FakeTool("k9s")]), ["tools", "--json"])
        assert result.exit_code == 0
        assert [t["name"] for t in json.loads(result.output)] == ["k9s", "python"]

    def test_text(self, make_session):
        result = _invoke(make_session(FakeHttp(), [FakeTool("k9s")]), ["tools"])
        assert result.exit_code == 0
        assert "k9s" in result.output


# ── versions ─────────────────────────────────────────────────────────


class TestVersionsResolve:
    def test_partial(self, make_session):
        session = make_session(FakeHttp({PY_FEED: b"[]"}), [_python()])
        result = _invoke(session, ["versions", "resolve", "python", "3.12"])
        assert result.exit_code == 0
        assert "3.12.7" in result.output
        assert "partial-to-latest-patch" in result.output

    def test_quiet_prints_only_version(self, make_session):
        session = make_session(FakeHttp({PY_FEED: b"[]"}), [_python()])
        result = _invoke(session, ["-q", "versions", "resolve", "python", "3.12"])
        assert result.exit_code == 0
        assert result.output.strip() == "3.12.7"

    def test_json(self, make_session):
        session = make_session(FakeHttp({PY_FEED: b"[]"}), [_python()])
        result = _invoke(session, ["versions", "resolve", "python", "3.12", "--json"])
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["version"] == "3.12.7"
        assert data["method"] == "partial-to-latest-patch"

    def test_invalid_spec_exit_2(self, make_session):
        http = FakeHttp()
        result = _invoke(make_session(http, [_python()]), ["versions", "resolve", "python", "null", "--json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["kind"] == "invalid_spec"
        assert http.request_count == 0

    def test_no_match_exit_1(self, make_session):
        session = make_session(FakeHttp({PY_FEED: b"[]"}), [_python()])
        result = _invoke(session, ["versions", "resolve", "python", "2"])
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_unknown_tool(self, make_session):
        result = _invoke(make_session(FakeHttp(), [_python()]), ["versions", "resolve", "cobol", "1"])
        assert result.exit_code == 2


class TestVersionsCheck:
    def test_nothing_tracked(self, make_session):
        result = _invoke(make_session(FakeHttp(), [_python()]), ["versions", "check"])
        assert result.exit_code == 0
        assert "No tracked tools" in result.output

    def test_outdated_json(self, make_session):
        session = make_session(
            FakeHttp({PY_FEED: b"[]"}), [_python()], tracked=[{"tool": "python", "version": "3.12.6"}],
        )
        result = _invoke(session, ["versions", "check", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["summary"]["outdated"] == 1
        assert data["tools"][0]["latest"] == "3.13.0"

    def test_current_text(self, make_session):
        session = make_session(
            FakeHttp({PY_FEED: b"[]"}), [_python()], tracked=[{"tool": "python", "version": "3.13.0"}],
        )
        result = _invoke(session, ["versions", "check"])
        assert result.exit_code == 0
        assert "1 current" in result.output


# ── verify ───────────────────────────────────────────────────────────


class TestVerifyCommand:
    def _session(self, make_session, entries=None, **kwargs):
        session = make_session(FakeHttp({K9S_URL: ARTIFACT}), [FakeTool("k9s")], **kwargs)
        if entries is not None:
            write_store(session.store.path, entries)
        return session

    def test_pinned_pass(self, make_session):
        session = self._session(make_session, [pinned_entry("k9s", "0.50.16", "amd64", sha256_hex(ARTIFACT))])
        result = _invoke(session, ["verify", "k9s", "0.50.16", "--platform", "amd64"])
        assert result.exit_code == 0
        assert "tier 2" in result.output
        assert sha256_hex(ARTIFACT) in result.output

    def test_json_report(self, make_session):
        session = self._session(make_session, [pinned_entry("k9s", "0.50.16", "amd64", sha256_hex(ARTIFACT))])
        result = _invoke(session, ["verify", "k9s", "0.50.16", "--json"])
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["tier"] == 2
        assert data["digest_match"] is True

    def test_output_file(self, make_session, tmp_path):
        session = self._session(make_session, [pinned_entry("k9s", "0.50.16", "amd64", sha256_hex(ARTIFACT))])
        out = tmp_path / "bin" / "k9s.tar.gz"
        result = _invoke(session, ["verify", "k9s", "0.50.16", "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_bytes() == ARTIFACT

    def test_output_file_unwritable_exit_1(self, make_session, tmp_path):
        session = self._session(make_session, [pinned_entry("k9s", "0.50.16", "amd64", sha256_hex(ARTIFACT))])
        out = tmp_path / "bin" / "k9s.tar.gz"
        with patch("trustpin.core.services.checksums.executor.shutil.move", side_effect=OSError(13, "Permission denied")):
            result = _invoke(session, ["verify", "k9s", "0.50.16", "-o", str(out), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["kind"] == "filesystem"

    def test_mismatch_exit_1(self, make_session):
        session = self._session(make_session, [pinned_entry("k9s", "0.50.16", "amd64", "0" * 64)])
        result = _invoke(session, ["verify", "k9s", "0.50.16"])
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_tofu_warns(self, make_session):
        result = _invoke(self._session(make_session), ["verify", "k9s", "0.50.16"])
        assert result.exit_code == 0
        assert "tier 4" in result.output
        assert "SECURITY WARNING" in result.output

    def test_require_verified_flag(self, make_session):
        result = _invoke(self._session(make_session), ["verify", "k9s", "0.50.16", "--require-verified"])
        assert result.exit_code == 1
        assert "unverified downloads are disabled" in result.output

    def test_allow_calculated_overrides_config(self, make_session):
        session = self._session(make_session, require_verified=True)
        result = _invoke(session, ["verify", "k9s", "0.50.16", "--allow-calculated"])
        assert result.exit_code == 0

    def test_invalid_version_exit_2(self, make_session):
        result = _invoke(self._session(make_session), ["verify", "k9s", "0.50", "--json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["kind"] == "invalid_spec"


# ── checksums ────────────────────────────────────────────────────────


class TestChecksumsCommands:
    def test_get(self, make_session):
        session = make_session(FakeHttp(), [FakeTool("k9s")])
        write_store(session.store.path, [pinned_entry("k9s", "0.50.16", "amd64", "a" * 64)])
        result = _invoke(session, ["checksums", "get", "k9s", "0.50.16"])
        assert result.exit_code == 0
        assert f"sha256:{'a' * 64}" in result.output

    def test_get_missing(self, make_session):
        session = make_session(FakeHttp(), [FakeTool("k9s")])
        write_store(session.store.path, [pinned_entry("k9s", "0.50.16", "arm64", "a" * 64)])
        result = _invoke(session, ["checksums", "get", "k9s", "0.50.16", "-p", "amd64"])
        assert result.exit_code == 1
        assert "arm64" in result.output

    def test_validate_ok(self, make_session):
        session = make_session(FakeHttp())
        write_store(session.store.path, [pinned_entry("k9s", "0.50.16", "amd64", "a" * 64)])
        result = _invoke(session, ["checksums", "validate"])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_validate_missing_file(self, make_session):
        session = make_session(FakeHttp())
        result = _invoke(session, ["checksums", "validate", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert (data["valid"], data["entry_count"]) == (True, 0)

    def test_validate_bad(self, make_session):
        session = make_session(FakeHttp())
        write_store(session.store.path, [pinned_entry("k9s", "0.50.16", "amd64", "null")])
        result = _invoke(session, ["checksums", "validate", "--json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["valid"] is False

    def test_update_json(self, make_session):
        session = make_session(
            FakeHttp(), [FakeTool("k9s", digest="b" * 64)],
            tracked=[{"tool": "k9s", "version": "0.50.16"}],
        )
        result = _invoke(session, ["checksums", "update", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["summary"]["added"] == 1
        assert session.store.get("k9s", "0.50.16", "amd64").digest == "b" * 64

    def test_update_dry_run_text(self, make_session):
        session = make_session(
            FakeHttp(), [FakeTool("k9s", digest="b" * 64)],
            tracked=[{"tool": "k9s", "version": "0.50.16"}],
        )
        result = _invoke(session, ["checksums", "update", "--dry-run"])
        assert result.exit_code == 0
        assert "dry run" in result.output
        assert not session.store.path.exists()

    def test_update_text_lists_items_before_commit_error(self, make_session):
        session = make_session(
            FakeHttp(), [FakeTool("k9s", digest="b" * 64)],
            tracked=[{"tool": "k9s", "version": "0.50.16"}],
        )
        write_store(session.store.path, [pinned_entry("k9s", "0.50.15", "amd64", "XYZ")])
        result = _invoke(session, ["checksums", "update"])
        assert result.exit_code == 2
        assert "k9s 0.50.16 amd64: added" in result.output
        assert "Refusing to write" in result.output
