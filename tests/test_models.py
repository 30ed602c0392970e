"""
Tests for domain models — serialization, lookups, derived properties.
"""

import json

import pytest

from trustpin.core.errors import ErrorKind, NetworkError, StoreCorruptError, TrustpinError
from trustpin.core.models import (
    ChecksumRecord,
    PinnedDatabase,
    ResolutionMethod,
    ResolvedVersion,
    Settings,
    SpecKind,
    TrustTier,
    VersionSpec,
)
from trustpin.core.models.checksum import normalize_platform


class TestChecksumRecord:
    def test_defaults(self):
        r = ChecksumRecord(tool="k9s", version="0.50.16", platform="amd64", digest="a" * 64)
        assert r.algorithm == "sha256"
        assert r.tier == 2
        assert r.captured_at

    @pytest.mark.parametrize("alias,canonical", [("x86_64", "amd64"), ("X64", "amd64"), ("aarch64", "arm64"), ("any", "any")])
    def test_platform_aliases(self, alias, canonical):
        assert normalize_platform(alias) == canonical

    def test_key_uses_canonical_platform(self):
        r = ChecksumRecord(tool="k9s", version="0.50.16", platform="x86_64", digest="a" * 64)
        assert r.key == ("k9s", "0.50.16", "amd64")


class TestPinnedDatabase:
    def test_roundtrip_document_shape(self):
        db = PinnedDatabase()
        db.upsert(ChecksumRecord(tool="k9s", version="0.50.16", platform="amd64", digest="a" * 64))
        data = json.loads(json.dumps(db.model_dump(mode="json")))
        assert set(data) == {"metadata", "entries"}
        assert PinnedDatabase.model_validate(data).find("k9s", "0.50.16", "amd64") is not None

    def test_upsert_replaces(self):
        db = PinnedDatabase()
        assert db.upsert(ChecksumRecord(tool="k9s", version="1.0.0", platform="amd64", digest="a" * 64)) is False
        assert db.upsert(ChecksumRecord(tool="k9s", version="1.0.0", platform="x64", digest="b" * 64)) is True
        assert len(db.entries) == 1
        assert db.entries[0].digest == "b" * 64

    def test_for_release(self):
        db = PinnedDatabase()
        for plat in ("amd64", "arm64"):
            db.upsert(ChecksumRecord(tool="k9s", version="1.0.0", platform=plat, digest="a" * 64))
        db.upsert(ChecksumRecord(tool="act", version="1.0.0", platform="amd64", digest="a" * 64))
        assert len(db.for_release("k9s", "1.0.0")) == 2


class TestResolvedVersion:
    def test_to_dict(self):
        spec = VersionSpec(tool="python", raw="3.12", kind=SpecKind.PARTIAL)
        resolved = ResolvedVersion(
            version="3.12.7", spec=spec, method=ResolutionMethod.PARTIAL_TO_LATEST_PATCH, candidates_considered=4,
        )
        assert resolved.to_dict() == {
            "tool": "python",
            "requested": "3.12",
            "spec_kind": "partial",
            "version": "3.12.7",
            "method": "partial-to-latest-patch",
            "candidates_considered": 4,
        }

    def test_spec_is_frozen(self):
        spec = VersionSpec(tool="python", raw="3.12", kind=SpecKind.PARTIAL)
        with pytest.raises(Exception):
            spec.raw = "3.13"


class TestTrustTier:
    def test_labels(self):
        assert TrustTier.SIGNATURE.label == "publisher signature"
        assert TrustTier.CALCULATED.label == "calculated (TOFU)"


class TestSettings:
    def test_base_dir_not_serialized(self):
        assert "base_dir" not in Settings(base_dir="/srv").model_dump()


class TestErrors:
    @pytest.mark.parametrize(
        "kind,code",
        [
            (ErrorKind.INVALID_SPEC, 2),
            (ErrorKind.UNKNOWN_TOOL, 2),
            (ErrorKind.STORE_CORRUPT, 2),
            (ErrorKind.NETWORK, 1),
            (ErrorKind.NO_MATCH, 1),
            (ErrorKind.DIGEST_MISMATCH, 1),
            (ErrorKind.INSUFFICIENT_TRUST, 1),
        ],
    )
    def test_exit_codes(self, kind, code):
        assert TrustpinError("x", kind=kind).exit_code == code

    def test_to_dict(self):
        err = TrustpinError("bad", kind=ErrorKind.DIGEST_MISMATCH, tool="k9s", version="0.50.16", tier=2)
        assert err.to_dict() == {
            "error": "bad", "kind": "digest_mismatch", "tool": "k9s", "version": "0.50.16", "tier": 2,
        }

    def test_store_corrupt_carries_errors(self):
        err = StoreCorruptError("broken", ["a", "b"])
        assert err.to_dict()["errors"] == ["a", "b"]
        assert err.kind == ErrorKind.STORE_CORRUPT

    def test_network_not_found(self):
        assert NetworkError("x", status=410).not_found
        assert not NetworkError("x", status=500).not_found
