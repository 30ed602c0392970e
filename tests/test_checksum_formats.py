"""
Tests for digest helpers and publisher checksum document parsers.
"""

import hashlib

import pytest

from trustpin.core.models.checksum import HashAlgorithm
from trustpin.core.services.checksums.digests import (
    DigestCache,
    compute_digest,
    detect_algorithm,
    digests_equal,
    is_placeholder,
    is_valid_digest,
)
from trustpin.core.services.checksums.published import (
    parse_adoptium_assets,
    parse_checksum_listing,
    parse_go_release_files,
    parse_ruby_downloads_page,
    parse_single_digest,
    published,
)

SHA_A = "a" * 64
SHA_B = "b" * 64


# ── Digests ──────────────────────────────────────────────────────────


class TestDigests:
    def test_compute_sha256(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"hello")
        assert compute_digest(path) == hashlib.sha256(b"hello").hexdigest()

    def test_compute_sha512(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"hello")
        assert compute_digest(path, HashAlgorithm.SHA512) == hashlib.sha512(b"hello").hexdigest()

    def test_detect_algorithm(self):
        assert detect_algorithm(SHA_A) == HashAlgorithm.SHA256
        assert detect_algorithm("c" * 128) == HashAlgorithm.SHA512
        assert detect_algorithm("A" * 64) == HashAlgorithm.SHA256
        assert detect_algorithm("a" * 40) is None
        assert detect_algorithm("z" * 64) is None

    def test_is_valid_digest_requires_lowercase(self):
        assert is_valid_digest(SHA_A, "sha256")
        assert not is_valid_digest("A" * 64, "sha256")
        assert not is_valid_digest(SHA_A, "sha512")
        assert not is_valid_digest(SHA_A, "md5")

    def test_placeholders(self):
        assert is_placeholder(None)
        assert is_placeholder("")
        assert is_placeholder("PLACEHOLDER_TO_BE_ADDED")
        assert not is_placeholder(SHA_A)

    def test_digests_equal_ignores_case(self):
        assert digests_equal("AB" * 32, "ab" * 32)
        assert not digests_equal(SHA_A, SHA_B)

    def test_digest_cache_hashes_once(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"one")
        cache = DigestCache(path)
        first = cache.get("sha256")
        path.write_bytes(b"two")
        assert cache.get(HashAlgorithm.SHA256) == first


# ── Checksum listings ────────────────────────────────────────────────


class TestParseChecksumListing:
    LISTING = (
        f"{SHA_A}  k9s_Linux_amd64.tar.gz\n"
        f"{SHA_B}  k9s_Linux_arm64.tar.gz\n"
        f"{'c' * 64} *lazygit_0.44.1_Linux_x86_64.tar.gz\n"
        f"SHA256 (terraform_1.9.0_linux_amd64.zip) = {'D' * 64}\n"
        f"{'e' * 64}  ./dist/act_Linux_x86_64.tar.gz\n"
    )

    def test_gnu_line(self):
        assert parse_checksum_listing(self.LISTING, "k9s_Linux_arm64.tar.gz") == SHA_B

    def test_binary_marker(self):
        assert parse_checksum_listing(self.LISTING, "lazygit_0.44.1_Linux_x86_64.tar.gz") == "c" * 64

    def test_bsd_line(self):
        assert parse_checksum_listing(self.LISTING, "terraform_1.9.0_linux_amd64.zip") == "d" * 64

    def test_path_prefix_ignored(self):
        assert parse_checksum_listing(self.LISTING, "act_Linux_x86_64.tar.gz") == "e" * 64

    def test_no_partial_filename_match(self):
        assert parse_checksum_listing(self.LISTING, "k9s_Linux_amd64.tar") is None

    def test_comments_and_garbage(self):
        text = "# generated\n\nnot-a-digest  file.tar.gz\n"
        assert parse_checksum_listing(text, "file.tar.gz") is None


class TestSingleDigest:
    def test_bare(self):
        assert parse_single_digest(f"{SHA_A}\n") == SHA_A

    def test_with_filename(self):
        assert parse_single_digest(f"{'F' * 128}  git-cliff.tar.gz\n") == "f" * 128

    @pytest.mark.parametrize("text", ["", "   \n", "<html>Not Found</html>"])
    def test_not_a_digest(self, text):
        assert parse_single_digest(text) is None


class TestGoReleaseFiles:
    DOC = [
        {
            "version": "go1.22.3",
            "files": [
                {"filename": "go1.22.3.linux-amd64.tar.gz", "sha256": SHA_A},
                {"filename": "go1.22.3.linux-arm64.tar.gz", "sha256": SHA_B},
            ],
        },
        {"version": "go1.22.2", "files": []},
    ]

    def test_found(self):
        assert parse_go_release_files(self.DOC, "go1.22.3", "go1.22.3.linux-arm64.tar.gz") == SHA_B

    def test_wrong_version(self):
        assert parse_go_release_files(self.DOC, "go1.22.2", "go1.22.3.linux-amd64.tar.gz") is None

    def test_bad_document(self):
        assert parse_go_release_files({"error": "x"}, "go1.22.3", "f") is None


class TestRubyDownloadsPage:
    HTML = (
        "<li><a href='x'>Ruby 3.3.5</a><br/> sha256: " + SHA_A + "</li>"
        "<li><a href='y'>Ruby 3.3.4</a><br/> sha256: " + SHA_B + "</li>"
    )

    def test_found(self):
        assert parse_ruby_downloads_page(self.HTML, "3.3.4") == SHA_B

    def test_version_is_not_a_prefix_match(self):
        assert parse_ruby_downloads_page(self.HTML, "3.3") is None


class TestAdoptiumAssets:
    DOC = [{
        "binaries": [
            {"package": {"name": "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz",
                         "link": "https://github.com/adoptium/x.tar.gz", "checksum": SHA_A}},
        ],
    }]

    def test_first_package(self):
        assert parse_adoptium_assets(self.DOC) == ("https://github.com/adoptium/x.tar.gz", SHA_A)

    def test_hint_mismatch(self):
        assert parse_adoptium_assets(self.DOC, "other.tar.gz") is None

    def test_not_a_list(self):
        assert parse_adoptium_assets({}) is None


class TestPublished:
    def test_wraps_with_algorithm(self):
        found = published("C" * 128, "https://e/x.sha512")
        assert found.algorithm == "sha512"
        assert found.digest == "c" * 128

    def test_none_and_unknown_length(self):
        assert published(None, "s") is None
        assert published("abc", "s") is None
