"""
Digest helpers — hashing files and checking digest strings.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from pathlib import Path

from trustpin.core.models.checksum import HashAlgorithm

# Values the old hand-maintained database used while a digest was pending
PLACEHOLDER_DIGESTS = frozenset({
    "",
    "null",
    "placeholder_actual_checksum_needed",
    "placeholder_to_be_added",
    "manual_verification_needed",
})

_HEX = re.compile(r"^[0-9a-f]+$")


def compute_digest(path: Path, algorithm: HashAlgorithm | str = HashAlgorithm.SHA256) -> str:
    """Hash a file in chunks and return lowercase hex."""
    h = hashlib.new(str(algorithm))
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def normalize_digest(value: str) -> str:
    return value.strip().lower()


def is_placeholder(value: str | None) -> bool:
    return value is None or normalize_digest(value) in PLACEHOLDER_DIGESTS


def detect_algorithm(digest: str) -> HashAlgorithm | None:
    """Infer the algorithm from a hex digest's length."""
    value = normalize_digest(digest)
    if not _HEX.match(value):
        return None
    for algo in HashAlgorithm:
        if len(value) == algo.hex_length:
            return algo
    return None


def is_valid_digest(digest: str, algorithm: str) -> bool:
    """Lowercase hex of exactly the algorithm's length."""
    try:
        algo = HashAlgorithm(algorithm)
    except ValueError:
        return False
    return len(digest) == algo.hex_length and bool(_HEX.match(digest))


def digests_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(normalize_digest(a), normalize_digest(b))


class DigestCache:
    """Lazily computed digests of one downloaded file."""

    def __init__(self, path: Path):
        self.path = path
        self._values: dict[str, str] = {}

    def get(self, algorithm: HashAlgorithm | str) -> str:
        key = str(algorithm)
        if key not in self._values:
            self._values[key] = compute_digest(self.path, key)
        return self._values[key]
