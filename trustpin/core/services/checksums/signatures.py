"""
Publisher signatures — tier 1 verification.

Two mechanisms, both keyed by tool name under the configured keys
directory::

    gpg-keys/
      python/            *.asc / *.gpg release manager keys
      node/keyring/      pubring.kbx (pre-built keyring)
      k9s/cosign.pub     PEM public key for blob signatures

GPG checks shell out to ``gpg`` with a throwaway GNUPGHOME so the
user's keyring is never read or modified. PEM signatures (cosign-style
blob signatures: ECDSA P-256, RSA or Ed25519) are checked in-process
with ``cryptography``.

Every verifier answers VALID, INVALID or UNAVAILABLE. Only INVALID is
a verification failure; missing keys, a missing ``gpg`` binary or an
unknown signer make the tier not applicable.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

logger = logging.getLogger(__name__)

GPG_TIMEOUT = 60
PUBLIC_KEY_FILE = "cosign.pub"
KEYRING_FILE = Path("keyring") / "pubring.kbx"


class SignatureKind(StrEnum):
    GPG = "gpg"
    PUBLIC_KEY = "public-key"


class SignatureResult(StrEnum):
    VALID = "valid"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SignatureSource:
    """Where a publisher's detached signature lives.

    When ``signed_url`` is set the signature covers a checksum listing
    (e.g. Node's SHASUMS256.txt) rather than the artifact; the
    artifact's digest is then looked up in that listing under
    ``signed_filename``.
    """

    kind: SignatureKind
    signature_url: str
    signed_url: str | None = None
    signed_filename: str | None = None


# ── GPG ─────────────────────────────────────────────────────────


class GpgVerifier:
    """Detached OpenPGP signature checks via the ``gpg`` binary."""

    def __init__(self, keys_dir: Path | None, gpg_binary: str = "gpg"):
        self.keys_dir = keys_dir
        self.gpg_binary = gpg_binary

    def _tool_dir(self, tool: str) -> Path | None:
        if self.keys_dir is None:
            return None
        path = self.keys_dir / tool
        return path if path.is_dir() else None

    def key_files(self, tool: str) -> list[Path]:
        tool_dir = self._tool_dir(tool)
        if tool_dir is None:
            return []
        return sorted(p for p in tool_dir.iterdir() if p.suffix in (".asc", ".gpg") and p.is_file())

    def keyring(self, tool: str) -> Path | None:
        tool_dir = self._tool_dir(tool)
        if tool_dir is None:
            return None
        path = tool_dir / KEYRING_FILE
        return path if path.is_file() else None

    def has_keys(self, tool: str) -> bool:
        return bool(self.key_files(tool)) or self.keyring(tool) is not None

    def available(self) -> bool:
        return shutil.which(self.gpg_binary) is not None

    def verify(self, tool: str, signature: Path, data: Path) -> SignatureResult:
        if not self.has_keys(tool):
            logger.debug("No GPG keys for %s", tool)
            return SignatureResult.UNAVAILABLE
        if not self.available():
            logger.info("gpg not installed, cannot check %s signature", tool)
            return SignatureResult.UNAVAILABLE

        with tempfile.TemporaryDirectory(prefix="trustpin-gnupg-") as home:
            Path(home).chmod(0o700)
            keyring = self.keyring(tool)
            if keyring is not None:
                shutil.copy2(keyring, Path(home) / "pubring.kbx")
            for key in self.key_files(tool):
                imported = self._run(home, ["--import", str(key)])
                if imported is None or imported.returncode != 0:
                    logger.warning("Could not import GPG key %s", key)

            proc = self._run(home, ["--status-fd", "1", "--verify", str(signature), str(data)])

        if proc is None:
            return SignatureResult.UNAVAILABLE
        return self._interpret(tool, proc.stdout)

    def _run(self, home: str, args: list[str]) -> subprocess.CompletedProcess | None:
        cmd = [self.gpg_binary, "--batch", "--no-tty", "--homedir", home, *args]
        try:
            return subprocess.run(cmd, capture_output=True, text=True, timeout=GPG_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("gpg invocation failed: %s", e)
            return None

    @staticmethod
    def _interpret(tool: str, status: str) -> SignatureResult:
        tokens = {line.split()[1] for line in status.splitlines() if line.startswith("[GNUPG:] ") and len(line.split()) > 1}
        if "BADSIG" in tokens:
            logger.error("BAD GPG signature for %s", tool)
            return SignatureResult.INVALID
        if "VALIDSIG" in tokens or "GOODSIG" in tokens:
            return SignatureResult.VALID
        # NO_PUBKEY, ERRSIG, EXPKEYSIG without VALIDSIG: signer not trusted here
        logger.info("GPG could not vouch for %s (status: %s)", tool, ", ".join(sorted(tokens)) or "none")
        return SignatureResult.UNAVAILABLE


# ── PEM public keys ─────────────────────────────────────────────


def _decode_signature(raw: bytes) -> bytes:
    """cosign writes base64 text; other tools write raw DER."""
    try:
        return base64.b64decode(raw.strip(), validate=True)
    except (binascii.Error, ValueError):
        return raw


def _sha256_file(path: Path) -> bytes:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.digest()


def verify_public_key_signature(public_key_pem: bytes, signature: bytes, data: Path) -> SignatureResult:
    """Check a detached blob signature against a PEM public key."""
    try:
        key = serialization.load_pem_public_key(public_key_pem)
    except (ValueError, UnsupportedAlgorithm) as e:
        logger.warning("Unusable public key: %s", e)
        return SignatureResult.UNAVAILABLE

    sig = _decode_signature(signature)
    try:
        if isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(sig, _sha256_file(data), ec.ECDSA(Prehashed(hashes.SHA256())))
        elif isinstance(key, rsa.RSAPublicKey):
            key.verify(sig, _sha256_file(data), padding.PKCS1v15(), Prehashed(hashes.SHA256()))
        elif isinstance(key, ed25519.Ed25519PublicKey):
            key.verify(sig, data.read_bytes())
        else:
            logger.warning("Unsupported public key type: %s", type(key).__name__)
            return SignatureResult.UNAVAILABLE
    except InvalidSignature:
        return SignatureResult.INVALID
    return SignatureResult.VALID


class PublicKeyVerifier:
    """Blob signatures checked against ``<keys_dir>/<tool>/cosign.pub``."""

    def __init__(self, keys_dir: Path | None):
        self.keys_dir = keys_dir

    def key_path(self, tool: str) -> Path | None:
        if self.keys_dir is None:
            return None
        path = self.keys_dir / tool / PUBLIC_KEY_FILE
        return path if path.is_file() else None

    def has_keys(self, tool: str) -> bool:
        return self.key_path(tool) is not None

    def verify(self, tool: str, signature: Path, data: Path) -> SignatureResult:
        key_path = self.key_path(tool)
        if key_path is None:
            return SignatureResult.UNAVAILABLE
        result = verify_public_key_signature(key_path.read_bytes(), signature.read_bytes(), data)
        if result == SignatureResult.INVALID:
            logger.error("BAD public-key signature for %s", tool)
        return result


class SignatureVerifier:
    """Dispatches a signature check to the mechanism the source names."""

    def __init__(self, keys_dir: Path | None, gpg_binary: str = "gpg"):
        self.gpg = GpgVerifier(keys_dir, gpg_binary)
        self.public_key = PublicKeyVerifier(keys_dir)

    def _backend(self, kind: SignatureKind):
        return self.gpg if kind == SignatureKind.GPG else self.public_key

    def has_keys(self, tool: str, kind: SignatureKind) -> bool:
        return self._backend(kind).has_keys(tool)

    def verify(self, kind: SignatureKind, tool: str, signature: Path, data: Path) -> SignatureResult:
        return self._backend(kind).verify(tool, signature, data)
