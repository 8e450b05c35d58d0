"""
Manifest Signing
================

Ed25519 detached signatures over canonical manifest bytes.

Keys are supplied as base64 raw key material: the public key is 32 bytes,
the secret key is either the 32-byte seed or the 64-byte seed+public
form produced by NaCl-style tooling. There is exactly one static key pair
per deployment; no rotation or revocation.

Author: TrancheReady Team
Version: 1.0.0
"""

import base64
import binascii
import threading
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

SEED_LENGTH = 32
PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64
KEY_ID_PREFIX = "ed25519"


class SigningKeyError(Exception):
    """Raised when configured key material cannot be used."""
    pass


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise SigningKeyError(f"{what} is not valid base64: {e}") from e


def _raw_public_bytes(key: Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def load_public_key(public_key_b64: str) -> Ed25519PublicKey:
    """Load a base64 raw Ed25519 public key."""
    raw = _b64decode(public_key_b64, "public key")
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise SigningKeyError(f"public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}")
    return Ed25519PublicKey.from_public_bytes(raw)


def load_key_pair(
    private_key_b64: str,
    public_key_b64: str,
) -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """
    Load and cross-check a base64 raw Ed25519 key pair.

    Raises:
        SigningKeyError: If either key is malformed or the halves do not match
    """
    secret = _b64decode(private_key_b64, "private key")
    if len(secret) == SECRET_KEY_LENGTH:
        seed, embedded_public = secret[:SEED_LENGTH], secret[SEED_LENGTH:]
    elif len(secret) == SEED_LENGTH:
        seed, embedded_public = secret, None
    else:
        raise SigningKeyError(
            f"private key must be {SEED_LENGTH} or {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
        )

    private_key = Ed25519PrivateKey.from_private_bytes(seed)
    public_key = load_public_key(public_key_b64)

    derived = _raw_public_bytes(private_key.public_key())
    if derived != _raw_public_bytes(public_key):
        raise SigningKeyError("public key does not match private key")
    if embedded_public is not None and embedded_public != derived:
        raise SigningKeyError("secret key carries a mismatching public half")

    return private_key, public_key


def generate_key_pair() -> Tuple[str, str]:
    """
    Create a fresh key pair.

    Returns:
        (64-byte seed+public secret key, 32-byte public key), both base64
    """
    private_key = Ed25519PrivateKey.generate()
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = _raw_public_bytes(private_key.public_key())
    return (
        base64.b64encode(seed + public).decode("ascii"),
        base64.b64encode(public).decode("ascii"),
    )


def verify_signature(
    message: bytes,
    signature_b64: str,
    public_key: Union[Ed25519PublicKey, str],
) -> bool:
    """Check a base64 detached signature; malformed signatures are simply invalid."""
    if isinstance(public_key, str):
        public_key = load_public_key(public_key)
    try:
        signature = base64.b64decode(signature_b64, validate=True)
        public_key.verify(signature, message)
    except (InvalidSignature, binascii.Error, ValueError):
        return False
    return True


class Ed25519Signer:
    """
    Signer for a configured key pair.

    Key material is parsed on first use, so a broken configuration shows up
    as an error from ``sign`` (which the manifest builder absorbs) rather
    than preventing startup. ``check`` surfaces the problem eagerly.

    Example:
        signer = Ed25519Signer(settings.sign_private_key, settings.sign_public_key)
        signature = signer.sign(b"payload")
    """

    def __init__(self, private_key_b64: str, public_key_b64: str, key_name: str = "app"):
        self._private_key_b64 = private_key_b64
        self._public_key_b64 = public_key_b64
        self.key_id = f"{KEY_ID_PREFIX}:{key_name}"
        self._keys: Optional[Tuple[Ed25519PrivateKey, Ed25519PublicKey]] = None
        self._lock = threading.Lock()

    def _load(self) -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
        with self._lock:
            if self._keys is None:
                self._keys = load_key_pair(self._private_key_b64, self._public_key_b64)
            return self._keys

    def check(self) -> None:
        """Load the key pair now, raising SigningKeyError if it is unusable."""
        self._load()

    def sign(self, message: bytes) -> str:
        """Return the base64 detached signature of ``message``."""
        private_key, _ = self._load()
        return base64.b64encode(private_key.sign(message)).decode("ascii")

    @property
    def public_key_b64(self) -> str:
        return self._public_key_b64

    @classmethod
    def from_settings(cls, settings) -> Optional["Ed25519Signer"]:
        """Build a signer when both keys are configured, else None."""
        if not settings.signing_configured:
            return None
        return cls(settings.sign_private_key, settings.sign_public_key, settings.sign_key_id)
