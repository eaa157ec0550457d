"""
Key and address derivation for Gaia buckets

secp256k1 private keys are passed around as hex strings, public keys as
compressed SEC1 hex, and addresses as Base58Check strings (version 0x00).
"""

import hashlib
import re
import secrets
from typing import Optional

import base58
from Crypto.Hash import RIPEMD160
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import InvalidKeyError

SECP256K1_ORDER = int(
    "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16
)

ADDRESS_VERSION = 0x00

# Base58 address as embedded in hub read URLs
ADDRESS_PATTERN = re.compile(r"([13][a-km-zA-HJ-NP-Z0-9]{26,35})")

_PRIVATE_KEY_HEX = re.compile(r"[0-9a-fA-F]{64}")


def get_entropy(number_of_bytes: Optional[int] = None) -> bytes:
    """Return cryptographically secure random bytes (32 by default)"""
    if not number_of_bytes:
        number_of_bytes = 32
    return secrets.token_bytes(number_of_bytes)


def load_private_key(private_key: str) -> ec.EllipticCurvePrivateKey:
    """Parse a hex private key into a secp256k1 key object.

    A 33-byte key ending in 01 (the compressed-public-key marker) is accepted.
    """
    if not isinstance(private_key, str):
        raise InvalidKeyError("Private key must be a hex string")
    if len(private_key) == 66 and private_key.endswith("01"):
        private_key = private_key[:64]
    if not _PRIVATE_KEY_HEX.fullmatch(private_key):
        raise InvalidKeyError("Private key must be 32 bytes of hex")
    value = int(private_key, 16)
    if not 0 < value < SECP256K1_ORDER:
        raise InvalidKeyError("Private key is out of range for secp256k1")
    return ec.derive_private_key(value, ec.SECP256K1())


def load_public_key(public_key: str) -> ec.EllipticCurvePublicKey:
    """Parse a hex SEC1 public key (compressed or uncompressed)"""
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(
            ec.SECP256K1(), bytes.fromhex(public_key)
        )
    except (TypeError, ValueError) as e:
        raise InvalidKeyError(f"Invalid public key: {e}")


def compressed_public_key(key: ec.EllipticCurvePublicKey) -> str:
    return key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.CompressedPoint,
    ).hex()


def get_public_key_from_private(private_key: str) -> str:
    """Derive the compressed public key hex for a private key hex"""
    return compressed_public_key(load_private_key(private_key).public_key())


def hash160(data: bytes) -> bytes:
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def public_key_to_address(public_key: str) -> str:
    """Base58Check(version 0x00, RIPEMD160(SHA256(pubkey)))"""
    public_key_bytes = bytes.fromhex(public_key)
    payload = bytes([ADDRESS_VERSION]) + hash160(public_key_bytes)
    return base58.b58encode_check(payload).decode("ascii")


def make_ec_private_key() -> str:
    """Generate a fresh secp256k1 private key as hex"""
    while True:
        candidate = get_entropy(32)
        if 0 < int.from_bytes(candidate, "big") < SECP256K1_ORDER:
            return candidate.hex()


def extract_address(url: str) -> Optional[str]:
    """Return the first address-shaped substring of a URL, if any"""
    match = ADDRESS_PATTERN.search(url)
    return match.group(1) if match else None
