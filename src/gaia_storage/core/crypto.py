"""
Cryptographic primitives for Gaia storage

This module provides secp256k1 ECIES encryption and ECDSA signatures,
plus key storage in the OS keyring.
"""

from typing import Optional, Union
import hashlib
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
import keyring
from keyring.errors import KeyringError

from .envelopes import CipherObject, SignatureObject
from .errors import DecryptionError, InvalidKeyError
from .keys import (
    compressed_public_key,
    get_entropy,
    get_public_key_from_private,
    load_private_key,
    load_public_key,
    make_ec_private_key,
    public_key_to_address,
)

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


def _as_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def _shared_keys(private_key: ec.EllipticCurvePrivateKey,
                 public_key: ec.EllipticCurvePublicKey) -> tuple:
    """Derive (encryption key, mac key) from an ECDH exchange"""
    shared_secret = private_key.exchange(ec.ECDH(), public_key)
    digest = hashlib.sha512(shared_secret).digest()
    return digest[:32], digest[32:]


def _mac(mac_key: bytes, *parts: bytes) -> hmac.HMAC:
    h = hmac.HMAC(mac_key, hashes.SHA256())
    for part in parts:
        h.update(part)
    return h


def encrypt_ecies(public_key: str, content: Content) -> CipherObject:
    """Encrypt content for the holder of the private key behind public_key"""
    recipient = load_public_key(public_key)
    ephemeral = ec.generate_private_key(ec.SECP256K1())
    encryption_key, mac_key = _shared_keys(ephemeral, recipient)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(_as_bytes(content)) + padder.finalize()

    iv = get_entropy(16)
    encryptor = Cipher(algorithms.AES(encryption_key), modes.CBC(iv)).encryptor()
    cipher_text = encryptor.update(padded) + encryptor.finalize()

    ephemeral_pk = bytes.fromhex(compressed_public_key(ephemeral.public_key()))
    mac = _mac(mac_key, iv, ephemeral_pk, cipher_text).finalize()

    return CipherObject(
        iv=iv.hex(),
        ephemeralPK=ephemeral_pk.hex(),
        cipherText=cipher_text.hex(),
        mac=mac.hex(),
        wasString=isinstance(content, str),
    )


def decrypt_ecies(private_key: str, cipher_object: CipherObject) -> Content:
    """Decrypt a CipherObject, returning str if the plaintext was text"""
    key = load_private_key(private_key)
    try:
        iv = bytes.fromhex(cipher_object.iv)
        ephemeral_pk = bytes.fromhex(cipher_object.ephemeralPK)
        cipher_text = bytes.fromhex(cipher_object.cipherText)
        mac = bytes.fromhex(cipher_object.mac)
    except ValueError as e:
        raise DecryptionError(f"Cipher object is not valid hex: {e}")

    try:
        ephemeral = load_public_key(cipher_object.ephemeralPK)
    except InvalidKeyError as e:
        raise DecryptionError(f"Bad ephemeral public key: {e}")
    encryption_key, mac_key = _shared_keys(key, ephemeral)

    try:
        _mac(mac_key, iv, ephemeral_pk, cipher_text).verify(mac)
    except InvalidSignature:
        raise DecryptionError("Decryption failed: MAC mismatch")

    try:
        decryptor = Cipher(algorithms.AES(encryption_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(cipher_text) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionError(f"Decryption failed: {e}")

    if cipher_object.wasString:
        return plaintext.decode("utf-8")
    return plaintext


def sign_ecdsa(private_key: str, content: Content) -> SignatureObject:
    """Sign SHA-256(content) and return the signature with the signer key"""
    key = load_private_key(private_key)
    signature = key.sign(_as_bytes(content), ec.ECDSA(hashes.SHA256()))
    return SignatureObject(
        signature=signature.hex(),
        publicKey=compressed_public_key(key.public_key()),
    )


def verify_ecdsa(content: Content, public_key: str, signature: str) -> bool:
    """Verify a hex DER signature over content; False on any mismatch"""
    try:
        key = load_public_key(public_key)
        key.verify(bytes.fromhex(signature), _as_bytes(content), ec.ECDSA(hashes.SHA256()))
        return True
    except (InvalidSignature, InvalidKeyError, ValueError):
        return False


class KeyPair:
    """secp256k1 key pair for an app bucket"""

    def __init__(self, private_key: Optional[str] = None):
        if private_key is None:
            private_key = make_ec_private_key()
        # validates the key
        self.public_key = get_public_key_from_private(private_key)
        self.private_key = private_key

    @property
    def address(self) -> str:
        return public_key_to_address(self.public_key)

    def sign(self, data: Content) -> SignatureObject:
        return sign_ecdsa(self.private_key, data)

    def verify(self, data: Content, signature: str) -> bool:
        return verify_ecdsa(data, self.public_key, signature)

    def encrypt(self, data: Content) -> CipherObject:
        return encrypt_ecies(self.public_key, data)

    def decrypt(self, cipher_object: CipherObject) -> Content:
        return decrypt_ecies(self.private_key, cipher_object)


class KeyManager:
    """Keeps an app private key in the OS keyring"""

    def __init__(self, app_domain: str):
        self.app_domain = app_domain
        self.service_name = "gaia-storage"
        self.key_name = f"app_private_key_{app_domain}"

    def save_keypair(self, keypair: KeyPair) -> bool:
        try:
            keyring.set_password(self.service_name, self.key_name, keypair.private_key)
            return True
        except KeyringError as e:
            logger.error("Error saving key for %s: %s", self.app_domain, e)
            return False

    def load_keypair(self) -> Optional[KeyPair]:
        try:
            private_key = keyring.get_password(self.service_name, self.key_name)
        except KeyringError as e:
            logger.error("Error loading key for %s: %s", self.app_domain, e)
            return None
        if not private_key:
            return None
        return KeyPair(private_key)

    def generate_and_save_keypair(self) -> KeyPair:
        keypair = KeyPair()
        self.save_keypair(keypair)
        return keypair

    def get_or_create_keypair(self) -> KeyPair:
        keypair = self.load_keypair()
        if keypair is None:
            keypair = self.generate_and_save_keypair()
        return keypair

    def delete_keypair(self) -> bool:
        try:
            keyring.delete_password(self.service_name, self.key_name)
            return True
        except KeyringError as e:
            logger.error("Error deleting key for %s: %s", self.app_domain, e)
            return False
