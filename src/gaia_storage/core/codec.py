"""Encode and decode encrypted content envelopes"""

import json

from pydantic import ValidationError

from .crypto import Content, decrypt_ecies, encrypt_ecies
from .envelopes import CipherObject
from .errors import DecryptionError, MalformedEnvelopeError


def encrypt_content(content: Content, public_key: str) -> str:
    """Encrypt content for public_key and return the envelope JSON text"""
    return encrypt_ecies(public_key, content).to_json()


def decrypt_content(envelope: str, private_key: str) -> Content:
    """Parse an envelope produced by encrypt_content and decrypt it.

    Raises MalformedEnvelopeError when the text is not JSON at all, which
    usually means the content was never encrypted.
    """
    try:
        data = json.loads(envelope)
    except ValueError:
        raise MalformedEnvelopeError(
            "Failed to parse encrypted content JSON. The content may not be "
            "encrypted. If using get_file, try passing decrypt=False."
        )
    try:
        cipher_object = CipherObject.model_validate(data)
    except ValidationError as e:
        raise DecryptionError(f"Encrypted content has the wrong shape: {e}")
    return decrypt_ecies(private_key, cipher_object)
