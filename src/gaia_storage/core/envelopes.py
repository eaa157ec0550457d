"""
Wire envelopes for Gaia storage

These models describe the JSON objects stored on (or returned by) the hub:
- CipherObject: ECIES output, opaque to the storage engine
- SignatureObject: detached signature stored at ``path + ".sig"``
- SignedCipherObject: combined signed+encrypted envelope
- ListFilesPage: one page of a bucket listing
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class CipherObject(BaseModel):
    """ECIES ciphertext with the data needed to decrypt and authenticate it"""

    iv: str = Field(..., description="AES-CBC initialisation vector (hex)")
    ephemeralPK: str = Field(..., description="Compressed ephemeral public key (hex)")
    cipherText: str = Field(..., description="AES-256-CBC ciphertext (hex)")
    mac: str = Field(..., description="HMAC-SHA256 over iv, ephemeral key and ciphertext (hex)")
    wasString: bool = Field(..., description="Whether the plaintext was text")

    def to_json(self) -> str:
        return self.model_dump_json()


class SignatureObject(BaseModel):
    """Detached ECDSA signature and the signer's public key"""

    signature: str = Field(..., description="DER-encoded ECDSA signature (hex)")
    publicKey: str = Field(..., description="Compressed signer public key (hex)")

    def to_json(self) -> str:
        return self.model_dump_json()


class SignedCipherObject(BaseModel):
    """
    Signed and encrypted envelope

    ``cipherText`` holds the JSON text of a CipherObject. The signature
    covers exactly those bytes, never the plaintext.
    """

    signature: str = Field(..., description="Signature over cipherText (hex)")
    publicKey: str = Field(..., description="Compressed signer public key (hex)")
    cipherText: str = Field(..., description="Serialized CipherObject")

    @field_validator("signature", "publicKey", "cipherText")
    @classmethod
    def validate_not_empty(cls, v):
        if not v:
            raise ValueError("Envelope field must not be empty")
        return v

    def to_json(self) -> str:
        return self.model_dump_json()


class ListFilesPage(BaseModel):
    """A single page returned by the hub's list-files endpoint"""

    entries: List[str]
    page: Optional[str] = None
