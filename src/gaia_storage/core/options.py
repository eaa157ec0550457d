"""
Put/Get option sets and the storage modes they select

Each combination of flags maps to exactly one mode, and the storage
engine has one handler per mode.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class PutMode(str, Enum):
    PLAIN = "plain"
    SIGNED = "signed"
    ENCRYPTED = "encrypted"
    SIGNED_ENCRYPTED = "signed_encrypted"


class GetMode(str, Enum):
    RAW = "raw"
    DECRYPT = "decrypt"
    DECRYPT_VERIFY = "decrypt_verify"
    VERIFY = "verify"


class PutFileOptions(BaseModel):
    """
    Options for put_file

    ``encrypt`` may be True (use the app key) or an explicit public key hex;
    ``sign`` may be True (use the app key) or an explicit private key hex.
    """

    encrypt: Union[bool, str] = Field(True, description="Encrypt, optionally with this public key")
    sign: Union[bool, str] = Field(False, description="Sign, optionally with this private key")
    content_type: Optional[str] = Field(None, description="Override the inferred content type")

    @property
    def mode(self) -> PutMode:
        if self.encrypt and self.sign:
            return PutMode.SIGNED_ENCRYPTED
        if self.encrypt:
            return PutMode.ENCRYPTED
        if self.sign:
            return PutMode.SIGNED
        return PutMode.PLAIN


class GetFileOptions(BaseModel):
    """Options for get_file; username/app select another user's bucket"""

    decrypt: bool = True
    verify: bool = False
    username: Optional[str] = None
    app: Optional[str] = None
    zone_file_lookup_url: Optional[str] = None

    @property
    def mode(self) -> GetMode:
        if self.decrypt and self.verify:
            return GetMode.DECRYPT_VERIFY
        if self.decrypt:
            return GetMode.DECRYPT
        if self.verify:
            return GetMode.VERIFY
        return GetMode.RAW
