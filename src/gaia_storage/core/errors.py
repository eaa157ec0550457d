"""
Exception hierarchy for Gaia storage operations

Every failure the storage engine surfaces derives from GaiaStorageError.
A 404 on a read is not an error and never shows up here.
"""

from enum import Enum
from typing import Optional


class GaiaStorageError(Exception):
    """Base exception for storage operations"""
    pass


class InvalidStateError(GaiaStorageError):
    """Required configuration (app config, user data) is missing"""
    pass


class InvalidKeyError(GaiaStorageError):
    """Malformed or out-of-range key material"""
    pass


class MalformedEnvelopeError(GaiaStorageError):
    """Stored content could not be parsed as the expected JSON envelope"""
    pass


class DecryptionError(GaiaStorageError):
    """Envelope parsed but could not be decrypted"""
    pass


class AddressResolutionError(GaiaStorageError):
    """A bucket URL was found but no gaia address could be extracted"""
    pass


class ProfileLookupError(GaiaStorageError):
    """The profile of another user could not be fetched"""
    pass


class VerificationFailure(str, Enum):
    MISSING_SIGNATURE = "missing_signature"
    MISSING_TRUST_ANCHOR = "missing_trust_anchor"
    ADDRESS_MISMATCH = "address_mismatch"
    SIGNATURE_MISMATCH = "signature_mismatch"
    INCOMPLETE_ENVELOPE = "incomplete_envelope"


class SignatureVerificationError(GaiaStorageError):
    """Signed content failed one of the signer checks"""

    def __init__(self, path: str, reason: VerificationFailure, message: str):
        super().__init__(message)
        self.path = path
        self.reason = reason


class HTTPStatusError(GaiaStorageError):
    """A hub request returned an unexpected HTTP status"""

    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"HTTP status {status}")
        self.status = status


class FetchError(HTTPStatusError):
    pass


class UploadError(HTTPStatusError):
    pass


class ListFilesError(HTTPStatusError):
    pass


class MalformedListResponseError(GaiaStorageError):
    """The hub listing response had no entries array"""
    pass


class TooManyPagesError(GaiaStorageError):
    """The hub kept returning pages beyond the listing bound"""
    pass


class HubConnectionError(GaiaStorageError):
    """The hub's info endpoint could not be reached or returned an error"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
