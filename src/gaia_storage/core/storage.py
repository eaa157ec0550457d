"""
Gaia Storage Engine

This module implements reading, writing and listing files in an app's
Gaia bucket. Files may be encrypted, signed, or both; reads can verify
signatures against the bucket owner's address, including reads from
another user's bucket (multiplayer reads).
"""

from contextlib import aclosing
from typing import AsyncIterator, Callable, Optional, Union
import asyncio
import inspect
import json
import logging

from pydantic import ValidationError

from .codec import decrypt_content, encrypt_content
from .crypto import Content, sign_ecdsa, verify_ecdsa
from .envelopes import ListFilesPage, SignatureObject, SignedCipherObject
from .errors import (
    AddressResolutionError,
    FetchError,
    ListFilesError,
    MalformedEnvelopeError,
    MalformedListResponseError,
    SignatureVerificationError,
    TooManyPagesError,
    VerificationFailure,
)
from .hub import HubConnection, get_full_read_url, upload_to_gaia_hub
from .keys import extract_address, get_public_key_from_private, public_key_to_address
from .options import GetFileOptions, GetMode, PutFileOptions, PutMode
from .profiles import get_user_app_file_url

logger = logging.getLogger(__name__)

SIGNATURE_FILE_SUFFIX = ".sig"

# a hub that pages past this is treated as faulty
MAX_LIST_PAGES = 65536

TEXT_CONTENT_TYPES = ("application/json",)


def _is_text_content_type(content_type: Optional[str]) -> bool:
    if content_type is None:
        return True
    media_type = content_type.split(";")[0].strip().lower()
    return media_type.startswith("text") or media_type in TEXT_CONTENT_TYPES


def _signer_address(public_key: str) -> Optional[str]:
    try:
        return public_key_to_address(public_key)
    except ValueError:
        return None


class GaiaStorage:
    """
    Storage engine bound to a user session

    The session supplies the HTTP client, the app private key, the app
    domain and the lazily established hub connection.
    """

    def __init__(self, session):
        self.session = session

    @property
    def client(self):
        return self.session.http_client

    # Address resolution and fetching

    async def get_file_url(self, path: str, app: str, username: Optional[str] = None,
                           zone_file_lookup_url: Optional[str] = None) -> Optional[str]:
        """Read URL of path in our own bucket, or in username's bucket for app"""
        if username:
            return await get_user_app_file_url(
                self.client, path, username, app,
                zone_file_lookup_url or self.session.zone_file_lookup_url,
            )
        connection = await self.session.get_connection()
        return get_full_read_url(path, connection)

    async def resolve_trust_anchor(self, app: str, username: Optional[str] = None,
                                   zone_file_lookup_url: Optional[str] = None) -> Optional[str]:
        """
        Address that must have signed content read for (app, username)

        For our own bucket this is the connection's address. For another
        user it is taken from the bucket URL in their published profile;
        None when they have no bucket for app.
        """
        if not username:
            connection = await self.session.get_connection()
            return connection.address

        bucket_url = await self.get_file_url("", app, username, zone_file_lookup_url)
        if bucket_url is None:
            return None
        address = extract_address(bucket_url)
        if address is None:
            raise AddressResolutionError(f"Failed to parse gaia address from {bucket_url}")
        return address

    async def fetch_path(self, path: str, app: str, username: Optional[str] = None,
                         zone_file_lookup_url: Optional[str] = None,
                         force_text: bool = False) -> Optional[Content]:
        """Fetch a file, returning None if it (or the bucket) does not exist"""
        read_url = await self.get_file_url(path, app, username, zone_file_lookup_url)
        if not read_url:
            return None

        response = await self.client.get(read_url)
        if response.status_code == 404:
            logger.debug("get_file %s returned 404, returning None", path)
            return None
        if response.status_code >= 300:
            raise FetchError(response.status_code,
                             f"get_file {path} failed with HTTP status {response.status_code}")

        if force_text or _is_text_content_type(response.headers.get("content-type")):
            return response.text
        return response.content

    # Writes

    def _resolve_put_keys(self, options: PutFileOptions) -> tuple:
        private_key = None
        public_key = None
        if options.sign:
            if isinstance(options.sign, str):
                private_key = options.sign
            else:
                private_key = self.session.app_private_key
        if options.encrypt:
            if isinstance(options.encrypt, str):
                public_key = options.encrypt
            else:
                if not private_key:
                    private_key = self.session.app_private_key
                public_key = get_public_key_from_private(private_key)
        return private_key, public_key

    async def _upload(self, path: str, content: Content, content_type: str,
                      connection: Optional[HubConnection] = None) -> str:
        if connection is None:
            connection = await self.session.get_connection()
        return await upload_to_gaia_hub(self.client, path, content, connection, content_type)

    async def put_file(self, path: str, content: Content,
                       options: Optional[PutFileOptions] = None) -> str:
        """Store content at path and return its public URL"""
        options = options or PutFileOptions()
        if options.content_type:
            content_type = options.content_type
        elif isinstance(content, str):
            content_type = "text/plain"
        else:
            content_type = "application/octet-stream"

        private_key, public_key = self._resolve_put_keys(options)

        handlers = {
            PutMode.PLAIN: self._put_plain,
            PutMode.SIGNED: self._put_signed,
            PutMode.ENCRYPTED: self._put_encrypted,
            PutMode.SIGNED_ENCRYPTED: self._put_signed_encrypted,
        }
        return await handlers[options.mode](path, content, content_type, private_key, public_key)

    async def _put_plain(self, path, content, content_type, private_key, public_key) -> str:
        return await self._upload(path, content, content_type)

    async def _put_signed(self, path, content, content_type, private_key, public_key) -> str:
        signature = sign_ecdsa(private_key, content)
        connection = await self.session.get_connection()
        results = await asyncio.gather(
            self._upload(path, content, content_type, connection),
            self._upload(f"{path}{SIGNATURE_FILE_SUFFIX}", signature.to_json(),
                         "application/json", connection),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            if len(failures) < len(results):
                logger.error(
                    "Partial write of %s: content and %s%s are out of sync",
                    path, path, SIGNATURE_FILE_SUFFIX,
                )
            raise failures[0]
        return results[0]

    async def _put_encrypted(self, path, content, content_type, private_key, public_key) -> str:
        envelope = encrypt_content(content, public_key)
        return await self._upload(path, envelope, "application/json")

    async def _put_signed_encrypted(self, path, content, content_type,
                                    private_key, public_key) -> str:
        cipher_text = encrypt_content(content, public_key)
        signature = sign_ecdsa(private_key, cipher_text)
        envelope = SignedCipherObject(
            signature=signature.signature,
            publicKey=signature.publicKey,
            cipherText=cipher_text,
        )
        return await self._upload(path, envelope.to_json(), "application/json")

    # Reads

    async def get_file(self, path: str,
                       options: Optional[GetFileOptions] = None) -> Optional[Content]:
        """
        Read path, decrypting and/or verifying it as requested

        Returns None when the file does not exist.
        """
        options = options or GetFileOptions()
        app = options.app or self.session.app_domain

        handlers = {
            GetMode.RAW: self._get_raw,
            GetMode.DECRYPT: self._get_decrypted,
            GetMode.DECRYPT_VERIFY: self._get_signed_encrypted,
            GetMode.VERIFY: self._get_signed_unencrypted,
        }
        return await handlers[options.mode](path, app, options)

    async def _get_raw(self, path, app, options) -> Optional[Content]:
        return await self.fetch_path(path, app, options.username,
                                     options.zone_file_lookup_url, force_text=False)

    async def _fetch_envelope(self, path, app, options) -> Optional[str]:
        return await self.fetch_path(path, app, options.username,
                                     options.zone_file_lookup_url, force_text=True)

    async def _get_decrypted(self, path, app, options) -> Optional[Content]:
        contents = await self._fetch_envelope(path, app, options)
        if contents is None:
            return None
        return decrypt_content(contents, self.session.app_private_key)

    async def _get_signed_encrypted(self, path, app, options) -> Optional[Content]:
        contents = await self._fetch_envelope(path, app, options)
        if contents is None:
            return None

        address = await self.resolve_trust_anchor(app, options.username,
                                                  options.zone_file_lookup_url)
        if not address:
            raise SignatureVerificationError(
                path, VerificationFailure.MISSING_TRUST_ANCHOR,
                f"Failed to get gaia address for verification of: {path}",
            )

        try:
            data = json.loads(contents)
        except ValueError:
            raise MalformedEnvelopeError(
                "Failed to parse encrypted, signed content JSON. The content may not "
                "be encrypted. If using get_file, try passing verify=False, decrypt=False."
            )
        try:
            envelope = SignedCipherObject.model_validate(data)
        except ValidationError:
            raise SignatureVerificationError(
                path, VerificationFailure.INCOMPLETE_ENVELOPE,
                f"Failed to get signature verification data from file: {path}",
            )

        self._check_signer(path, envelope.publicKey, address)
        if not verify_ecdsa(envelope.cipherText, envelope.publicKey, envelope.signature):
            raise SignatureVerificationError(
                path, VerificationFailure.SIGNATURE_MISMATCH,
                f"Contents do not match ECDSA signature in file: {path}",
            )
        return decrypt_content(envelope.cipherText, self.session.app_private_key)

    async def _get_signed_unencrypted(self, path, app, options) -> Optional[Content]:
        signature_path = f"{path}{SIGNATURE_FILE_SUFFIX}"
        contents, signature_contents, address = await asyncio.gather(
            self.fetch_path(path, app, options.username,
                            options.zone_file_lookup_url, force_text=False),
            self.fetch_path(signature_path, app, options.username,
                            options.zone_file_lookup_url, force_text=True),
            self.resolve_trust_anchor(app, options.username, options.zone_file_lookup_url),
        )
        if contents is None:
            return None
        if not address:
            raise SignatureVerificationError(
                path, VerificationFailure.MISSING_TRUST_ANCHOR,
                f"Failed to get gaia address for verification of: {path}",
            )
        if not signature_contents or not isinstance(signature_contents, str):
            raise SignatureVerificationError(
                path, VerificationFailure.MISSING_SIGNATURE,
                f"Failed to obtain signature for file: {path} -- looked in {signature_path}",
            )

        try:
            data = json.loads(signature_contents)
        except ValueError:
            raise MalformedEnvelopeError(
                f"Failed to parse signature content JSON (path: {signature_path}). "
                "The content may be corrupted."
            )
        try:
            signature = SignatureObject.model_validate(data)
        except ValidationError:
            raise SignatureVerificationError(
                path, VerificationFailure.INCOMPLETE_ENVELOPE,
                f"Signature file {signature_path} is missing signature or publicKey",
            )

        self._check_signer(path, signature.publicKey, address)
        if not verify_ecdsa(contents, signature.publicKey, signature.signature):
            raise SignatureVerificationError(
                path, VerificationFailure.SIGNATURE_MISMATCH,
                f"Contents do not match ECDSA signature: path: {path}, "
                f"signature: {signature_path}",
            )
        return contents

    def _check_signer(self, path: str, public_key: str, address: str) -> None:
        signer_address = _signer_address(public_key)
        if signer_address != address:
            raise SignatureVerificationError(
                path, VerificationFailure.ADDRESS_MISMATCH,
                f"Signer pubkey address ({signer_address}) doesn't match gaia address ({address})",
            )

    # Listing

    async def _list_files_page(self, connection: HubConnection,
                               page: Optional[str]) -> ListFilesPage:
        response = await self.client.post(
            f"{connection.server}/list-files/{connection.address}",
            json={"page": page},
            headers={"Authorization": f"bearer {connection.token}"},
        )
        if not response.is_success:
            raise ListFilesError(response.status_code,
                                 f"list_files failed with HTTP status {response.status_code}")
        try:
            data = response.json()
        except ValueError:
            raise MalformedListResponseError("Bad list_files response: not JSON")
        if not isinstance(data, dict) or data.get("entries") is None:
            raise MalformedListResponseError("Bad list_files response: no entries")
        try:
            return ListFilesPage.model_validate(data)
        except ValidationError as e:
            raise MalformedListResponseError(f"Bad list_files response: {e}")

    async def iter_files(self, max_pages: int = MAX_LIST_PAGES) -> AsyncIterator[str]:
        """Yield every file name in the bucket, page by page"""
        connection = await self.session.get_connection()
        page = None
        iteration = 0
        while True:
            iteration += 1
            if iteration > max_pages:
                raise TooManyPagesError(f"Too many pages to list (more than {max_pages})")
            listing = await self._list_files_page(connection, page)
            for entry in listing.entries:
                yield entry
            if not (listing.page and listing.entries):
                return
            page = listing.page

    async def list_files(self, callback: Callable[[str], Union[bool, object]],
                         max_pages: int = MAX_LIST_PAGES) -> int:
        """
        Call callback on each file name until it returns a falsy value

        Returns the number of names passed to callback, including the one
        that stopped the listing. The callback may be a coroutine function.
        """
        count = 0
        async with aclosing(self.iter_files(max_pages)) as names:
            async for name in names:
                count += 1
                result = callback(name)
                if inspect.isawaitable(result):
                    result = await result
                if not result:
                    break
        return count
