"""
User session for Gaia storage

The session owns the app identity, the HTTP client and the hub
connection. The connection is established on first use and then reused
for the lifetime of the session.
"""

from typing import Awaitable, Callable, Optional
import asyncio
import logging

import httpx

from ..auth import AppConfig, UserData
from ..config import get_settings
from ..core.codec import decrypt_content, encrypt_content
from ..core.crypto import Content
from ..core.errors import InvalidStateError
from ..core.hub import HubConnection, connect_to_gaia_hub, get_bucket_url
from ..core.keys import get_public_key_from_private
from ..core.options import GetFileOptions, PutFileOptions
from ..core.storage import MAX_LIST_PAGES, GaiaStorage

logger = logging.getLogger(__name__)

Connector = Callable[[httpx.AsyncClient, str, str], Awaitable[HubConnection]]


class UserSession:
    """Session of one signed-in user of one app"""

    def __init__(self, app_config: Optional[AppConfig] = None,
                 user_data: Optional[UserData] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 connector: Connector = connect_to_gaia_hub):
        self.app_config = app_config
        self.user_data = user_data
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=get_settings().HTTP_TIMEOUT)
        self._connector = connector
        self._connection: Optional[HubConnection] = None
        self._connection_lock = asyncio.Lock()
        self.storage = GaiaStorage(self)

    async def __aenter__(self) -> "UserSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    # Identity

    def load_user_data(self) -> UserData:
        if self.user_data is None:
            raise InvalidStateError("No user data: the user is not signed in")
        return self.user_data

    @property
    def app_private_key(self) -> str:
        return self.load_user_data().app_private_key

    @property
    def app_domain(self) -> str:
        if self.app_config is None:
            raise InvalidStateError("Missing AppConfig")
        return self.app_config.app_domain

    @property
    def hub_url(self) -> str:
        user_data = self.load_user_data()
        if user_data.hub_url:
            return user_data.hub_url
        if self.app_config is not None:
            return self.app_config.hub_url
        return get_settings().HUB_URL

    @property
    def zone_file_lookup_url(self) -> Optional[str]:
        if self.app_config is not None and self.app_config.zone_file_lookup_url:
            return self.app_config.zone_file_lookup_url
        return get_settings().ZONE_FILE_LOOKUP_URL

    # Hub connection

    async def get_connection(self) -> HubConnection:
        """Return the hub connection, connecting once on first use"""
        if self._connection is not None:
            return self._connection
        async with self._connection_lock:
            if self._connection is None:
                self._connection = await self._connector(
                    self.http_client, self.hub_url, self.app_private_key
                )
                logger.debug("Hub connection established for %s", self._connection.address)
        return self._connection

    async def get_app_bucket_url(self, hub_url: Optional[str] = None) -> str:
        return await get_bucket_url(self.http_client, hub_url or self.hub_url,
                                    self.app_private_key)

    # Content

    def encrypt_content(self, content: Content, public_key: Optional[str] = None) -> str:
        if not public_key:
            public_key = get_public_key_from_private(self.app_private_key)
        return encrypt_content(content, public_key)

    def decrypt_content(self, content: str, private_key: Optional[str] = None) -> Content:
        return decrypt_content(content, private_key or self.app_private_key)

    async def put_file(self, path: str, content: Content,
                       options: Optional[PutFileOptions] = None, **kwargs) -> str:
        if options is None:
            options = PutFileOptions(**kwargs)
        return await self.storage.put_file(path, content, options)

    async def get_file(self, path: str, options: Optional[GetFileOptions] = None,
                       **kwargs) -> Optional[Content]:
        if options is None:
            options = GetFileOptions(**kwargs)
        return await self.storage.get_file(path, options)

    async def list_files(self, callback: Callable[[str], object],
                         max_pages: int = MAX_LIST_PAGES) -> int:
        return await self.storage.list_files(callback, max_pages)

    def iter_files(self, max_pages: int = MAX_LIST_PAGES):
        return self.storage.iter_files(max_pages)
