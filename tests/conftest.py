import json
from typing import Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from gaia_storage.auth import AppConfig, UserData
from gaia_storage.client.client import UserSession
from gaia_storage.core.keys import get_public_key_from_private, public_key_to_address

HUB_URL = "https://hub.example.com"
READ_URL_PREFIX = "https://gaia.example.com/hub/"
LOOKUP_URL = "https://core.example.com"
APP_DOMAIN = "https://app.example.com"

ALICE_KEY = "e3e1f1b0c8a5a2d49c4b8f1d6c2a7e9b3f5d7c1a2b4e6f8091a3c5e7f9b1d3a5"
BOB_KEY = "5c2e4a6b8d0f1e3c5a7b9d1f3e5c7a9b1d3f5e7c9a1b3d5f7e9c1a3b5d7f9e1c"
MALLORY_KEY = "1d3f5b7a9c2e4f6a8b0c1d2e3f4a5b6c7d8e9f0a1b2c3d4e5f6a7b8c9d0e1f2a"


def address_of(private_key: str) -> str:
    return public_key_to_address(get_public_key_from_private(private_key))


class FakeHub:
    """In-memory Gaia hub, read host and profile service behind one MockTransport"""

    def __init__(self):
        self.files: Dict[Tuple[str, str], Tuple[bytes, Optional[str]]] = {}
        self.profiles: Dict[str, dict] = {}
        self.list_pages: Optional[Dict[Optional[str], dict]] = None
        self.list_status = 200
        self.read_status: Optional[int] = None
        self.hub_info_status = 200
        self.unreachable: set = set()
        self.fail_uploads: set = set()
        self.requests: List[httpx.Request] = []

    def count(self, path_prefix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.startswith(path_prefix))

    def stored(self, address: str, path: str) -> bytes:
        return self.files[(address, path)][0]

    def stored_json(self, address: str, path: str) -> dict:
        return json.loads(self.stored(address, path))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path
        if host in self.unreachable:
            raise httpx.ConnectError(f"Cannot connect to {host}", request=request)

        if host == "hub.example.com":
            if path == "/hub_info":
                if self.hub_info_status != 200:
                    return httpx.Response(self.hub_info_status)
                return httpx.Response(200, json={
                    "challenge_text": '["gaiahub","0","hub","blockstack_storage_please_sign"]',
                    "read_url_prefix": READ_URL_PREFIX,
                    "latest_auth_version": "v1",
                })
            if path.startswith("/store/"):
                address, file_path = path[len("/store/"):].split("/", 1)
                if file_path in self.fail_uploads:
                    return httpx.Response(503)
                if not request.headers.get("authorization", "").startswith("bearer v1:"):
                    return httpx.Response(401)
                self.files[(address, file_path)] = (
                    request.content, request.headers.get("content-type"))
                return httpx.Response(200, json={
                    "publicURL": f"{READ_URL_PREFIX}{address}/{file_path}"})
            if path.startswith("/list-files/"):
                return self._list_files(request, path[len("/list-files/"):])

        if host == "gaia.example.com" and path.startswith("/hub/"):
            if self.read_status is not None:
                return httpx.Response(self.read_status)
            address, file_path = path[len("/hub/"):].split("/", 1)
            if (address, file_path) not in self.files:
                return httpx.Response(404)
            content, content_type = self.files[(address, file_path)]
            headers = {"content-type": content_type} if content_type else {}
            return httpx.Response(200, content=content, headers=headers)

        if host == "core.example.com" and path.startswith("/v1/users/"):
            username = path[len("/v1/users/"):]
            if username not in self.profiles:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json={username: {"profile": self.profiles[username]}})

        return httpx.Response(404)

    def _list_files(self, request: httpx.Request, address: str) -> httpx.Response:
        if self.list_status != 200:
            return httpx.Response(self.list_status)
        page = json.loads(request.content)["page"]
        if self.list_pages is not None:
            return httpx.Response(200, json=self.list_pages[page])
        names = sorted(p for (a, p) in self.files if a == address)
        return httpx.Response(200, json={"entries": names, "page": None})


@pytest.fixture
def hub() -> FakeHub:
    return FakeHub()


@pytest.fixture
def make_session(hub):
    def factory(private_key: Optional[str] = ALICE_KEY,
                app_domain: Optional[str] = APP_DOMAIN) -> UserSession:
        client = httpx.AsyncClient(transport=httpx.MockTransport(hub.handler))
        app_config = AppConfig(app_domain=app_domain, hub_url=HUB_URL,
                               zone_file_lookup_url=LOOKUP_URL) if app_domain else None
        user_data = UserData(app_private_key=private_key) if private_key else None
        session = UserSession(app_config, user_data, http_client=client)
        return session

    yield factory


@pytest_asyncio.fixture
async def alice(make_session):
    session = make_session(ALICE_KEY)
    yield session
    await session.http_client.aclose()


@pytest_asyncio.fixture
async def bob(make_session, hub):
    session = make_session(BOB_KEY)
    hub.profiles["bob.id"] = {
        "apps": {APP_DOMAIN: f"{READ_URL_PREFIX}{address_of(BOB_KEY)}"},
    }
    yield session
    await session.http_client.aclose()
