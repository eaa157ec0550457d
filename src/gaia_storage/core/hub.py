"""
Gaia hub connection

Negotiates a write connection with a hub and implements the read URL and
upload conventions the storage engine relies on.
"""

from typing import Union
import logging

import httpx
import jwt
from pydantic import BaseModel, ConfigDict, Field

from .errors import HubConnectionError, UploadError
from .keys import get_entropy, get_public_key_from_private, load_private_key, public_key_to_address

logger = logging.getLogger(__name__)


class HubConnection(BaseModel):
    """Write credentials for one bucket on a hub"""

    model_config = ConfigDict(frozen=True)

    url_prefix: str = Field(..., description="Public read URL prefix of the hub")
    address: str = Field(..., description="Gaia address owning the bucket")
    token: str = Field(..., description="Bearer token for writes and listing")
    server: str = Field(..., description="Hub write endpoint")


async def get_hub_info(client: httpx.AsyncClient, hub_url: str) -> dict:
    url = f"{hub_url.rstrip('/')}/hub_info"
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise HubConnectionError(f"Failed to reach {url}: {e}") from e
    if not response.is_success:
        raise HubConnectionError(
            f"{url} failed with HTTP status {response.status_code}", response.status_code
        )
    return response.json()


def make_v1_auth_token(hub_info: dict, private_key: str, hub_url: str) -> str:
    """Build a v1 hub auth token: an ES256K JWT over the hub's challenge"""
    payload = {
        "gaiaChallenge": hub_info["challenge_text"],
        "hubUrl": hub_url,
        "iss": get_public_key_from_private(private_key),
        "salt": get_entropy(16).hex(),
    }
    token = jwt.encode(payload, load_private_key(private_key), algorithm="ES256K")
    return f"v1:{token}"


async def connect_to_gaia_hub(client: httpx.AsyncClient, hub_url: str,
                              private_key: str) -> HubConnection:
    """Fetch hub info and build a HubConnection for the key's bucket"""
    logger.info("Connecting to Gaia hub %s", hub_url)
    hub_info = await get_hub_info(client, hub_url)
    address = public_key_to_address(get_public_key_from_private(private_key))
    return HubConnection(
        url_prefix=hub_info["read_url_prefix"],
        address=address,
        token=make_v1_auth_token(hub_info, private_key, hub_url),
        server=hub_url.rstrip("/"),
    )


def get_full_read_url(path: str, connection: HubConnection) -> str:
    return f"{connection.url_prefix}{connection.address}/{path}"


async def get_bucket_url(client: httpx.AsyncClient, hub_url: str, private_key: str) -> str:
    """Public read URL of the bucket owned by private_key on hub_url"""
    hub_info = await get_hub_info(client, hub_url)
    address = public_key_to_address(get_public_key_from_private(private_key))
    return f"{hub_info['read_url_prefix']}{address}/"


async def upload_to_gaia_hub(client: httpx.AsyncClient, path: str,
                             content: Union[str, bytes], connection: HubConnection,
                             content_type: str = "application/octet-stream") -> str:
    """Store content at path in the connection's bucket, returning its public URL"""
    if isinstance(content, str):
        content = content.encode("utf-8")
    response = await client.post(
        f"{connection.server}/store/{connection.address}/{path}",
        content=content,
        headers={
            "Content-Type": content_type,
            "Authorization": f"bearer {connection.token}",
        },
    )
    if not response.is_success:
        raise UploadError(response.status_code,
                          f"Upload of {path} failed with HTTP status {response.status_code}")
    public_url = response.json()["publicURL"]
    logger.info("Uploaded %s (%s)", path, content_type)
    return public_url
