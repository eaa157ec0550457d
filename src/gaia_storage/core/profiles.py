"""Profile lookup for multiplayer reads"""

from typing import Optional
import logging
import re

import httpx

from .errors import ProfileLookupError

logger = logging.getLogger(__name__)

DEFAULT_ZONE_FILE_LOOKUP_URL = "https://core.blockstack.org"

# insert a trailing slash before any query string or fragment
_BUCKET_SLASH = re.compile(r"/?(\?|#|$)")


async def lookup_profile(client: httpx.AsyncClient, username: str,
                         zone_file_lookup_url: Optional[str] = None) -> dict:
    """Fetch the public profile published by username"""
    lookup_url = (zone_file_lookup_url or DEFAULT_ZONE_FILE_LOOKUP_URL).rstrip("/")
    response = await client.get(f"{lookup_url}/v1/users/{username}")
    if not response.is_success:
        raise ProfileLookupError(
            f"Profile lookup for {username} failed with HTTP status {response.status_code}"
        )
    try:
        profile = response.json()[username]["profile"]
    except (KeyError, TypeError, ValueError):
        raise ProfileLookupError(f"No profile found for {username}")
    if not isinstance(profile, dict):
        raise ProfileLookupError(f"Profile of {username} is not an object")
    return profile


def normalize_bucket_url(bucket_url: str) -> str:
    return _BUCKET_SLASH.sub(r"/\1", bucket_url, count=1)


async def get_user_app_file_url(client: httpx.AsyncClient, path: str, username: str,
                                app_origin: str,
                                zone_file_lookup_url: Optional[str] = None) -> Optional[str]:
    """Public read URL of path in username's bucket for app_origin.

    Returns None when the user has no bucket registered for the app.
    """
    profile = await lookup_profile(client, username, zone_file_lookup_url)
    apps = profile.get("apps") or {}
    bucket_url = apps.get(app_origin)
    if not bucket_url:
        logger.debug("%s has no bucket registered for %s", username, app_origin)
        return None
    return f"{normalize_bucket_url(bucket_url)}{path}"
