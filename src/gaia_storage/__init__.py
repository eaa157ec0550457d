"""
Gaia Storage - app bucket client

Reads, writes and lists files in a per-user, per-app storage bucket on a
Gaia hub. Files can be encrypted, signed, or both, and reads can verify
signatures against the bucket owner's address, including reads from
another user's bucket.

Usage:
    from gaia_storage import UserSession, AppConfig, UserData

    async with UserSession(AppConfig(app_domain="https://example.com"),
                           UserData(app_private_key=key)) as session:
        await session.put_file("notes.txt", "Hello", sign=True)
        text = await session.get_file("notes.txt", verify=True)
"""

__version__ = "0.1.0"

from .core import GetFileOptions, HubConnection, KeyManager, KeyPair, PutFileOptions
from .client.client import UserSession
from .auth import AppConfig, UserData

__all__ = [
    'AppConfig',
    'GetFileOptions',
    'HubConnection',
    'KeyManager',
    'KeyPair',
    'PutFileOptions',
    'UserData',
    'UserSession'
]
