"""
App identity for Gaia storage

An AppConfig names the app (its origin is the bucket's app key) and the
hub it writes to; UserData carries the signed-in user's app private key.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..core.keys import get_public_key_from_private, public_key_to_address


class AppConfig(BaseModel):
    """Static configuration of the app using the storage bucket"""

    app_domain: str = Field(..., description="App origin, e.g. https://example.com")
    hub_url: str = Field("https://hub.blockstack.org", description="Default Gaia hub")
    zone_file_lookup_url: Optional[str] = Field(None, description="Profile lookup endpoint")

    @field_validator("app_domain")
    @classmethod
    def validate_app_domain(cls, v):
        if not v:
            raise ValueError("app_domain must not be empty")
        return v.rstrip("/")


class UserData(BaseModel):
    """Key material and hub of the signed-in user for this app"""

    app_private_key: str = Field(..., description="App-specific private key (hex)")
    hub_url: Optional[str] = Field(None, description="User's own Gaia hub, if any")
    username: Optional[str] = None

    @field_validator("app_private_key")
    @classmethod
    def validate_app_private_key(cls, v):
        # InvalidKeyError passes through pydantic unwrapped
        get_public_key_from_private(v)
        return v

    @property
    def address(self) -> str:
        return public_key_to_address(get_public_key_from_private(self.app_private_key))


__all__ = ['AppConfig', 'UserData']
