"""
Gaia Storage Client Module

This module contains the session object that owns the user's app key,
the HTTP client and the cached hub connection.
"""

from .client import UserSession

__all__ = ['UserSession']
