"""
Gaia Storage Core Module

This module contains the storage engine implementation including:
- Key and address derivation (secp256k1, Base58Check)
- ECIES encryption and ECDSA signatures
- Wire envelopes and the content codec
- Hub connection, profile lookup and the put/get/list engine
"""

from .crypto import KeyPair, KeyManager, sign_ecdsa, verify_ecdsa, encrypt_ecies, decrypt_ecies
from .codec import encrypt_content, decrypt_content
from .hub import HubConnection
from .options import GetFileOptions, GetMode, PutFileOptions, PutMode
from .storage import GaiaStorage

__all__ = [
    'KeyPair',
    'KeyManager',
    'sign_ecdsa',
    'verify_ecdsa',
    'encrypt_ecies',
    'decrypt_ecies',
    'encrypt_content',
    'decrypt_content',
    'HubConnection',
    'GetFileOptions',
    'GetMode',
    'PutFileOptions',
    'PutMode',
    'GaiaStorage'
]
