"""
Per-segment encryption for hidden payloads

Each segment is sealed with AES-GCM under a key derived from the carrier
password with Scrypt. The salt and nonce travel with the ciphertext, so a
segment token is self-contained:

    base64( salt[16] || nonce[12] || ciphertext || tag[16] )

The standard base64 alphabet never contains '|' or NUL, which keeps tokens
safe to join with the frame delimiter.
"""

import base64
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from src.utility.constants_manager import ConstantsManager
from .errors import EmptyKeyError


SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
MIN_TOKEN_BYTES = SALT_SIZE + NONCE_SIZE + TAG_SIZE


def derive_key(password: str, salt: bytes, cost: Optional[int] = None) -> bytes:
    """
    Derive encryption key from password using Scrypt KDF

    Args:
        password: User password
        salt: Random salt for key derivation
        cost: Scrypt CPU/memory cost (n); defaults to STEGO_SCRYPT_COST

    Returns:
        Derived 256-bit key
    """
    n = cost or ConstantsManager().get_scrypt_cost()
    kdf = Scrypt(salt=salt, length=32, n=n, r=8, p=1)
    return kdf.derive(password.encode("utf-8"))


def encrypt(plaintext: bytes, key: str, cost: Optional[int] = None) -> str:
    """
    Encrypt one segment plaintext into a delimiter-safe token

    Args:
        plaintext: Segment bytes (type byte + body)
        key: Carrier password
        cost: Optional Scrypt cost override

    Returns:
        ASCII base64 token

    Raises:
        EmptyKeyError: If key is empty
    """
    if not key:
        raise EmptyKeyError("Encryption key is required")
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    aesgcm = AESGCM(derive_key(key, salt, cost))
    sealed = aesgcm.encrypt(nonce, plaintext, None)
    return base64.b64encode(salt + nonce + sealed).decode("ascii")


def decrypt(token: str, key: str, cost: Optional[int] = None) -> Tuple[bytes, bool]:
    """
    Decrypt a segment token

    Args:
        token: Token produced by encrypt()
        key: Carrier password
        cost: Optional Scrypt cost override

    Returns:
        Tuple of (plaintext, ok). ok is False when the token is malformed
        or the authentication tag does not verify (wrong key or tampering).

    Raises:
        EmptyKeyError: If key is empty
    """
    if not key:
        raise EmptyKeyError("Decryption key is required")
    try:
        raw = base64.b64decode(token, validate=True)
    except ValueError:
        return b"", False
    if len(raw) < MIN_TOKEN_BYTES:
        return b"", False

    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    sealed = raw[SALT_SIZE + NONCE_SIZE:]
    aesgcm = AESGCM(derive_key(key, salt, cost))
    try:
        return aesgcm.decrypt(nonce, sealed, None), True
    except InvalidTag:
        return b"", False
