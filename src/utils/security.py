"""
Symmetric encryption, hashing, random tokens and session JWTs.

Encryption uses Fernet with a key derived from ENCRYPTION_KEY
(sha256 -> urlsafe base64), so any passphrase length works.
"""

import base64
import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import jwt
from cryptography.fernet import Fernet, InvalidToken

from src.config.settings import Config

JWT_ALGORITHM = "HS256"
DEFAULT_JWT_EXPIRY = timedelta(minutes=30)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$", re.IGNORECASE)
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


class EncryptionError(Exception):
    """Raised when data cannot be encrypted or decrypted."""


class TokenVerificationError(Exception):
    """Raised when a JWT is malformed, expired or signed with another key."""


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """Accept a timedelta, seconds, or a short string like "30m", "1h", "7d"."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


class SecurityManager:
    def __init__(
        self,
        jwt_secret: Optional[str] = None,
        encryption_key: Optional[str] = None,
    ):
        self._jwt_secret = jwt_secret if jwt_secret is not None else Config.JWT_SECRET
        key_material = (
            encryption_key if encryption_key is not None else Config.ENCRYPTION_KEY
        )
        self._cipher: Optional[Fernet] = None
        if key_material:
            self._cipher = Fernet(self._derive_cipher_key(key_material))

    @staticmethod
    def _derive_cipher_key(key_material: str) -> bytes:
        return base64.urlsafe_b64encode(hashlib.sha256(key_material.encode()).digest())

    @property
    def encryption_enabled(self) -> bool:
        return self._cipher is not None

    # ==================== ENCRYPTION ====================

    def encrypt(self, data: str) -> str:
        if self._cipher is None:
            raise EncryptionError("Encryption key not configured")
        try:
            return self._cipher.encrypt(data.encode("utf-8")).decode("ascii")
        except (TypeError, ValueError) as e:
            raise EncryptionError("Encryption failed") from e

    def decrypt(self, encrypted_data: str) -> str:
        if self._cipher is None:
            raise EncryptionError("Encryption key not configured")
        try:
            return self._cipher.decrypt(encrypted_data.encode("ascii")).decode("utf-8")
        except (InvalidToken, TypeError, ValueError) as e:
            raise EncryptionError("Decryption failed") from e

    # ==================== HASHING / TOKENS ====================

    @staticmethod
    def hash(data: str) -> str:
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

    @staticmethod
    def generate_token(length: int = 32) -> str:
        """Return `length` random bytes as hex (2 * length characters)."""
        return secrets.token_hex(length)

    # ==================== JWT ====================

    def create_jwt(
        self,
        payload: dict[str, Any],
        expires_in: Union[str, int, timedelta] = DEFAULT_JWT_EXPIRY,
    ) -> str:
        if not self._jwt_secret:
            raise TokenVerificationError("JWT secret not configured")
        now = datetime.now(timezone.utc)
        claims = dict(payload)
        claims["iat"] = now
        claims["exp"] = now + parse_duration(expires_in)
        return jwt.encode(claims, self._jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_jwt(self, token: str) -> dict[str, Any]:
        if not self._jwt_secret:
            raise TokenVerificationError("JWT secret not configured")
        try:
            return jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["iat", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise TokenVerificationError("JWT verification failed") from e
