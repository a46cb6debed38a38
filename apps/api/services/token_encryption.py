"""
Token Encryption

Strava access tokens are stored Fernet-encrypted on the athlete row. The
account service writes them; the plan pipeline only needs to read them
back, plus encrypt for fixtures and local tooling.

Key: settings.TOKEN_ENCRYPTION_KEY. Required in production; development
falls back to a per-process key (tokens then do not survive a restart).
"""

from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
import logging
from core.config import settings

logger = logging.getLogger(__name__)


class TokenEncryption:
    """Fernet wrapper for credential strings."""

    def __init__(self, key: Optional[str] = None):
        encryption_key = key or settings.TOKEN_ENCRYPTION_KEY

        if not encryption_key:
            if settings.ENVIRONMENT == "production":
                raise RuntimeError("TOKEN_ENCRYPTION_KEY must be set in production")
            logger.warning("TOKEN_ENCRYPTION_KEY not set. Using a temporary key (NOT FOR PRODUCTION)")
            encryption_key = Fernet.generate_key().decode()

        try:
            self.cipher = Fernet(encryption_key.encode())
        except ValueError as e:
            raise ValueError(f"Invalid encryption key format: {e}") from e

    def encrypt(self, plaintext: str) -> str:
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> Optional[str]:
        """Plain token, or None if the ciphertext was not made with this key."""
        try:
            return self.cipher.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed: invalid token or wrong key")
            return None


_token_encryption: Optional[TokenEncryption] = None


def get_token_encryption() -> TokenEncryption:
    """Get or create global token encryption instance."""
    global _token_encryption
    if _token_encryption is None:
        _token_encryption = TokenEncryption()
    return _token_encryption


def encrypt_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return get_token_encryption().encrypt(token)


def decrypt_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return get_token_encryption().decrypt(token)
