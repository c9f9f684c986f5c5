"""
Security helpers: request ids, secret fingerprints and encryption at rest
"""

import hashlib
import secrets
from cryptography.fernet import Fernet
from translatemd.core.logging import get_logger

logger = get_logger(__name__)


class SecurityManager:
    """Central security helpers"""

    def hash_api_key(self, api_key: str) -> str:
        """Short fingerprint of a secret, safe to put in logs"""
        return hashlib.sha256(api_key.encode()).hexdigest()[:16]

    def generate_request_id(self) -> str:
        return secrets.token_urlsafe(16)


# Global security manager instance
security_manager = SecurityManager()


class DataEncryption:
    """Encryption-at-Rest for saved conversations using Fernet."""

    def __init__(self, key: str):
        self.fernet = Fernet(key.encode())

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def encrypt_data(self, data: bytes) -> bytes:
        """Encrypts data."""
        return self.fernet.encrypt(data)

    def decrypt_data(self, encrypted_data: bytes) -> bytes:
        """Decrypts data."""
        return self.fernet.decrypt(encrypted_data)
