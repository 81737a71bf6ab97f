# router_manager/encryption.py
"""
Encryption utilities for router credentials stored in the database
"""
import base64
import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings

logger = logging.getLogger(__name__)


def get_encryption_key():
    """Fernet key from ENCRYPTION_KEY, or one derived from SECRET_KEY"""
    key = settings.ENCRYPTION_KEY
    if not key:
        digest = hashlib.sha256(settings.SECRET_KEY.encode('utf-8')).digest()
        return base64.urlsafe_b64encode(digest)
    if isinstance(key, str):
        key = key.encode('utf-8')
    return key


class DataEncryption:
    """
    Usage:
        token = DataEncryption.encrypt("router-password")
        DataEncryption.decrypt(token) == "router-password"
    """

    @staticmethod
    def encrypt(value):
        if not value:
            return ''
        cipher = Fernet(get_encryption_key())
        return cipher.encrypt(value.encode('utf-8')).decode('utf-8')

    @staticmethod
    def decrypt(encrypted_value):
        if not encrypted_value:
            return ''
        cipher = Fernet(get_encryption_key())
        try:
            return cipher.decrypt(encrypted_value.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            logger.warning("Decryption failed: invalid token")
            return ''
