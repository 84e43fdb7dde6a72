"""
Encryption utilities for the supply admin client core.

Provides helper functions for snapshot encryption.
"""

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


def encrypt_text(text: str, cipher: Fernet) -> str:
    """
    Encrypt a string into a URL-safe Fernet token.

    Args:
        text: Plain text to encrypt
        cipher: Fernet instance

    Returns:
        Token as text
    """
    return cipher.encrypt(text.encode('utf-8')).decode('ascii')


def decrypt_text(token: str, cipher: Fernet) -> Optional[str]:
    """
    Decrypt a Fernet token produced by encrypt_text.

    Args:
        token: Token text
        cipher: Fernet instance

    Returns:
        Plain text, or None when the token is invalid for this key
    """
    try:
        return cipher.decrypt(token.encode('ascii')).decode('utf-8')
    except (InvalidToken, UnicodeError):
        return None
