"""Fernet encryption for the broker wallet key stored in the credential table."""

from cryptography.fernet import Fernet, InvalidToken

from agentdesk.config import settings

_cipher: Fernet | None = None


def _cipher_for_settings() -> Fernet:
    global _cipher
    if _cipher is None:
        key = settings.encryption_key
        if not key:
            raise RuntimeError(
                "AD_ENCRYPTION_KEY not set. Generate one with: "
                "python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
        _cipher = Fernet(key.encode())
    return _cipher


def reset_cipher():
    """Forget the cached cipher so a changed AD_ENCRYPTION_KEY takes effect."""
    global _cipher
    _cipher = None


def encrypt_secret(plaintext: str) -> str:
    return _cipher_for_settings().encrypt(plaintext.encode()).decode()


def decrypt_secret(ciphertext: str) -> str:
    """Decrypt a stored wallet key. Raises ValueError if the key does not match."""
    try:
        return _cipher_for_settings().decrypt(ciphertext.encode()).decode()
    except InvalidToken as e:
        raise ValueError("Stored credential cannot be decrypted with AD_ENCRYPTION_KEY") from e


def mask_address(address: str) -> str:
    """Shorten a wallet address for display: 0x6a72...33ee."""
    if not address:
        return "NOT SET"
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
