"""
Reversible obscuring of passwords kept in configuration.

This is not encryption: the AES key is public. It only keeps passwords from
being readable at a glance.
"""
from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

from .utils import Base64Encoder

# Fixed key shared with every compatible implementation
OBSCURE_KEY = bytes([
    0x9c, 0x93, 0x5b, 0x48, 0x73, 0x0a, 0x55, 0x4d,
    0x6b, 0xfd, 0x7c, 0x63, 0xc8, 0x86, 0xa9, 0x2b,
    0xd3, 0x90, 0x19, 0x8e, 0xb8, 0x12, 0x8a, 0xfb,
    0xf4, 0xde, 0x16, 0x2b, 0x8b, 0x95, 0xf6, 0x38,
])

IV_SIZE = AES.block_size

_encoder = Base64Encoder()


def _crypt(data: bytes, iv: bytes) -> bytes:
    cipher = AES.new(OBSCURE_KEY, AES.MODE_CTR, nonce=b"", initial_value=iv)
    return cipher.encrypt(data)


def obscure(plaintext: str) -> str:
    """
    Obscure a password for storage in configuration.
    
    Args:
        plaintext: Password in clear
        
    Returns:
        URL-safe base64 of IV + AES-CTR ciphertext
    """
    iv = get_random_bytes(IV_SIZE)
    return _encoder.encode(iv + _crypt(plaintext.encode("utf-8"), iv))


def reveal(obscured: str) -> str:
    """
    Reverse ``obscure``.
    
    Raises:
        ValueError: If ``obscured`` is not valid obscured text
    """
    try:
        raw = _encoder.decode(obscured)
    except ValueError as e:
        raise ValueError(f"Base64 decode failed when revealing password - is it obscured?: {e}") from e
    if len(raw) < IV_SIZE:
        raise ValueError("Input too short when revealing password - is it obscured?")
    iv, ciphertext = raw[:IV_SIZE], raw[IV_SIZE:]
    try:
        return _crypt(ciphertext, iv).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError("Revealed password is not valid UTF-8 - is it obscured?") from e
