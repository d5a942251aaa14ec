"""Encoding utilities."""
import base64
import binascii


class Base64Encoder:
    """Base64 URL-safe encoder/decoder."""
    
    @staticmethod
    def encode(data: bytes) -> str:
        """Encodes bytes to Base64 URL-safe without padding."""
        return base64.urlsafe_b64encode(data).decode().rstrip('=')

    @staticmethod
    def decode(data: str) -> bytes:
        """Decodes Base64 (URL-safe or standard, with or without padding)."""
        data = data.strip().rstrip('=').replace('+', '-').replace('/', '_')
        padding = len(data) % 4
        if padding:
            data += '=' * (4 - padding)
        return base64.urlsafe_b64decode(data)


class Base32HexEncoder:
    """
    Lowercase RFC 4648 "extended hex" base32 without padding.
    
    Used for encrypted file names: the alphabet sorts like the raw bytes and
    survives case-insensitive file systems.
    """
    
    @staticmethod
    def encode(data: bytes) -> str:
        """Encodes bytes to unpadded lowercase base32hex."""
        return base64.b32hexencode(data).decode().rstrip('=').lower()
    
    @staticmethod
    def decode(data: str) -> bytes:
        """
        Decodes unpadded base32hex (either case).
        
        Raises:
            ValueError: If ``data`` is not valid base32hex
        """
        if data.endswith('='):
            raise ValueError("Unexpected padding in base32hex name")
        padding = -len(data) % 8
        try:
            return base64.b32hexdecode(data.upper() + '=' * padding)
        except binascii.Error as e:
            raise ValueError(f"Invalid base32hex: {e}") from e
