"""Crypto utilities."""
from .encoding import Base64Encoder, Base32HexEncoder

__all__ = [
    'Base64Encoder',
    'Base32HexEncoder',
]
