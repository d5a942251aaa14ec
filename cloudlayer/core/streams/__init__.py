"""Streaming transforms: fixed-size chunking and secretbox encryption."""
from .chunker import ByteChunker, rechunk
from .secretbox import (
    EncryptionStream,
    DecryptionStream,
    increment_nonce,
    plain_size_from_cipher_size,
    cipher_size_from_plain_size,
    encrypt_bytes,
    decrypt_bytes,
    DEFAULT_BLOCK_SIZE,
    DEFAULT_MAGIC,
    NONCE_SIZE,
    TAG_SIZE,
    KEY_SIZE,
)

__all__ = [
    'ByteChunker',
    'rechunk',
    'EncryptionStream',
    'DecryptionStream',
    'increment_nonce',
    'plain_size_from_cipher_size',
    'cipher_size_from_plain_size',
    'encrypt_bytes',
    'decrypt_bytes',
    'DEFAULT_BLOCK_SIZE',
    'DEFAULT_MAGIC',
    'NONCE_SIZE',
    'TAG_SIZE',
    'KEY_SIZE',
]
