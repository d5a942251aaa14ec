"""Crypt overlay: encrypts names and content of a wrapped remote."""
from .backend import CryptBackend, CryptOptions, encode, decode

__all__ = [
    'CryptBackend',
    'CryptOptions',
    'encode',
    'decode',
]
