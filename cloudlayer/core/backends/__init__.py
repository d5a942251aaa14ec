"""Storage backends and overlays."""
from .protocols import Backend
from .base import BaseBackend
from .memory import MemoryBackend, MemoryStore, MemoryObject
from .local import LocalBackend
from .alias import AliasBackend
from .http import HttpBackend, parse_index
from .chunker import ChunkerBackend, ChunkerOptions, CompositeFileRecord, NameFormat
from .crypt import CryptBackend, CryptOptions, encode, decode
from .registry import BACKENDS, backend_class

__all__ = [
    'Backend',
    'BaseBackend',
    'MemoryBackend',
    'MemoryStore',
    'MemoryObject',
    'LocalBackend',
    'AliasBackend',
    'HttpBackend',
    'parse_index',
    'ChunkerBackend',
    'ChunkerOptions',
    'CompositeFileRecord',
    'NameFormat',
    'CryptBackend',
    'CryptOptions',
    'encode',
    'decode',
    'BACKENDS',
    'backend_class',
]
