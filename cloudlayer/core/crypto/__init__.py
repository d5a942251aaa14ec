"""Crypto module: name encryption, key derivation and password obscuring."""
from .utils import Base64Encoder, Base32HexEncoder
from .eme import EMECipher, mult_by_two
from .path_cipher import PathCipher
from .obscure import obscure, reveal
from .key_derivation import DerivedKeys, derive_keys, DEFAULT_SALT

__all__ = [
    'Base64Encoder',
    'Base32HexEncoder',
    'EMECipher',
    'mult_by_two',
    'PathCipher',
    'obscure',
    'reveal',
    'DerivedKeys',
    'derive_keys',
    'DEFAULT_SALT',
]
