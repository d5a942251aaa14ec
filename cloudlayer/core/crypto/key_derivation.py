"""Key derivation for the crypt overlay."""
from dataclasses import dataclass
from functools import lru_cache

from Crypto.Protocol.KDF import scrypt

# Used when no second password is configured
DEFAULT_SALT = bytes([
    0xa8, 0x0d, 0xf4, 0x3a, 0x8f, 0xbd, 0x03, 0x08,
    0xa7, 0xca, 0xb8, 0x3e, 0x58, 0x1f, 0x86, 0xb1,
])

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1

DATA_KEY_SIZE = 32
NAME_KEY_SIZE = 32
NAME_TWEAK_SIZE = 16
KEY_MATERIAL_SIZE = DATA_KEY_SIZE + NAME_KEY_SIZE + NAME_TWEAK_SIZE


@dataclass(frozen=True)
class DerivedKeys:
    """
    Key material derived from the crypt passwords.
    
    Attributes:
        data_key: Content encryption key
        name_key: File name encryption key
        name_tweak: EME tweak for file names
    """
    data_key: bytes
    name_key: bytes
    name_tweak: bytes
    
    @classmethod
    def from_bytes(cls, material: bytes) -> 'DerivedKeys':
        if len(material) != KEY_MATERIAL_SIZE:
            raise ValueError(f"Key material must be {KEY_MATERIAL_SIZE} bytes")
        return cls(
            data_key=material[:DATA_KEY_SIZE],
            name_key=material[DATA_KEY_SIZE:DATA_KEY_SIZE + NAME_KEY_SIZE],
            name_tweak=material[DATA_KEY_SIZE + NAME_KEY_SIZE:],
        )


@lru_cache(maxsize=32)
def derive_keys(password: str, salt: str = "") -> DerivedKeys:
    """
    Derive content and name keys with scrypt.
    
    Deterministic: the same (password, salt) pair always gives the same keys.
    
    Args:
        password: Main password in clear
        salt: Second password in clear; the built-in salt when empty
        
    Returns:
        DerivedKeys split from 80 bytes of scrypt output
    """
    salt_bytes = salt.encode("utf-8") if salt else DEFAULT_SALT
    material = scrypt(
        password.encode("utf-8"),
        salt_bytes,
        key_len=KEY_MATERIAL_SIZE,
        N=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return DerivedKeys.from_bytes(material)
