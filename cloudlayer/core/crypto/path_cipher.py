"""
Deterministic file name encryption.

Each path segment is PKCS7-padded to 16 bytes, encrypted with EME under the
name key and tweak, and written as lowercase unpadded base32hex. The same
name always maps to the same ciphertext so lookups stay stable.
"""
from Crypto.Util.Padding import pad, unpad

from ..exceptions import NameDecryptionError
from .eme import EMECipher, BLOCK_SIZE
from .utils import Base32HexEncoder


class PathCipher:
    """Encrypts and decrypts names and ``/``-separated paths."""
    
    def __init__(self, name_key: bytes, name_tweak: bytes):
        """
        Initialize the path cipher.
        
        Args:
            name_key: 32-byte AES key for names
            name_tweak: 16-byte EME tweak
        """
        if not name_key or not name_tweak:
            raise ValueError("name_key and name_tweak must be specified")
        self._eme = EMECipher(name_key)
        self._tweak = name_tweak
        self._encoder = Base32HexEncoder()
    
    def encrypt_name(self, name: str) -> str:
        """Encrypt one path segment; the empty segment stays empty."""
        if name == "":
            return ""
        padded = pad(name.encode("utf-8"), BLOCK_SIZE, style='pkcs7')
        return self._encoder.encode(self._eme.encrypt(self._tweak, padded))
    
    def decrypt_name(self, name: str) -> str:
        """
        Decrypt one path segment.
        
        Raises:
            NameDecryptionError: If ``name`` was not produced by this cipher
        """
        if name == "":
            return ""
        try:
            raw = self._encoder.decode(name)
            if not raw or len(raw) % BLOCK_SIZE != 0:
                raise ValueError("not a whole number of blocks")
            padded = self._eme.decrypt(self._tweak, raw)
            return unpad(padded, BLOCK_SIZE, style='pkcs7').decode("utf-8")
        except ValueError as e:
            raise NameDecryptionError(f"Failed to decrypt name {name!r}: {e}", name=name) from e
    
    def encrypt(self, path: str) -> str:
        """Encrypt every segment of ``path``, keeping the separators."""
        return "/".join(self.encrypt_name(part) for part in path.split("/"))
    
    def decrypt(self, path: str) -> str:
        """Decrypt every segment of ``path``, keeping the separators."""
        return "/".join(self.decrypt_name(part) for part in path.split("/"))
