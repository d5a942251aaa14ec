"""
Authenticated streaming encryption (XSalsa20-Poly1305 secretbox).

Stream layout::

    MAGIC | NONCE (24) | BLOCK | BLOCK | ... | BLOCK

Every block is a NaCl secretbox of up to ``block_size`` plaintext bytes,
so it is ``block_size + 16`` bytes long except the last one. Block ``i`` is
sealed with the initial nonce incremented ``i`` times as a little-endian
counter. A stream with no plaintext consists of the header only.
"""
from typing import Optional

from Crypto.Random import get_random_bytes
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

from ..exceptions import AuthenticationError, BadHeaderError
from ..logging import get_logger
from ..models import Body

logger = get_logger('cloudlayer.streams')

NONCE_SIZE = SecretBox.NONCE_SIZE
KEY_SIZE = SecretBox.KEY_SIZE
TAG_SIZE = SecretBox.MACBYTES
DEFAULT_BLOCK_SIZE = 64 * 1024
DEFAULT_MAGIC = b"RCLONE\x00\x00"


def increment_nonce(nonce: bytearray) -> None:
    """Add one to ``nonce`` in place, little-endian, wrapping at the top."""
    for i in range(len(nonce)):
        nonce[i] = (nonce[i] + 1) & 0xFF
        if nonce[i] != 0:
            return


def plain_size_from_cipher_size(
    cipher_size: int,
    block_size: int = DEFAULT_BLOCK_SIZE,
    magic: bytes = DEFAULT_MAGIC
) -> int:
    """
    Compute plaintext length from the length of an encrypted stream.
    
    Args:
        cipher_size: Length of the encrypted stream
        block_size: Plaintext bytes per block
        magic: Magic prefix of the stream
        
    Returns:
        Length of the plaintext
        
    Raises:
        ValueError: If no valid stream has that length
    """
    size = cipher_size - len(magic) - NONCE_SIZE
    if size < 0:
        raise ValueError(f"Encrypted size {cipher_size} is shorter than the header")
    blocks, remainder = divmod(size, block_size + TAG_SIZE)
    plain = blocks * block_size
    if remainder:
        if remainder <= TAG_SIZE:
            raise ValueError(f"Encrypted size {cipher_size} ends in a truncated block")
        plain += remainder - TAG_SIZE
    return plain


def cipher_size_from_plain_size(
    plain_size: int,
    block_size: int = DEFAULT_BLOCK_SIZE,
    magic: bytes = DEFAULT_MAGIC
) -> int:
    """Compute the encrypted stream length for ``plain_size`` plaintext bytes."""
    blocks, remainder = divmod(plain_size, block_size)
    size = len(magic) + NONCE_SIZE + blocks * (block_size + TAG_SIZE)
    if remainder:
        size += remainder + TAG_SIZE
    return size


class _BlockSealer:
    """Holds the key and the running nonce for one stream."""
    
    def __init__(self, key: bytes, nonce: bytes):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"Nonce must be {NONCE_SIZE} bytes")
        self._box = SecretBox(key)
        self._nonce = bytearray(nonce)
        self.block_index = 0
    
    def seal(self, plaintext: bytes) -> bytes:
        sealed = self._box.encrypt(plaintext, bytes(self._nonce)).ciphertext
        self._advance()
        return sealed
    
    def open(self, sealed: bytes) -> bytes:
        try:
            plaintext = self._box.decrypt(sealed, bytes(self._nonce))
        except CryptoError as e:
            logger.error(f"Block {self.block_index} failed authentication")
            raise AuthenticationError(
                f"Failed to authenticate block {self.block_index}",
                block_index=self.block_index
            ) from e
        self._advance()
        return plaintext
    
    def _advance(self):
        increment_nonce(self._nonce)
        self.block_index += 1


class EncryptionStream:
    """
    Encrypts a byte stream block by block.
    
    Use ``transform``/``flush`` directly or wrap an async body with
    ``encrypt_body``. A fresh random nonce is drawn per instance, so one
    instance must encrypt exactly one stream.
    """
    
    def __init__(
        self,
        key: bytes,
        block_size: int = DEFAULT_BLOCK_SIZE,
        magic: bytes = DEFAULT_MAGIC,
        nonce: Optional[bytes] = None
    ):
        """
        Initialize the encryptor.
        
        Args:
            key: 32-byte content key
            block_size: Plaintext bytes per sealed block
            magic: Prefix written before the nonce
            nonce: Initial nonce; random when omitted (tests only)
        """
        if block_size <= 0:
            raise ValueError("Block size must be positive")
        self.block_size = block_size
        self.magic = magic
        self.nonce = nonce if nonce is not None else get_random_bytes(NONCE_SIZE)
        self._sealer = _BlockSealer(key, self.nonce)
        self._buffer = bytearray()
        self._started = False
    
    def header(self) -> bytes:
        """Return the stream header (magic + initial nonce)."""
        return self.magic + self.nonce
    
    def transform(self, plaintext: bytes) -> bytes:
        """Seal every full block now available; return the output bytes."""
        out = bytearray()
        if not self._started:
            out += self.header()
            self._started = True
        self._buffer += plaintext
        while len(self._buffer) >= self.block_size:
            block = bytes(self._buffer[:self.block_size])
            del self._buffer[:self.block_size]
            out += self._sealer.seal(block)
        return bytes(out)
    
    def flush(self) -> bytes:
        """Seal the trailing partial block; an empty remainder emits nothing."""
        out = bytearray()
        if not self._started:
            out += self.header()
            self._started = True
        if self._buffer:
            out += self._sealer.seal(bytes(self._buffer))
            self._buffer = bytearray()
        return bytes(out)
    
    async def encrypt_body(self, body: Body) -> Body:
        """Yield the encrypted form of ``body``."""
        async for piece in body:
            out = self.transform(piece)
            if out:
                yield out
        tail = self.flush()
        if tail:
            yield tail


class DecryptionStream:
    """
    Decrypts a stream produced by ``EncryptionStream``.
    
    Authentication failure raises ``AuthenticationError``; plaintext from
    earlier blocks has already been handed out by then and is not retracted.
    """
    
    def __init__(
        self,
        key: bytes,
        block_size: int = DEFAULT_BLOCK_SIZE,
        magic: bytes = DEFAULT_MAGIC
    ):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        if block_size <= 0:
            raise ValueError("Block size must be positive")
        self._key = key
        self.block_size = block_size
        self.magic = magic
        self._sealed_size = block_size + TAG_SIZE
        self._header_size = len(magic) + NONCE_SIZE
        self._sealer: Optional[_BlockSealer] = None
        self._buffer = bytearray()
    
    @staticmethod
    def size(
        cipher_size: int,
        block_size: int = DEFAULT_BLOCK_SIZE,
        magic: bytes = DEFAULT_MAGIC
    ) -> int:
        """Alias of ``plain_size_from_cipher_size``."""
        return plain_size_from_cipher_size(cipher_size, block_size, magic)
    
    def _read_header(self) -> bool:
        if len(self._buffer) < self._header_size:
            return False
        if self._buffer[:len(self.magic)] != self.magic:
            raise BadHeaderError("Not an encrypted stream (magic mismatch)")
        nonce = bytes(self._buffer[len(self.magic):self._header_size])
        del self._buffer[:self._header_size]
        self._sealer = _BlockSealer(self._key, nonce)
        return True
    
    def transform(self, ciphertext: bytes) -> bytes:
        """Open every full sealed block now available."""
        self._buffer += ciphertext
        if self._sealer is None and not self._read_header():
            return b""
        out = bytearray()
        # Keep a full block back until more data or flush() shows it is not the last
        while len(self._buffer) > self._sealed_size:
            block = bytes(self._buffer[:self._sealed_size])
            del self._buffer[:self._sealed_size]
            out += self._sealer.open(block)
        return bytes(out)
    
    def flush(self) -> bytes:
        """Open the trailing block and verify the stream was complete."""
        if self._sealer is None and not self._read_header():
            raise BadHeaderError("Encrypted stream is shorter than its header")
        if not self._buffer:
            return b""
        if len(self._buffer) <= TAG_SIZE:
            raise BadHeaderError("Encrypted stream ends in a truncated block")
        block = bytes(self._buffer)
        self._buffer = bytearray()
        return self._sealer.open(block)
    
    async def decrypt_body(self, body: Body) -> Body:
        """Yield the decrypted form of ``body``."""
        async for piece in body:
            out = self.transform(piece)
            if out:
                yield out
        tail = self.flush()
        if tail:
            yield tail


def encrypt_bytes(key: bytes, data: bytes, **kwargs) -> bytes:
    """Encrypt a whole buffer in one call."""
    stream = EncryptionStream(key, **kwargs)
    return stream.transform(data) + stream.flush()


def decrypt_bytes(key: bytes, data: bytes, **kwargs) -> bytes:
    """Decrypt a whole buffer in one call."""
    stream = DecryptionStream(key, **kwargs)
    return stream.transform(data) + stream.flush()
