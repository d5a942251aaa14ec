"""Tests for the authenticated stream cipher."""
import pytest

from cloudlayer.core.exceptions import AuthenticationError, BadHeaderError
from cloudlayer.core.models import iter_bytes, read_body
from cloudlayer.core.streams import (
    DEFAULT_MAGIC,
    NONCE_SIZE,
    TAG_SIZE,
    DecryptionStream,
    EncryptionStream,
    cipher_size_from_plain_size,
    decrypt_bytes,
    encrypt_bytes,
    increment_nonce,
    plain_size_from_cipher_size,
)

HEADER_SIZE = len(DEFAULT_MAGIC) + NONCE_SIZE


class TestIncrementNonce:
    """Test suite for the little-endian nonce counter."""
    
    def test_simple_increment(self):
        """Test increment of the lowest byte."""
        nonce = bytearray(24)
        increment_nonce(nonce)
        
        assert nonce[0] == 1
        assert nonce[1:] == bytearray(23)
    
    def test_carry(self):
        """Test carry into the next byte."""
        nonce = bytearray(24)
        nonce[0] = 0xff
        increment_nonce(nonce)
        
        assert nonce[0] == 0
        assert nonce[1] == 1
    
    def test_multi_byte_carry(self):
        """Test carry across several bytes."""
        nonce = bytearray([0xff, 0xff, 0xff, 0x07] + [0] * 20)
        increment_nonce(nonce)
        
        assert nonce[:4] == bytearray([0, 0, 0, 0x08])
    
    def test_wraparound(self):
        """Test all-ones wraps to all-zeros."""
        nonce = bytearray([0xff] * 24)
        increment_nonce(nonce)
        
        assert nonce == bytearray(24)


class TestSizeMapping:
    """Test suite for cipher/plain size conversion."""
    
    @pytest.mark.parametrize("plain", [0, 1, 65535, 65536, 65537, 3 * 65536 + 10])
    def test_sizes_are_inverse(self, plain):
        """Test both functions agree."""
        assert plain_size_from_cipher_size(cipher_size_from_plain_size(plain)) == plain
    
    def test_known_sizes(self):
        """Test concrete sizes of encrypted streams."""
        assert cipher_size_from_plain_size(0) == 32
        assert cipher_size_from_plain_size(1) == 32 + 1 + 16
        assert cipher_size_from_plain_size(65536) == 32 + 65536 + 16
        assert cipher_size_from_plain_size(65537) == 32 + 65536 + 16 + 1 + 16
    
    def test_shorter_than_header(self):
        """Test size below the header is rejected."""
        with pytest.raises(ValueError):
            plain_size_from_cipher_size(10)
    
    def test_truncated_block(self):
        """Test trailing block no longer than a tag is rejected."""
        with pytest.raises(ValueError):
            plain_size_from_cipher_size(HEADER_SIZE + TAG_SIZE)


class TestEncryptionStream:
    """Test suite for encrypt/decrypt round trips."""
    
    @pytest.mark.parametrize("size", [0, 1, 100, 65536, 65537, 200_000])
    def test_roundtrip(self, data_key, random_data, size):
        """Test decrypt(encrypt(data)) == data at block boundaries."""
        data = random_data(size)
        encrypted = encrypt_bytes(data_key, data)
        
        assert len(encrypted) == cipher_size_from_plain_size(size)
        assert decrypt_bytes(data_key, encrypted) == data
    
    def test_small_block_size(self, data_key, random_data):
        """Test round trip with a custom block size."""
        data = random_data(1000)
        encrypted = encrypt_bytes(data_key, data, block_size=64)
        
        assert len(encrypted) == cipher_size_from_plain_size(1000, block_size=64)
        assert decrypt_bytes(data_key, encrypted, block_size=64) == data
    
    def test_empty_stream_is_header_only(self, data_key):
        """Test empty plaintext encrypts to just the header."""
        stream = EncryptionStream(data_key)
        encrypted = stream.transform(b"") + stream.flush()
        
        assert encrypted == DEFAULT_MAGIC + stream.nonce
    
    def test_header_layout(self, data_key):
        """Test magic and nonce prefix the stream."""
        nonce = bytes(range(24))
        stream = EncryptionStream(data_key, nonce=nonce)
        encrypted = stream.transform(b"hello") + stream.flush()
        
        assert encrypted[:8] == b"RCLONE\x00\x00"
        assert encrypted[8:32] == nonce
    
    def test_fresh_nonce_per_stream(self, data_key):
        """Test two encryptions of the same data differ."""
        assert encrypt_bytes(data_key, b"same") != encrypt_bytes(data_key, b"same")
    
    def test_split_input(self, data_key, random_data):
        """Test input boundaries do not change the output."""
        data = random_data(5000)
        nonce = bytes(24)
        whole = EncryptionStream(data_key, block_size=1024, nonce=nonce)
        pieces = EncryptionStream(data_key, block_size=1024, nonce=nonce)
        
        expected = whole.transform(data) + whole.flush()
        out = b"".join(pieces.transform(data[i:i + 333]) for i in range(0, len(data), 333))
        
        assert out + pieces.flush() == expected
    
    @pytest.mark.asyncio
    async def test_async_bodies(self, data_key, random_data):
        """Test the async body wrappers."""
        data = random_data(150_000)
        encrypted = EncryptionStream(data_key).encrypt_body(iter_bytes(data, 1000))
        decrypted = DecryptionStream(data_key).decrypt_body(encrypted)
        
        assert await read_body(decrypted) == data


class TestDecryptionStream:
    """Test suite for decryption failures."""
    
    def test_tamper_detection(self, data_key, random_data):
        """Test a flipped bit fails authentication."""
        encrypted = bytearray(encrypt_bytes(data_key, random_data(100)))
        encrypted[HEADER_SIZE + 20] ^= 0x01
        
        with pytest.raises(AuthenticationError):
            decrypt_bytes(data_key, bytes(encrypted))
    
    def test_tamper_second_block(self, data_key, random_data):
        """Test failure reports the block and keeps earlier output."""
        data = random_data(300)
        encrypted = bytearray(encrypt_bytes(data_key, data, block_size=100))
        encrypted[HEADER_SIZE + 116 + 5] ^= 0x80
        
        stream = DecryptionStream(data_key, block_size=100)
        # A full block is held back until the next one arrives
        assert stream.transform(bytes(encrypted[:HEADER_SIZE + 116])) == b""
        with pytest.raises(AuthenticationError) as exc_info:
            stream.transform(bytes(encrypted[HEADER_SIZE + 116:]))
        
        assert exc_info.value.block_index == 1
    
    def test_wrong_key(self, data_key, random_data):
        """Test decryption with another key fails."""
        encrypted = encrypt_bytes(data_key, b"secret")
        
        with pytest.raises(AuthenticationError):
            decrypt_bytes(random_data(32), encrypted)
    
    def test_bad_magic(self, data_key):
        """Test wrong magic raises BadHeaderError."""
        encrypted = b"NOTMAGIC" + encrypt_bytes(data_key, b"data")[8:]
        
        with pytest.raises(BadHeaderError):
            decrypt_bytes(data_key, encrypted)
    
    def test_short_header(self, data_key):
        """Test stream shorter than the header."""
        with pytest.raises(BadHeaderError):
            decrypt_bytes(data_key, b"RCLONE\x00\x00abc")
    
    def test_truncated_block(self, data_key):
        """Test trailing block shorter than a tag."""
        encrypted = encrypt_bytes(data_key, b"some data")
        
        with pytest.raises(BadHeaderError):
            decrypt_bytes(data_key, encrypted[:HEADER_SIZE + 10])
    
    def test_static_size(self):
        """Test size helper matches the module function."""
        assert DecryptionStream.size(32 + 17) == 1
