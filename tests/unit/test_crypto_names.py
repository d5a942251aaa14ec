"""Tests for EME and file name encryption."""
import pytest
from Crypto.Random import get_random_bytes

from cloudlayer.core.crypto import EMECipher, PathCipher, mult_by_two
from cloudlayer.core.exceptions import NameDecryptionError


class TestMultByTwo:
    """Test suite for GF(2^128) doubling."""
    
    def test_no_carry(self):
        """Test doubling without overflow is a left shift."""
        block = bytes([1] + [0] * 15)
        
        assert mult_by_two(block) == bytes([2] + [0] * 15)
    
    def test_carry_between_bytes(self):
        """Test the top bit of a byte moves into the next byte."""
        block = bytes([0x80] + [0] * 15)
        
        assert mult_by_two(block) == bytes([0, 1] + [0] * 14)
    
    def test_overflow_reduces(self):
        """Test overflow of the last byte folds back with 0x87."""
        block = bytes([0] * 15 + [0x80])
        
        assert mult_by_two(block) == bytes([0x87] + [0] * 15)
    
    def test_invalid_length(self):
        """Test non-16-byte input raises error."""
        with pytest.raises(ValueError):
            mult_by_two(b"short")


class TestEMECipher:
    """Test suite for EMECipher."""
    
    @pytest.fixture
    def cipher(self):
        return EMECipher(get_random_bytes(32))
    
    @pytest.mark.parametrize("blocks", [1, 2, 3, 16, 128])
    def test_roundtrip(self, cipher, blocks):
        """Test decrypt(encrypt(x)) == x for several lengths."""
        tweak = get_random_bytes(16)
        data = get_random_bytes(16 * blocks)
        encrypted = cipher.encrypt(tweak, data)
        
        assert len(encrypted) == len(data)
        assert encrypted != data
        assert cipher.decrypt(tweak, encrypted) == data
    
    def test_deterministic(self, cipher):
        """Test same input gives same output."""
        tweak = bytes(16)
        data = bytes(32)
        
        assert cipher.encrypt(tweak, data) == cipher.encrypt(tweak, data)
    
    def test_tweak_changes_output(self, cipher):
        """Test different tweaks give different ciphertexts."""
        data = bytes(32)
        
        assert cipher.encrypt(bytes(16), data) != cipher.encrypt(b"\x01" * 16, data)
    
    def test_wide_block_diffusion(self, cipher):
        """Test changing the last block changes the first output block."""
        tweak = bytes(16)
        first = cipher.encrypt(tweak, bytes(48))
        second = cipher.encrypt(tweak, bytes(47) + b"\x01")
        
        assert first[:16] != second[:16]
    
    def test_invalid_inputs(self, cipher):
        """Test bad tweak and data lengths raise errors."""
        with pytest.raises(ValueError):
            cipher.encrypt(bytes(8), bytes(16))
        with pytest.raises(ValueError):
            cipher.encrypt(bytes(16), bytes(15))
        with pytest.raises(ValueError):
            cipher.encrypt(bytes(16), b"")
        with pytest.raises(ValueError):
            cipher.encrypt(bytes(16), bytes(16 * 129))


class TestPathCipher:
    """Test suite for PathCipher."""
    
    @pytest.fixture
    def cipher(self):
        return PathCipher(get_random_bytes(32), get_random_bytes(16))
    
    @pytest.mark.parametrize("name", [
        "a",
        "file.txt",
        "exactly16bytes!!",
        "a much longer file name that spans several cipher blocks.tar.gz",
        "Ünïcödé 文件名 🚀",
    ])
    def test_roundtrip(self, cipher, name):
        """Test decrypt_name(encrypt_name(s)) == s."""
        encrypted = cipher.encrypt_name(name)
        
        assert encrypted != name
        assert encrypted == encrypted.lower()
        assert "=" not in encrypted
        assert cipher.decrypt_name(encrypted) == name
    
    def test_empty_name(self, cipher):
        """Test empty string maps to empty string both ways."""
        assert cipher.encrypt_name("") == ""
        assert cipher.decrypt_name("") == ""
    
    def test_deterministic(self, cipher):
        """Test the same name always encrypts the same way."""
        assert cipher.encrypt_name("report.pdf") == cipher.encrypt_name("report.pdf")
    
    def test_padding_adds_full_block(self, cipher):
        """Test a 16-byte name pads to two blocks."""
        # 32 bytes of ciphertext -> 52 base32 characters without padding
        assert len(cipher.encrypt_name("exactly16bytes!!")) == 52
        assert len(cipher.encrypt_name("short")) == 26
    
    def test_path_preserves_structure(self, cipher):
        """Test every segment is encrypted separately."""
        encrypted = cipher.encrypt("/docs/2024/report.pdf")
        parts = encrypted.split("/")
        
        assert parts[0] == ""
        assert len(parts) == 4
        assert parts[1] == cipher.encrypt_name("docs")
        assert cipher.decrypt(encrypted) == "/docs/2024/report.pdf"
    
    def test_container_path(self, cipher):
        """Test trailing slash is kept."""
        encrypted = cipher.encrypt("/docs/")
        
        assert encrypted.endswith("/")
        assert cipher.decrypt(encrypted) == "/docs/"
    
    def test_decrypt_foreign_name(self, cipher):
        """Test names that are not cipher output are rejected."""
        for name in ["readme.txt", "abc", "co", cipher.encrypt_name("x")[:-2]]:
            with pytest.raises(NameDecryptionError):
                cipher.decrypt_name(name)
    
    def test_other_key_fails(self, cipher):
        """Test a name from another key does not decrypt."""
        other = PathCipher(get_random_bytes(32), get_random_bytes(16))
        
        with pytest.raises(NameDecryptionError):
            cipher.decrypt_name(other.encrypt_name("hello"))
