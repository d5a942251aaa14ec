"""Tests for encoding utilities."""
import pytest

from cloudlayer.core.crypto.utils.encoding import Base32HexEncoder, Base64Encoder


class TestBase64Encoder:
    """Test suite for Base64Encoder."""
    
    def test_encode_basic(self):
        """Test encoding is URL-safe without padding."""
        encoded = Base64Encoder.encode(b"\xfb\xff\xfe Hello")
        
        assert isinstance(encoded, str)
        assert '+' not in encoded
        assert '/' not in encoded
        assert '=' not in encoded
    
    def test_encode_decode_roundtrip(self):
        """Test encode/decode roundtrip with various data."""
        for data in [b"", b"a", b"ab", b"abc", b"abcd", b"\xff" * 100, bytes(range(256))]:
            assert Base64Encoder.decode(Base64Encoder.encode(data)) == data
    
    def test_decode_standard_alphabet_with_padding(self):
        """Test decoding accepts standard base64 with padding."""
        assert Base64Encoder.decode("SGVsbG8=") == b"Hello"
        assert Base64Encoder.decode("+/8=") == b"\xfb\xff"
    
    def test_decode_without_padding(self):
        """Test decoding without padding."""
        assert Base64Encoder.decode("SGVsbG8") == b"Hello"


class TestBase32HexEncoder:
    """Test suite for Base32HexEncoder."""
    
    def test_encode_known_value(self):
        """Test RFC 4648 base32hex vectors, lowercased and unpadded."""
        assert Base32HexEncoder.encode(b"f") == "co"
        assert Base32HexEncoder.encode(b"foobar") == "cpnmuoj1e8"
    
    def test_roundtrip(self):
        """Test encode/decode roundtrip."""
        for data in [b"", b"\x00", bytes(range(16)), bytes(range(32)), b"\xff" * 48]:
            encoded = Base32HexEncoder.encode(data)
            assert encoded == encoded.lower()
            assert Base32HexEncoder.decode(encoded) == data
    
    def test_decode_uppercase(self):
        """Test decoding accepts upper case."""
        assert Base32HexEncoder.decode("CPNMUOJ1E8") == b"foobar"
    
    def test_decode_rejects_padding(self):
        """Test padded input is rejected."""
        with pytest.raises(ValueError):
            Base32HexEncoder.decode("co======")
    
    def test_decode_rejects_bad_alphabet(self):
        """Test characters outside the alphabet are rejected."""
        with pytest.raises(ValueError):
            Base32HexEncoder.decode("xyz!")
