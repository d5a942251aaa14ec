"""Tests for fixed-size byte chunking."""
import pytest

from cloudlayer.core.models import iter_bytes, read_body
from cloudlayer.core.streams import ByteChunker, rechunk


class TestByteChunker:
    """Test suite for ByteChunker."""
    
    def test_invalid_chunk_size(self):
        """Test non-positive chunk size raises error."""
        with pytest.raises(ValueError):
            ByteChunker(0)
        with pytest.raises(ValueError):
            ByteChunker(-4)
    
    def test_exact_multiple(self):
        """Test input that is a multiple of the chunk size."""
        chunker = ByteChunker(4)
        
        assert chunker.transform(b"abcdefgh") == [b"abcd", b"efgh"]
        assert chunker.flush() is None
    
    def test_partial_held_back(self):
        """Test short input is held until more arrives."""
        chunker = ByteChunker(4)
        
        assert chunker.transform(b"ab") == []
        assert chunker.pending == 2
        assert chunker.transform(b"cdef") == [b"abcd"]
        assert chunker.pending == 2
        assert chunker.flush() == b"ef"
        assert chunker.pending == 0
    
    def test_many_small_writes(self):
        """Test chunks form across many one-byte writes."""
        chunker = ByteChunker(3)
        out = []
        for byte in b"abcdefg":
            out.extend(chunker.transform(bytes([byte])))
        
        assert out == [b"abc", b"def"]
        assert chunker.flush() == b"g"
    
    def test_empty_input(self):
        """Test empty writes emit nothing."""
        chunker = ByteChunker(8)
        
        assert chunker.transform(b"") == []
        assert chunker.flush() is None
    
    def test_no_chunk_longer_than_size(self, random_data):
        """Test irregular writes never produce oversized chunks."""
        data = random_data(1000)
        chunker = ByteChunker(64)
        out = []
        for start, size in [(0, 7), (7, 200), (207, 1), (208, 792)]:
            out.extend(chunker.transform(data[start:start + size]))
        tail = chunker.flush()
        
        assert all(len(chunk) == 64 for chunk in out)
        assert tail is not None and len(tail) < 64
        assert b"".join(out) + tail == data


class TestRechunk:
    """Test suite for the async rechunk wrapper."""
    
    @pytest.mark.asyncio
    async def test_rechunk_body(self, random_data):
        """Test rechunking an async body."""
        data = random_data(10_000)
        chunks = []
        async for chunk in rechunk(iter_bytes(data, 333), 4096):
            chunks.append(chunk)
        
        assert [len(c) for c in chunks] == [4096, 4096, 1808]
        assert b"".join(chunks) == data
    
    @pytest.mark.asyncio
    async def test_rechunk_empty(self):
        """Test empty body yields nothing."""
        assert await read_body(rechunk(iter_bytes(b""), 16)) == b""
