"""Tests for the in-memory backend."""
import pytest

from cloudlayer.core.backends import Backend, MemoryBackend, MemoryStore
from cloudlayer.core.models import ContentRequest, Method


class TestMemoryBackend:
    """Test suite for MemoryBackend."""
    
    @pytest.fixture
    def backend(self):
        return MemoryBackend()
    
    def test_satisfies_protocol(self, backend):
        """Test the backend matches the Backend protocol."""
        assert isinstance(backend, Backend)
    
    @pytest.mark.asyncio
    async def test_write_and_read(self, backend):
        """Test storing and reading an object."""
        response = await backend.handle(ContentRequest(Method.WRITE, "/dir/a.txt", body=b"hello"))
        
        assert response.status == 201
        assert response.headers["Content-Location"] == "/dir/a.txt"
        
        response = await backend.handle(ContentRequest(Method.READ_CONTENT, "/dir/a.txt"))
        assert response.status == 200
        assert response.headers["Content-Type"] == "text/plain"
        assert response.content_length == 5
        assert "Last-Modified" in response.headers
        assert await response.read() == b"hello"
    
    @pytest.mark.asyncio
    async def test_read_meta_has_no_body(self, backend):
        """Test READ_META returns headers only."""
        await backend.handle(ContentRequest(Method.WRITE, "/a.bin", body=b"xyz"))
        response = await backend.handle(ContentRequest(Method.READ_META, "/a.bin"))
        
        assert response.body is None
        assert response.content_length == 3
    
    @pytest.mark.asyncio
    async def test_missing_object(self, backend):
        """Test unknown targets return 404."""
        response = await backend.handle(ContentRequest(Method.READ_CONTENT, "/nope"))
        
        assert response.status == 404
    
    @pytest.mark.asyncio
    async def test_listing(self, backend):
        """Test container listings show immediate children."""
        for path in ["/dir/a.txt", "/dir/sub/b.txt", "/top.txt"]:
            await backend.handle(ContentRequest(Method.WRITE, path, body=b"x"))
        
        root = await backend.handle(ContentRequest(Method.READ_META, "/"))
        sub = await backend.handle(ContentRequest(Method.READ_META, "/dir/"))
        
        assert root.links == ["dir/", "top.txt"]
        assert sub.links == ["a.txt", "sub/"]
    
    @pytest.mark.asyncio
    async def test_create_container_idempotent(self, backend):
        """Test creating a container twice."""
        for _ in range(2):
            response = await backend.handle(ContentRequest(Method.WRITE, "/empty/"))
            assert response.status == 201
        
        listing = await backend.handle(ContentRequest(Method.READ_META, "/empty/"))
        assert listing.status == 200
        assert listing.links == []
        assert (await backend.handle(ContentRequest(Method.READ_META, "/missing/"))).status == 404
    
    @pytest.mark.asyncio
    async def test_delete(self, backend):
        """Test deleting objects and containers."""
        for path in ["/dir/a.txt", "/dir/sub/b.txt", "/keep.txt"]:
            await backend.handle(ContentRequest(Method.WRITE, path, body=b"x"))
        
        response = await backend.handle(ContentRequest(Method.DELETE, "/dir/"))
        assert response.status == 204
        assert backend.store.children("/") == ["keep.txt"]
        
        response = await backend.handle(ContentRequest(Method.DELETE, "/keep.txt"))
        assert response.status == 204
        response = await backend.handle(ContentRequest(Method.DELETE, "/keep.txt"))
        assert response.status == 204
        assert backend.store.objects == {}
    
    @pytest.mark.asyncio
    async def test_separate_stores(self):
        """Test instances do not share data."""
        first, second = MemoryBackend(), MemoryBackend()
        await first.handle(ContentRequest(Method.WRITE, "/a", body=b"1"))
        
        assert (await second.handle(ContentRequest(Method.READ_META, "/a"))).status == 404
    
    @pytest.mark.asyncio
    async def test_shared_store(self):
        """Test an explicit store can be shared."""
        store = MemoryStore()
        await MemoryBackend(store=store).handle(ContentRequest(Method.WRITE, "/a", body=b"1"))
        
        assert "/a" in store.objects
        assert (await MemoryBackend(store=store).handle(ContentRequest(Method.READ_META, "/a"))).ok
