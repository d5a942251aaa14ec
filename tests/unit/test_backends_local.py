"""Tests for the local filesystem backend."""
import pytest

from cloudlayer.core.backends import LocalBackend
from cloudlayer.core.models import ContentRequest, Method, iter_bytes


class TestLocalBackend:
    """Test suite for LocalBackend."""
    
    @pytest.fixture
    def backend(self):
        return LocalBackend()
    
    @pytest.fixture
    def params(self, tmp_path):
        return {"root": str(tmp_path)}
    
    @pytest.mark.asyncio
    async def test_write_creates_parents(self, backend, params, tmp_path):
        """Test writing into a missing directory."""
        response = await backend.handle(
            ContentRequest(Method.WRITE, "/a/b/c.txt", params=params, body=b"content")
        )
        
        assert response.status == 201
        assert (tmp_path / "a" / "b" / "c.txt").read_bytes() == b"content"
    
    @pytest.mark.asyncio
    async def test_read_streams_file(self, backend, params, tmp_path, random_data):
        """Test reading a file larger than one read piece."""
        data = random_data(200_000)
        (tmp_path / "big.bin").write_bytes(data)
        
        response = await backend.handle(ContentRequest(Method.READ_CONTENT, "/big.bin", params=params))
        
        assert response.status == 200
        assert response.content_length == len(data)
        assert await response.read() == data
    
    @pytest.mark.asyncio
    async def test_streamed_write(self, backend, params, tmp_path, random_data):
        """Test writing a multi-piece body."""
        data = random_data(150_000)
        await backend.handle(
            ContentRequest(Method.WRITE, "/s.bin", params=params, body=iter_bytes(data, 4096))
        )
        
        assert (tmp_path / "s.bin").read_bytes() == data
    
    @pytest.mark.asyncio
    async def test_missing(self, backend, params):
        """Test missing paths return 404."""
        for method in (Method.READ_META, Method.READ_CONTENT):
            response = await backend.handle(ContentRequest(method, "/nope.txt", params=params))
            assert response.status == 404
    
    @pytest.mark.asyncio
    async def test_listing(self, backend, params, tmp_path):
        """Test directory listing marks subdirectories."""
        (tmp_path / "sub").mkdir()
        (tmp_path / "b.txt").write_bytes(b"b")
        (tmp_path / "a.txt").write_bytes(b"a")
        
        response = await backend.handle(ContentRequest(Method.READ_META, "/", params=params))
        
        assert response.links == ["a.txt", "b.txt", "sub/"]
    
    @pytest.mark.asyncio
    async def test_file_as_container(self, backend, params, tmp_path):
        """Test a file addressed as a container is not found."""
        (tmp_path / "f.txt").write_bytes(b"x")
        
        response = await backend.handle(ContentRequest(Method.READ_META, "/f.txt/", params=params))
        
        assert response.status == 404
    
    @pytest.mark.asyncio
    async def test_mkdir_and_delete(self, backend, params, tmp_path):
        """Test container creation and recursive delete."""
        await backend.handle(ContentRequest(Method.WRITE, "/d/e/", params=params))
        assert (tmp_path / "d" / "e").is_dir()
        (tmp_path / "d" / "e" / "f.txt").write_bytes(b"x")
        
        response = await backend.handle(ContentRequest(Method.DELETE, "/d/", params=params))
        
        assert response.status == 204
        assert not (tmp_path / "d").exists()
    
    @pytest.mark.asyncio
    async def test_delete_missing_is_idempotent(self, backend, params):
        """Test deleting a missing object succeeds."""
        response = await backend.handle(ContentRequest(Method.DELETE, "/ghost", params=params))
        
        assert response.status == 204
