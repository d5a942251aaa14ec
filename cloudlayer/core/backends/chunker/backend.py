"""
Chunking overlay backend.

Splits objects larger than ``chunk_size`` into numbered chunk objects on the
wrapped remote and reassembles them on read. A split file is described by a
small JSON record stored under the original name (unless ``meta_format`` is
``none``); files that fit in one chunk are stored unchanged.
"""
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple
import hashlib
import mimetypes
import secrets
import string

from multidict import CIMultiDict

from ...exceptions import IncompleteChunkGroupError
from ...models import Body, ContentRequest, ContentResponse, Method, close_body
from ...streams import rechunk
from ..base import BaseBackend
from ..options import parse_bool, parse_choice, parse_int, parse_size, require
from .metadata import MAX_METADATA_SIZE, CompositeFileRecord
from .naming import DEFAULT_NAME_FORMAT, NameFormat
from .upload import ChunkedUpload, UploadResult

DEFAULT_CHUNK_SIZE = 2 * 1024 ** 3

META_FORMATS = ("simplejson", "none")
HASH_TYPES = ("md5", "sha1", "md5all", "sha1all", "md5quick", "sha1quick", "none")
TRANSACTION_STYLES = ("rename", "norename", "auto")

TXN_LENGTH = 6
_TXN_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class ChunkerOptions:
    """
    Options of a chunker remote.
    
    Attributes:
        remote: Wrapped remote reference
        chunk_size: Maximum size of a stored chunk
        name_format: Chunk name template
        start_from: Index of the first chunk
        meta_format: ``simplejson`` or ``none``
        hash_type: Digest stored in the metadata record
        fail_hard: Raise on incomplete chunk groups instead of hiding them
        transactions: ``rename``, ``norename`` or ``auto``
    """
    remote: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    name_format: str = DEFAULT_NAME_FORMAT
    start_from: int = 1
    meta_format: str = "simplejson"
    hash_type: str = "md5"
    fail_hard: bool = False
    transactions: str = "rename"
    
    def __post_init__(self):
        self.names = NameFormat(self.name_format)
    
    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> 'ChunkerOptions':
        """
        Build options from string parameters.
        
        Raises:
            ConfigurationError: On a missing remote or an invalid value
        """
        return cls(
            remote=require(params, "remote"),
            chunk_size=parse_size("chunk_size", params.get("chunk_size"), DEFAULT_CHUNK_SIZE, minimum=1),
            name_format=params.get("name_format") or DEFAULT_NAME_FORMAT,
            start_from=parse_int("start_from", params.get("start_from"), 1, minimum=0),
            meta_format=parse_choice("meta_format", params.get("meta_format"), "simplejson", META_FORMATS),
            hash_type=parse_choice("hash_type", params.get("hash_type"), "md5", HASH_TYPES),
            fail_hard=parse_bool("fail_hard", params.get("fail_hard")),
            transactions=parse_choice("transactions", params.get("transactions"), "rename", TRANSACTION_STYLES),
        )
    
    @property
    def uses_metadata(self) -> bool:
        return self.meta_format != "none"
    
    @property
    def digest_name(self) -> Optional[str]:
        """hashlib algorithm for the metadata record, if any."""
        if not self.uses_metadata or self.hash_type == "none":
            return None
        return "sha1" if self.hash_type.startswith("sha1") else "md5"
    
    def chunk_names(self, base: str, nchunks: int, txn: Optional[str] = None) -> List[str]:
        return [self.names.format(base, self.start_from + i, txn) for i in range(nchunks)]


class _WriteFailed(Exception):
    """Carries a failed wrapped-backend response out of an upload."""
    
    def __init__(self, response: ContentResponse):
        self.response = response
        super().__init__(f"Wrapped write failed with status {response.status}")


def new_txn() -> str:
    """Random base-36 transaction id."""
    return "".join(secrets.choice(_TXN_ALPHABET) for _ in range(TXN_LENGTH))


async def _peek(body: Optional[Body], limit: int) -> Tuple[bytes, bool, Optional[Body]]:
    """
    Read from ``body`` until more than ``limit`` bytes are buffered.
    
    Returns:
        Tuple of (buffered bytes, whether the body was exhausted, the
        partially consumed body)
    """
    if body is None:
        return b"", True, None
    iterator = body.__aiter__()
    buffered = bytearray()
    while len(buffered) <= limit:
        try:
            piece = await iterator.__anext__()
        except StopAsyncIteration:
            return bytes(buffered), True, iterator
        buffered += piece
    return bytes(buffered), False, iterator


async def _replay(prefix: bytes, rest: Optional[Body]) -> Body:
    if prefix:
        yield prefix
    if rest is not None:
        async for piece in rest:
            yield piece


async def _digesting(body: Optional[Body], digest) -> Body:
    if body is None:
        return
    async for piece in body:
        if digest is not None:
            digest.update(piece)
        yield piece


class ChunkerBackend(BaseBackend):
    """
    Overlay that transparently splits large objects.
    
    Example:
        >>> config.add("big", "chunker", remote=":memory:", chunk_size="4M")
        >>> await router.write("big:/disk.img", data)
    """
    
    TYPE = "chunker"
    
    async def _forward(
        self,
        options: ChunkerOptions,
        method: Method,
        path: str,
        body=None,
        headers=None
    ) -> ContentResponse:
        request = ContentRequest(method=method, path=path, headers=headers or {}, body=body)
        return await self._require_router().forward(options.remote, request)
    
    # Reading
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        options = ChunkerOptions.from_params(request.params)
        if request.is_container:
            return await self._list(options, request)
        return await self._read(options, request, with_body=False)
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        options = ChunkerOptions.from_params(request.params)
        if request.is_container:
            return await self._list(options, request)
        return await self._read(options, request, with_body=True)
    
    @staticmethod
    def _may_be_metadata(response: ContentResponse) -> bool:
        length = response.content_length
        return length is None or length <= MAX_METADATA_SIZE
    
    async def _read(self, options: ChunkerOptions, request: ContentRequest, with_body: bool) -> ContentResponse:
        path = request.path
        meta = await self._forward(options, Method.READ_META, path)
        if not meta.ok:
            if meta.status == 404 and not options.uses_metadata:
                return await self._read_probed(options, request, with_body)
            return meta
        
        if options.uses_metadata and self._may_be_metadata(meta):
            content = await self._forward(options, Method.READ_CONTENT, path)
            if not content.ok:
                return content
            prefix, complete, rest = await _peek(content.body, MAX_METADATA_SIZE)
            record = CompositeFileRecord.parse(prefix) if complete else None
            if record is not None:
                return await self._read_composite(options, request, record, meta, with_body)
            if with_body:
                content.body = _replay(prefix, rest)
                return content
            await close_body(rest)
            return meta
        
        if with_body:
            return await self._forward(options, Method.READ_CONTENT, path, headers=request.headers)
        return meta
    
    def _composite_headers(self, name: str, size: Optional[int]) -> CIMultiDict:
        headers = CIMultiDict()
        headers["Content-Type"] = mimetypes.guess_type(name)[0] or "application/octet-stream"
        if size is not None:
            headers["Content-Length"] = str(size)
        return headers
    
    async def _read_composite(
        self,
        options: ChunkerOptions,
        request: ContentRequest,
        record: CompositeFileRecord,
        meta: ContentResponse,
        with_body: bool
    ) -> ContentResponse:
        names = options.chunk_names(request.name, record.nchunks, record.txn)
        headers = self._composite_headers(request.name, record.size)
        if "Last-Modified" in meta.headers:
            headers["Last-Modified"] = meta.headers["Last-Modified"]
        if record.md5:
            headers["X-Checksum-MD5"] = record.md5
        if record.sha1:
            headers["X-Checksum-SHA1"] = record.sha1
        
        response = ContentResponse(status=200, headers=headers)
        if with_body:
            missing = await self._find_missing(options, request.parent, names)
            if missing is not None:
                self._report_incomplete(options, request.path, missing)
                return ContentResponse.not_found(request.path)
            response.body = self._reassemble(options, request.parent, names, record.size, request.name)
        return response
    
    async def _read_probed(self, options: ChunkerOptions, request: ContentRequest, with_body: bool) -> ContentResponse:
        names, size = await self._probe_group(options, request.parent, request.name)
        if not names:
            return ContentResponse.not_found(request.path)
        response = ContentResponse(status=200, headers=self._composite_headers(request.name, size))
        if with_body:
            response.body = self._reassemble(options, request.parent, names, size, request.name)
        return response
    
    async def _probe_group(
        self,
        options: ChunkerOptions,
        parent: str,
        base: str
    ) -> Tuple[List[str], Optional[int]]:
        """Find consecutive chunks of ``base`` starting at ``start_from``."""
        names: List[str] = []
        total: Optional[int] = 0
        index = options.start_from
        while True:
            name = options.names.format(base, index)
            meta = await self._forward(options, Method.READ_META, parent + name)
            if not meta.ok:
                break
            names.append(name)
            length = meta.content_length
            total = None if total is None or length is None else total + length
            index += 1
        return names, total
    
    async def _find_missing(self, options: ChunkerOptions, parent: str, names: List[str]) -> Optional[int]:
        """Index of the first chunk that does not exist, or None."""
        for position, name in enumerate(names):
            meta = await self._forward(options, Method.READ_META, parent + name)
            if not meta.ok:
                return options.start_from + position
        return None
    
    def _report_incomplete(self, options: ChunkerOptions, path: str, index: int) -> None:
        message = f"Composite file {path} is missing chunk {index}"
        if options.fail_hard:
            raise IncompleteChunkGroupError(message, name=path, missing_index=index)
        self._logger.warning(message)
    
    async def _reassemble(
        self,
        options: ChunkerOptions,
        parent: str,
        names: List[str],
        size: Optional[int],
        base: str
    ) -> Body:
        emitted = 0
        for position, name in enumerate(names):
            if size is not None and emitted >= size:
                break
            index = options.start_from + position
            self._logger.debug(f"Reading chunk {index} of {base}")
            response = await self._forward(options, Method.READ_CONTENT, parent + name)
            if not response.ok:
                raise IncompleteChunkGroupError(
                    f"Chunk {index} of {base} disappeared during read",
                    name=base,
                    missing_index=index,
                )
            if response.body is None:
                continue
            try:
                async for piece in response.body:
                    if size is not None:
                        remaining = size - emitted
                        if remaining <= 0:
                            break
                        piece = piece[:remaining]
                    emitted += len(piece)
                    yield piece
            finally:
                await response.discard()
        
        if size is not None and emitted < size:
            raise IncompleteChunkGroupError(
                f"Chunks of {base} hold {emitted} of {size} bytes",
                name=base,
            )
    
    async def _load_record(self, options: ChunkerOptions, path: str) -> Optional[CompositeFileRecord]:
        """Metadata record stored at ``path``, or None."""
        if not options.uses_metadata:
            return None
        meta = await self._forward(options, Method.READ_META, path)
        if not meta.ok or not self._may_be_metadata(meta):
            return None
        content = await self._forward(options, Method.READ_CONTENT, path)
        if not content.ok:
            return None
        prefix, complete, rest = await _peek(content.body, MAX_METADATA_SIZE)
        await close_body(rest)
        return CompositeFileRecord.parse(prefix) if complete else None
    
    # Listing
    
    async def _list(self, options: ChunkerOptions, request: ContentRequest) -> ContentResponse:
        response = await self._require_router().forward(
            options.remote, request.derive(method=Method.READ_META, body=None)
        )
        if not response.ok:
            return response
        
        plain: List[str] = []
        groups = {}
        for name in response.links:
            chunk = None if name.endswith("/") else options.names.parse(name)
            if chunk is None:
                plain.append(name)
            else:
                groups.setdefault(chunk.base, []).append(chunk)
        
        entries = list(plain)
        for base, chunks in groups.items():
            path = request.path + base
            if base in plain:
                record = await self._load_record(options, path)
                if record is None:
                    continue
                expected = {options.start_from + i for i in range(record.nchunks)}
                found = {c.index for c in chunks if c.txn == record.txn}
                missing = sorted(expected - found)
                if missing:
                    self._report_incomplete(options, path, missing[0])
                    entries.remove(base)
                continue
            
            if options.uses_metadata:
                self._logger.debug(f"Ignoring {len(chunks)} chunk(s) of {path} without metadata")
                continue
            
            indices = sorted(c.index for c in chunks if c.txn is None)
            if not indices:
                continue
            expected = list(range(options.start_from, options.start_from + len(indices)))
            if indices != expected:
                gap = next(i for i, j in zip(expected, indices) if i != j)
                self._report_incomplete(options, path, gap)
                continue
            entries.append(base)
        
        response.set_links(sorted(entries))
        await response.discard()
        return response
    
    # Writing
    
    async def _store(
        self,
        options: ChunkerOptions,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        check_existing: bool = False
    ) -> None:
        if check_existing:
            existing = await self._forward(options, Method.READ_META, path)
            if existing.ok:
                # Existing content is not compared, the chunk is simply replaced
                self._logger.debug(f"Replacing existing chunk {path}")
        headers = CIMultiDict()
        headers["Content-Length"] = str(len(data))
        if content_type:
            headers["Content-Type"] = content_type
        response = await self._forward(options, Method.WRITE, path, body=data, headers=headers)
        if not response.ok:
            raise _WriteFailed(response)
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        """
        Store the request body, splitting it into chunks when it is larger
        than ``chunk_size``.
        
        Chunks are written first and the metadata record last. The steps are
        not atomic: an interrupted write can leave orphan chunks behind and a
        missing or stale metadata record. Stale chunks of the previous
        version are only removed after a successful write.
        """
        options = ChunkerOptions.from_params(request.params)
        if request.is_container:
            return await self._require_router().forward(options.remote, request)
        
        parent, base = request.parent, request.name
        previous = await self._load_record(options, request.path)
        txn = new_txn() if options.transactions == "norename" else None
        digest = hashlib.new(options.digest_name) if options.digest_name else None
        
        async def put(name: str, data: bytes) -> None:
            await self._store(options, parent + name, data, check_existing=name != base)
        
        upload = ChunkedUpload(put, base, options.names, options.start_from, txn)
        try:
            async for chunk in rechunk(_digesting(request.body, digest), options.chunk_size):
                await upload.feed(chunk)
            result = await upload.finish()
            
            if result.chunked and options.uses_metadata:
                hexdigest = digest.hexdigest() if digest is not None else None
                record = CompositeFileRecord(
                    size=result.size,
                    nchunks=result.nchunks,
                    md5=hexdigest if options.digest_name == "md5" else None,
                    sha1=hexdigest if options.digest_name == "sha1" else None,
                    txn=txn,
                )
                await self._store(options, request.path, record.to_json(), "application/json")
                self._logger.info(f"Wrote metadata for {request.path}: {result.nchunks} chunks, {result.size} bytes")
        except _WriteFailed as e:
            return e.response
        
        await self._remove_stale(options, request, previous, result)
        
        headers = CIMultiDict()
        headers["Content-Location"] = request.path
        return ContentResponse(status=201, headers=headers)
    
    async def _remove_stale(
        self,
        options: ChunkerOptions,
        request: ContentRequest,
        previous: Optional[CompositeFileRecord],
        result: UploadResult
    ) -> None:
        """Delete chunks of the replaced version that the new one does not use."""
        parent, base = request.parent, request.name
        keep = set(result.names)
        if previous is not None:
            for name in options.chunk_names(base, previous.nchunks, previous.txn):
                if name not in keep:
                    await self._delete_quietly(options, parent + name)
        elif not options.uses_metadata:
            if result.chunked:
                await self._delete_quietly(options, request.path)
            first = options.start_from + (result.nchunks if result.chunked else 0)
            await self._sweep(options, parent, base, first)
    
    # Deleting
    
    async def _delete_quietly(self, options: ChunkerOptions, path: str) -> None:
        response = await self._forward(options, Method.DELETE, path)
        if not response.ok and response.status != 404:
            self._logger.warning(f"Could not remove stale chunk {path}: status {response.status}")
    
    async def _sweep(
        self,
        options: ChunkerOptions,
        parent: str,
        base: str,
        first: int
    ) -> Tuple[int, Optional[ContentResponse]]:
        """
        Delete consecutive chunks of ``base`` from index ``first`` on.
        
        Returns:
            Tuple of (chunks removed, failed delete response or None)
        """
        index = first
        while True:
            path = parent + options.names.format(base, index)
            meta = await self._forward(options, Method.READ_META, path)
            if not meta.ok:
                return index - first, None
            response = await self._forward(options, Method.DELETE, path)
            if not response.ok:
                return index - first, response
            self._logger.debug(f"Removed chunk {path}")
            index += 1
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        options = ChunkerOptions.from_params(request.params)
        if request.is_container:
            return await self._require_router().forward(options.remote, request)
        
        record = await self._load_record(options, request.path)
        if record is not None:
            for name in options.chunk_names(request.name, record.nchunks, record.txn):
                response = await self._forward(options, Method.DELETE, request.parent + name)
                if not response.ok and response.status != 404:
                    return response
        
        response = await self._forward(options, Method.DELETE, request.path)
        if record is None and not options.uses_metadata and (response.ok or response.status == 404):
            removed, failed = await self._sweep(options, request.parent, request.name, options.start_from)
            if failed is not None:
                return failed
            if removed:
                return ContentResponse(status=204)
        if not response.ok:
            return response
        return ContentResponse(status=204)
