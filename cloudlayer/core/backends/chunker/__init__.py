"""Chunking overlay: splits large objects into numbered chunk objects."""
from .backend import ChunkerBackend, ChunkerOptions, DEFAULT_CHUNK_SIZE
from .metadata import CompositeFileRecord, MAX_METADATA_SIZE, METADATA_VERSION
from .naming import ChunkName, NameFormat, DEFAULT_NAME_FORMAT
from .upload import ChunkedUpload, UploadResult, UploadState

__all__ = [
    'ChunkerBackend',
    'ChunkerOptions',
    'DEFAULT_CHUNK_SIZE',
    'CompositeFileRecord',
    'MAX_METADATA_SIZE',
    'METADATA_VERSION',
    'ChunkName',
    'NameFormat',
    'DEFAULT_NAME_FORMAT',
    'ChunkedUpload',
    'UploadResult',
    'UploadState',
]
