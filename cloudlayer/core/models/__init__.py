"""Content request/response models."""
from .content import (
    DEFAULT_READ_SIZE,
    Body,
    Method,
    ContentRequest,
    ContentResponse,
    iter_bytes,
    read_body,
    close_body,
    LinkedBody,
    normalize_path,
    join_path,
    format_link,
    parse_link,
)

__all__ = [
    'DEFAULT_READ_SIZE',
    'Body',
    'Method',
    'ContentRequest',
    'ContentResponse',
    'iter_bytes',
    'read_body',
    'close_body',
    'LinkedBody',
    'normalize_path',
    'join_path',
    'format_link',
    'parse_link',
]
