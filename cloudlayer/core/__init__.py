"""Core components: models, streams, crypto, backends and routing."""
from .exceptions import (
    CloudLayerException,
    ConfigurationError,
    BackendNotFoundError,
    MethodNotAllowedError,
    IntegrityError,
    AuthenticationError,
    BadHeaderError,
    IncompleteChunkGroupError,
    NameDecryptionError,
)
from .models import Method, ContentRequest, ContentResponse
from .config import ConfigStore, RemoteConfig
from .router import Router, Remote, raise_for_status

__all__ = [
    'CloudLayerException',
    'ConfigurationError',
    'BackendNotFoundError',
    'MethodNotAllowedError',
    'IntegrityError',
    'AuthenticationError',
    'BadHeaderError',
    'IncompleteChunkGroupError',
    'NameDecryptionError',
    'Method',
    'ContentRequest',
    'ContentResponse',
    'ConfigStore',
    'RemoteConfig',
    'Router',
    'Remote',
    'raise_for_status',
]
