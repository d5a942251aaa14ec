"""
cloudlayer - Composable async storage backends.

Usage:
    >>> from cloudlayer import ConfigStore, Router, obscure
    >>> 
    >>> config = ConfigStore()
    >>> config.add("big", "chunker", remote=":memory:", chunk_size="4M")
    >>> config.add("secret", "crypt", remote="big:", password=obscure("pw"))
    >>> async with Router(config) as router:
    ...     await router.write("secret:/notes.txt", b"hello")
"""
import logging

from .core import (
    CloudLayerException,
    ConfigurationError,
    BackendNotFoundError,
    MethodNotAllowedError,
    IntegrityError,
    AuthenticationError,
    BadHeaderError,
    IncompleteChunkGroupError,
    NameDecryptionError,
    Method,
    ContentRequest,
    ContentResponse,
    ConfigStore,
    RemoteConfig,
    Router,
    raise_for_status,
)
from .core.backends import Backend, BaseBackend, encode, decode
from .core.crypto import obscure, reveal

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for cloudlayer modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'cloudlayer',
        'cloudlayer.router',
        'cloudlayer.streams',
        'cloudlayer.cli',
        'cloudlayer.backend.alias',
        'cloudlayer.backend.chunker',
        'cloudlayer.backend.crypt',
        'cloudlayer.backend.http',
        'cloudlayer.backend.local',
        'cloudlayer.backend.memory',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


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
    'raise_for_status',
    'Backend',
    'BaseBackend',
    'encode',
    'decode',
    'obscure',
    'reveal',
    'setup_logging',
]
