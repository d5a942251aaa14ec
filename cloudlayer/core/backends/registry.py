"""Static map from backend type tag to backend class."""
from typing import Dict, Type

from ..exceptions import ConfigurationError
from .alias import AliasBackend
from .base import BaseBackend
from .chunker import ChunkerBackend
from .crypt import CryptBackend
from .http import HttpBackend
from .local import LocalBackend
from .memory import MemoryBackend

BACKENDS: Dict[str, Type[BaseBackend]] = {
    AliasBackend.TYPE: AliasBackend,
    ChunkerBackend.TYPE: ChunkerBackend,
    CryptBackend.TYPE: CryptBackend,
    HttpBackend.TYPE: HttpBackend,
    LocalBackend.TYPE: LocalBackend,
    MemoryBackend.TYPE: MemoryBackend,
}


def backend_class(type_name: str) -> Type[BaseBackend]:
    """
    Return the backend class registered for ``type_name``.
    
    Raises:
        ConfigurationError: If the type is unknown
    """
    try:
        return BACKENDS[type_name]
    except KeyError:
        raise ConfigurationError(f"Unknown backend type {type_name!r}") from None
