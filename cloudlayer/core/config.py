"""
Remote configuration.

Named remotes map a name to a backend type plus options. They are
registered in code or read from ``CLOUDLAYER_CONFIG_<NAME>_<KEY>``
environment variables; persisting them is left to the caller.
"""
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
import os

from .exceptions import ConfigurationError

ENV_PREFIX = "CLOUDLAYER_CONFIG_"


@dataclass
class RemoteConfig:
    """
    A named remote.
    
    Attributes:
        name: Remote name used in ``name:path`` references
        type: Backend type tag (``memory``, ``crypt``, ...)
        options: Backend options as strings
    """
    name: str
    type: str
    options: Dict[str, str] = field(default_factory=dict)


class ConfigStore:
    """
    Collection of named remotes.
    
    Example:
        >>> store = ConfigStore()
        >>> store.add("secret", "crypt", remote=":memory:", password=obscure("pw"))
        >>> store.get("secret").type
        'crypt'
    """
    
    def __init__(self, remotes: Optional[Mapping[str, RemoteConfig]] = None):
        self._remotes: Dict[str, RemoteConfig] = dict(remotes or {})
    
    def add(self, name: str, type: str, **options: str) -> RemoteConfig:
        """Register (or replace) a named remote."""
        remote = RemoteConfig(name=name, type=type, options={k: str(v) for k, v in options.items()})
        self._remotes[name] = remote
        return remote
    
    def get(self, name: str) -> RemoteConfig:
        """
        Look up a named remote.
        
        Raises:
            ConfigurationError: If no remote has that name
        """
        try:
            return self._remotes[name]
        except KeyError:
            raise ConfigurationError(f"Remote {name} not found in config.") from None
    
    def remove(self, name: str) -> None:
        self._remotes.pop(name, None)
    
    def names(self):
        return sorted(self._remotes)
    
    def __contains__(self, name: str) -> bool:
        return name in self._remotes
    
    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX
    ) -> 'ConfigStore':
        """
        Build a store from environment variables.
        
        ``CLOUDLAYER_CONFIG_BOX_TYPE=memory`` defines remote ``box``;
        ``CLOUDLAYER_CONFIG_BOX_CHUNK_SIZE=1024`` sets its ``chunk_size``.
        Remote names cannot contain underscores in this form. Remotes
        without a TYPE entry are ignored.
        """
        environ = os.environ if environ is None else environ
        sections: Dict[str, Dict[str, str]] = {}
        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            name, _, option = key[len(prefix):].partition("_")
            if not name or not option:
                continue
            sections.setdefault(name.lower(), {})[option.lower()] = value
        
        store = cls()
        for name, options in sections.items():
            backend_type = options.pop("type", None)
            if backend_type:
                store.add(name, backend_type, **options)
        return store
