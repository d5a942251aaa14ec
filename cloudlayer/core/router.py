"""
Remote reference resolution and dispatch.

A remote reference is one of::

    :type[,key=value...]:path     backend created on the fly
    name[,key=value...]:path      named remote from the ConfigStore
    path                          local filesystem path

The router keeps one backend instance per type, so everything reached
through one router shares state (e.g. the memory store) and nothing is
shared between routers.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Union
import os
import re

from .backends.base import BaseBackend
from .backends.registry import backend_class
from .config import ConfigStore
from .exceptions import (
    BackendNotFoundError,
    CloudLayerException,
    ConfigurationError,
    MethodNotAllowedError,
)
from .logging import get_logger
from .models import Body, ContentRequest, ContentResponse, Method, join_path

logger = get_logger('cloudlayer.router')

REMOTE_PATTERN = re.compile(r"^(?P<colon>:)?(?P<remote>[\w.\-]+(?:,[^:]*)?):(?P<path>.*)$")


@dataclass
class Remote:
    """
    A resolved remote reference.
    
    Attributes:
        backend: Backend instance serving the remote
        type: Backend type tag
        path: Base path inside the backend
        params: Options for the backend
        name: Remote name, empty for on-the-fly remotes
    """
    backend: BaseBackend
    type: str
    path: str = "/"
    params: Dict[str, str] = field(default_factory=dict)
    name: str = ""


def _parse_args(args: str) -> Dict[str, str]:
    params = {}
    for arg in filter(None, args.split(",")):
        key, _, value = arg.partition("=")
        params[key.strip().replace("-", "_")] = value if _ else "true"
    return params


class Router:
    """
    Resolves remote references to backends and forwards requests.
    
    Example:
        >>> router = Router()
        >>> await router.write(":memory:/a.txt", b"hello")
        >>> await router.read_bytes(":memory:/a.txt")
        b'hello'
    """
    
    def __init__(self, config: Optional[ConfigStore] = None):
        self.config = config or ConfigStore()
        self._instances: Dict[str, BaseBackend] = {}
    
    def backend(self, type_name: str) -> BaseBackend:
        """Return this router's instance of a backend type."""
        instance = self._instances.get(type_name)
        if instance is None:
            instance = backend_class(type_name)(router=self)
            self._instances[type_name] = instance
        return instance
    
    def resolve(self, reference: str) -> Remote:
        """
        Resolve a remote reference.
        
        Raises:
            ConfigurationError: For unknown types or remote names
        """
        match = REMOTE_PATTERN.match(reference)
        if match is None:
            absolute = os.path.abspath(reference)
            if reference.endswith("/") and not absolute.endswith("/"):
                absolute += "/"
            return Remote(
                backend=self.backend("local"),
                type="local",
                path=absolute,
                params={"root": "/"},
            )
        
        name, _, args = match.group("remote").partition(",")
        path = match.group("path") or "/"
        if match.group("colon"):
            type_name, params, remote_name = name, {}, ""
        else:
            config = self.config.get(name)
            type_name, params, remote_name = config.type, dict(config.options), name
        params.update(_parse_args(args))
        
        return Remote(
            backend=self.backend(type_name),
            type=type_name,
            path=path,
            params=params,
            name=remote_name,
        )
    
    async def forward(self, reference: str, request: ContentRequest) -> ContentResponse:
        """
        Send ``request`` to the remote named by ``reference``.
        
        The request path is appended to the remote's base path and the
        request's params are replaced by the remote's own options.
        """
        remote = self.resolve(reference)
        forwarded = request.derive(
            path=join_path(remote.path, request.path),
            params=dict(remote.params),
        )
        logger.debug(f"{forwarded.method.value} {remote.type}:{forwarded.path}")
        return await remote.backend.handle(forwarded)
    
    async def request(
        self,
        target: str,
        method: Union[Method, str] = Method.READ_CONTENT,
        body: Union[bytes, Body, None] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> ContentResponse:
        """Issue one request against a ``remote:path`` target."""
        remote = self.resolve(target)
        request = ContentRequest(
            method=Method(method),
            path=remote.path,
            params=dict(remote.params),
            headers=headers or {},
            body=body,
        )
        return await remote.backend.handle(request)
    
    async def read_bytes(self, target: str) -> bytes:
        """Read a whole object, raising on error statuses."""
        response = raise_for_status(await self.request(target, Method.READ_CONTENT), target)
        return await response.read()
    
    async def write(self, target: str, data: Union[bytes, Body]) -> ContentResponse:
        """Write an object, raising on error statuses."""
        return raise_for_status(await self.request(target, Method.WRITE, body=data), target)
    
    async def list(self, target: str):
        """Child names of a container."""
        if not target.endswith("/"):
            target += "/"
        response = raise_for_status(await self.request(target, Method.READ_META), target)
        return response.links
    
    async def close(self) -> None:
        """Close every backend instance."""
        for instance in self._instances.values():
            await instance.close()
        self._instances.clear()
    
    async def __aenter__(self) -> 'Router':
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def raise_for_status(response: ContentResponse, target: str = "") -> ContentResponse:
    """Return ``response`` unchanged if it succeeded, raise otherwise."""
    if response.ok:
        return response
    if response.status == 404:
        raise BackendNotFoundError(f"Not found: {target}", path=target)
    if response.status == 405:
        raise MethodNotAllowedError(f"Method not allowed on {target}")
    raise CloudLayerException(f"Request for {target} failed with status {response.status}", status=response.status)
