"""
Encrypting overlay backend.

Object content is sealed with the secretbox stream cipher and every path
segment is encrypted with the name cipher before the request reaches the
wrapped remote. Listings and response bodies are decrypted on the way back.
Passwords are given in obscured form.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Mapping, Union
import mimetypes

from multidict import CIMultiDict

from ...crypto import DerivedKeys, PathCipher, derive_keys, reveal
from ...exceptions import ConfigurationError, NameDecryptionError
from ...models import ContentRequest, ContentResponse, LinkedBody, iter_bytes
from ...streams import (
    DecryptionStream,
    EncryptionStream,
    cipher_size_from_plain_size,
    plain_size_from_cipher_size,
)
from ..base import BaseBackend
from ..options import require


def _reveal(key: str, obscured: str) -> str:
    try:
        return reveal(obscured)
    except ValueError as e:
        raise ConfigurationError(f"Failed to reveal {key}: {e}") from e


@lru_cache(maxsize=32)
def _path_cipher(keys: DerivedKeys) -> PathCipher:
    return PathCipher(keys.name_key, keys.name_tweak)


@dataclass
class CryptOptions:
    """
    Options of a crypt remote.
    
    Attributes:
        remote: Wrapped remote reference
        password: Main password, revealed
        password2: Salt password, revealed; empty selects the built-in salt
    """
    remote: str
    password: str
    password2: str = ""
    
    @classmethod
    def from_params(cls, params: Mapping[str, str], require_remote: bool = True) -> 'CryptOptions':
        """
        Build options from string parameters holding obscured passwords.
        
        Raises:
            ConfigurationError: On a missing option or a password that cannot
                                be revealed
        """
        remote = require(params, "remote") if require_remote else params.get("remote", "")
        password = _reveal("password", require(params, "password"))
        password2 = params.get("password2")
        return cls(
            remote=remote,
            password=password,
            password2=_reveal("password2", password2) if password2 else "",
        )
    
    @property
    def keys(self) -> DerivedKeys:
        return derive_keys(self.password, self.password2)
    
    @property
    def path_cipher(self) -> PathCipher:
        return _path_cipher(self.keys)


def _as_options(options: Union[CryptOptions, Mapping[str, str]]) -> CryptOptions:
    if isinstance(options, CryptOptions):
        return options
    return CryptOptions.from_params(options, require_remote=False)


def encode(options: Union[CryptOptions, Mapping[str, str]], *names: str) -> List[str]:
    """
    Encrypt file names or paths without touching any backend.
    
    Args:
        options: CryptOptions or crypt parameters (obscured passwords)
        *names: Plain names or ``/``-separated paths
        
    Returns:
        Encrypted names in the same order
    """
    cipher = _as_options(options).path_cipher
    return [cipher.encrypt(name) for name in names]


def decode(options: Union[CryptOptions, Mapping[str, str]], *names: str) -> List[str]:
    """
    Decrypt file names or paths produced by ``encode``.
    
    Raises:
        NameDecryptionError: If a name is not valid cipher output
    """
    cipher = _as_options(options).path_cipher
    return [cipher.decrypt(name) for name in names]


class CryptBackend(BaseBackend):
    """
    Overlay encrypting names and content.
    
    Example:
        >>> config.add("secret", "crypt", remote=":memory:", password=obscure("pw"))
        >>> await router.write("secret:/notes.txt", b"hello")
    """
    
    TYPE = "crypt"
    
    def _encrypted(self, options: CryptOptions, request: ContentRequest, **changes) -> ContentRequest:
        headers = CIMultiDict(request.headers)
        # Ciphertext offsets do not correspond to plaintext offsets
        headers.popall("Range", None)
        return request.derive(
            path=options.path_cipher.encrypt(request.path),
            headers=headers,
            **changes
        )
    
    async def _forward(self, options: CryptOptions, request: ContentRequest) -> ContentResponse:
        return await self._require_router().forward(options.remote, request)
    
    def _decrypt_links(self, cipher: PathCipher, names: List[str], container: str) -> List[str]:
        plain = []
        for name in names:
            is_container = name.endswith("/")
            try:
                decrypted = cipher.decrypt_name(name.rstrip("/"))
            except NameDecryptionError:
                self._logger.warning(f"Skipping undecryptable name {name!r} in {container}")
                continue
            plain.append(decrypted + "/" if is_container else decrypted)
        return plain
    
    def _decrypt_headers(self, response: ContentResponse, request: ContentRequest) -> None:
        headers = response.headers
        length = response.content_length
        if length is not None:
            try:
                headers["Content-Length"] = str(plain_size_from_cipher_size(length))
            except ValueError as e:
                self._logger.warning(f"Dropping Content-Length of {request.path}: {e}")
                headers.popall("Content-Length", None)
        headers["Content-Type"] = mimetypes.guess_type(request.name)[0] or "application/octet-stream"
    
    async def _read(self, request: ContentRequest) -> ContentResponse:
        options = CryptOptions.from_params(request.params)
        response = await self._forward(options, self._encrypted(options, request))
        if not response.ok:
            return response
        
        if request.is_container:
            # The wrapped body would list ciphertext names
            await response.discard()
            response.set_links(self._decrypt_links(options.path_cipher, response.links, request.path))
            return response
        
        self._decrypt_headers(response, request)
        if response.body is not None:
            stream = DecryptionStream(options.keys.data_key)
            response.body = LinkedBody(stream.decrypt_body(response.body), response.body)
        return response
    
    async def read_meta(self, request: ContentRequest) -> ContentResponse:
        return await self._read(request)
    
    async def read_content(self, request: ContentRequest) -> ContentResponse:
        return await self._read(request)
    
    async def write(self, request: ContentRequest) -> ContentResponse:
        options = CryptOptions.from_params(request.params)
        if request.is_container:
            return await self._forward(options, self._encrypted(options, request))
        
        forwarded = self._encrypted(options, request)
        length = request.headers.get("Content-Length")
        if length is not None:
            if length.isdigit():
                forwarded.headers["Content-Length"] = str(cipher_size_from_plain_size(int(length)))
            else:
                forwarded.headers.popall("Content-Length", None)
        forwarded.headers["Content-Type"] = "application/octet-stream"
        
        stream = EncryptionStream(options.keys.data_key)
        forwarded.body = stream.encrypt_body(request.body if request.body is not None else iter_bytes(b""))
        
        response = await self._forward(options, forwarded)
        if response.ok and "Content-Location" in response.headers:
            response.headers["Content-Location"] = request.path
        return response
    
    async def delete(self, request: ContentRequest) -> ContentResponse:
        options = CryptOptions.from_params(request.params)
        return await self._forward(options, self._encrypted(options, request))
