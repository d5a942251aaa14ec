"""
Custom exceptions for cloudlayer backends.

Backends report missing objects as 404 responses; the exceptions below cover
the conditions that cannot be expressed as a response (bad configuration,
corrupt ciphertext, broken chunk groups).
"""
from typing import Optional


class CloudLayerException(Exception):
    """Base exception for all cloudlayer errors."""
    
    status: int = 500
    
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            status: Response status this error maps to (defaults to class status)
        """
        if status is not None:
            self.status = status
        self.message = message
        super().__init__(message)


class ConfigurationError(CloudLayerException):
    """Raised when a backend is missing a required option or has a bad one."""
    status = 400


class BackendNotFoundError(CloudLayerException):
    """Raised by helpers that require an object to exist."""
    status = 404
    
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class MethodNotAllowedError(CloudLayerException):
    """Raised when a read-only backend is asked to write or delete."""
    status = 405


class IntegrityError(CloudLayerException):
    """Base class for stored content that fails verification."""
    pass


class AuthenticationError(IntegrityError):
    """Raised when a sealed block fails to open."""
    
    def __init__(self, message: str, block_index: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            block_index: Index of the block that failed authentication
        """
        self.block_index = block_index
        super().__init__(message)


class BadHeaderError(IntegrityError):
    """Raised when an encrypted stream has a bad or truncated header."""
    pass


class IncompleteChunkGroupError(CloudLayerException):
    """Raised when a composite file is missing one of its chunks."""
    
    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        missing_index: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            name: Base name of the composite file
            missing_index: First chunk index found missing
        """
        self.name = name
        self.missing_index = missing_index
        super().__init__(message)


class NameDecryptionError(CloudLayerException):
    """Raised when an encrypted name segment is not valid cipher output."""
    
    def __init__(self, message: str, name: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message, status=400)
