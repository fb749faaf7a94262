"""
Keyloader Exception Classes
"""

from typing import Optional


class KeyloaderError(Exception):
    """Base exception for keyloader operations"""
    pass


class RemoteSourceError(KeyloaderError):
    """Base exception for failures reaching a remote key listing"""
    pass


class NetworkError(RemoteSourceError):
    """Raised on transport failures or unexpected HTTP statuses"""
    pass


class NotFoundError(RemoteSourceError):
    """Raised when the remote account does not exist or has no listing"""
    pass


class RateLimitedError(RemoteSourceError):
    """Raised when the remote source throttles the request"""

    def __init__(self, message: str, retry_after: Optional[str] = None):
        super().__init__(message)
        self.retry_after = retry_after


class InvalidUsernameError(RemoteSourceError):
    """Raised when a username cannot exist on the selected provider"""
    pass


class KeyFileError(KeyloaderError):
    """Raised when the authorized_keys file cannot be read or written"""
    pass


class ConfigurationError(KeyloaderError):
    """Raised when settings from the environment are invalid"""
    pass
