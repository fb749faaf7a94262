# Keyloader - Main Package
#
# Fetch a user's public SSH keys from a Git forge and merge them into a
# local authorized_keys file. Repeated runs are no-ops.

__version__ = "0.2.0"
__description__ = "Merge a Git forge user's public SSH keys into authorized_keys"

from .exceptions import (
    ConfigurationError,
    InvalidUsernameError,
    KeyFileError,
    KeyloaderError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
)
from .keys import AuthorizedKeysDocument, KeyRecord, MergeResult, PassThroughLine
from .loader import LoadReport, load_keys
from .remote import ForgeKeySource, KeySource

__all__ = [
    "__version__",
    "AuthorizedKeysDocument",
    "ConfigurationError",
    "ForgeKeySource",
    "InvalidUsernameError",
    "KeyFileError",
    "KeyRecord",
    "KeySource",
    "KeyloaderError",
    "LoadReport",
    "MergeResult",
    "NetworkError",
    "NotFoundError",
    "PassThroughLine",
    "RateLimitedError",
    "load_keys",
]
