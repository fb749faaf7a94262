# Remote Module - Abstract Key Source
#
# Defines the KeySource contract every provider implements: given a
# username, return the account's public key listing as an ordered list
# of raw lines. Lines are handed unprocessed to the key parser by the
# caller. No transport is performed here.

from abc import ABC, abstractmethod
from typing import List


class KeySource(ABC):
    """Abstract base class for remote public-key listings.

    Implementations raise from ``keyloader.exceptions``:
        NetworkError         - transport failure or unexpected status
        NotFoundError        - account missing or without a listing
        RateLimitedError     - the remote throttled the request
        InvalidUsernameError - the name cannot exist on this provider
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def keys_url(self, username: str) -> str:
        """Return the listing URL for ``username``."""

    @abstractmethod
    def fetch(self, username: str) -> List[str]:
        """Fetch the raw key lines for ``username``, in listing order."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
