# Remote Module - Git Forge Key Source
#
# Concrete KeySource for forges that publish an account's public SSH
# keys as plaintext at ``/<username>.keys`` (GitHub, GitLab, and their
# self-hosted installs). One line per key, no authentication.
#
# A single request per run: no retry, no backoff. Any failure other
# than 404 is terminal for the run.

import logging
import re
from typing import Dict, List, Optional, Pattern

import httpx

from .. import __version__
from ..exceptions import (
    ConfigurationError,
    InvalidUsernameError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
)
from .source import KeySource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0

# 1-39 chars, alphanumeric or single hyphens, no leading/trailing hyphen
_GITHUB_USERNAME_RE = re.compile(r"^[A-Za-z\d](?:[A-Za-z\d]|-(?=[A-Za-z\d])){0,38}$")
_GITLAB_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.][A-Za-z0-9_.-]{0,254}$")
_GITLAB_RESERVED_SUFFIXES = (".git", ".atom")

PROVIDERS: Dict[str, str] = {
    "github": "https://github.com",
    "gitlab": "https://gitlab.com",
}


class ForgeKeySource(KeySource):
    """Fetch ``<base_url>/<username>.keys`` over HTTPS.

    Usage::

        source = ForgeKeySource.for_provider("github")
        lines = source.fetch("octocat")
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        username_pattern: Optional[Pattern] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ):
        super().__init__(name)
        _check_base_url(base_url)
        self.base_url = base_url.rstrip("/")
        self.username_pattern = username_pattern
        self.timeout = timeout

    @classmethod
    def for_provider(
        cls,
        provider: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> "ForgeKeySource":
        """Build a source for a known provider, optionally on another host."""
        if provider not in PROVIDERS:
            raise ValueError(
                f"Unknown provider {provider!r} (expected one of: {', '.join(sorted(PROVIDERS))})"
            )
        pattern = _GITHUB_USERNAME_RE if provider == "github" else _GITLAB_USERNAME_RE
        return cls(
            name=provider,
            base_url=base_url or PROVIDERS[provider],
            username_pattern=pattern,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # KeySource interface
    # ------------------------------------------------------------------

    def keys_url(self, username: str) -> str:
        return f"{self.base_url}/{username}.keys"

    def fetch(self, username: str) -> List[str]:
        """Fetch the listing for ``username``.

        Returns the response body split into lines, in server order.
        An empty body is a valid, empty listing.
        """
        self.validate_username(username)
        url = self.keys_url(username)
        logger.debug("GET %s", url)

        try:
            resp = httpx.get(
                url,
                headers=self._build_headers(),
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.InvalidURL as exc:
            raise NetworkError(f"Invalid request URL {url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Timed out fetching keys from {url}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Cannot reach {self.name} at {url}: {exc}") from exc

        self._check_status(resp, username)

        lines = resp.text.splitlines()
        logger.info("Fetched %d line(s) for '%s' from %s", len(lines), username, self.name)
        return lines

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def validate_username(self, username: str) -> None:
        """Reject names the provider cannot have before any request."""
        valid = bool(username) and "/" not in username
        if valid and self.username_pattern is not None:
            valid = bool(self.username_pattern.match(username))
        if valid and self.name == "gitlab":
            valid = not username.endswith(_GITLAB_RESERVED_SUFFIXES)
        if not valid:
            raise InvalidUsernameError(
                f"Invalid username {username!r}: not allowed on {self.name}"
            )

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Accept": "text/plain",
            "User-Agent": f"keyloader/{__version__}",
        }

    def _check_status(self, resp: httpx.Response, username: str) -> None:
        status = resp.status_code
        if status < 300:
            return

        if status == 404:
            raise NotFoundError(
                f"No public keys listing for '{username}' on {self.name} (HTTP 404)"
            )

        remaining = resp.headers.get("X-RateLimit-Remaining")
        if status == 429 or (status == 403 and remaining == "0"):
            retry_after = resp.headers.get("Retry-After")
            message = f"{self.name} rate limited the request (HTTP {status})"
            if retry_after:
                message += f", retry after {retry_after}s"
            raise RateLimitedError(message, retry_after=retry_after)

        raise NetworkError(
            f"Unexpected response from {self.name} for '{username}': HTTP {status}"
        )


def _check_base_url(base_url: str) -> None:
    """Reject a base URL httpx cannot request before any run starts."""
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Invalid base URL {base_url!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Invalid base URL {base_url!r}: expected http:// or https:// and a host"
        )
