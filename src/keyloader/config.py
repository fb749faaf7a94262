# Keyloader - Configuration
#
# Settings come from the environment, optionally seeded from a .env
# file in the working directory (real environment variables win).
# Command-line flags override whatever is loaded here.
#
#   KEYLOADER_PROVIDER  - github | gitlab            (default: github)
#   KEYLOADER_BASE_URL  - override the provider host (default: provider's)
#   KEYLOADER_TIMEOUT   - request timeout, seconds   (default: 10)
#   KEYLOADER_OUTPUT    - authorized_keys path       (default: ~/.ssh/authorized_keys)

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError
from .remote.forge import DEFAULT_TIMEOUT_SEC, PROVIDERS

DEFAULT_OUTPUT = "~/.ssh/authorized_keys"
DEFAULT_PROVIDER = "github"


@dataclass
class Settings:
    provider: str = DEFAULT_PROVIDER
    base_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SEC
    output: str = DEFAULT_OUTPUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ

        provider = env.get("KEYLOADER_PROVIDER", DEFAULT_PROVIDER).strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"KEYLOADER_PROVIDER={provider!r} is not one of: {', '.join(sorted(PROVIDERS))}"
            )

        raw_timeout = env.get("KEYLOADER_TIMEOUT")
        timeout = DEFAULT_TIMEOUT_SEC
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"KEYLOADER_TIMEOUT={raw_timeout!r} is not a number"
                ) from exc
            if timeout <= 0:
                raise ConfigurationError("KEYLOADER_TIMEOUT must be positive")

        return cls(
            provider=provider,
            base_url=env.get("KEYLOADER_BASE_URL") or None,
            timeout=timeout,
            output=env.get("KEYLOADER_OUTPUT") or DEFAULT_OUTPUT,
        )


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Load .env (if any) into the environment, then read settings."""
    load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True), override=False)
    return Settings.from_env()
