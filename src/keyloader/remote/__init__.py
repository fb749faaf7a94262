# Remote Module - public key listings from Git forges

from .forge import PROVIDERS, ForgeKeySource
from .source import KeySource

__all__ = [
    "PROVIDERS",
    "ForgeKeySource",
    "KeySource",
]
