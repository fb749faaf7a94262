# Keys Module - Data Models
#
# Structured representation of authorized_keys content:
#   KeyRecord       - one SSH public key (type, base64 data, comment, options)
#   PassThroughLine - blank, comment, or unrecognized line kept verbatim
#   MergeResult     - outcome of merging a remote key set into a document
#
# Key equality is defined on key material only (type + data). Comments
# and options never take part in it.

import base64
import binascii
import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class KeyRecord:
    """A parsed SSH public key line.

    ``raw`` holds the original text for records loaded from a file so
    they serialize byte for byte. Records built from remote input have
    ``raw=None`` and render canonically.
    """

    key_type: str
    key_data: str
    comment: Optional[str] = None
    options: Optional[str] = None
    raw: Optional[str] = None

    def __post_init__(self):
        if not self.key_type or not self.key_data:
            raise ValueError("key_type and key_data must be non-empty")

    @property
    def identity(self) -> Tuple[str, str]:
        """Equality key: the key material, nothing else."""
        return (self.key_type, self.key_data)

    @property
    def blob(self) -> Optional[bytes]:
        """Decoded key data, or None when it is not valid base64."""
        try:
            return base64.b64decode(self.key_data, validate=True)
        except (binascii.Error, ValueError):
            return None

    @property
    def blob_matches_type(self) -> bool:
        """True when the blob opens with its own length-prefixed key type.

        Every SSH public key blob starts with a uint32 length followed by
        the key type string, so text that merely looks like a key fails.
        """
        blob = self.blob
        if blob is None or len(blob) < 4:
            return False
        length = int.from_bytes(blob[:4], "big")
        return blob[4:4 + length] == self.key_type.encode("ascii", "replace")

    @property
    def fingerprint(self) -> str:
        """OpenSSH-style SHA256 fingerprint of the key blob.

        Data that does not decode gets a ``TEXT-SHA256:`` digest of the
        text instead, which never collides with a real fingerprint.
        """
        blob = self.blob
        if blob is None:
            return "TEXT-SHA256:" + _b64_digest(self.key_data.encode())
        return "SHA256:" + _b64_digest(blob)

    def canonical(self) -> str:
        """Render as ``[options ]type data[ comment]``."""
        parts = []
        if self.options:
            parts.append(self.options)
        parts.extend([self.key_type, self.key_data])
        if self.comment:
            parts.append(self.comment)
        return " ".join(parts)

    def render(self) -> str:
        return self.raw if self.raw is not None else self.canonical()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.key_type,
            "comment": self.comment,
            "fingerprint": self.fingerprint,
            "line": self.canonical(),
        }


@dataclass(frozen=True)
class PassThroughLine:
    """Any line that is not a key record, preserved unchanged."""

    raw_text: str

    def render(self) -> str:
        return self.raw_text


KeyLine = Union[KeyRecord, PassThroughLine]


def _b64_digest(data: bytes) -> str:
    return base64.b64encode(hashlib.sha256(data).digest()).decode().rstrip("=")


def equivalent(a: KeyRecord, b: KeyRecord) -> bool:
    """True when both records carry the same key material."""
    return a.identity == b.identity


@dataclass
class MergeResult:
    """Outcome of merging remote keys into a document."""

    added: List[KeyRecord] = field(default_factory=list)
    already_present_count: int = 0
    skipped_invalid_count: int = 0
    skipped_lines: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": [record.to_dict() for record in self.added],
            "already_present_count": self.already_present_count,
            "skipped_invalid_count": self.skipped_invalid_count,
        }
