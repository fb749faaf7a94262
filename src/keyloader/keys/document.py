# Keys Module - Authorized-Keys Document
#
# Ordered, in-memory model of an authorized_keys file. Pre-existing
# lines keep their order and exact text; new keys are only ever
# appended at the end. The only normalization applied on save is a
# single terminating newline.

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..exceptions import KeyFileError
from .models import KeyLine, KeyRecord, equivalent
from .parser import parse_lines

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
# Undecodable bytes survive a load/serialize round trip.
ENCODING_ERRORS = "surrogateescape"


class AuthorizedKeysDocument:
    """An authorized_keys file as an ordered list of KeyLines."""

    def __init__(self, lines: Optional[List[KeyLine]] = None):
        self._lines: List[KeyLine] = list(lines or [])

    @classmethod
    def load(cls, content: Optional[bytes]) -> "AuthorizedKeysDocument":
        """Build a document from file content.

        ``None`` (file does not exist) and ``b""`` both give an empty
        document.
        """
        if not content:
            return cls()

        text = content.decode(ENCODING, errors=ENCODING_ERRORS)
        raw_lines = text.split("\n")
        if raw_lines[-1] == "":
            raw_lines.pop()
        return cls(parse_lines(raw_lines))

    def serialize(self) -> bytes:
        if not self._lines:
            return b""
        text = "\n".join(line.render() for line in self._lines) + "\n"
        return text.encode(ENCODING, errors=ENCODING_ERRORS)

    def append(self, record: KeyRecord) -> None:
        self._lines.append(record)

    def keys(self) -> Iterator[KeyRecord]:
        """Key records in file order."""
        for line in self._lines:
            if isinstance(line, KeyRecord):
                yield line

    def contains(self, record: KeyRecord) -> bool:
        return any(equivalent(existing, record) for existing in self.keys())

    @property
    def lines(self) -> List[KeyLine]:
        return list(self._lines)

    def __iter__(self) -> Iterator[KeyLine]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return (
            f"AuthorizedKeysDocument(lines={len(self._lines)}, "
            f"keys={sum(1 for _ in self.keys())})"
        )


def read_document(path: Union[str, Path]) -> AuthorizedKeysDocument:
    """Load the document stored at ``path``.

    A missing file is an empty document. Any other read failure raises
    KeyFileError.
    """
    path = Path(path)
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        logger.info("%s does not exist yet, starting from an empty document", path)
        return AuthorizedKeysDocument.load(None)
    except OSError as exc:
        raise KeyFileError(f"Cannot read {path}: {exc.strerror or exc}") from exc

    document = AuthorizedKeysDocument.load(content)
    logger.debug("Loaded %s: %r", path, document)
    return document
