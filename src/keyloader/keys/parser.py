# Keys Module - Key Line Parser
#
# Turns one line of text into a KeyRecord or a PassThroughLine.
# Malformed input is data, not an error: anything that does not match
# the key grammar comes back as a PassThroughLine carrying the original
# text, so a merge never drops content it does not understand.
#
# Grammar:  [options] <type> <base64-data> [comment...]

import re
from typing import Iterable, List, Optional, Tuple

from .models import KeyLine, KeyRecord, PassThroughLine

# Any hyphenated algorithm identifier, with an
# optional @domain suffix (sk-ssh-ed25519@openssh.com, *-cert-v01@...).
KEY_TYPE_RE = re.compile(r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)+(?:@[A-Za-z0-9.-]+)?$")
KEY_DATA_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")
OPTION_START_RE = re.compile(r"^[A-Za-z]")


def parse_line(line: str) -> KeyLine:
    """Parse a single authorized_keys line.

    Never raises. ``line`` should not include its line terminator; a
    trailing ``\\r`` is tolerated and kept in the record's raw text.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return PassThroughLine(line)

    record = _match_key(stripped, line)
    if record is not None:
        return record

    split = _split_options(stripped)
    if split is not None:
        options, rest = split
        record = _match_key(rest, line, options=options)
        if record is not None:
            return record

    return PassThroughLine(line)


def parse_lines(lines: Iterable[str]) -> List[KeyLine]:
    """Parse lines in order."""
    return [parse_line(line) for line in lines]


def _match_key(
    text: str, raw: str, options: Optional[str] = None
) -> Optional[KeyRecord]:
    tokens = text.split(None, 2)
    if len(tokens) < 2:
        return None
    key_type, key_data = tokens[0], tokens[1]
    if not KEY_TYPE_RE.match(key_type) or not KEY_DATA_RE.match(key_data):
        return None
    comment = tokens[2] if len(tokens) == 3 else None
    return KeyRecord(
        key_type=key_type,
        key_data=key_data,
        comment=comment,
        options=options,
        raw=raw,
    )


def _split_options(text: str) -> Optional[Tuple[str, str]]:
    """Split a leading options field off ``text``.

    The options field ends at the first whitespace outside double
    quotes. Returns None when there is no well-formed options field.
    """
    if not OPTION_START_RE.match(text):
        return None

    in_quotes = False
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\" and in_quotes:
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            rest = text[index:].lstrip()
            if not rest:
                return None
            return text[:index], rest

    return None
