# Keys Module - authorized_keys parsing, merging and persistence

from .document import AuthorizedKeysDocument, read_document
from .merge import merge
from .models import KeyLine, KeyRecord, MergeResult, PassThroughLine, equivalent
from .parser import parse_line, parse_lines
from .writer import write_atomic

__all__ = [
    "AuthorizedKeysDocument",
    "KeyLine",
    "KeyRecord",
    "MergeResult",
    "PassThroughLine",
    "equivalent",
    "merge",
    "parse_line",
    "parse_lines",
    "read_document",
    "write_atomic",
]
