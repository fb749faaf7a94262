# Keys Module - Merge Engine
#
# Appends the remote keys a document does not already hold. Remote
# order is kept as received. Keys appended earlier in the same merge
# count as present, so duplicates inside the remote set collapse too.
# A remote record whose blob does not decode to its own key type is
# treated like any other unusable line.

import dataclasses
import logging
from typing import Iterable

from .document import AuthorizedKeysDocument
from .models import KeyLine, KeyRecord, MergeResult

logger = logging.getLogger(__name__)


def merge(
    document: AuthorizedKeysDocument, remote_keys: Iterable[KeyLine]
) -> MergeResult:
    """Merge ``remote_keys`` into ``document`` in place.

    Returns a MergeResult describing what was added, what was already
    present, and how many remote lines were unusable. Blank remote
    lines are ignored without being counted.
    """
    result = MergeResult()
    present = {record.identity for record in document.keys()}

    for line in remote_keys:
        if not isinstance(line, KeyRecord) or not line.blob_matches_type:
            text = line.render()
            if not text.strip():
                continue
            result.skipped_invalid_count += 1
            result.skipped_lines.append(text)
            logger.warning("Skipping unparseable remote key line: %.60r", text)
            continue

        if line.identity in present:
            result.already_present_count += 1
            logger.debug("Key %s already present", line.fingerprint)
            continue

        record = dataclasses.replace(line, raw=None)
        document.append(record)
        present.add(record.identity)
        result.added.append(record)
        logger.debug("Appending key %s (%s)", record.fingerprint, record.key_type)

    logger.info(
        "Merge complete: %d added, %d already present, %d skipped",
        len(result.added),
        result.already_present_count,
        result.skipped_invalid_count,
    )
    return result
