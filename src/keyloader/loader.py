"""
Key loading run: fetch, merge, then write when something changed.

One run:
  1. Fetch the remote listing for a username (404 counts as no keys).
  2. Read the target authorized_keys file (missing file = empty).
  3. Merge the remote keys into the document.
  4. Write atomically, only when keys were added or ``force`` is set,
     and never on a dry run.

Every fatal error is raised before step 4, so a failed run never
touches the file.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

from .core.audit_log import log_key_event
from .exceptions import NotFoundError
from .keys.document import read_document
from .keys.merge import merge
from .keys.models import MergeResult
from .keys.parser import parse_lines
from .keys.writer import write_atomic
from .remote.source import KeySource

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """Everything a caller needs to report on one run."""

    username: str
    provider: str
    path: Path
    merge: MergeResult = field(default_factory=MergeResult)
    remote_count: int = 0
    user_found: bool = True
    written: bool = False
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "username": self.username,
            "provider": self.provider,
            "path": str(self.path),
            "remote_count": self.remote_count,
            "user_found": self.user_found,
            "written": self.written,
            "dry_run": self.dry_run,
        }
        data.update(self.merge.to_dict())
        return data


def load_keys(
    username: str,
    path: Union[str, Path],
    source: KeySource,
    force: bool = False,
    dry_run: bool = False,
) -> LoadReport:
    """Merge ``username``'s published keys into the file at ``path``.

    ``path`` must already be expanded (no leading ``~``).
    """
    path = Path(path)
    report = LoadReport(username=username, provider=source.name, path=path, dry_run=dry_run)

    try:
        remote_lines = source.fetch(username)
    except NotFoundError as exc:
        logger.warning("%s; treating as an empty key listing", exc)
        remote_lines = []
        report.user_found = False

    remote_keys = parse_lines(remote_lines)
    report.remote_count = len(remote_lines)
    log_key_event(
        "keys_fetched",
        username=username,
        provider=source.name,
        lines=report.remote_count,
        level=logging.DEBUG,
    )

    document = read_document(path)
    report.merge = merge(document, remote_keys)
    log_key_event(
        "keys_merged",
        path=str(path),
        added=[record.fingerprint for record in report.merge.added],
        already_present=report.merge.already_present_count,
        skipped=report.merge.skipped_invalid_count,
        level=logging.DEBUG,
    )

    if dry_run:
        logger.info("Dry run: leaving %s untouched", path)
        return report

    if not report.merge.changed and not force:
        log_key_event("authorized_keys_unchanged", path=str(path))
        return report

    write_atomic(path, document.serialize())
    report.written = True
    log_key_event(
        "authorized_keys_written",
        path=str(path),
        username=username,
        provider=source.name,
        added=[record.fingerprint for record in report.merge.added],
        forced=force and not report.merge.changed,
    )
    return report
