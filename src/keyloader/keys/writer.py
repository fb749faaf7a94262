# Keys Module - Atomic Writer
#
# Replaces the authorized_keys file in one step: the new content goes
# to a temp file in the same directory (same filesystem, so the rename
# is atomic), is fsync'd, gets its permissions, then os.replace()s the
# target. An interrupted run leaves either the old file or the new one.

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from ..exceptions import KeyFileError

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o600
SSH_DIR_MODE = 0o700


def write_atomic(
    path: Union[str, Path], content: bytes, mode: int = DEFAULT_FILE_MODE
) -> Path:
    """Atomically replace ``path`` with ``content``.

    - Creates the parent directory (mode 700) if needed
    - Keeps an existing target's permission bits, else uses ``mode``
    - Removes the temp file and raises KeyFileError on any failure

    A symlinked ``path`` is written through: its final target is
    replaced and the link itself is left in place.
    """
    path = Path(path).resolve()
    parent = path.parent

    try:
        parent.mkdir(mode=SSH_DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise KeyFileError(f"Cannot create directory {parent}: {exc.strerror or exc}") from exc

    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise KeyFileError(f"Cannot stat {path}: {exc.strerror or exc}") from exc

    tmp_path = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=parent)
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as exc:
        # Clean up temp file on failure
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise KeyFileError(f"Cannot write {path}: {exc.strerror or exc}") from exc

    logger.info("Wrote %d bytes to %s (mode %o)", len(content), path, mode)
    return path
