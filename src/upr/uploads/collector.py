"""Expand the uploads path list into an UploadGroup."""

import logging
import os
import stat

from upr.uploads.models import UploadGroup, UploadItem

logger = logging.getLogger(__name__)


def object_key_for(path: str) -> str:
    """Derive the object store key for a canonical local path.

    Every '..' becomes 'up', one leading separator is dropped and the result
    uses forward slashes, e.g. '../logs/out.txt' -> 'up/logs/out.txt'.
    """
    key = path.replace("..", "up")
    key = key.removeprefix(os.sep)
    if os.sep != "/":
        key = key.replace(os.sep, "/")
    return key


def _walk_regular_files(root: str) -> list[str]:
    """Return every regular file below root, in sorted walk order, without following symlinks."""
    found = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.normpath(os.path.join(dirpath, filename))
            try:
                mode = os.lstat(path).st_mode
            except OSError as e:
                logger.error(f"Failed to stat upload file '{path}'", extra={"error": str(e)})
                continue
            if stat.S_ISREG(mode):
                found.append(path)
    return found


def _log_walk_error(error: OSError) -> None:
    logger.error(f"Walking upload directory '{error.filename}' failed", extra={"error": str(error)})


def collect_uploads(raw: str) -> UploadGroup:
    """Collect the files named by a comma separated list of files and directories.

    Entries that cannot be stat'ed are logged and skipped. Directories are
    walked recursively and only regular files are kept.

    Args:
        raw: Comma separated paths, e.g. "build/report.html, logs/"

    Returns:
        UploadGroup keyed by each file's directory
    """
    group = UploadGroup()
    seen: set[str] = set()

    def add(path: str) -> None:
        if path in seen:
            return
        seen.add(path)
        group.add(
            os.path.dirname(path) or ".",
            UploadItem(name=os.path.basename(path), path=path, object_key=object_key_for(path)),
        )

    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        clean = os.path.normpath(entry)
        try:
            mode = os.stat(clean).st_mode
        except OSError as e:
            logger.error(f"Failed to open upload file '{clean}'", extra={"error": str(e)})
            continue

        if stat.S_ISDIR(mode):
            for path in _walk_regular_files(clean):
                add(path)
        elif stat.S_ISREG(mode):
            add(clean)
        else:
            logger.warning(f"Skipping upload entry '{clean}': not a regular file or directory")

    logger.info(
        f"Collected {len(group)} file(s) for upload",
        extra={"files": len(group), "directories": len(group.directories())},
    )
    return group
