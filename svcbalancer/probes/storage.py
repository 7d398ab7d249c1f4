import os
import stat

from pydantic import BaseModel

from svcbalancer.logger import logger
from svcbalancer.probes.units import GB, MB, bytes_to


class DBStatus(BaseModel):
    """On-disk size of a directory tree. All zeros means the probe failed."""

    size_mb: float = 0.0
    size_gb: float = 0.0


def tree_size(path: str) -> int:
    """Sums the sizes of every non-directory entry under ``path``.

    Symbolic links are not followed. Any OSError aborts the walk.
    """
    root = os.lstat(path)
    if not stat.S_ISDIR(root.st_mode):
        return root.st_size

    total = 0
    pending = [path]
    while pending:
        with os.scandir(pending.pop()) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(entry.path)
                    continue
                total += entry.stat(follow_symlinks=False).st_size

    return total


def storage_size(path: str) -> DBStatus:
    """Reports the size of the tree under ``path`` in megabytes and gigabytes.

    The result is all or nothing: one unreadable entry yields an all-zero
    DBStatus instead of a partial sum.
    """
    try:
        size = tree_size(path)
    except OSError as e:
        logger.error(f"Could not compute the storage size of {path}: {e}")
        return DBStatus()

    return DBStatus(size_mb=bytes_to(size, MB), size_gb=bytes_to(size, GB))
