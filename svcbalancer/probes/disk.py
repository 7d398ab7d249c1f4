import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import BaseModel

from svcbalancer.logger import logger
from svcbalancer.probes.units import GB, bytes_to


class DiskStatus(BaseModel):
    """Filesystem capacity in gigabytes. All zeros means the probe failed."""

    all_gb: float = 0.0
    used_gb: float = 0.0
    free_gb: float = 0.0
    avail_gb: float = 0.0


@dataclass(frozen=True)
class BlockStats:
    """Raw block counts of a filesystem.

    ``bfree`` includes the blocks reserved for the superuser, ``bavail`` does not.
    """

    blocks: int
    bfree: int
    bavail: int
    bsize: int


class FilesystemStatter(ABC):
    """Contract for anything able to query filesystem block statistics."""

    @abstractmethod
    def statvfs(self, path: str) -> BlockStats:
        """Returns the block statistics of the filesystem holding ``path``.

        Raises:
            OSError: the path is missing, unreadable or on an unsupported filesystem.
        """
        pass


class OSFilesystemStatter(FilesystemStatter):
    def statvfs(self, path: str) -> BlockStats:
        result = os.statvfs(path)
        return BlockStats(
            blocks=result.f_blocks,
            bfree=result.f_bfree,
            bavail=result.f_bavail,
            bsize=result.f_frsize,
        )


def disk_usage(path: str, statter: FilesystemStatter | None = None) -> DiskStatus:
    """Reports the capacity of the filesystem holding ``path``.

    A failed query is logged and reported as an all-zero DiskStatus.
    """
    statter = statter or OSFilesystemStatter()
    try:
        stats = statter.statvfs(path)
    except OSError as e:
        logger.warning(f"Could not read the disk usage of {path}: {e}")
        return DiskStatus()

    all_gb = bytes_to(stats.blocks * stats.bsize, GB)
    free_gb = bytes_to(stats.bfree * stats.bsize, GB)
    return DiskStatus(
        all_gb=all_gb,
        # Reserved blocks count as used, so this is not all_gb - avail_gb.
        used_gb=all_gb - free_gb,
        free_gb=free_gb,
        avail_gb=bytes_to(stats.bavail * stats.bsize, GB),
    )
