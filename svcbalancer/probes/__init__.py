"""Point-in-time probes of the host, the filesystem and the balancer process."""

from svcbalancer.probes.disk import DiskStatus, disk_usage
from svcbalancer.probes.storage import DBStatus, storage_size
from svcbalancer.probes.system import PsutilSystemInfoProvider, SystemInfo, SystemInfoProvider

__all__ = [
    "DBStatus",
    "DiskStatus",
    "PsutilSystemInfoProvider",
    "SystemInfo",
    "SystemInfoProvider",
    "disk_usage",
    "storage_size",
]
