from pathlib import Path
from unittest.mock import MagicMock

import pytest

from svcbalancer.config import BalancerConfig
from svcbalancer.counters import CounterStore
from svcbalancer.endpoints import EndpointRegistry
from svcbalancer.probes.disk import BlockStats, FilesystemStatter
from svcbalancer.probes.system import SystemInfo, SystemInfoProvider
from svcbalancer.services import ServicePool

MB = 1024 * 1024


class FakeStatter(FilesystemStatter):
    def __init__(self, stats: BlockStats | None = None, error: OSError | None = None) -> None:
        self.stats = stats or BlockStats(blocks=1000, bfree=300, bavail=200, bsize=MB)
        self.error = error
        self.paths: list[str] = []

    def statvfs(self, path: str) -> BlockStats:
        self.paths.append(path)
        if self.error:
            raise self.error
        return self.stats


class FakeSystemInfo(SystemInfoProvider):
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def get(self) -> SystemInfo:
        if self.error:
            raise self.error
        return SystemInfo(
            uptime=3600.0,
            loads=(0.5, 0.25, 0.125),
            procs=120,
            total_ram=8 * 1024 * MB,
            free_ram=2 * 1024 * MB,
            shared_ram=64 * MB,
            buffer_ram=128 * MB,
            total_swap=1024 * MB,
            free_swap=1024 * MB,
        )


@pytest.fixture
def counters() -> CounterStore:
    return CounterStore()


@pytest.fixture
def endpoints(counters: CounterStore) -> EndpointRegistry:
    return EndpointRegistry(counters)


@pytest.fixture
def statter() -> FakeStatter:
    return FakeStatter()


@pytest.fixture
def system_info() -> FakeSystemInfo:
    return FakeSystemInfo()


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    path = tmp_path / "db"
    path.mkdir()
    with open(path / "wallet.db", "wb") as f:
        f.truncate(3 * MB)
    return path


@pytest.fixture
def config(database_path: Path) -> BalancerConfig:
    return BalancerConfig(
        api_secret="s3cret",
        database_path=str(database_path),
        vapid_public="public-key",
        vapid_private="private-key",
    )


@pytest.fixture
def wallet_pool() -> MagicMock:
    pool = MagicMock(spec=ServicePool)
    pool.get_stats.return_value = []
    pool.alive.return_value = {}
    return pool


@pytest.fixture
def bbs_pool() -> MagicMock:
    pool = MagicMock(spec=ServicePool)
    pool.get_stats.return_value = []
    pool.alive.return_value = {}
    return pool


@pytest.fixture
def worker_script(tmp_path: Path):
    def _make(body: str) -> str:
        script = tmp_path / "worker.sh"
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(0o755)
        return str(script)

    return _make
