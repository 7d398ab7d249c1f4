"""Aggregation of the balancer status snapshot."""

import uuid
from typing import Any

import anyio
import anyio.to_thread
import psutil
from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer

from svcbalancer.auth import AuthGate
from svcbalancer.config import BalancerConfig
from svcbalancer.counters import Counters, CounterStore
from svcbalancer.endpoints import EndpointRegistry
from svcbalancer.logger import logger
from svcbalancer.probes.disk import DiskStatus, FilesystemStatter, disk_usage
from svcbalancer.probes.storage import DBStatus, storage_size
from svcbalancer.probes.system import (
    GCStats,
    PsutilSystemInfoProvider,
    RuntimeMemory,
    SystemInfo,
    SystemInfoProvider,
    cpu_count,
    read_gc_stats,
    read_runtime_memory,
    thread_count,
)
from svcbalancer.services import ServicePool, ServiceStats


class WalletStats(BaseModel):
    """A wallet worker together with its endpoint and client counts.

    Serialized flat, with the worker fields next to the counts.
    """

    service: ServiceStats
    endpoints_cnt: int = 0
    clients_cnt: int = 0

    @model_serializer(mode="wrap")
    def _flatten(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {**data.pop("service"), **data}


class StatusSnapshot(BaseModel):
    memory: RuntimeMemory
    gc: GCStats
    sys_info: SystemInfo | None
    num_cpu: int
    num_threads: int
    max_wallet_services: int
    max_bbs_services: int
    wallet_services: list[WalletStats]
    bbs_services: list[ServiceStats]
    config: BalancerConfig
    counters: Counters
    wallet_sockets: int
    db_size: DBStatus
    db_disk_usage: DiskStatus
    self_disk_usage: DiskStatus


class StatusAssembler:
    """Builds a StatusSnapshot out of the balancer's live state and host probes.

    Shared state is only read, through each owner's locked accessor. Probe
    failures zero the matching field; only the access check can fail a request.
    """

    def __init__(
        self,
        config: BalancerConfig,
        counters: CounterStore,
        wallet_pool: ServicePool,
        bbs_pool: ServicePool,
        endpoints: EndpointRegistry,
        system_info: SystemInfoProvider | None = None,
        statter: FilesystemStatter | None = None,
        workdir: str = "./",
    ) -> None:
        self.config = config
        self.auth = AuthGate(config.api_secret, debug=config.debug)
        self.counters = counters
        self.wallet_pool = wallet_pool
        self.bbs_pool = bbs_pool
        self.endpoints = endpoints
        self.system_info = system_info or PsutilSystemInfoProvider()
        self.statter = statter
        self.workdir = workdir

    async def assemble(self, secret: str | None) -> StatusSnapshot:
        """Returns a fresh snapshot.

        Raises:
            AuthorizationError: before anything is read, when ``secret`` is refused.
        """
        self.auth.require(secret)

        with logger.contextualize(request_id=uuid.uuid4().hex[:8]):
            counters = self.counters.snapshot()
            if counters.active_sockets < 0:
                logger.warning(f"Negative wallet socket count: {counters.active_sockets}")

            wallet_services = self._wallet_services()
            bbs_services = self.bbs_pool.get_stats()
            db_size, db_disk_usage, self_disk_usage = await self._storage_probes()

            snapshot = StatusSnapshot(
                memory=read_runtime_memory(),
                gc=read_gc_stats(),
                sys_info=self._system_info(),
                num_cpu=cpu_count(),
                num_threads=thread_count(),
                max_wallet_services=len(wallet_services),
                max_bbs_services=len(bbs_services),
                wallet_services=wallet_services,
                bbs_services=bbs_services,
                config=self.config.redacted(),
                counters=counters,
                wallet_sockets=counters.active_sockets,
                db_size=db_size,
                db_disk_usage=db_disk_usage,
                self_disk_usage=self_disk_usage,
            )
            logger.debug(
                f"Status assembled with {snapshot.max_wallet_services} wallet "
                f"and {snapshot.max_bbs_services} bbs services"
            )
            return snapshot

    def _wallet_services(self) -> list[WalletStats]:
        # Joined on the port, so a pool changing between both reads cannot
        # attribute counts to the wrong worker.
        wallet_services = []
        for stats in self.wallet_pool.get_stats():
            endpoints_cnt, clients_cnt = self.endpoints.get_service_counts(stats.port)
            wallet_services.append(
                WalletStats(service=stats, endpoints_cnt=endpoints_cnt, clients_cnt=clients_cnt)
            )
        return wallet_services

    def _system_info(self) -> SystemInfo | None:
        try:
            return self.system_info.get()
        except (psutil.Error, OSError) as e:
            logger.warning(f"Could not read the system info: {e}")
            return None

    async def _storage_probes(self) -> tuple[DBStatus, DiskStatus, DiskStatus]:
        results: dict[str, Any] = {}

        async def run(key: str, func: Any, *args: Any) -> None:
            results[key] = await anyio.to_thread.run_sync(func, *args)

        path = self.config.database_path
        async with anyio.create_task_group() as tg:
            tg.start_soon(run, "db_size", storage_size, path)
            tg.start_soon(run, "db_disk_usage", disk_usage, path, self.statter)
            tg.start_soon(run, "self_disk_usage", disk_usage, self.workdir, self.statter)

        return results["db_size"], results["db_disk_usage"], results["self_disk_usage"]
