import inspect
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK, HTTP_403_FORBIDDEN, HTTP_500_INTERNAL_SERVER_ERROR

from svcbalancer.config import BalancerConfig
from svcbalancer.counters import CounterStore
from svcbalancer.endpoints import EndpointRegistry
from svcbalancer.exceptions import AuthorizationError
from svcbalancer.logger import logger
from svcbalancer.probes.system import SystemInfoProvider
from svcbalancer.services import ServicePool
from svcbalancer.status import StatusAssembler
from svcbalancer.types import NoArgAsyncCallable


def ensure_async_hook(func: Any) -> None:
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"The lifecycle hook {func} must be an async function.")


class Balancer(FastAPI):
    """The balancer HTTP application.

    Starts both worker pools on startup, terminates them on shutdown and
    serves the status and liveness probes.
    """

    def __init__(
        self,
        config: BalancerConfig,
        *,
        counters: CounterStore | None = None,
        endpoints: EndpointRegistry | None = None,
        wallet_pool: ServicePool | None = None,
        bbs_pool: ServicePool | None = None,
        system_info: SystemInfoProvider | None = None,
        on_startup: Sequence[NoArgAsyncCallable] | None = None,
        on_shutdown: Sequence[NoArgAsyncCallable] | None = None,
        title: str = "Service Balancer",
        status_url: str = "/status",
        liveness_url: str = "/alive",
        **extra: Any,
    ):
        super().__init__(debug=config.debug, title=title, lifespan=self.run, **extra)

        self.config = config
        self.counters = counters or CounterStore()
        self.endpoints = endpoints or EndpointRegistry(self.counters)
        self.wallet_pool = wallet_pool or ServicePool(
            "wallet",
            config.wallet_service_path,
            config.wallet_service_first_port,
            config.wallet_service_count,
            self.counters,
            args=config.wallet_service_args,
        )
        self.bbs_pool = bbs_pool or ServicePool(
            "bbs",
            config.bbs_service_path,
            config.bbs_service_first_port,
            config.bbs_service_count,
            self.counters,
            args=config.bbs_service_args,
        )
        self.assembler = StatusAssembler(
            config,
            self.counters,
            self.wallet_pool,
            self.bbs_pool,
            self.endpoints,
            system_info=system_info,
        )

        self._on_startup: list[NoArgAsyncCallable] = []
        for func in on_startup or []:
            self.on_startup(func)

        self._on_shutdown: list[NoArgAsyncCallable] = []
        for func in on_shutdown or []:
            self.on_shutdown(func)

        self.add_api_route(path=status_url, endpoint=self._get_status, methods=["GET"])
        self.add_api_route(path=liveness_url, endpoint=self._get_liveness, methods=["GET"])

    def on_startup(self, func: NoArgAsyncCallable) -> NoArgAsyncCallable:
        ensure_async_hook(func)
        self._on_startup.append(func)
        return func

    def on_shutdown(self, func: NoArgAsyncCallable) -> NoArgAsyncCallable:
        ensure_async_hook(func)
        self._on_shutdown.append(func)
        return func

    @asynccontextmanager
    async def run(self, app: "Balancer") -> AsyncGenerator[None, None]:
        await self._start()
        try:
            yield
        finally:
            await self._shutdown()

    async def _start(self) -> None:
        logger.info("Starting the balancer services")
        for func in self._on_startup:
            await func()

        started: list[ServicePool] = []
        try:
            for pool in (self.wallet_pool, self.bbs_pool):
                started.append(pool)
                pool.start()
                pool.run_watcher(self.config.restart_interval)
        except Exception:
            logger.error("The balancer services failed to start, terminating the started ones")
            for pool in started:
                pool.stop()
                pool.terminate()
            raise

        logger.info("The balancer services started")

    async def _shutdown(self) -> None:
        logger.info("Terminating the balancer services")
        for func in self._on_shutdown:
            await func()

        for pool in (self.wallet_pool, self.bbs_pool):
            pool.stop()
            pool.terminate()

        logger.info("The balancer services terminated")

    async def _get_status(self, request: Request) -> JSONResponse:
        try:
            snapshot = await self.assembler.assemble(request.query_params.get("secret"))
        except AuthorizationError as e:
            logger.warning(f"Status request from {_client_host(request)} refused: {e}")
            return JSONResponse(content={"error": str(e)}, status_code=HTTP_403_FORBIDDEN)

        return JSONResponse(content=snapshot.model_dump(mode="json"))

    async def _get_liveness(self, _: Request) -> JSONResponse:
        wallet = self.wallet_pool.alive()
        bbs = self.bbs_pool.alive()
        alive = all(wallet.values()) and all(bbs.values())

        status_code = HTTP_200_OK
        if not alive:
            status_code = HTTP_500_INTERNAL_SERVER_ERROR

        return JSONResponse(
            content={"alive": alive, "wallet": wallet, "bbs": bbs}, status_code=status_code
        )


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
