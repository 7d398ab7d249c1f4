"""Supervision of the worker process pools (wallet and bbs services)."""

import contextlib
import signal
import subprocess
import threading
from collections.abc import Sequence
from typing import Literal

import psutil
from pydantic import BaseModel

from svcbalancer.counters import CounterStore
from svcbalancer.logger import logger


class ProcessState(BaseModel):
    status: Literal["running", "exited", "signaled"]
    exit_code: int | None = None


class ServiceStats(BaseModel):
    """A momentary copy of one managed worker."""

    port: int
    pid: int
    args: list[str]
    process_state: ProcessState


class ServiceProcess:
    """One worker subprocess listening on a fixed port."""

    def __init__(self, executable: str, port: int, args: Sequence[str]) -> None:
        self.port = port
        self.args = [executable, "--port", str(port), *args]
        self.process: subprocess.Popen[bytes] | None = None

    def start(self) -> None:
        self.process = subprocess.Popen(self.args)

    @property
    def pid(self) -> int:
        return self.process.pid if self.process else 0

    @property
    def exitcode(self) -> int | None:
        if not self.process:
            return None
        return self.process.poll()

    def alive(self) -> bool:
        return self.process is not None and self.exitcode is None

    def killed(self) -> bool:
        return self.exitcode is not None and abs(self.exitcode) == signal.SIGKILL

    def state(self) -> ProcessState:
        code = self.exitcode
        if code is None:
            return ProcessState(status="running")
        if code < 0:
            return ProcessState(status="signaled", exit_code=-code)
        return ProcessState(status="exited", exit_code=code)

    def stats(self) -> ServiceStats:
        return ServiceStats(
            port=self.port, pid=self.pid, args=list(self.args), process_state=self.state()
        )


class ServicePool:
    """A named pool of identical workers, restarted whenever one dies.

    Worker ``i`` listens on ``first_port + i``; a restarted worker keeps its port.
    """

    def __init__(
        self,
        name: str,
        executable: str,
        first_port: int,
        count: int,
        counters: CounterStore,
        args: Sequence[str] | None = None,
    ) -> None:
        self.name = name
        self.executable = executable
        self.first_port = first_port
        self.count = count
        self.counters = counters
        self.args = list(args or [])

        self._lock = threading.Lock()
        self._processes: list[ServiceProcess] = []
        self._stop_event = threading.Event()
        self._watcher: threading.Thread | None = None

    def start(self) -> None:
        """Spawns every worker. A failed spawn terminates the ones already running."""
        if not self.executable or self.count == 0:
            logger.info(f"No {self.name} services configured")
            return

        try:
            with self._lock:
                for index in range(self.count):
                    self._processes.append(self._spawn(self.first_port + index))
        except OSError as e:
            logger.error(f"Could not start the {self.name} services: {e}")
            self.terminate()
            raise

        logger.info(f"Started {self.count} {self.name} services from port {self.first_port}")

    def _spawn(self, port: int) -> ServiceProcess:
        service_process = ServiceProcess(self.executable, port, self.args)
        service_process.start()
        logger.debug(f"Spawned {self.name} service :{port} [{service_process.pid}]")
        return service_process

    def watch(self) -> None:
        """Restarts every worker found dead, on the same port.

        A worker that cannot be respawned stays in place and is retried on the next pass.
        """
        with self._lock:
            for index, service_process in enumerate(self._processes):
                if service_process.alive():
                    continue

                message = (
                    f"The {self.name} service :{service_process.port} "
                    f"(pid:{service_process.pid}) exited with code {service_process.exitcode}."
                )
                if service_process.killed():
                    message += " Perhaps out of memory?"
                logger.error(message)

                try:
                    new_process = self._spawn(service_process.port)
                except OSError:
                    logger.exception(
                        f"Could not restart the {self.name} service :{service_process.port}"
                    )
                    continue

                self._processes[index] = new_process
                self.counters.service_restarted()
                logger.info(
                    f"Restarted the {self.name} service :{new_process.port} [{new_process.pid}]"
                )

    def run_watcher(self, interval: float) -> None:
        if self._watcher and self._watcher.is_alive():
            return

        self._stop_event.clear()
        self._watcher = threading.Thread(
            target=self._watch_loop, args=(interval,), name=f"{self.name}-watcher", daemon=True
        )
        self._watcher.start()

    def _watch_loop(self, interval: float) -> None:
        while not self._stop_event.wait(interval):
            self.watch()

    def stop(self) -> None:
        self._stop_event.set()
        if self._watcher:
            self._watcher.join()
            self._watcher = None

    def terminate(self) -> None:
        """Terminates every worker and its children, killing the ones that linger."""
        with self._lock:
            service_processes = self._processes
            self._processes = []

        processes: list[psutil.Process] = []
        for service_process in service_processes:
            if not service_process.process:
                continue
            with contextlib.suppress(psutil.NoSuchProcess):
                parent = psutil.Process(pid=service_process.pid)
                processes.extend([*parent.children(recursive=True), parent])

        for process in processes:
            with contextlib.suppress(psutil.NoSuchProcess):
                process.terminate()

        _, alive_processes = psutil.wait_procs(processes, timeout=5)
        for alive_process in alive_processes:
            _kill(alive_process)

        # Reap the Popen handles so no zombie outlives the pool.
        for service_process in service_processes:
            if service_process.process:
                service_process.process.wait()

        logger.info(f"The {self.name} services terminated")

    def get_stats(self) -> list[ServiceStats]:
        with self._lock:
            return [service_process.stats() for service_process in self._processes]

    def alive(self) -> dict[str, bool]:
        with self._lock:
            return {
                f"{self.name}:{service_process.port}": service_process.alive()
                for service_process in self._processes
            }


def _kill(process: psutil.Process) -> None:
    with contextlib.suppress(psutil.NoSuchProcess):
        process.kill()
