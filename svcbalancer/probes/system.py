"""Host and runtime metrics of the balancer process."""

import gc
import os
import sys
import threading
import time
from abc import ABC, abstractmethod

import psutil
from pydantic import BaseModel


class SystemInfo(BaseModel):
    """OS-level information, passed through to the status response as is."""

    uptime: float
    loads: tuple[float, float, float]
    procs: int
    total_ram: int
    free_ram: int
    shared_ram: int
    buffer_ram: int
    total_swap: int
    free_swap: int


class RuntimeMemory(BaseModel):
    rss: int
    vms: int
    allocated_blocks: int


class GCStats(BaseModel):
    enabled: bool
    collections: list[int]
    collected: list[int]
    uncollectable: list[int]
    counts: list[int]
    thresholds: list[int]
    garbage: int


class SystemInfoProvider(ABC):
    """Contract for the opaque OS-metrics probe."""

    @abstractmethod
    def get(self) -> SystemInfo:
        """Reads the current system information.

        Raises:
            psutil.Error or OSError when the OS refuses the query.
        """
        pass


class PsutilSystemInfoProvider(SystemInfoProvider):
    def get(self) -> SystemInfo:
        memory = psutil.virtual_memory()
        swap = psutil.swap_memory()
        one, five, fifteen = psutil.getloadavg()

        return SystemInfo(
            uptime=max(time.time() - psutil.boot_time(), 0.0),
            loads=(one, five, fifteen),
            procs=len(psutil.pids()),
            total_ram=memory.total,
            free_ram=memory.free,
            # Not reported on every platform.
            shared_ram=getattr(memory, "shared", 0),
            buffer_ram=getattr(memory, "buffers", 0),
            total_swap=swap.total,
            free_swap=swap.free,
        )


def read_runtime_memory() -> RuntimeMemory:
    info = psutil.Process(os.getpid()).memory_info()
    return RuntimeMemory(rss=info.rss, vms=info.vms, allocated_blocks=sys.getallocatedblocks())


def read_gc_stats() -> GCStats:
    generations = gc.get_stats()
    return GCStats(
        enabled=gc.isenabled(),
        collections=[g["collections"] for g in generations],
        collected=[g["collected"] for g in generations],
        uncollectable=[g["uncollectable"] for g in generations],
        counts=list(gc.get_count()),
        thresholds=list(gc.get_threshold()),
        garbage=len(gc.garbage),
    )


def cpu_count() -> int:
    return os.cpu_count() or 1


def thread_count() -> int:
    return threading.active_count()
