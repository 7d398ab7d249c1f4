"""Status reporting and worker supervision for the service balancer."""

from svcbalancer.applications import Balancer
from svcbalancer.auth import AuthGate
from svcbalancer.config import BalancerConfig, load_config
from svcbalancer.counters import Counters, CounterStore
from svcbalancer.endpoints import EndpointRegistry
from svcbalancer.services import ServicePool, ServiceStats
from svcbalancer.status import StatusAssembler, StatusSnapshot, WalletStats

__all__ = [
    "AuthGate",
    "Balancer",
    "BalancerConfig",
    "CounterStore",
    "Counters",
    "EndpointRegistry",
    "ServicePool",
    "ServiceStats",
    "StatusAssembler",
    "StatusSnapshot",
    "WalletStats",
    "load_config",
]
