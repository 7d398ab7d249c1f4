import threading

from svcbalancer.counters import CounterStore
from svcbalancer.logger import logger


class EndpointRegistry:
    """Tracks the endpoints opened on each worker and the clients attached to them.

    Workers are identified by the port they listen on. Every client attach
    and detach is reported to the counter store.
    """

    def __init__(self, counters: CounterStore) -> None:
        self.counters = counters
        self._lock = threading.Lock()
        self._services: dict[int, dict[str, set[str]]] = {}

    def add_endpoint(self, port: int, endpoint_id: str) -> None:
        with self._lock:
            endpoints = self._services.setdefault(port, {})
            if endpoint_id in endpoints:
                return
            endpoints[endpoint_id] = set()
            self.counters.endpoint_added()

        logger.debug(f"Endpoint {endpoint_id} opened on service :{port}")

    def remove_endpoint(self, port: int, endpoint_id: str) -> None:
        """Closes an endpoint, detaching whatever clients it still had."""
        with self._lock:
            endpoints = self._services.get(port, {})
            if endpoint_id not in endpoints:
                return

            for _ in endpoints.pop(endpoint_id):
                self.counters.wallet_disconnected()
            self.counters.endpoint_removed()

            if not endpoints:
                self._services.pop(port, None)

        logger.debug(f"Endpoint {endpoint_id} closed on service :{port}")

    def add_client(self, port: int, endpoint_id: str, client_id: str) -> None:
        with self._lock:
            endpoints = self._services.get(port, {})
            if endpoint_id not in endpoints:
                raise KeyError(f"No endpoint {endpoint_id} is open on service :{port}")

            clients = endpoints[endpoint_id]
            if client_id in clients:
                return
            clients.add(client_id)
            self.counters.wallet_connected()

    def remove_client(self, port: int, endpoint_id: str, client_id: str) -> None:
        with self._lock:
            clients = self._services.get(port, {}).get(endpoint_id)
            if clients is None or client_id not in clients:
                return
            clients.discard(client_id)
            self.counters.wallet_disconnected()

    def get_service_counts(self, port: int) -> tuple[int, int]:
        """Returns the (endpoints, clients) counts of the worker on ``port``."""
        with self._lock:
            endpoints = self._services.get(port, {})
            return len(endpoints), sum(len(clients) for clients in endpoints.values())
