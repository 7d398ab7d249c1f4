import pytest

from svcbalancer.counters import Counters, CounterStore
from svcbalancer.endpoints import EndpointRegistry


class TestEndpointRegistry:
    def test_unknown_port_has_no_counts(self, endpoints: EndpointRegistry):
        assert endpoints.get_service_counts(9000) == (0, 0)

    def test_endpoints_and_clients_are_counted_per_port(self, endpoints: EndpointRegistry):
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.add_endpoint(9000, "ep-2")
        endpoints.add_endpoint(9001, "ep-3")
        endpoints.add_client(9000, "ep-1", "alice")
        endpoints.add_client(9000, "ep-2", "bob")
        endpoints.add_client(9001, "ep-3", "carol")

        assert endpoints.get_service_counts(9000) == (2, 2)
        assert endpoints.get_service_counts(9001) == (1, 1)

    def test_repeated_adds_are_idempotent(
        self, endpoints: EndpointRegistry, counters: CounterStore
    ):
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.add_client(9000, "ep-1", "alice")
        endpoints.add_client(9000, "ep-1", "alice")

        assert endpoints.get_service_counts(9000) == (1, 1)
        assert counters.snapshot() == Counters(wallet_connect=1, endpoint_add=1)

    def test_client_on_unknown_endpoint_is_rejected(
        self, endpoints: EndpointRegistry, counters: CounterStore
    ):
        with pytest.raises(KeyError):
            endpoints.add_client(9000, "ep-1", "alice")

        assert counters.snapshot() == Counters()

    def test_remove_client(self, endpoints: EndpointRegistry, counters: CounterStore):
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.add_client(9000, "ep-1", "alice")
        endpoints.remove_client(9000, "ep-1", "alice")
        endpoints.remove_client(9000, "ep-1", "alice")
        endpoints.remove_client(9000, "ep-9", "bob")

        assert endpoints.get_service_counts(9000) == (1, 0)
        snapshot = counters.snapshot()
        assert snapshot.wallet_disconnect == 1
        assert snapshot.active_sockets == 0

    def test_removing_an_endpoint_detaches_its_clients(
        self, endpoints: EndpointRegistry, counters: CounterStore
    ):
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.add_endpoint(9000, "ep-2")
        endpoints.add_client(9000, "ep-1", "alice")
        endpoints.add_client(9000, "ep-1", "bob")
        endpoints.add_client(9000, "ep-2", "carol")

        endpoints.remove_endpoint(9000, "ep-1")

        assert endpoints.get_service_counts(9000) == (1, 1)
        assert counters.snapshot() == Counters(
            wallet_connect=3, wallet_disconnect=2, endpoint_add=2, endpoint_remove=1
        )

    def test_removing_the_last_endpoint_forgets_the_port(
        self, endpoints: EndpointRegistry, counters: CounterStore
    ):
        endpoints.add_endpoint(9000, "ep-1")
        endpoints.remove_endpoint(9000, "ep-1")
        endpoints.remove_endpoint(9000, "ep-1")

        assert endpoints.get_service_counts(9000) == (0, 0)
        assert counters.snapshot().endpoint_remove == 1
