from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError

import pytest

from svcbalancer.counters import COUNTER_NAMES, Counters, CounterStore


class TestCounterStore:
    def test_starts_at_zero(self, counters: CounterStore):
        snapshot = counters.snapshot()

        assert snapshot == Counters()
        assert snapshot.active_sockets == 0

    def test_increment_returns_the_new_tally(self, counters: CounterStore):
        assert counters.increment("endpoint_add") == 1
        assert counters.increment("endpoint_add", 4) == 5
        assert counters.snapshot().endpoint_add == 5

    def test_named_increments(self, counters: CounterStore):
        counters.wallet_connected()
        counters.wallet_connected()
        counters.wallet_disconnected()
        counters.endpoint_added()
        counters.endpoint_removed()
        counters.service_restarted()

        assert counters.snapshot() == Counters(
            wallet_connect=2,
            wallet_disconnect=1,
            endpoint_add=1,
            endpoint_remove=1,
            service_restart=1,
        )

    def test_unknown_counter_is_rejected(self, counters: CounterStore):
        with pytest.raises(ValueError):
            counters.increment("wallet_reconnect")

    def test_negative_increment_is_rejected(self, counters: CounterStore):
        counters.wallet_connected()
        with pytest.raises(ValueError):
            counters.increment("wallet_connect", -1)

        assert counters.snapshot().wallet_connect == 1

    def test_snapshot_is_detached_from_the_store(self, counters: CounterStore):
        snapshot = counters.snapshot()
        counters.wallet_connected()

        assert snapshot.wallet_connect == 0
        with pytest.raises(FrozenInstanceError):
            snapshot.wallet_connect = 10  # type: ignore[misc]

    def test_counter_names(self):
        assert COUNTER_NAMES == (
            "wallet_connect",
            "wallet_disconnect",
            "endpoint_add",
            "endpoint_remove",
            "service_restart",
        )


class TestCounterStoreConcurrency:
    def test_concurrent_connects_and_disconnects_are_all_counted(self, counters: CounterStore):
        connects, disconnects = 4000, 1500

        def connect(_):
            counters.wallet_connected()

        def disconnect(_):
            counters.wallet_disconnected()

        with ThreadPoolExecutor(max_workers=16) as executor:
            list(executor.map(connect, range(connects)))
            list(executor.map(disconnect, range(disconnects)))

        snapshot = counters.snapshot()
        assert snapshot.wallet_connect == connects
        assert snapshot.wallet_disconnect == disconnects
        assert snapshot.active_sockets == connects - disconnects

    def test_snapshots_taken_under_load_never_go_backwards(self, counters: CounterStore):
        def connect(_):
            counters.wallet_connected()

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [executor.submit(connect, i) for i in range(2000)]
            seen = [counters.snapshot().wallet_connect for _ in range(200)]
            for future in futures:
                future.result()

        assert seen == sorted(seen)
        assert counters.snapshot().wallet_connect == 2000

    def test_negative_active_sockets_are_reported_as_is(self):
        assert Counters(wallet_connect=1, wallet_disconnect=3).active_sockets == -2
