"""Tests for the Redis backed stock lock service."""

from unittest.mock import MagicMock

import pytest
import redis

from productshop.domain.errors import StockBusyError
from productshop.services.lock_service import LockService, stock_lock_key


@pytest.fixture
def client():
    client = MagicMock()
    client.set.return_value = True
    client.eval.return_value = 1
    return client


class TestLockService:
    def test_key_layout(self):
        assert stock_lock_key("option", 7) == "stock:option:7:lock"

    def test_acquire_uses_set_nx_with_expiry(self, client):
        locks = LockService(client=client, ttl=15)

        assert locks.acquire("stock:product:1:lock", "order:9", 15) is True
        client.set.assert_called_once_with(name="stock:product:1:lock", value="order:9", nx=True, ex=15)

    def test_acquire_reports_taken_key(self, client):
        client.set.return_value = None
        assert LockService(client=client).acquire("k", "me", 5) is False

    def test_release_only_by_owner(self, client):
        client.eval.return_value = 0
        locks = LockService(client=client)

        assert locks.release("k", "me") is False
        args = client.eval.call_args.args
        assert args[1:] == (1, "k", "me")

    def test_hold_takes_keys_sorted_and_releases(self, client):
        locks = LockService(client=client)

        with locks.hold_stock_rows(["b", "a", "b"], owner="order:1") as owner:
            assert owner == "order:1"
            assert [c.kwargs["name"] for c in client.set.call_args_list] == ["a", "b"]

        assert [c.args[2] for c in client.eval.call_args_list] == ["b", "a"]

    def test_busy_key_releases_what_was_taken(self, client):
        client.set.side_effect = [True, None, None, None, None, None, None, None]
        locks = LockService(client=client, max_wait=0.02)

        with pytest.raises(StockBusyError):
            with locks.hold_stock_rows(["a", "b"], owner="order:2"):
                pytest.fail("block must not run")

        client.eval.assert_called_once()
        assert client.eval.call_args.args[2] == "a"

    def test_redis_errors_are_retried(self, client):
        client.set.side_effect = [redis.ConnectionError("down"), True]
        locks = LockService(client=client)

        assert locks.acquire("k", "me", 5) is True
        assert client.set.call_count == 2
