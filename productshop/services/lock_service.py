import uuid
from contextlib import contextmanager

import redis

from productshop.domain.errors import StockBusyError
from productshop.utils.retry import lock_wait_retry, redis_retry
from productshop.utils.settings import REDIS_URL, STOCK_LOCK_TTL_SECONDS, STOCK_LOCK_WAIT_SECONDS
from productshop.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one lua call, only the owner may release
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def stock_lock_key(kind: str, row_id: int) -> str:
    return f"stock:{kind}:{row_id}:lock"


class LockService:
    """
    Per-row mutual exclusion for product/option stock.

    - SET key owner NX EX ttl to take a row
    - lua compare-and-delete to release it
    - hold_stock_rows() takes a whole batch in sorted key order
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        ttl: int = STOCK_LOCK_TTL_SECONDS,
        max_wait: float = STOCK_LOCK_WAIT_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.max_wait = max_wait

    @redis_retry()
    def acquire(self, key: str, owner: str, ttl: int) -> bool:
        logger.debug(f"Acquire lock {key} for {owner}")
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, owner: str) -> bool:
        logger.debug(f"Release lock {key} for {owner}")
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, owner))

    def _acquire_waiting(self, key: str, owner: str) -> None:
        @lock_wait_retry(self.max_wait)
        def _attempt():
            if not self.acquire(key, owner, self.ttl):
                raise StockBusyError(f"Stock row {key} is locked by another operation")

        _attempt()

    @contextmanager
    def hold_stock_rows(self, keys, owner: str | None = None):
        """Hold every key in ``keys`` for the duration of the block.

        Keys are taken in sorted order so two batches touching the same rows
        cannot deadlock. Raises StockBusyError if a key stays taken past
        ``max_wait``; keys already taken are released first.
        """
        owner = owner or uuid.uuid4().hex
        held: list[str] = []
        try:
            for key in sorted(set(keys)):
                self._acquire_waiting(key, owner)
                held.append(key)
            logger.info(f"Holding {len(held)} stock locks for {owner}")
            yield owner
        finally:
            for key in reversed(held):
                try:
                    self.release(key, owner)
                except redis.RedisError as e:
                    # the key still expires on its own after ttl
                    logger.warning(f"Failed to release lock {key}: {e}")
