# productshop/utils/retry.py
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)
import redis

from productshop.domain.errors import StockBusyError


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def lock_wait_retry(max_wait: float):
    """Keep trying to take a busy stock lock until ``max_wait`` seconds pass."""
    return retry(
        reraise=True,
        stop=stop_after_delay(max_wait),
        wait=wait_exponential(multiplier=0.01, min=0.01, max=0.25),
        retry=retry_if_exception_type(StockBusyError),
    )
