"""Async helpers shared by the fetch layer."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: tuple = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``coro_func()`` until it succeeds, backing off between attempts.

    ``coro_func`` is a factory, called once per attempt. Only ``exceptions``
    are retried; anything else propagates from the first attempt. After
    ``max_retries`` retries the last error is re-raised.
    """
    attempt = 0
    wait = delay

    while True:
        attempt += 1
        try:
            return await coro_func()
        except exceptions as e:
            if attempt > max_retries:
                logger.error(f"Giving up after {attempt} attempt(s): {str(e)}")
                raise

            logger.warning(f"Attempt {attempt} failed, retrying in {wait}s: {str(e)}")
            await sleep(wait)
            wait *= backoff_factor


class AsyncContextManager:
    """Base class for resources opened with ``async with``."""

    async def __aenter__(self):
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def setup(self) -> None:
        pass

    async def cleanup(self) -> None:
        pass
