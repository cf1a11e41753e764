import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from learnpath.catalog.exceptions import StoreUnavailableError


T = TypeVar("T")


async def bounded(call: Awaitable[T], timeout: float, what: str) -> T:
    """Await a store call, converting a timeout into ``StoreUnavailableError``."""
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except TimeoutError as e:
        msg = f"Timed out after {timeout}s waiting for {what}"
        raise StoreUnavailableError(msg) from e
