"""
Debounced recomputation for search-as-you-type.
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional

from storefront.config import config


class Debouncer:
    """
    Runs only the last of a burst of calls, after `delay_ms` of quiet.
    
    Each call returns a task that resolves with the wrapped result, or is
    cancelled when a later call supersedes it.
    """
    
    def __init__(self, func: Callable[..., Awaitable[Any]], delay_ms: Optional[int] = None):
        self.func = func
        self.delay = (config.SEARCH_DEBOUNCE_MS if delay_ms is None else delay_ms) / 1000
        self._pending: Optional[asyncio.Task] = None
    
    async def _run(self, args, kwargs):
        await asyncio.sleep(self.delay)
        return await self.func(*args, **kwargs)
    
    def __call__(self, *args, **kwargs) -> asyncio.Task:
        self.cancel()
        self._pending = asyncio.ensure_future(self._run(args, kwargs))
        return self._pending
    
    def cancel(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
    
    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()
