import asyncio
import time


class RateLimiter:
    """Spaces outgoing scheduler requests so polling and user actions never burst."""

    def __init__(self, calls_per_second=5):
        self.delay = 1.0 / calls_per_second if calls_per_second > 0 else 0.0
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def wait(self):
        async with self._lock:
            elapsed = time.monotonic() - self.last_call
            if elapsed < self.delay:
                await asyncio.sleep(self.delay - elapsed)
            self.last_call = time.monotonic()
