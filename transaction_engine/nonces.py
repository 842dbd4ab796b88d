"""Per-sender nonce reservation."""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Tuple


class NonceTracker:
    """Serializes nonce resolution per sender and never hands out a nonce twice.

    The chain only counts broadcast transactions, so two builds for the same
    sender that are signed later would otherwise share a nonce. Each sender
    gets ``max(chain_count, last_issued + 1)`` while its last reservation is
    younger than ``reservation_ttl_sec``. An older reservation was most likely
    abandoned unsigned, so the chain count is used again. Different senders do
    not wait on each other.
    """

    def __init__(
        self,
        reservation_ttl_sec: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if reservation_ttl_sec <= 0:
            raise ValueError("Nonce reservation TTL must be positive.")
        self._ttl = reservation_ttl_sec
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._issued: Dict[str, Tuple[int, float]] = {}

    async def reserve(self, sender: str, fetch_count: Callable[[str], Awaitable[int]]) -> int:
        key = sender.lower()
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            chain_count = await fetch_count(sender)
            nonce = chain_count
            issued = self._issued.get(key)
            if issued is not None:
                last, issued_at = issued
                if self._clock() - issued_at < self._ttl:
                    nonce = max(chain_count, last + 1)
            self._issued[key] = (nonce, self._clock())
            return nonce
