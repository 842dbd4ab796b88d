"""Single-shot webhook delivery over aiohttp."""

import asyncio
import logging
from typing import Optional, Protocol
from urllib.parse import urlparse

import aiohttp
from aiohttp import ClientTimeout

from .models import DeliveryResult, TokenTransferEvent

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    async def deliver(self, event: TokenTransferEvent) -> DeliveryResult:
        ...

    async def close(self) -> None:
        ...


class WebhookClient:
    """Posts each event once; failures are reported, never retried."""

    def __init__(self, url: str, timeout_sec: float = 10.0) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid webhook URL: {url}")
        self._url = url
        self._timeout = ClientTimeout(total=timeout_sec)
        self._session: Optional[aiohttp.ClientSession] = None

    async def deliver(self, event: TokenTransferEvent) -> DeliveryResult:
        body = {"payload": event.to_payload()}
        try:
            session = self._ensure_session()
            async with session.post(self._url, json=body) as response:
                if response.status >= 400:
                    text = await response.text()
                    logger.error(
                        "Webhook got an error. status=%s body=%s", response.status, text[:200]
                    )
                    return DeliveryResult(delivered=False, status_code=response.status, error=text)
                logger.info("Sent webhook successfully for transfer %s", event.transfer_id)
                return DeliveryResult(delivered=True, status_code=response.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Webhook got an error. %s: %s", type(exc).__name__, exc)
            return DeliveryResult(delivered=False, error=str(exc) or type(exc).__name__)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
