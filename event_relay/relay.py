"""Forward TokenTransferred contract events to a webhook."""

import asyncio
import logging
from typing import Any, Mapping, Optional, Set

from eth_utils import to_hex

from chain_adapter.connector import ChainConnector
from contract_binding.binding import TOKEN_TRANSFERRED, TreasuryContract

from .models import DeliveryResult, RelayState, TokenTransferEvent
from .webhook import EventSink

logger = logging.getLogger(__name__)


class EventRelay:
    """Subscribes once and stays subscribed for the life of the process."""

    def __init__(
        self,
        connector: ChainConnector,
        contract: TreasuryContract,
        sink: EventSink,
        poll_interval_sec: float = 2.0,
        max_block_range: int = 1000,
    ) -> None:
        if max_block_range < 1:
            raise ValueError("Block range must be at least one block.")
        self._connector = connector
        self._contract = contract
        self._sink = sink
        self._poll_interval = poll_interval_sec
        self._max_block_range = max_block_range
        self._state = RelayState.UNSUBSCRIBED
        self._next_block: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._deliveries: Set[asyncio.Task] = set()

    @property
    def state(self) -> RelayState:
        return self._state

    async def start(self) -> None:
        if self._state == RelayState.SUBSCRIBED:
            return
        try:
            latest = await self._connector.get_latest_block()
        except Exception as exc:
            logger.error("Cannot subscribe to contract %s event: %s", TOKEN_TRANSFERRED, exc)
            return
        self._next_block = int(latest.get("number", 0)) + 1
        self._state = RelayState.SUBSCRIBED
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Subscribed to %s on %s from block %s",
            TOKEN_TRANSFERRED,
            self._contract.address,
            self._next_block,
        )

    async def stop(self) -> None:
        """Shutdown hook; only the process teardown calls this."""
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        await self.drain()
        await self._sink.close()

    async def drain(self) -> None:
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    async def poll_once(self) -> int:
        """Fetch and dispatch logs from the next block window; returns the count seen.

        Each call covers at most ``max_block_range`` blocks so a relay that fell
        behind catches up one window per poll.
        """
        if self._next_block is None:
            return 0
        latest = int((await self._connector.get_latest_block()).get("number", 0))
        if latest < self._next_block:
            return 0
        to_block = min(latest, self._next_block + self._max_block_range - 1)
        logs = await self._connector.get_logs(
            {
                "address": self._contract.address,
                "topics": [self._contract.event(TOKEN_TRANSFERRED).topic],
                "fromBlock": self._next_block,
                "toBlock": to_block,
            }
        )
        self._next_block = to_block + 1
        for log in logs:
            self.handle_log(log)
        return len(logs)

    def handle_log(self, log: Optional[Mapping[str, Any]]) -> Optional[TokenTransferEvent]:
        event = self._normalize(log)
        if event is None:
            return None
        task = asyncio.create_task(self._deliver(event))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)
        return event

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("Event polling failed: %s", exc)

    async def _deliver(self, event: TokenTransferEvent) -> DeliveryResult:
        try:
            return await self._sink.deliver(event)
        except Exception as exc:
            logger.exception("Webhook delivery crashed for transfer %s", event.transfer_id)
            return DeliveryResult(delivered=False, error=str(exc))

    def _normalize(self, log: Optional[Mapping[str, Any]]) -> Optional[TokenTransferEvent]:
        values = self._contract.decode_event_log(log)
        if not values:
            return None
        transfer_id = values.get("transferId")
        operation = values.get("operation")
        sender = values.get("_sender")
        if transfer_id is None or operation is None or sender is None:
            return None
        return TokenTransferEvent(
            transaction_hash=_hex(log.get("transactionHash")),
            block_hash=_hex(log.get("blockHash")),
            event_type="removed" if log.get("removed") else "mined",
            operation=operation,
            transfer_id=transfer_id,
            sender_address=sender,
        )


def _hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return to_hex(bytes(value))
