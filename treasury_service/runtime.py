"""Composition root: one connector shared by every chain-facing component."""

import logging
from typing import Any, Optional

from chain_adapter.connector import ChainConnector
from contract_binding.binding import TreasuryContract, load_abi
from event_relay.relay import EventRelay
from event_relay.webhook import EventSink, WebhookClient
from transaction_engine.builder import TransactionBuilder
from transaction_engine.nonces import NonceTracker
from transaction_engine.submission import SignedTransactionSubmitter

from .queries import TreasuryQueries
from .settings import Settings

logger = logging.getLogger(__name__)


class TreasuryRuntime:
    def __init__(
        self,
        settings: Settings,
        connector: ChainConnector,
        contract: TreasuryContract,
        relay: Optional[EventRelay] = None,
    ) -> None:
        self.settings = settings
        self.connector = connector
        self.contract = contract
        self.relay = relay
        self.builder = TransactionBuilder(
            connector,
            contract,
            chain_id=settings.chain_id,
            default_gas_limit=settings.default_gas_limit,
            nonces=NonceTracker(settings.nonce_reservation_ttl_sec),
        )
        self.submitter = SignedTransactionSubmitter(
            connector, receipt_timeout_sec=settings.receipt_timeout_sec
        )
        self.queries = TreasuryQueries(connector, contract)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        w3: Optional[Any] = None,
        sink: Optional[EventSink] = None,
    ) -> "TreasuryRuntime":
        if w3 is None:
            connector = ChainConnector.from_url(settings.eth_host, settings.node_timeout_sec)
        else:
            connector = ChainConnector(w3, timeout_sec=settings.node_timeout_sec)

        contract = TreasuryContract(
            load_abi(settings.contract_abi_path), settings.contract_address, connector
        )

        if sink is None and settings.webhook_url:
            sink = WebhookClient(settings.webhook_url, timeout_sec=settings.webhook_timeout_sec)
        relay = None
        if sink is not None:
            relay = EventRelay(
                connector,
                contract,
                sink,
                poll_interval_sec=settings.event_poll_interval_sec,
                max_block_range=settings.event_max_block_range,
            )
        else:
            logger.warning("WEBHOOK is not set; contract events will not be forwarded.")

        return cls(settings, connector, contract, relay)

    async def start(self) -> None:
        logger.info("connecting to %s", self.settings.eth_host)
        await self.connector.connect()
        if self.relay is not None:
            await self.relay.start()

    async def stop(self) -> None:
        if self.relay is not None:
            await self.relay.stop()
        self.connector.close()
