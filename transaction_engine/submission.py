"""Relay caller-signed transactions to the node."""

import asyncio
import logging

from web3.exceptions import Web3Exception

from chain_adapter.connector import ChainConnector

from .models import SubmissionResult

logger = logging.getLogger(__name__)

_RECEIPT_POLL_INTERVAL = 1.0


class SubmissionRejected(ValueError):
    """Raised when the node refuses a signed transaction."""


class SignedTransactionSubmitter:
    def __init__(
        self,
        connector: ChainConnector,
        receipt_timeout_sec: float = 60.0,
        poll_interval_sec: float = _RECEIPT_POLL_INTERVAL,
    ) -> None:
        self._connector = connector
        self._receipt_timeout = receipt_timeout_sec
        self._poll_interval = poll_interval_sec

    async def deploy_signed_transaction(self, serialized_tx: str) -> SubmissionResult:
        raw = serialized_tx.strip()
        if not raw.startswith("0x"):
            raw = "0x" + raw

        try:
            tx_hash = await self._connector.send_signed_transaction(raw)
        except (ValueError, TypeError, Web3Exception) as exc:
            logger.warning("Signed transaction rejected by node: %s", exc)
            raise SubmissionRejected(_node_message(exc)) from exc

        logger.info("Submitted signed transaction %s", tx_hash)
        receipt = await self._await_receipt(tx_hash)
        if receipt is None:
            logger.info("No receipt for %s after %.0fs", tx_hash, self._receipt_timeout)
        return SubmissionResult(transaction_hash=tx_hash, receipt=receipt)

    async def _await_receipt(self, tx_hash: str):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._receipt_timeout
        while True:
            receipt = await self._connector.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if loop.time() + self._poll_interval > deadline:
                return None
            await asyncio.sleep(self._poll_interval)


def _node_message(exc: Exception) -> str:
    if exc.args and isinstance(exc.args[0], dict):
        return str(exc.args[0].get("message", exc))
    message = getattr(exc, "message", None)
    return str(message or exc)
