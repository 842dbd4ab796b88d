"""Owned connection to the JSON-RPC node backing the treasury contract."""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Mapping, Optional, TypeVar

from eth_utils import to_hex
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChainUnavailableError(RuntimeError):
    """Raised when the node cannot be reached or another connector is active."""


class NodeTimeoutError(TimeoutError):
    """Raised when a node call exceeds the configured timeout."""


class ChainConnector:
    """Single owner of the node handle used by every chain-facing component."""

    _active: Optional["ChainConnector"] = None

    def __init__(self, w3: Any, timeout_sec: float = 30.0) -> None:
        if timeout_sec <= 0:
            raise ValueError("Node timeout must be positive.")
        self._w3 = w3
        self._timeout = timeout_sec
        self._connected = False

    @classmethod
    def from_url(cls, url: str, timeout_sec: float = 30.0) -> "ChainConnector":
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url))
        return cls(w3, timeout_sec=timeout_sec)

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        active = ChainConnector._active
        if active is not None and active is not self:
            raise ChainUnavailableError("Another chain connector is already active.")

        try:
            listening = await self._bounded(self._w3.is_connected())
        except Exception as exc:
            logger.error("Could not connect to the host provided: %s", exc)
            raise ChainUnavailableError("Could not connect to the host provided.") from exc

        logger.info("Connection status %s", listening)
        if not listening:
            raise ChainUnavailableError("Could not connect to the host provided.")

        ChainConnector._active = self
        self._connected = True

    def close(self) -> None:
        if ChainConnector._active is self:
            ChainConnector._active = None
        self._connected = False

    async def get_latest_block(self) -> Dict[str, Any]:
        block = await self._bounded(self._w3.eth.get_block("latest"))
        return dict(block)

    async def get_transaction_count(self, address: str) -> int:
        return int(await self._bounded(self._w3.eth.get_transaction_count(address, "pending")))

    async def get_transaction_receipt(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        try:
            receipt = await self._bounded(self._w3.eth.get_transaction_receipt(transaction_hash))
        except TransactionNotFound:
            return None
        if receipt is None:
            return None
        return to_plain(receipt)

    async def send_signed_transaction(self, raw_transaction: str) -> str:
        tx_hash = await self._bounded(self._w3.eth.send_raw_transaction(raw_transaction))
        return _hex(tx_hash)

    async def estimate_gas(self, params: Mapping[str, Any]) -> int:
        return int(await self._bounded(self._w3.eth.estimate_gas(dict(params))))

    async def call(self, params: Mapping[str, Any]) -> bytes:
        result = await self._bounded(self._w3.eth.call(dict(params)))
        if isinstance(result, str):
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        return bytes(result)

    async def get_logs(self, log_filter: Mapping[str, Any]) -> List[Dict[str, Any]]:
        logs = await self._bounded(self._w3.eth.get_logs(dict(log_filter)))
        return [dict(log) for log in logs]

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise NodeTimeoutError(
                f"Node did not answer within {self._timeout:g} seconds."
            ) from exc


def to_plain(value: Any) -> Any:
    """Convert web3 result containers into JSON-ready values."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return to_hex(bytes(value))
