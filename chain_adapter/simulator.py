"""In-memory stand-in for an AsyncWeb3 node, used without network calls."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode as abi_encode
from eth_utils import keccak, to_hex
from web3.exceptions import ContractLogicError, TransactionNotFound

ERROR_STRING_SELECTOR = "0x08c379a0"

_DEFAULT_GAS_ESTIMATE = 21_000
_DEFAULT_BLOCK_GAS_LIMIT = 6_721_975


def encode_revert_data(reason: str) -> str:
    """Return the `Error(string)` payload a node reports for a revert."""
    return ERROR_STRING_SELECTOR + abi_encode(["string"], [reason]).hex()


class SimulatedNode:
    """Deterministic node double exposing the AsyncWeb3 surface the gateway uses."""

    def __init__(
        self,
        listening: bool = True,
        gas_estimate: int = _DEFAULT_GAS_ESTIMATE,
        block_gas_limit: Optional[int] = _DEFAULT_BLOCK_GAS_LIMIT,
        block_number: int = 1,
        latency: float = 0.0,
    ) -> None:
        self.listening = listening
        self.connect_error: Optional[Exception] = None
        self.eth = _SimulatedEth(gas_estimate, block_gas_limit, block_number, latency)

    async def is_connected(self) -> bool:
        await self.eth.pause()
        if self.connect_error is not None:
            raise self.connect_error
        return self.listening


class _SimulatedEth:
    def __init__(
        self,
        gas_estimate: int,
        block_gas_limit: Optional[int],
        block_number: int,
        latency: float,
    ) -> None:
        self.gas_estimate = gas_estimate
        self.block_gas_limit = block_gas_limit
        self.block_number = block_number
        self.latency = latency
        self.nonces: Dict[str, int] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.logs: List[Dict[str, Any]] = []
        self.sent: List[str] = []
        self.estimate_requests: List[Dict[str, Any]] = []
        self.log_requests: List[Dict[str, Any]] = []
        self.estimate_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.logs_error: Optional[Exception] = None
        self.block_error: Optional[Exception] = None
        self.mine_on_send = True
        self._reverts: Dict[Optional[str], str] = {}
        self._call_results: Dict[str, bytes] = {}

    async def pause(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    def revert_with(self, reason: str, selector: Optional[str] = None) -> None:
        """Make gas estimation revert, for one selector or for every call."""
        self._reverts[selector] = reason

    def clear_reverts(self) -> None:
        self._reverts.clear()

    def set_call_result(self, selector: str, types: Sequence[str], values: Sequence[Any]) -> None:
        self._call_results[selector] = abi_encode(list(types), list(values))

    def set_nonce(self, address: str, nonce: int) -> None:
        self.nonces[address.lower()] = nonce

    def add_log(self, log: Dict[str, Any]) -> None:
        self.logs.append(log)

    async def get_block(self, block_identifier: Any) -> Dict[str, Any]:
        await self.pause()
        if self.block_error is not None:
            raise self.block_error
        block: Dict[str, Any] = {"number": self.block_number, "hash": to_hex(keccak(text=str(self.block_number)))}
        if self.block_gas_limit is not None:
            block["gasLimit"] = self.block_gas_limit
        return block

    async def get_transaction_count(self, address: str, block_identifier: Any = "latest") -> int:
        await self.pause()
        return self.nonces.get(address.lower(), 0)

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        await self.pause()
        self.estimate_requests.append(dict(transaction))
        if self.estimate_error is not None:
            raise self.estimate_error
        selector = str(transaction.get("data", ""))[:10]
        reason = self._reverts.get(selector, self._reverts.get(None))
        if reason is not None:
            raise ContractLogicError(f"execution reverted: {reason}", data=encode_revert_data(reason))
        return self.gas_estimate

    async def call(self, transaction: Dict[str, Any]) -> bytes:
        await self.pause()
        selector = str(transaction.get("data", ""))[:10]
        if selector not in self._call_results:
            raise ContractLogicError("execution reverted", data="0x")
        return self._call_results[selector]

    async def get_transaction_receipt(self, transaction_hash: str) -> Dict[str, Any]:
        await self.pause()
        receipt = self.receipts.get(transaction_hash.lower())
        if receipt is None:
            raise TransactionNotFound(f"Transaction with hash: '{transaction_hash}' not found.")
        return receipt

    async def send_raw_transaction(self, raw_transaction: str) -> bytes:
        await self.pause()
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_transaction)
        tx_hash = keccak(hexstr=raw_transaction)
        if self.mine_on_send:
            self.block_number += 1
            self.receipts[to_hex(tx_hash)] = {
                "transactionHash": tx_hash,
                "blockNumber": self.block_number,
                "status": 1,
                "logs": [],
            }
        return tx_hash

    async def get_logs(self, log_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        await self.pause()
        if self.logs_error is not None:
            raise self.logs_error
        self.log_requests.append(dict(log_filter))
        from_block = log_filter.get("fromBlock", 0)
        to_block = log_filter.get("toBlock", self.block_number)
        address = str(log_filter.get("address", "")).lower()
        topics = log_filter.get("topics") or []
        matched = []
        for log in self.logs:
            if not from_block <= log.get("blockNumber", 0) <= to_block:
                continue
            if address and str(log.get("address", "")).lower() != address:
                continue
            if topics and (not log.get("topics") or _hex(log["topics"][0]) != _hex(topics[0])):
                continue
            matched.append(log)
        return matched


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value.lower()
    return to_hex(bytes(value))
