"""Typed handle over the deployed treasury contract."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from eth_utils import to_checksum_address, to_hex

from chain_adapter.connector import ChainConnector

from .models import ContractCall, EventInput, EventSpec, FunctionSpec, TransferRecord

logger = logging.getLogger(__name__)

DEFAULT_ABI_PATH = Path(__file__).resolve().parent / "abi" / "I3MarketTreasury.json"
TOKEN_TRANSFERRED = "TokenTransferred"


class ContractBindingError(ValueError):
    """Raised when the ABI or a requested contract member is unusable."""


def load_abi(path: Union[str, Path, None] = None) -> List[Dict[str, Any]]:
    """Read a bare ABI list or a compiled artifact carrying an ``abi`` key."""
    abi_path = Path(path) if path is not None else DEFAULT_ABI_PATH
    try:
        data = json.loads(abi_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ContractBindingError(f"Cannot read contract ABI from {abi_path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ContractBindingError(f"No ABI list found in {abi_path}.")
    return data


class TreasuryContract:
    """Immutable binding of the treasury interface to its deployed address."""

    def __init__(
        self,
        abi: Sequence[Mapping[str, Any]],
        address: str,
        connector: Optional[ChainConnector] = None,
    ) -> None:
        try:
            self._address = to_checksum_address(address)
        except ValueError as exc:
            raise ContractBindingError(f"Invalid contract address: {address}") from exc
        self._connector = connector
        self._functions = _parse_functions(abi)
        self._events = _parse_events(abi)
        self._by_selector = {spec.selector: spec for spec in self._functions.values()}

    @property
    def address(self) -> str:
        return self._address

    def function(self, name: str) -> FunctionSpec:
        try:
            return self._functions[name]
        except KeyError:
            raise ContractBindingError(f"Contract has no function {name}.") from None

    def event(self, name: str) -> EventSpec:
        try:
            return self._events[name]
        except KeyError:
            raise ContractBindingError(f"Contract has no event {name}.") from None

    # Write drafts

    def add_marketplace(self, marketplace_address: str) -> ContractCall:
        return self._draft("addMarketplace", marketplace_address)

    def exchange_in(self, transfer_id: str, user_address: str, tokens: int) -> ContractCall:
        return self._draft("exchangeIn", transfer_id, user_address, tokens)

    def exchange_out(self, transfer_id: str, marketplace_address: str) -> ContractCall:
        return self._draft("exchangeOut", transfer_id, marketplace_address)

    def payment(self, transfer_id: str, provider_address: str, amount: int) -> ContractCall:
        return self._draft("payment", transfer_id, provider_address, amount)

    def clearing(self, transfer_id: str) -> ContractCall:
        return self._draft("clearing", transfer_id)

    def set_paid(self, transfer_id: str, transfer_code: str) -> ContractCall:
        return self._draft("setPaid", transfer_id, transfer_code)

    # Reads

    async def balance_of_address(self, address: str) -> List[int]:
        (balances,) = await self._read("balanceOfAddress", address)
        return [int(value) for value in balances]

    async def get_marketplace_index(self, address: str) -> int:
        (index,) = await self._read("getMarketplaceIndex", address)
        return int(index)

    async def transactions(self, transfer_id: str) -> TransferRecord:
        values = await self._read("transactions", transfer_id)
        return TransferRecord(
            transfer_id=values[0],
            from_address=values[1],
            to_address=values[2],
            token_amount=int(values[3]),
            is_paid=bool(values[4]),
            transfer_code=values[5],
        )

    # Decoding

    def decode_function_input(self, data: str) -> Tuple[str, Tuple[Any, ...]]:
        spec = self._by_selector.get(data[:10].lower())
        if spec is None:
            raise ContractBindingError("Call data does not match any contract function.")
        return spec.name, spec.decode_input(data)

    def decode_event_log(
        self, log: Optional[Mapping[str, Any]], event_name: str = TOKEN_TRANSFERRED
    ) -> Optional[Dict[str, Any]]:
        """Decode a raw log into event fields, or None when it cannot be read."""
        if not log:
            return None
        spec = self.event(event_name)
        topics = log.get("topics") or []
        if not topics or _topic_hex(topics[0]) != spec.topic:
            return None
        try:
            return spec.decode_log(topics, log.get("data") or b"")
        except Exception as exc:
            logger.debug("Skipping undecodable %s log: %s", event_name, exc)
            return None

    def _draft(self, name: str, *args: Any) -> ContractCall:
        spec = self.function(name)
        if spec.read_only:
            raise ContractBindingError(f"{name} is read-only and cannot be drafted.")
        return ContractCall(function=spec, args=tuple(args), to_address=self._address)

    async def _read(self, name: str, *args: Any) -> Tuple[Any, ...]:
        if self._connector is None:
            raise ContractBindingError("Contract reads require a chain connector.")
        spec = self.function(name)
        call = ContractCall(function=spec, args=tuple(args), to_address=self._address)
        result = await self._connector.call(call.call_params())
        return spec.decode_output(result)


def _parse_functions(abi: Sequence[Mapping[str, Any]]) -> Dict[str, FunctionSpec]:
    functions = {}
    for entry in abi:
        if entry.get("type") != "function":
            continue
        functions[entry["name"]] = FunctionSpec(
            name=entry["name"],
            input_types=tuple(_resolve_type(item) for item in entry.get("inputs", [])),
            output_types=tuple(_resolve_type(item) for item in entry.get("outputs", [])),
            state_mutability=entry.get("stateMutability", "nonpayable"),
        )
    return functions


def _parse_events(abi: Sequence[Mapping[str, Any]]) -> Dict[str, EventSpec]:
    events = {}
    for entry in abi:
        if entry.get("type") != "event":
            continue
        events[entry["name"]] = EventSpec(
            name=entry["name"],
            inputs=tuple(
                EventInput(
                    name=item.get("name", ""),
                    type=_resolve_type(item),
                    indexed=bool(item.get("indexed", False)),
                )
                for item in entry.get("inputs", [])
            ),
        )
    return events


def _resolve_type(item: Mapping[str, Any]) -> str:
    abi_type = item.get("type", "")
    if abi_type.startswith("tuple"):
        inner = ",".join(_resolve_type(component) for component in item.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _topic_hex(topic: Any) -> str:
    if isinstance(topic, str):
        return topic.lower() if topic.startswith("0x") else "0x" + topic.lower()
    return to_hex(bytes(topic))
