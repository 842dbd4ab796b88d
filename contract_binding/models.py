"""ABI-derived call and event descriptors for the treasury contract."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address, to_hex


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]
    state_mutability: str

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> str:
        return "0x" + keccak(text=self.signature).hex()[:8]

    @property
    def read_only(self) -> bool:
        return self.state_mutability in ("view", "pure")

    def encode_input(self, args: Sequence[Any]) -> str:
        if len(args) != len(self.input_types):
            raise ValueError(
                f"{self.name} expects {len(self.input_types)} arguments, got {len(args)}."
            )
        values = _normalize(self.input_types, args)
        if not self.input_types:
            return self.selector
        return self.selector + abi_encode(list(self.input_types), values).hex()

    def decode_input(self, data: str) -> Tuple[Any, ...]:
        raw = _strip_hex(data)
        if raw[:8] != self.selector[2:]:
            raise ValueError(f"Call data does not target {self.name}.")
        decoded = abi_decode(list(self.input_types), bytes.fromhex(raw[8:]))
        return tuple(_normalize(self.input_types, decoded))

    def decode_output(self, result: bytes) -> Tuple[Any, ...]:
        decoded = abi_decode(list(self.output_types), result)
        return tuple(_normalize(self.output_types, decoded))


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool


@dataclass(frozen=True)
class EventSpec:
    name: str
    inputs: Tuple[EventInput, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(item.type for item in self.inputs)})"

    @property
    def topic(self) -> str:
        return to_hex(keccak(text=self.signature))

    def decode_log(self, topics: Sequence[Any], data: Any) -> Dict[str, Any]:
        indexed = [item for item in self.inputs if item.indexed]
        plain = [item for item in self.inputs if not item.indexed]
        if len(topics) != len(indexed) + 1:
            raise ValueError(f"Unexpected topic count for {self.name}.")

        values: Dict[str, Any] = {}
        for item, topic in zip(indexed, topics[1:]):
            topic_bytes = _as_bytes(topic)
            if item.type in ("string", "bytes") or item.type.endswith("]"):
                values[item.name] = to_hex(topic_bytes)
            else:
                values[item.name] = _normalize((item.type,), abi_decode([item.type], topic_bytes))[0]

        decoded = abi_decode([item.type for item in plain], _as_bytes(data))
        for item, value in zip(plain, _normalize(tuple(item.type for item in plain), decoded)):
            values[item.name] = value
        return values


@dataclass(frozen=True)
class ContractCall:
    """Draft of one contract method invocation, ready to estimate and encode."""

    function: FunctionSpec
    args: Tuple[Any, ...]
    to_address: str

    def encode_abi(self) -> str:
        return self.function.encode_input(self.args)

    def call_params(self, sender: Optional[str] = None) -> Dict[str, str]:
        params = {"to": self.to_address, "data": self.encode_abi()}
        if sender is not None:
            params["from"] = to_checksum_address(sender)
        return params


@dataclass(frozen=True)
class TransferRecord:
    transfer_id: str
    from_address: str
    to_address: str
    token_amount: int
    is_paid: bool
    transfer_code: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "transferId": self.transfer_id,
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
            "tokenAmount": str(self.token_amount),
            "isPaid": self.is_paid,
            "transferCode": self.transfer_code,
        }


def _normalize(types: Sequence[str], values: Sequence[Any]) -> list:
    normalized = []
    for abi_type, value in zip(types, values):
        if abi_type == "address":
            normalized.append(to_checksum_address(value))
        elif abi_type == "address[]":
            normalized.append(tuple(to_checksum_address(item) for item in value))
        else:
            normalized.append(value)
    return normalized


def _strip_hex(value: str) -> str:
    return value[2:].lower() if value.startswith("0x") else value.lower()


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return bytes.fromhex(_strip_hex(value))
    return bytes(value)
