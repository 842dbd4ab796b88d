"""Best-effort decoding of contract revert reasons from node errors."""

from typing import Any, Mapping, Optional

from eth_abi import decode as abi_decode
from web3.exceptions import ContractLogicError

FALLBACK_REVERT_MESSAGE = "There was an error. Transaction reverted"

ERROR_STRING_SELECTOR = "08c379a0"
PANIC_SELECTOR = "4e487b71"

_REVERT_PREFIX = "execution reverted"


def decode_revert_reason(data: Any) -> str:
    """Decode an ABI revert payload; never raises."""
    try:
        raw = _hex_body(data)
        selector, body = raw[:8], bytes.fromhex(raw[8:])
        if selector == ERROR_STRING_SELECTOR:
            (reason,) = abi_decode(["string"], body)
            if reason:
                return reason
        elif selector == PANIC_SELECTOR:
            (code,) = abi_decode(["uint256"], body)
            return f"Panic: 0x{code:02x}"
    except Exception:
        pass
    return FALLBACK_REVERT_MESSAGE


def is_revert_error(exc: BaseException) -> bool:
    if isinstance(exc, ContractLogicError):
        return True
    payload = _rpc_payload(exc)
    if payload is None:
        return False
    message = str(payload.get("message", "")).lower()
    return "revert" in message or _looks_like_revert_data(payload.get("data"))


def revert_reason_from_error(exc: BaseException) -> str:
    """Extract the readable revert reason carried by a failed estimation."""
    payload = _rpc_payload(exc)
    data = getattr(exc, "data", None)
    message = getattr(exc, "message", None)
    if payload is not None:
        data = data if data is not None else payload.get("data")
        message = message or payload.get("message")

    reason = _reason_from_data(data)
    if reason is not None:
        return reason
    return _reason_from_message(message or (str(exc.args[0]) if exc.args else ""))


def _reason_from_data(data: Any) -> Optional[str]:
    if isinstance(data, Mapping):
        if isinstance(data.get("reason"), str) and data["reason"]:
            return data["reason"]
        for key in ("data", "result", "return"):
            reason = _reason_from_data(data.get(key))
            if reason is not None:
                return reason
        for value in data.values():
            if isinstance(value, Mapping):
                reason = _reason_from_data(value)
                if reason is not None:
                    return reason
        return None
    if _looks_like_revert_data(data):
        reason = decode_revert_reason(data)
        if reason != FALLBACK_REVERT_MESSAGE:
            return reason
    return None


def _reason_from_message(message: Any) -> str:
    if not isinstance(message, str):
        return FALLBACK_REVERT_MESSAGE
    text = message.strip()
    lowered = text.lower()
    index = lowered.find(_REVERT_PREFIX)
    if index < 0:
        return FALLBACK_REVERT_MESSAGE
    remainder = text[index + len(_REVERT_PREFIX):].lstrip(":").strip()
    if remainder.lower().startswith("reason string"):
        remainder = remainder[len("reason string"):].strip().strip("'\"")
    return remainder or FALLBACK_REVERT_MESSAGE


def _rpc_payload(exc: BaseException) -> Optional[Mapping[str, Any]]:
    if exc.args and isinstance(exc.args[0], Mapping):
        return exc.args[0]
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, Mapping) and isinstance(response.get("error"), Mapping):
        return response["error"]
    return None


def _looks_like_revert_data(data: Any) -> bool:
    if isinstance(data, (bytes, bytearray)):
        return len(data) >= 4
    return isinstance(data, str) and data.startswith("0x") and len(data) >= 10


def _hex_body(data: Any) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).hex()
    text = str(data)
    return text[2:].lower() if text.startswith("0x") else text.lower()
