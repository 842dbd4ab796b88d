"""Environment-driven configuration for the treasury gateway."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address


class ConfigurationError(ValueError):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class Settings:
    eth_host: str
    contract_address: str
    chain_id: int
    default_gas_limit: Optional[int] = None
    webhook_url: Optional[str] = None
    contract_abi_path: Optional[str] = None
    node_timeout_sec: float = 30.0
    receipt_timeout_sec: float = 60.0
    event_poll_interval_sec: float = 2.0
    event_max_block_range: int = 1000
    webhook_timeout_sec: float = 10.0
    nonce_reservation_ttl_sec: float = 120.0
    api_prefix: str = "/api/v1/treasury"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        contract_address = _required(environ, "CONTRACT_ADDRESS")
        if not is_address(contract_address):
            raise ConfigurationError(f"CONTRACT_ADDRESS is not a valid address: {contract_address}")

        return Settings(
            eth_host=_required(environ, "ETH_HOST"),
            contract_address=to_checksum_address(contract_address),
            chain_id=_int(environ, "CHAIN_ID", required=True),
            default_gas_limit=_int(environ, "GAS_LIMIT"),
            webhook_url=environ.get("WEBHOOK") or None,
            contract_abi_path=environ.get("CONTRACT_ABI_PATH") or None,
            node_timeout_sec=_float(environ, "NODE_TIMEOUT_SEC", 30.0),
            receipt_timeout_sec=_float(environ, "RECEIPT_TIMEOUT_SEC", 60.0),
            event_poll_interval_sec=_float(environ, "EVENT_POLL_INTERVAL_SEC", 2.0),
            event_max_block_range=_positive_int(environ, "EVENT_MAX_BLOCK_RANGE", 1000),
            webhook_timeout_sec=_float(environ, "WEBHOOK_TIMEOUT_SEC", 10.0),
            nonce_reservation_ttl_sec=_float(environ, "NONCE_RESERVATION_TTL_SEC", 120.0),
            api_prefix=environ.get("API_PREFIX", "/api/v1/treasury").rstrip("/"),
            host=environ.get("HOST", "0.0.0.0"),
            port=_int(environ, "PORT") or 3000,
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        )


def _required(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key, "").strip()
    if not value:
        raise ConfigurationError(f"{key} must be set.")
    return value


def _int(environ: Mapping[str, str], key: str, required: bool = False) -> Optional[int]:
    raw = environ.get(key, "").strip()
    if not raw:
        if required:
            raise ConfigurationError(f"{key} must be set.")
        return None
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}.") from exc


def _positive_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = _int(environ, key)
    if value is None:
        return default
    if value < 1:
        raise ConfigurationError(f"{key} must be positive.")
    return value


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}.") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive.")
    return value
