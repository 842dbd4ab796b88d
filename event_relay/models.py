"""Normalized contract events and webhook delivery outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class RelayState(Enum):
    UNSUBSCRIBED = "UNSUBSCRIBED"
    SUBSCRIBED = "SUBSCRIBED"


@dataclass(frozen=True)
class TokenTransferEvent:
    transaction_hash: str
    block_hash: str
    event_type: str
    operation: str
    transfer_id: str
    sender_address: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "transactionHash": self.transaction_hash,
            "blockHash": self.block_hash,
            "type": self.event_type,
            "operation": self.operation,
            "transferId": self.transfer_id,
            "sender": self.sender_address,
        }


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
