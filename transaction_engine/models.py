"""Value objects produced by the transaction engine."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UnsignedTransaction:
    """Snapshot of an unsigned contract call; may go stale before it is signed."""

    chain_id: int
    nonce: int
    gas_limit: Optional[int]
    gas_price: int
    to: str
    from_address: str
    data: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "gasLimit": self.gas_limit,
            "gasPrice": self.gas_price,
            "to": self.to,
            "from": self.from_address,
            "data": self.data,
        }


@dataclass(frozen=True)
class SubmissionResult:
    transaction_hash: str
    receipt: Optional[Dict[str, Any]] = None

    @property
    def pending(self) -> bool:
        return self.receipt is None

    def to_dict(self) -> Dict[str, object]:
        return {"transactionHash": self.transaction_hash, "receipt": self.receipt}
