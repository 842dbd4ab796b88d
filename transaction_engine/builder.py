"""Assemble unsigned treasury transactions from live chain state."""

import logging
from typing import Optional

from eth_utils import to_checksum_address

from chain_adapter.connector import ChainConnector
from contract_binding.binding import TreasuryContract
from contract_binding.operations import TreasuryOperation, draft_for

from .models import UnsignedTransaction
from .nonces import NonceTracker
from .revert_decoder import is_revert_error, revert_reason_from_error

logger = logging.getLogger(__name__)


class TransactionRejected(ValueError):
    """Raised when the chain refuses a call during gas estimation."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TransactionBuilder:
    """Builds unsigned transactions; never signs or broadcasts."""

    def __init__(
        self,
        connector: ChainConnector,
        contract: TreasuryContract,
        chain_id: int,
        default_gas_limit: Optional[int] = None,
        nonces: Optional[NonceTracker] = None,
    ) -> None:
        self._connector = connector
        self._contract = contract
        self._chain_id = chain_id
        self._default_gas_limit = default_gas_limit
        self._nonces = nonces or NonceTracker()

    async def build_transaction(
        self, operation: TreasuryOperation, sender_address: str
    ) -> UnsignedTransaction:
        sender = to_checksum_address(sender_address)
        call = draft_for(self._contract, operation)
        data = call.encode_abi()

        try:
            estimated_gas = await self._connector.estimate_gas(call.call_params(sender))
        except Exception as exc:
            if not is_revert_error(exc):
                raise
            reason = revert_reason_from_error(exc)
            logger.info("%s rejected for %s: %s", call.function.name, sender, reason)
            raise TransactionRejected(reason) from exc

        # Reserve last so a failed lookup never consumes a nonce.
        gas_limit = await self.gas_limit()
        nonce = await self._nonces.reserve(sender, self._connector.get_transaction_count)

        return UnsignedTransaction(
            chain_id=self._chain_id,
            nonce=nonce,
            gas_limit=gas_limit,
            gas_price=estimated_gas,
            to=self._contract.address,
            from_address=sender,
            data=data,
        )

    async def gas_limit(self) -> Optional[int]:
        block = await self._connector.get_latest_block()
        limit = block.get("gasLimit")
        if limit:
            return int(limit)
        return self._default_gas_limit
