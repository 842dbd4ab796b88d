"""Read-only passthroughs to the chain and the treasury contract."""

from typing import Any, Dict, List, Optional

from chain_adapter.connector import ChainConnector
from contract_binding.binding import TreasuryContract
from contract_binding.models import TransferRecord


class TreasuryQueries:
    def __init__(self, connector: ChainConnector, contract: TreasuryContract) -> None:
        self._connector = connector
        self._contract = contract

    async def get_marketplace_index(self, address: str) -> str:
        return str(await self._contract.get_marketplace_index(address))

    async def get_balance(self, address: str) -> List[str]:
        return [str(value) for value in await self._contract.balance_of_address(address)]

    async def get_transaction_receipt(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        return await self._connector.get_transaction_receipt(transaction_hash)

    async def get_transaction_by_transfer_id(self, transfer_id: str) -> Optional[TransferRecord]:
        # The contract answers unknown ids with a zeroed struct.
        record = await self._contract.transactions(transfer_id)
        if not record.transfer_id:
            return None
        return record
