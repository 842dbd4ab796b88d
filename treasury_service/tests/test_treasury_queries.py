"""Read-only queries and the runtime lifecycle against a simulated node."""

import unittest

from eth_utils import to_checksum_address

from chain_adapter.connector import ChainConnector, ChainUnavailableError
from chain_adapter.simulator import SimulatedNode
from contract_binding.binding import TreasuryContract, load_abi
from contract_binding.operations import Clearing
from event_relay.models import DeliveryResult, RelayState
from treasury_service.queries import TreasuryQueries
from treasury_service.runtime import TreasuryRuntime
from treasury_service.settings import Settings

CONTRACT = to_checksum_address("0x" + "cc" * 20)
SENDER = to_checksum_address("0x" + "aa" * 20)
USER = to_checksum_address("0x" + "bb" * 20)
TRANSFER_TYPES = ["string", "address", "address", "uint256", "bool", "string"]


class NullSink:
    def __init__(self) -> None:
        self.closed = False

    async def deliver(self, event):
        return DeliveryResult(delivered=True, status_code=200)

    async def close(self) -> None:
        self.closed = True


class TreasuryQueriesTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.node = SimulatedNode()
        self.connector = ChainConnector(self.node)
        self.contract = TreasuryContract(load_abi(), CONTRACT, self.connector)
        self.queries = TreasuryQueries(self.connector, self.contract)

    def _result(self, name, types, values) -> None:
        self.node.eth.set_call_result(self.contract.function(name).selector, types, values)

    async def test_marketplace_index_is_a_string(self) -> None:
        self._result("getMarketplaceIndex", ["uint256"], [3])
        self.assertEqual(await self.queries.get_marketplace_index(USER), "3")

    async def test_balances_are_strings(self) -> None:
        self._result("balanceOfAddress", ["uint256[]"], [[10**21, 0]])
        self.assertEqual(await self.queries.get_balance(USER), ["1000000000000000000000", "0"])

    async def test_unknown_receipt_is_none(self) -> None:
        self.assertIsNone(await self.queries.get_transaction_receipt("0x" + "ab" * 32))

    async def test_known_transfer(self) -> None:
        self._result("transactions", TRANSFER_TYPES, ["t-1", SENDER, USER, 50, False, ""])
        record = await self.queries.get_transaction_by_transfer_id("t-1")
        self.assertEqual(
            record.to_dict(),
            {
                "transferId": "t-1",
                "fromAddress": SENDER,
                "toAddress": USER,
                "tokenAmount": "50",
                "isPaid": False,
                "transferCode": "",
            },
        )

    async def test_unknown_transfer_is_none(self) -> None:
        zero = "0x" + "00" * 20
        self._result("transactions", TRANSFER_TYPES, ["", zero, zero, 0, False, ""])
        self.assertIsNone(await self.queries.get_transaction_by_transfer_id("missing"))


class TreasuryRuntimeTests(unittest.IsolatedAsyncioTestCase):
    def _settings(self, **overrides) -> Settings:
        values = dict(eth_host="http://simulated", contract_address=CONTRACT, chain_id=1337)
        values.update(overrides)
        return Settings(**values)

    async def test_without_webhook_no_relay_is_created(self) -> None:
        runtime = TreasuryRuntime.from_settings(self._settings(), w3=SimulatedNode())
        self.assertIsNone(runtime.relay)
        await runtime.start()
        self.assertTrue(runtime.connector.connected)
        await runtime.stop()
        self.assertFalse(runtime.connector.connected)

    async def test_relay_follows_runtime_lifecycle(self) -> None:
        sink = NullSink()
        runtime = TreasuryRuntime.from_settings(self._settings(), w3=SimulatedNode(), sink=sink)
        await runtime.start()
        self.assertEqual(runtime.relay.state, RelayState.SUBSCRIBED)
        await runtime.stop()
        self.assertTrue(sink.closed)

    async def test_unreachable_node_fails_start(self) -> None:
        runtime = TreasuryRuntime.from_settings(self._settings(), w3=SimulatedNode(listening=False))
        with self.assertRaises(ChainUnavailableError):
            await runtime.start()
        self.assertFalse(runtime.connector.connected)

    async def test_only_one_connector_is_active(self) -> None:
        first = TreasuryRuntime.from_settings(self._settings(), w3=SimulatedNode())
        second = TreasuryRuntime.from_settings(self._settings(), w3=SimulatedNode())
        await first.start()
        self.addAsyncCleanup(first.stop)
        with self.assertRaises(ChainUnavailableError):
            await second.start()

    async def test_builder_uses_settings(self) -> None:
        node = SimulatedNode(block_gas_limit=None)
        runtime = TreasuryRuntime.from_settings(self._settings(default_gas_limit=8_000_000), w3=node)
        tx = await runtime.builder.build_transaction(Clearing(transfer_id="t"), SENDER)
        self.assertEqual(tx.chain_id, 1337)
        self.assertEqual(tx.gas_limit, 8_000_000)


if __name__ == "__main__":
    unittest.main()
