"""Unsigned transaction assembly against a simulated chain."""

import asyncio
import unittest

from eth_utils import to_checksum_address

from chain_adapter.connector import ChainConnector
from chain_adapter.simulator import SimulatedNode
from contract_binding.binding import TreasuryContract, load_abi
from contract_binding.operations import AddMarketplace, Clearing, ExchangeIn, Payment
from transaction_engine.builder import TransactionBuilder, TransactionRejected
from transaction_engine.nonces import NonceTracker

CONTRACT = to_checksum_address("0x" + "cc" * 20)
SENDER = to_checksum_address("0x" + "aa" * 20)
USER = to_checksum_address("0x" + "bb" * 20)
OTHER_SENDER = to_checksum_address("0x" + "dd" * 20)


class TransactionBuilderTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.node = SimulatedNode(gas_estimate=201966, block_gas_limit=6721975)
        self.connector = ChainConnector(self.node)
        self.contract = TreasuryContract(load_abi(), CONTRACT, self.connector)
        self.builder = TransactionBuilder(self.connector, self.contract, chain_id=1337)

    async def test_exchange_in_transaction_object(self) -> None:
        self.node.eth.set_nonce(SENDER, 5)
        operation = ExchangeIn(transfer_id="transfer-1", user_address=USER, tokens=10)

        tx = await self.builder.build_transaction(operation, SENDER)

        self.assertEqual(
            tx.to_dict(),
            {
                "chainId": 1337,
                "nonce": 5,
                "gasLimit": 6721975,
                "gasPrice": 201966,
                "to": CONTRACT,
                "from": SENDER,
                "data": self.contract.exchange_in("transfer-1", USER, 10).encode_abi(),
            },
        )

    async def test_data_decodes_to_method_and_arguments(self) -> None:
        operation = Payment(transfer_id="transfer-7", provider_address=USER, amount=250)
        tx = await self.builder.build_transaction(operation, SENDER)
        self.assertEqual(
            self.contract.decode_function_input(tx.data),
            ("payment", ("transfer-7", USER, 250)),
        )

    async def test_estimation_runs_as_sender(self) -> None:
        await self.builder.build_transaction(Clearing(transfer_id="t"), SENDER.lower())
        request = self.node.eth.estimate_requests[-1]
        self.assertEqual(request["from"], SENDER)
        self.assertEqual(request["to"], CONTRACT)

    async def test_sequential_nonces_strictly_increase(self) -> None:
        self.node.eth.set_nonce(SENDER, 3)
        first = await self.builder.build_transaction(Clearing(transfer_id="a"), SENDER)
        second = await self.builder.build_transaction(Clearing(transfer_id="b"), SENDER)
        self.assertEqual(first.nonce, 3)
        self.assertGreater(second.nonce, first.nonce)

    async def test_chain_count_wins_when_ahead(self) -> None:
        await self.builder.build_transaction(Clearing(transfer_id="a"), SENDER)
        self.node.eth.set_nonce(SENDER, 9)
        tx = await self.builder.build_transaction(Clearing(transfer_id="b"), SENDER)
        self.assertEqual(tx.nonce, 9)

    async def test_concurrent_builds_get_distinct_nonces(self) -> None:
        self.node.eth.set_nonce(SENDER, 5)
        results = await asyncio.gather(
            *(self.builder.build_transaction(Clearing(transfer_id=str(i)), SENDER) for i in range(4))
        )
        self.assertEqual(sorted(tx.nonce for tx in results), [5, 6, 7, 8])

    async def test_senders_tracked_independently(self) -> None:
        self.node.eth.set_nonce(SENDER, 2)
        await self.builder.build_transaction(Clearing(transfer_id="a"), SENDER)
        tx = await self.builder.build_transaction(Clearing(transfer_id="b"), OTHER_SENDER)
        self.assertEqual(tx.nonce, 0)

    async def test_revert_reason_is_decoded(self) -> None:
        self.node.eth.revert_with("Invalid address")
        with self.assertRaises(TransactionRejected) as ctx:
            await self.builder.build_transaction(AddMarketplace(marketplace_address=USER), SENDER)
        self.assertEqual(ctx.exception.reason, "Invalid address")
        self.assertEqual(str(ctx.exception), "Invalid address")

    async def test_revert_scoped_to_one_method(self) -> None:
        selector = self.contract.function("payment").selector
        self.node.eth.revert_with("Insufficient balance", selector=selector)

        tx = await self.builder.build_transaction(Clearing(transfer_id="ok"), SENDER)
        self.assertEqual(tx.nonce, 0)
        with self.assertRaises(TransactionRejected):
            await self.builder.build_transaction(
                Payment(transfer_id="x", provider_address=USER, amount=1), SENDER
            )

    async def test_rejected_build_does_not_consume_nonce(self) -> None:
        self.node.eth.revert_with("Insufficient balance")
        with self.assertRaises(TransactionRejected):
            await self.builder.build_transaction(Clearing(transfer_id="x"), SENDER)
        self.node.eth.clear_reverts()
        tx = await self.builder.build_transaction(Clearing(transfer_id="y"), SENDER)
        self.assertEqual(tx.nonce, 0)

    async def test_failed_gas_limit_lookup_does_not_consume_nonce(self) -> None:
        self.node.eth.set_nonce(SENDER, 5)
        self.node.eth.block_error = ConnectionError("node went away")
        with self.assertRaises(ConnectionError):
            await self.builder.build_transaction(Clearing(transfer_id="x"), SENDER)

        self.node.eth.block_error = None
        tx = await self.builder.build_transaction(Clearing(transfer_id="y"), SENDER)
        self.assertEqual(tx.nonce, 5)

    async def test_abandoned_reservation_expires(self) -> None:
        now = [0.0]
        builder = TransactionBuilder(
            self.connector,
            self.contract,
            chain_id=1337,
            nonces=NonceTracker(reservation_ttl_sec=30, clock=lambda: now[0]),
        )
        self.node.eth.set_nonce(SENDER, 4)
        first = await builder.build_transaction(Clearing(transfer_id="a"), SENDER)
        now[0] = 10.0
        second = await builder.build_transaction(Clearing(transfer_id="b"), SENDER)
        self.assertEqual((first.nonce, second.nonce), (4, 5))

        # Neither transaction was broadcast.
        now[0] = 41.0
        third = await builder.build_transaction(Clearing(transfer_id="c"), SENDER)
        self.assertEqual(third.nonce, 4)

    async def test_transport_failures_propagate(self) -> None:
        error = ConnectionError("node went away")
        self.node.eth.estimate_error = error
        with self.assertRaises(ConnectionError) as ctx:
            await self.builder.build_transaction(Clearing(transfer_id="x"), SENDER)
        self.assertIs(ctx.exception, error)

    async def test_gas_limit_falls_back_to_default(self) -> None:
        self.node.eth.block_gas_limit = None
        builder = TransactionBuilder(
            self.connector, self.contract, chain_id=1337, default_gas_limit=8_000_000
        )
        tx = await builder.build_transaction(Clearing(transfer_id="x"), SENDER)
        self.assertEqual(tx.gas_limit, 8_000_000)


if __name__ == "__main__":
    unittest.main()
