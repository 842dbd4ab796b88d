"""Relaying caller-signed transactions."""

import unittest

from chain_adapter.connector import ChainConnector
from chain_adapter.simulator import SimulatedNode
from transaction_engine.submission import SignedTransactionSubmitter, SubmissionRejected

RAW_TX = "0xf86c098504a817c800825208943535353535353535353535353535353535353535880de0b6b3a76400008025a0"


class SignedSubmissionTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.node = SimulatedNode()
        self.submitter = SignedTransactionSubmitter(
            ChainConnector(self.node), receipt_timeout_sec=0.05, poll_interval_sec=0.01
        )

    async def test_mined_transaction_returns_receipt(self) -> None:
        result = await self.submitter.deploy_signed_transaction(RAW_TX)
        self.assertFalse(result.pending)
        self.assertEqual(result.receipt["transactionHash"], result.transaction_hash)
        self.assertEqual(result.to_dict()["transactionHash"], result.transaction_hash)

    async def test_pending_transaction_has_no_receipt(self) -> None:
        self.node.eth.mine_on_send = False
        result = await self.submitter.deploy_signed_transaction(RAW_TX)
        self.assertTrue(result.pending)
        self.assertIsNone(result.to_dict()["receipt"])

    async def test_prefix_is_added(self) -> None:
        await self.submitter.deploy_signed_transaction(RAW_TX[2:])
        self.assertEqual(self.node.eth.sent, [RAW_TX])

    async def test_node_rejection_is_reported(self) -> None:
        self.node.eth.send_error = ValueError({"code": -32000, "message": "nonce too low"})
        with self.assertRaises(SubmissionRejected) as ctx:
            await self.submitter.deploy_signed_transaction(RAW_TX)
        self.assertEqual(str(ctx.exception), "nonce too low")


if __name__ == "__main__":
    unittest.main()
