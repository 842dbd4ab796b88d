"""Environment parsing for gateway settings."""

import unittest

from eth_utils import to_checksum_address

from treasury_service.settings import ConfigurationError, Settings

CONTRACT = "0x" + "cc" * 20


def _env(**overrides):
    environ = {
        "ETH_HOST": "http://127.0.0.1:8545",
        "CONTRACT_ADDRESS": CONTRACT,
        "CHAIN_ID": "1337",
    }
    environ.update(overrides)
    return environ


class SettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = Settings.from_env(_env())
        self.assertEqual(settings.eth_host, "http://127.0.0.1:8545")
        self.assertEqual(settings.contract_address, to_checksum_address(CONTRACT))
        self.assertEqual(settings.chain_id, 1337)
        self.assertIsNone(settings.default_gas_limit)
        self.assertIsNone(settings.webhook_url)
        self.assertEqual(settings.api_prefix, "/api/v1/treasury")
        self.assertEqual(settings.port, 3000)
        self.assertEqual(settings.node_timeout_sec, 30.0)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.nonce_reservation_ttl_sec, 120.0)
        self.assertEqual(settings.event_max_block_range, 1000)

    def test_optional_values(self) -> None:
        settings = Settings.from_env(
            _env(
                GAS_LIMIT="8000000",
                WEBHOOK="http://hooks.local/events",
                API_PREFIX="/treasury/",
                PORT="8080",
                NODE_TIMEOUT_SEC="2.5",
                LOG_LEVEL="debug",
                NONCE_RESERVATION_TTL_SEC="45",
                EVENT_MAX_BLOCK_RANGE="500",
            )
        )
        self.assertEqual(settings.default_gas_limit, 8_000_000)
        self.assertEqual(settings.webhook_url, "http://hooks.local/events")
        self.assertEqual(settings.api_prefix, "/treasury")
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.node_timeout_sec, 2.5)
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.nonce_reservation_ttl_sec, 45.0)
        self.assertEqual(settings.event_max_block_range, 500)

    def test_hex_chain_id(self) -> None:
        self.assertEqual(Settings.from_env(_env(CHAIN_ID="0x539")).chain_id, 1337)

    def test_missing_required_values(self) -> None:
        for key in ("ETH_HOST", "CONTRACT_ADDRESS", "CHAIN_ID"):
            with self.subTest(key=key):
                with self.assertRaises(ConfigurationError):
                    Settings.from_env(_env(**{key: ""}))

    def test_malformed_values(self) -> None:
        cases = {
            "CONTRACT_ADDRESS": "0x1234",
            "CHAIN_ID": "mainnet",
            "GAS_LIMIT": "lots",
            "RECEIPT_TIMEOUT_SEC": "0",
            "WEBHOOK_TIMEOUT_SEC": "soon",
            "EVENT_MAX_BLOCK_RANGE": "0",
        }
        for key, value in cases.items():
            with self.subTest(key=key):
                with self.assertRaises(ConfigurationError):
                    Settings.from_env(_env(**{key: value}))


if __name__ == "__main__":
    unittest.main()
