import sys
from pathlib import Path

# Ensure repo root is on sys.path for serverless runtimes
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from treasury_service.logging_config import configure_logging
from treasury_service.runtime import TreasuryRuntime
from treasury_service.settings import Settings
from web.app import create_app

_settings = Settings.from_env()
configure_logging(_settings.log_level)

app = create_app(TreasuryRuntime.from_settings(_settings))

# ASGI entrypoint
handler = app
