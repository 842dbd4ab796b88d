from .logging_config import configure_logging
from .queries import TreasuryQueries
from .runtime import TreasuryRuntime
from .settings import ConfigurationError, Settings

__all__ = [
    "ConfigurationError",
    "Settings",
    "TreasuryQueries",
    "TreasuryRuntime",
    "configure_logging",
]
