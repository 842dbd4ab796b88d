from .binding import (
    DEFAULT_ABI_PATH,
    TOKEN_TRANSFERRED,
    ContractBindingError,
    TreasuryContract,
    load_abi,
)
from .models import ContractCall, EventInput, EventSpec, FunctionSpec, TransferRecord
from .operations import (
    AddMarketplace,
    Clearing,
    ExchangeIn,
    ExchangeOut,
    Payment,
    SetPaid,
    TreasuryOperation,
    draft_for,
)

__all__ = [
    "AddMarketplace",
    "Clearing",
    "ContractBindingError",
    "ContractCall",
    "DEFAULT_ABI_PATH",
    "EventInput",
    "EventSpec",
    "ExchangeIn",
    "ExchangeOut",
    "FunctionSpec",
    "Payment",
    "SetPaid",
    "TOKEN_TRANSFERRED",
    "TransferRecord",
    "TreasuryContract",
    "TreasuryOperation",
    "draft_for",
    "load_abi",
]
