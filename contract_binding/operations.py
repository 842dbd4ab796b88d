"""Closed set of state-changing treasury operations."""

from dataclasses import dataclass
from typing import Union

from .binding import TreasuryContract
from .models import ContractCall


@dataclass(frozen=True)
class AddMarketplace:
    marketplace_address: str


@dataclass(frozen=True)
class ExchangeIn:
    transfer_id: str
    user_address: str
    tokens: int


@dataclass(frozen=True)
class ExchangeOut:
    transfer_id: str
    marketplace_address: str


@dataclass(frozen=True)
class Payment:
    transfer_id: str
    provider_address: str
    amount: int


@dataclass(frozen=True)
class Clearing:
    transfer_id: str


@dataclass(frozen=True)
class SetPaid:
    transfer_id: str
    transfer_code: str


TreasuryOperation = Union[AddMarketplace, ExchangeIn, ExchangeOut, Payment, Clearing, SetPaid]


def draft_for(contract: TreasuryContract, operation: TreasuryOperation) -> ContractCall:
    match operation:
        case AddMarketplace(marketplace_address=marketplace):
            return contract.add_marketplace(marketplace)
        case ExchangeIn(transfer_id=transfer_id, user_address=user, tokens=tokens):
            return contract.exchange_in(transfer_id, user, tokens)
        case ExchangeOut(transfer_id=transfer_id, marketplace_address=marketplace):
            return contract.exchange_out(transfer_id, marketplace)
        case Payment(transfer_id=transfer_id, provider_address=provider, amount=amount):
            return contract.payment(transfer_id, provider, amount)
        case Clearing(transfer_id=transfer_id):
            return contract.clearing(transfer_id)
        case SetPaid(transfer_id=transfer_id, transfer_code=code):
            return contract.set_paid(transfer_id, code)
    raise TypeError(f"Unsupported treasury operation: {type(operation).__name__}")
