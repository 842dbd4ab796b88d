"""HTTP surface for the treasury gateway."""

from __future__ import annotations

import logging
import re
import uuid
from contextlib import asynccontextmanager
from typing import Callable, Optional

from eth_utils import is_address
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from chain_adapter.connector import ChainUnavailableError, NodeTimeoutError
from contract_binding.operations import (
    AddMarketplace,
    Clearing,
    ExchangeIn,
    ExchangeOut,
    Payment,
    SetPaid,
    TreasuryOperation,
)
from transaction_engine.builder import TransactionRejected
from transaction_engine.submission import SubmissionRejected
from treasury_service.runtime import TreasuryRuntime

logger = logging.getLogger(__name__)

_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
_UINT256_LIMIT = 2**256


class InvalidInputError(ValueError):
    """Raised when a path or body value is malformed."""


class AddMarketplaceRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")
    marketplace_address: str = Field(alias="marketplaceAddress")


class ExchangeInRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")
    user_address: str = Field(alias="userAddress")
    tokens: int = Field(ge=0, lt=_UINT256_LIMIT)


class PaymentRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")
    provider_address: str = Field(alias="providerAddress")
    amount: int = Field(ge=0, lt=_UINT256_LIMIT)


class ExchangeOutRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")
    marketplace_address: str = Field(alias="marketplaceAddress")


class ClearingRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")


class SetPaidRequest(BaseModel):
    sender_address: str = Field(alias="senderAddress")
    transfer_id: str = Field(alias="transferId", min_length=1)
    transfer_code: str = Field(alias="transferCode")


class SignedTransactionRequest(BaseModel):
    serialized_tx: str = Field(alias="serializedTx", min_length=1)


def create_app(
    runtime: TreasuryRuntime,
    transfer_id_factory: Optional[Callable[[], str]] = None,
) -> FastAPI:
    new_transfer_id = transfer_id_factory or (lambda: str(uuid.uuid4()))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            await runtime.start()
        except ChainUnavailableError:
            logger.critical("Chain node unreachable at startup; shutting down.")
            raise
        try:
            yield
        finally:
            await runtime.stop()

    app = FastAPI(
        title="Treasury Gateway",
        description="Unsigned transaction builder and query API for the treasury contract",
        lifespan=lifespan,
    )
    app.state.runtime = runtime
    router = APIRouter()

    async def build(operation: TreasuryOperation, sender_address: str) -> dict:
        transaction = await runtime.builder.build_transaction(operation, sender_address)
        return transaction.to_dict()

    @router.get("/marketplaces/{address}")
    async def get_marketplace_index(address: str):
        _require_address(address)
        return {"index": await runtime.queries.get_marketplace_index(address)}

    @router.get("/balances/{address}")
    async def get_address_balance(address: str):
        _require_address(address)
        return {"balance": await runtime.queries.get_balance(address)}

    @router.get("/transactions/{transaction_hash}")
    async def get_transaction_receipt(transaction_hash: str):
        if not _TX_HASH_PATTERN.match(transaction_hash):
            raise InvalidInputError("Invalid transaction hash")
        receipt = await runtime.queries.get_transaction_receipt(transaction_hash)
        if receipt is None:
            return JSONResponse({"receipt": None}, status_code=404)
        return {"receipt": receipt}

    @router.get("/token-transfers/{transfer_id}")
    async def get_transaction_for_transfer_id(transfer_id: str):
        transfer = await runtime.queries.get_transaction_by_transfer_id(transfer_id)
        if transfer is None:
            return JSONResponse({"receipt": None}, status_code=404)
        return {"transfer": transfer.to_dict()}

    @router.post("/marketplaces")
    async def add_marketplace(payload: AddMarketplaceRequest):
        _require_address(payload.sender_address, payload.marketplace_address)
        operation = AddMarketplace(marketplace_address=payload.marketplace_address)
        return {"transactionObject": await build(operation, payload.sender_address)}

    @router.post("/transactions/exchange-in")
    async def exchange_in(payload: ExchangeInRequest):
        _require_address(payload.sender_address, payload.user_address)
        transfer_id = new_transfer_id()
        operation = ExchangeIn(
            transfer_id=transfer_id, user_address=payload.user_address, tokens=payload.tokens
        )
        return {
            "transferId": transfer_id,
            "transactionObject": await build(operation, payload.sender_address),
        }

    @router.post("/transactions/payment")
    async def payment(payload: PaymentRequest):
        _require_address(payload.sender_address, payload.provider_address)
        transfer_id = new_transfer_id()
        operation = Payment(
            transfer_id=transfer_id,
            provider_address=payload.provider_address,
            amount=payload.amount,
        )
        return {
            "transferId": transfer_id,
            "transactionObject": await build(operation, payload.sender_address),
        }

    @router.post("/transactions/exchange-out")
    async def exchange_out(payload: ExchangeOutRequest):
        _require_address(payload.sender_address, payload.marketplace_address)
        transfer_id = new_transfer_id()
        operation = ExchangeOut(
            transfer_id=transfer_id, marketplace_address=payload.marketplace_address
        )
        return {
            "transferId": transfer_id,
            "transactionObject": await build(operation, payload.sender_address),
        }

    @router.post("/transactions/clearing")
    async def clearing(payload: ClearingRequest):
        _require_address(payload.sender_address)
        transfer_id = new_transfer_id()
        return {
            "transferId": transfer_id,
            "transactionObject": await build(Clearing(transfer_id=transfer_id), payload.sender_address),
        }

    @router.post("/transactions/set-paid")
    async def set_paid(payload: SetPaidRequest):
        _require_address(payload.sender_address)
        operation = SetPaid(transfer_id=payload.transfer_id, transfer_code=payload.transfer_code)
        return {"transactionObject": await build(operation, payload.sender_address)}

    @router.post("/transactions/deploy-signed-transaction")
    async def deploy_signed_transaction(payload: SignedTransactionRequest):
        result = await runtime.submitter.deploy_signed_transaction(payload.serialized_tx)
        return {"transactionObject": result.to_dict()}

    app.include_router(router, prefix=runtime.settings.api_prefix)
    _install_error_handlers(app)
    return app


def _require_address(*addresses: str) -> None:
    for address in addresses:
        if not is_address(address):
            raise InvalidInputError("Invalid address")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"status": "error", "message": message}, status_code=status_code)


async def _handle_bad_request(request: Request, exc: Exception):
    return _error(str(exc), 400)


async def _handle_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error("Invalid request", 400)
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _error(f"{field}: {message}" if field else message, 400)


async def _handle_http(request: Request, exc: StarletteHTTPException):
    return _error(str(exc.detail), exc.status_code)


async def _handle_timeout(request: Request, exc: NodeTimeoutError):
    logger.error("%s %s timed out: %s", request.method, request.url.path, exc)
    return _error(str(exc), 504)


async def _handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error("Something went wrong", 500)


def _install_error_handlers(app: FastAPI) -> None:
    for _exc_class in (InvalidInputError, SubmissionRejected, TransactionRejected):
        app.add_exception_handler(_exc_class, _handle_bad_request)
    app.add_exception_handler(RequestValidationError, _handle_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http)
    app.add_exception_handler(NodeTimeoutError, _handle_timeout)
    app.add_exception_handler(Exception, _handle_unexpected)
