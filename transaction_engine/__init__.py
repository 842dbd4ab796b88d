from .builder import TransactionBuilder, TransactionRejected
from .models import SubmissionResult, UnsignedTransaction
from .nonces import NonceTracker
from .revert_decoder import (
    FALLBACK_REVERT_MESSAGE,
    decode_revert_reason,
    is_revert_error,
    revert_reason_from_error,
)
from .submission import SignedTransactionSubmitter, SubmissionRejected

__all__ = [
    "FALLBACK_REVERT_MESSAGE",
    "NonceTracker",
    "SignedTransactionSubmitter",
    "SubmissionRejected",
    "SubmissionResult",
    "TransactionBuilder",
    "TransactionRejected",
    "UnsignedTransaction",
    "decode_revert_reason",
    "is_revert_error",
    "revert_reason_from_error",
]
