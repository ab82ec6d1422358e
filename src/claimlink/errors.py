"""Error hierarchy for the claim link protocol.

Error kinds:
- ConfigurationError: unknown chain/version, malformed link fields (local, no I/O)
- TransactionRejected: remote call refused before inclusion
- TransactionReverted: included on-chain but reverted
- VerificationMismatch: claim proof does not recover to the deposit's claimer

Nothing in this package retries on any of these.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag carried by every protocol error."""
    CONFIGURATION = "configuration"
    REJECTED = "transaction_rejected"
    REVERTED = "transaction_reverted"
    VERIFICATION = "verification_mismatch"


class ClaimLinkError(Exception):
    """Base exception for claim link operations."""

    kind: ErrorKind = ErrorKind.CONFIGURATION


class ConfigurationError(ClaimLinkError):
    """Raised for unknown chains/versions or incomplete link parameters."""

    kind = ErrorKind.CONFIGURATION


class LinkDecodeError(ConfigurationError):
    """Raised when a link field is present but cannot be parsed."""
    pass


class DepositEventNotFound(ConfigurationError):
    """Raised when a receipt carries no deposit event to read the index from."""
    pass


class TransactionRejected(ClaimLinkError):
    """Raised when the gateway refuses a transaction before inclusion."""

    kind = ErrorKind.REJECTED


class TransactionReverted(ClaimLinkError):
    """Raised when a transaction was mined but reverted."""

    kind = ErrorKind.REVERTED

    def __init__(self, reason: str, tx_hash: Optional[str] = None):
        self.reason = reason
        self.tx_hash = tx_hash
        message = f"Transaction reverted: {reason}"
        if tx_hash:
            message += f" (tx {tx_hash})"
        super().__init__(message)


class TransactionNotConfirmed(TransactionReverted):
    """Raised when a submitted transaction is not mined within the gateway timeout.

    Gas may or may not have been spent; the transaction can still be mined later.
    """

    def __init__(self, tx_hash: str, timeout: float, detail: Optional[str] = None):
        self.timeout = timeout
        self.detail = detail
        if detail:
            reason = f"not confirmed: {detail}"
        else:
            reason = f"not confirmed within {timeout:g}s"
        super().__init__(reason, tx_hash=tx_hash)


class VerificationMismatch(ClaimLinkError):
    """Raised when a claim signature does not match the deposit's claimer."""

    kind = ErrorKind.VERIFICATION

    def __init__(self, expected: str, recovered: Optional[str] = None):
        self.expected = expected
        self.recovered = recovered
        super().__init__(
            f"Claim not authorized: signature does not recover to {expected}"
        )
