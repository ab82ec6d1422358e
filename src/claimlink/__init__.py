"""Password-gated escrow claim links for EVM chains."""

from claimlink.errors import (
    ClaimLinkError,
    ConfigurationError,
    ErrorKind,
    TransactionRejected,
    TransactionReverted,
    VerificationMismatch,
)
from claimlink.gateway.base import LinkType
from claimlink.keys import KeyPair, derive_keys, generate_password
from claimlink.links import LinkParams, decode_link, encode_link
from claimlink.protocol import ClaimLinkResult, CreateLinkResult, LinkProtocol
from claimlink.receipts import extract_deposit_index
from claimlink.signing import (
    build_claim_proof,
    hash_address,
    hash_message_eip191,
    sign_address,
    sign_message,
    verify_signature,
)

__version__ = "0.1.0"

__all__ = [
    "ClaimLinkError",
    "ConfigurationError",
    "ErrorKind",
    "TransactionRejected",
    "TransactionReverted",
    "VerificationMismatch",
    "LinkType",
    "KeyPair",
    "derive_keys",
    "generate_password",
    "LinkParams",
    "decode_link",
    "encode_link",
    "ClaimLinkResult",
    "CreateLinkResult",
    "LinkProtocol",
    "extract_deposit_index",
    "build_claim_proof",
    "hash_address",
    "hash_message_eip191",
    "sign_address",
    "sign_message",
    "verify_signature",
]
