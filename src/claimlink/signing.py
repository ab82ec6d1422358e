"""Claim authorization signatures.

Claim flow:
1. commitment = keccak256(recipient address bytes)       (hash_address)
2. address_hash = EIP-191 hash of the 32 commitment bytes (hash_message_eip191)
3. signature = sign(address_hash, link private key)       (sign_address)
4. withdrawDeposit(index, recipient, address_hash, signature)

The escrow contract recomputes step 1-2 from the recipient it is given and
checks the signer against the claimer address committed at deposit time, so
a signature only ever releases funds to the recipient it names.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct
from eth_utils import keccak, to_canonical_address, to_checksum_address

logger = logging.getLogger(__name__)

Message = Union[str, bytes]


@dataclass(frozen=True)
class ClaimProof:
    """Arguments proving a claim for one recipient.

    Attributes:
        recipient_address: Checksum address that receives the deposit
        address_hash: EIP-191 hash of keccak256(recipient), 32 bytes
        signature: 65-byte r || s || v signature by the link key
    """
    recipient_address: str
    address_hash: bytes
    signature: bytes


def _signable(message: Message) -> SignableMessage:
    if isinstance(message, str):
        return encode_defunct(text=message)
    return encode_defunct(primitive=bytes(message))


def hash_address(address: str) -> bytes:
    """Hash an address the way solidity's keccak256(abi.encodePacked(address)) does.

    Args:
        address: Hex address (any case)

    Returns:
        32-byte commitment
    """
    return keccak(to_canonical_address(address))


def hash_message_eip191(message: Message) -> bytes:
    """Add the EIP-191 personal message prefix and hash.

    keccak256(0x19 || "Ethereum Signed Message:\\n" || len(message) || message)
    """
    signable = _signable(message)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def sign_message(message: Message, private_key: Union[str, bytes]) -> bytes:
    """Sign an unhashed, unprefixed message with EIP-191 personal signing.

    Args:
        message: Text or raw bytes; the prefix is added here
        private_key: Signing key (hex or bytes)

    Returns:
        65-byte signature
    """
    signed = Account.sign_message(_signable(message), private_key=private_key)
    return bytes(signed.signature)


def sign_address(recipient: str, private_key: Union[str, bytes]) -> bytes:
    """Authorize a claim to `recipient` with the link private key."""
    return sign_message(hash_address(recipient), private_key)


def recover_signer(message: Message, signature: Union[str, bytes]) -> Optional[str]:
    """Recover the checksum address that signed an EIP-191 message.

    Returns:
        Signer address, or None if the signature cannot be recovered
    """
    try:
        return Account.recover_message(_signable(message), signature=signature)
    except Exception as e:
        logger.debug(f"Signature recovery failed ({type(e).__name__}): {e}")
        return None


def verify_signature(
    message: Message,
    signature: Union[str, bytes],
    expected_address: Optional[str],
) -> bool:
    """Check that `signature` over `message` was made by `expected_address`.

    Never raises for malformed signatures or addresses; anything that does
    not recover to the expected signer is simply not verified.
    """
    if not expected_address:
        return False

    recovered = recover_signer(message, signature)
    if recovered is None:
        return False

    return recovered.lower() == expected_address.lower()


def build_claim_proof(recipient: str, private_key: Union[str, bytes]) -> ClaimProof:
    """Build the withdrawDeposit arguments for `recipient`.

    Args:
        recipient: Address that should receive the deposit
        private_key: Link private key derived from the password

    Returns:
        ClaimProof
    """
    commitment = hash_address(recipient)

    return ClaimProof(
        recipient_address=to_checksum_address(recipient),
        address_hash=hash_message_eip191(commitment),
        signature=sign_message(commitment, private_key),
    )
