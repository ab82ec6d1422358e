"""Deterministic link key derivation.

A link's key pair is derived from its password alone:

    private_key = keccak256(utf8(password))
    public_key, address = secp256k1(private_key)

No salt and no entropy are involved, so anyone holding the same password
derives the same key pair. Passwords for new links come from
generate_password(), which draws from a security-grade random source.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from eth_keys import keys
from eth_utils import keccak

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits
DEFAULT_PASSWORD_LENGTH = 16

Chooser = Callable[[Sequence[str]], str]


@dataclass(frozen=True)
class KeyPair:
    """Key pair derived from a link password.

    Attributes:
        address: EIP-55 checksum address (committed on-chain as the claimer)
        private_key: 32-byte private key as 0x-hex
        public_key: 64-byte uncompressed public key as 0x-hex
    """
    address: str
    private_key: str
    public_key: str

    def __repr__(self) -> str:
        return f"KeyPair(address={self.address})"


def _secret_bytes(secret: Union[str, bytes]) -> bytes:
    if isinstance(secret, str):
        return secret.encode("utf-8")
    return bytes(secret)


def derive_keys(secret: Union[str, bytes]) -> KeyPair:
    """Derive the link key pair from an arbitrary secret.

    Args:
        secret: Link password (text is UTF-8 encoded) or raw bytes

    Returns:
        KeyPair, identical for identical secret bytes
    """
    private_key = keys.PrivateKey(keccak(_secret_bytes(secret)))
    public_key = private_key.public_key

    return KeyPair(
        address=public_key.to_checksum_address(),
        private_key=private_key.to_hex(),
        public_key=public_key.to_hex(),
    )


def generate_password(
    length: int = DEFAULT_PASSWORD_LENGTH,
    chooser: Chooser = secrets.choice,
) -> str:
    """Generate a random alphanumeric link password.

    The default 16 characters over [a-zA-Z0-9] give about 95 bits of entropy.

    Args:
        length: Number of characters
        chooser: Picks one character from the alphabet; secrets.choice unless
            a caller supplies a fixed source

    Returns:
        Password string
    """
    if length <= 0:
        raise ValueError("Password length must be positive")
    return "".join(chooser(PASSWORD_ALPHABET) for _ in range(length))
