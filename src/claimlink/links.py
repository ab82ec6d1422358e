"""Claim link encoding.

Link format (must stay byte-compatible with already shared links):

    <base_url>?c=<chain>&v=<contract version>&i=<deposit index>&p=<password>

Neither direction validates: encode_link() only builds the string and
decode_link() returns None for any missing parameter, leaving the checks to
the caller.
"""

from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qs, quote, urlsplit

from claimlink.errors import LinkDecodeError

DEFAULT_BASE_URL = "https://peanut.to/claim"

PARAM_CHAIN = "c"
PARAM_VERSION = "v"
PARAM_INDEX = "i"
PARAM_PASSWORD = "p"


@dataclass(frozen=True)
class LinkParams:
    """Parameters carried by a claim link."""
    chain: Optional[str] = None
    contract_version: Optional[str] = None
    deposit_index: Optional[int] = None
    password: Optional[str] = None

    @property
    def locates_deposit(self) -> bool:
        """True when chain, contract version and deposit index are all present.

        The password is not required here: a link without one still names a
        deposit, it just cannot prove the claim.
        """
        return (
            bool(self.chain)
            and bool(self.contract_version)
            and self.deposit_index is not None
        )

    def __repr__(self) -> str:
        # password stays out of logs and tracebacks
        return (
            f"LinkParams(chain={self.chain!r}, contract_version={self.contract_version!r}, "
            f"deposit_index={self.deposit_index!r}, password={'***' if self.password else None})"
        )


def _encode_value(value: Union[str, int, None]) -> str:
    if value is None:
        return ""
    return quote(str(value), safe="")


def encode_link(
    chain: Union[str, int, None],
    contract_version: Optional[str],
    deposit_index: Union[int, str, None],
    password: Optional[str],
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Build a claim link from its parameters.

    Unreserved characters are emitted as-is; anything else is percent-encoded
    so decode_link() returns the exact password.
    """
    return (
        f"{base_url}"
        f"?{PARAM_CHAIN}={_encode_value(chain)}"
        f"&{PARAM_VERSION}={_encode_value(contract_version)}"
        f"&{PARAM_INDEX}={_encode_value(deposit_index)}"
        f"&{PARAM_PASSWORD}={_encode_value(password)}"
    )


def decode_link(link: str) -> LinkParams:
    """Read the parameters out of a claim link.

    Args:
        link: Full claim URL

    Returns:
        LinkParams with None for every missing parameter

    Raises:
        LinkDecodeError: If the deposit index is present but not an integer
    """
    query = parse_qs(urlsplit(link).query, keep_blank_values=True)

    def first(key: str) -> Optional[str]:
        values = query.get(key)
        return values[0] if values else None

    raw_index = first(PARAM_INDEX)
    deposit_index = None
    if raw_index:
        if not raw_index.isdecimal():
            raise LinkDecodeError(f"Deposit index is not a non-negative integer: {raw_index!r}")
        deposit_index = int(raw_index)

    return LinkParams(
        chain=first(PARAM_CHAIN) or None,
        contract_version=first(PARAM_VERSION) or None,
        deposit_index=deposit_index,
        password=first(PARAM_PASSWORD),
    )
