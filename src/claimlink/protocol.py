"""Create and claim links end to end.

Create: Idle -> Depositing -> AwaitingReceipt -> Encoding -> Done
    derive_keys(password) -> gateway.deposit() -> handle.wait()
    -> extract_deposit_index(receipt) -> encode_link()

Claim: Idle -> Decoding -> Deriving -> Signing -> Verifying -> Withdrawing -> Done
    decode_link() -> derive_keys(password) -> build_claim_proof(recipient)
    -> gateway.get_deposit() check -> gateway.withdraw() -> handle.wait()

Both operations return a result object instead of raising: on failure the
result carries the ClaimLinkError (tagged with its ErrorKind). Nothing is
retried. Cancellation of the awaiting task propagates untouched.
"""

import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Union

from eth_utils import is_address, to_checksum_address

from claimlink.chains import resolve_chain_id
from claimlink.config import DEFAULT_CONTRACT_VERSION, Settings
from claimlink.errors import (
    ClaimLinkError,
    ConfigurationError,
    ErrorKind,
    VerificationMismatch,
)
from claimlink.gateway.abi import ZERO_ADDRESS
from claimlink.gateway.base import ContractGateway, LinkType, Receipt
from claimlink.keys import Chooser, derive_keys, generate_password
from claimlink.links import DEFAULT_BASE_URL, decode_link, encode_link
from claimlink.receipts import DepositReceiptParser
from claimlink.signing import build_claim_proof, hash_address, verify_signature

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18

GatewayResolver = Callable[[int, str], ContractGateway]


@dataclass
class CreateLinkResult:
    """Result of create_link().

    Attributes:
        success: Whether a link was produced
        link: Shareable claim link
        deposit_index: Escrow-assigned deposit index
        receipt: Deposit receipt (also set when the deposit was mined but
            no link could be built from it)
        error: Failure, tagged with its ErrorKind
    """
    success: bool
    link: Optional[str] = None
    deposit_index: Optional[int] = None
    receipt: Optional[Receipt] = None
    error: Optional[ClaimLinkError] = None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> str:
        """Return the link or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.link


@dataclass
class ClaimLinkResult:
    """Result of claim_link()."""
    success: bool
    receipt: Optional[Receipt] = None
    deposit_index: Optional[int] = None
    recipient: Optional[str] = None
    error: Optional[ClaimLinkError] = None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> Receipt:
        """Return the withdrawal receipt or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.receipt


def to_base_units(amount: Union[Decimal, int, float, str], decimals: int) -> int:
    """Convert a human amount (e.g. 0.0001337 ETH) into integer base units.

    Raises:
        ConfigurationError: If the amount is negative, not a number, or has
            more precision than `decimals` allows
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ConfigurationError(f"Invalid amount: {amount!r}") from None

    if not value.is_finite() or value < 0:
        raise ConfigurationError(f"Invalid amount: {amount!r}")

    units = value.scaleb(decimals)
    if units != units.to_integral_value():
        raise ConfigurationError(f"Amount {amount} has more than {decimals} decimals")
    return int(units)


class LinkProtocol:
    """Creates and claims password-gated escrow links.

    Args:
        gateways: A ContractGateway, or a callable mapping (chain_id,
            contract_version) to one
        contract_version: Contract generation new links target
        base_url: Base URL new links are built on
        chooser: Random character source for generated passwords
        parser: Reads deposit indexes out of deposit receipts

    Example:
        protocol = LinkProtocol(SimulatedContractGateway(chain_id=5))
        created = await protocol.create_link(5, Decimal("0.0001337"))
        claimed = await protocol.claim_link(created.link, recipient)
    """

    def __init__(
        self,
        gateways: Union[ContractGateway, GatewayResolver],
        contract_version: str = DEFAULT_CONTRACT_VERSION,
        base_url: str = DEFAULT_BASE_URL,
        chooser: Chooser = secrets.choice,
        parser: Optional[DepositReceiptParser] = None,
    ):
        if isinstance(gateways, ContractGateway):
            self._resolve = self._single_gateway(gateways)
        else:
            self._resolve = gateways
        self.contract_version = contract_version
        self.base_url = base_url
        self.chooser = chooser
        self.parser = parser or DepositReceiptParser()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "LinkProtocol":
        """Build a protocol whose gateways come from the gateway factory."""
        from claimlink.gateway.factory import get_gateway

        def resolve(chain_id: int, contract_version: str) -> ContractGateway:
            return get_gateway(chain_id, settings, contract_version)

        return cls(
            resolve,
            contract_version=settings.contract_version,
            base_url=settings.base_url,
            **kwargs,
        )

    @staticmethod
    def _single_gateway(gateway: ContractGateway) -> GatewayResolver:
        def resolve(chain_id: int, contract_version: str) -> ContractGateway:
            if chain_id != gateway.chain_id or contract_version != gateway.contract_version:
                raise ConfigurationError(
                    f"No gateway for chain {chain_id} ({contract_version}); "
                    f"configured for chain {gateway.chain_id} ({gateway.contract_version})"
                )
            return gateway
        return resolve

    def _deposit_arguments(
        self,
        link_type: LinkType,
        amount: Union[Decimal, int, float, str],
        token_address: Optional[str],
        token_id: int,
        token_decimals: int,
    ) -> tuple[str, int, int, int]:
        """Normalize deposit arguments to (token, amount units, token id, value)."""
        if link_type == LinkType.NATIVE:
            units = to_base_units(amount, NATIVE_DECIMALS)
            return ZERO_ADDRESS, units, 0, units

        if not token_address or not is_address(token_address):
            raise ConfigurationError(f"{link_type.name} links need a valid token address")
        token_address = to_checksum_address(token_address)

        if link_type == LinkType.ERC20:
            return token_address, to_base_units(amount, token_decimals), 0, 0

        # NFT amounts are plain unit counts
        return token_address, to_base_units(amount, 0), int(token_id), 0

    async def create_link(
        self,
        chain_id: Union[int, str],
        amount: Union[Decimal, int, float, str],
        token_address: Optional[str] = None,
        link_type: Union[LinkType, int] = LinkType.NATIVE,
        token_id: int = 0,
        password: Optional[str] = None,
        token_decimals: int = 18,
    ) -> CreateLinkResult:
        """Deposit assets into escrow and build the claim link for them.

        Args:
            chain_id: Chain id or name
            amount: Human amount (ETH/token units), or unit count for NFTs
            token_address: Token contract; ignored for native deposits
            link_type: Asset kind
            token_id: Token id for ERC721/ERC1155
            password: Link password; a random one is generated if None
            token_decimals: Decimals of the ERC20 token

        Returns:
            CreateLinkResult with the link and deposit receipt
        """
        receipt = None
        try:
            chain_id = resolve_chain_id(chain_id)
            try:
                link_type = LinkType(link_type)
            except ValueError:
                raise ConfigurationError(f"Unknown link type: {link_type}") from None

            gateway = self._resolve(chain_id, self.contract_version)
            token, units, token_id, value = self._deposit_arguments(
                link_type, amount, token_address, token_id, token_decimals
            )

            if password is None:
                password = generate_password(chooser=self.chooser)
            keys = derive_keys(password)

            handle = await gateway.deposit(
                token_address=token,
                link_type=link_type,
                amount=units,
                token_id=token_id,
                claimer_address=keys.address,
                value=value,
            )
            logger.info(
                f"Deposit submitted on chain {chain_id}: {handle.tx_hash} "
                f"({link_type.name}, {units} units)"
            )

            receipt = await handle.wait()
            deposit_index = self.parser.extract_deposit_index(receipt, chain_id)

        except ClaimLinkError as e:
            logger.warning(f"Link creation failed ({e.kind.value}): {e}")
            return CreateLinkResult(success=False, receipt=receipt, error=e)

        link = encode_link(chain_id, self.contract_version, deposit_index, password, self.base_url)
        logger.info(f"Link created for deposit #{deposit_index} on chain {chain_id}")

        return CreateLinkResult(
            success=True,
            link=link,
            deposit_index=deposit_index,
            receipt=receipt,
        )

    async def claim_link(self, link: str, recipient: str) -> ClaimLinkResult:
        """Withdraw a link's deposit to `recipient`.

        Args:
            link: Claim link
            recipient: Address to receive the deposit

        Returns:
            ClaimLinkResult with the withdrawal receipt
        """
        deposit_index = None
        try:
            params = decode_link(link)
            if not params.locates_deposit:
                raise ConfigurationError(f"Link is missing required parameters: {params!r}")
            if not recipient or not is_address(recipient):
                raise ConfigurationError(f"Invalid recipient address: {recipient!r}")

            deposit_index = params.deposit_index
            chain_id = resolve_chain_id(params.chain)
            gateway = self._resolve(chain_id, params.contract_version)

            keys = derive_keys(params.password or "")
            proof = build_claim_proof(recipient, keys.private_key)

            record = await gateway.get_deposit(deposit_index)
            # claimed deposits go to the contract so it reports its own reason
            if not record.claimed and not verify_signature(
                hash_address(recipient), proof.signature, record.claimer_address
            ):
                raise VerificationMismatch(record.claimer_address, recovered=keys.address)

            handle = await gateway.withdraw(
                deposit_index=deposit_index,
                recipient=proof.recipient_address,
                address_hash=proof.address_hash,
                signature=proof.signature,
            )
            logger.info(f"Claim submitted for deposit #{deposit_index} on chain {chain_id}: {handle.tx_hash}")
            receipt = await handle.wait()

        except ClaimLinkError as e:
            logger.warning(f"Claim failed ({e.kind.value}): {e}")
            return ClaimLinkResult(success=False, deposit_index=deposit_index, error=e)

        logger.info(f"Deposit #{deposit_index} claimed to {proof.recipient_address}")
        return ClaimLinkResult(
            success=True,
            receipt=receipt,
            deposit_index=deposit_index,
            recipient=proof.recipient_address,
        )
