"""Base interfaces for escrow contract access.

Gateway flow:
1. Submit a deposit or withdrawal (may be rejected before inclusion)
2. Receive a TransactionHandle
3. Await the handle for the mined receipt (may revert)

Gateways own transport concerns: RPC endpoints, timeouts, nonce handling
and any retrying of transient network failures.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LinkType(IntEnum):
    """Asset kind held by a deposit. Values are fixed by the escrow contract."""
    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3


@dataclass
class Receipt:
    """Mined transaction receipt.

    Attributes:
        tx_hash: Transaction hash (0x-hex)
        status: 1 for success, 0 for revert
        block_number: Block the transaction was included in
        gas_used: Gas consumed
        logs: Raw logs, each a mapping with address, topics and data
    """
    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    logs: list[dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass
class DepositRecord:
    """Escrow state for one deposit."""
    deposit_index: int
    claimer_address: str
    link_type: LinkType
    amount: int
    token_address: str
    token_id: int = 0
    claimed: bool = False
    recipient: Optional[str] = None


class TransactionHandle(ABC):
    """Submitted transaction that can be awaited for its receipt."""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash

    @abstractmethod
    async def wait(self) -> Receipt:
        """Wait for the transaction to be mined.

        Returns:
            Receipt of the successful transaction

        Raises:
            TransactionReverted: If the transaction was mined but reverted
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tx_hash={self.tx_hash})"


class ContractGateway(ABC):
    """Abstract access to one chain's escrow contract."""

    def __init__(self, chain_id: int, contract_version: str):
        self.chain_id = chain_id
        self.contract_version = contract_version

    @abstractmethod
    async def deposit(
        self,
        token_address: str,
        link_type: LinkType,
        amount: int,
        token_id: int,
        claimer_address: str,
        value: int = 0,
    ) -> TransactionHandle:
        """Escrow assets claimable by whoever controls `claimer_address`.

        Args:
            token_address: Token contract (zero address for the native coin)
            link_type: Asset kind
            amount: Amount in base units
            token_id: Token id for ERC721/ERC1155, else 0
            claimer_address: Address derived from the link password
            value: Native coin sent along with the call (wei)

        Returns:
            Handle of the submitted transaction

        Raises:
            TransactionRejected: If the call is refused before inclusion
        """
        pass

    @abstractmethod
    async def withdraw(
        self,
        deposit_index: int,
        recipient: str,
        address_hash: bytes,
        signature: bytes,
    ) -> TransactionHandle:
        """Release a deposit to `recipient` using a claim signature.

        Raises:
            TransactionRejected: If the call is refused before inclusion
        """
        pass

    @abstractmethod
    async def get_deposit(self, deposit_index: int) -> DepositRecord:
        """Read the escrow record for a deposit.

        Raises:
            ConfigurationError: If the deposit does not exist
        """
        pass

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(chain_id={self.chain_id}, "
            f"version={self.contract_version})"
        )
