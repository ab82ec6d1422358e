"""Simulated escrow gateway for dry runs and tests.

Keeps deposits in memory and applies the same checks the escrow contract
applies on withdrawal:
- the deposit exists and has not been claimed
- address_hash equals the EIP-191 hash of keccak256(recipient)
- the signature recovers to the claimer address committed at deposit time

Receipts carry raw ABI-encoded logs, including the trailing MATIC
fee-transfer log on Polygon, so receipt parsing runs against the same shapes
a real chain produces.
"""

import logging
from typing import Optional

from eth_abi import encode
from eth_utils import encode_hex, keccak, to_checksum_address

from claimlink.errors import ConfigurationError, TransactionRejected, TransactionReverted
from claimlink.gateway.abi import (
    DEPOSIT_EVENT_TOPIC,
    WITHDRAW_EVENT_TOPIC,
    ZERO_ADDRESS,
)
from claimlink.gateway.base import (
    ContractGateway,
    DepositRecord,
    LinkType,
    Receipt,
    TransactionHandle,
)
from claimlink.signing import hash_address, hash_message_eip191, verify_signature

logger = logging.getLogger(__name__)

SIMULATED_ESCROW_ADDRESS = "0x000000000000000000000000000000000000e5c0"
SIMULATED_SENDER_ADDRESS = "0x00000000000000000000000000000000000051de"

# Polygon system contract emitting LogFeeTransfer for every transaction
MATIC_TOKEN_ADDRESS = "0x0000000000000000000000000000000000001010"
LOG_FEE_TRANSFER_TOPIC = keccak(
    text="LogFeeTransfer(address,address,address,uint256,uint256,uint256,uint256,uint256)"
)
ERC20_TRANSFER_TOPIC = keccak(text="Transfer(address,address,uint256)")

CHAINS_WITH_FEE_LOG = {137, 80001}


def _topic(value_type: str, value) -> bytes:
    return encode([value_type], [value])


class SimulatedTransaction(TransactionHandle):
    """Transaction that is already 'mined' when submitted."""

    def __init__(self, tx_hash: str, receipt: Receipt, revert_reason: Optional[str] = None):
        super().__init__(tx_hash)
        self.receipt = receipt
        self.revert_reason = revert_reason

    async def wait(self) -> Receipt:
        if self.revert_reason:
            raise TransactionReverted(self.revert_reason, tx_hash=self.tx_hash)
        return self.receipt


class SimulatedContractGateway(ContractGateway):
    """In-memory escrow contract.

    Args:
        chain_id: Chain to pretend to be on
        contract_version: Contract generation links will target
        sender: Address paying for deposits and withdrawals
        contract_address: Address the simulated escrow emits logs from
        balance: Native balance of the sender in wei (None = unlimited)
    """

    def __init__(
        self,
        chain_id: int,
        contract_version: str = "v3",
        sender: str = SIMULATED_SENDER_ADDRESS,
        contract_address: str = SIMULATED_ESCROW_ADDRESS,
        balance: Optional[int] = None,
    ):
        super().__init__(chain_id, contract_version)
        self.sender = to_checksum_address(sender)
        self.contract_address = to_checksum_address(contract_address)
        self.balance = balance
        self.deposits: list[DepositRecord] = []
        self._tx_count = 0
        self._block_number = 1

    def _next_tx_hash(self) -> str:
        self._tx_count += 1
        return encode_hex(keccak(text=f"{self.chain_id}:{self.sender}:{self._tx_count}"))

    def _mine(self, logs: list[dict], status: int = 1) -> Receipt:
        self._block_number += 1
        tx_hash = self._next_tx_hash()

        if self.chain_id in CHAINS_WITH_FEE_LOG:
            logs = logs + [self._fee_transfer_log()]

        return Receipt(
            tx_hash=tx_hash,
            status=status,
            block_number=self._block_number,
            gas_used=21000 + 30000 * len(logs),
            logs=logs,
        )

    def _fee_transfer_log(self) -> dict:
        return {
            "address": MATIC_TOKEN_ADDRESS,
            "topics": [
                LOG_FEE_TRANSFER_TOPIC,
                _topic("address", MATIC_TOKEN_ADDRESS),
                _topic("address", self.sender),
                _topic("address", "0x0000000000000000000000000000000000000001"),
            ],
            "data": encode(["uint256"] * 5, [21000, 10**18, 0, 10**18 - 21000, 21000]),
        }

    def _event_log(self, topic: bytes, record: DepositRecord, party: str) -> dict:
        return {
            "address": self.contract_address,
            "topics": [
                topic,
                _topic("uint256", record.deposit_index),
                _topic("uint8", int(record.link_type)),
                _topic("address", party),
            ],
            "data": encode(["uint256"], [record.amount]),
        }

    async def deposit(
        self,
        token_address: str,
        link_type: LinkType,
        amount: int,
        token_id: int,
        claimer_address: str,
        value: int = 0,
    ) -> TransactionHandle:
        try:
            link_type = LinkType(link_type)
        except ValueError:
            raise TransactionRejected(f"execution reverted: INVALID CONTRACT TYPE {link_type}")

        if link_type == LinkType.NATIVE and value != amount:
            raise TransactionRejected("execution reverted: WRONG ETH AMOUNT")
        if self.balance is not None and value > self.balance:
            raise TransactionRejected("insufficient funds for gas * price + value")

        record = DepositRecord(
            deposit_index=len(self.deposits),
            claimer_address=to_checksum_address(claimer_address),
            link_type=link_type,
            amount=amount,
            token_address=to_checksum_address(token_address or ZERO_ADDRESS),
            token_id=token_id,
        )
        self.deposits.append(record)
        if self.balance is not None:
            self.balance -= value

        logs = []
        if link_type == LinkType.ERC20:
            logs.append({
                "address": record.token_address,
                "topics": [
                    ERC20_TRANSFER_TOPIC,
                    _topic("address", self.sender),
                    _topic("address", self.contract_address),
                ],
                "data": encode(["uint256"], [amount]),
            })
        logs.append(self._event_log(DEPOSIT_EVENT_TOPIC, record, self.sender))

        receipt = self._mine(logs)
        logger.info(
            f"[SIMULATED] Deposit #{record.deposit_index}: {amount} "
            f"({link_type.name}) on chain {self.chain_id}"
        )
        return SimulatedTransaction(receipt.tx_hash, receipt)

    def _withdraw_failure(self, deposit_index: int, recipient: str,
                          address_hash: bytes, signature: bytes) -> Optional[str]:
        if deposit_index >= len(self.deposits):
            return "DEPOSIT INDEX DOES NOT EXIST"

        record = self.deposits[deposit_index]
        if record.claimed:
            return "DEPOSIT ALREADY WITHDRAWN"

        commitment = hash_address(recipient)
        if hash_message_eip191(commitment) != bytes(address_hash):
            return "HASHES DO NOT MATCH"

        if not verify_signature(commitment, signature, record.claimer_address):
            return "WRONG SIGNATURE"

        return None

    async def withdraw(
        self,
        deposit_index: int,
        recipient: str,
        address_hash: bytes,
        signature: bytes,
    ) -> TransactionHandle:
        failure = self._withdraw_failure(deposit_index, recipient, address_hash, signature)
        if failure:
            receipt = self._mine([], status=0)
            logger.warning(f"[SIMULATED] Withdrawal of #{deposit_index} reverted: {failure}")
            return SimulatedTransaction(receipt.tx_hash, receipt, revert_reason=failure)

        record = self.deposits[deposit_index]
        record.claimed = True
        record.recipient = to_checksum_address(recipient)

        receipt = self._mine([self._event_log(WITHDRAW_EVENT_TOPIC, record, record.recipient)])
        logger.info(f"[SIMULATED] Deposit #{deposit_index} withdrawn to {record.recipient}")
        return SimulatedTransaction(receipt.tx_hash, receipt)

    async def get_deposit(self, deposit_index: int) -> DepositRecord:
        if deposit_index < 0 or deposit_index >= len(self.deposits):
            raise ConfigurationError(f"Deposit {deposit_index} does not exist on chain {self.chain_id}")
        return self.deposits[deposit_index]
