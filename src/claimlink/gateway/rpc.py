"""Escrow gateway backed by a JSON-RPC node.

Uses AsyncWeb3 for contract calls and an eth_account local account to sign
transactions. Failures map onto the protocol errors:
- contract reverts during gas estimation -> TransactionReverted (no tx hash)
- node refusals (funds, nonce, transport) -> TransactionRejected
- mined with status 0                     -> TransactionReverted (reason replayed)
- not mined within tx_timeout, or receipt
  polling failed after broadcast          -> TransactionNotConfirmed
"""

import logging
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, to_checksum_address
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from claimlink.chains import get_contract_address, get_rpc_url
from claimlink.config import Settings
from claimlink.errors import (
    ConfigurationError,
    TransactionNotConfirmed,
    TransactionRejected,
    TransactionReverted,
)
from claimlink.gateway.abi import ESCROW_ABIS, ZERO_ADDRESS
from claimlink.gateway.base import (
    ContractGateway,
    DepositRecord,
    LinkType,
    Receipt,
    TransactionHandle,
)

logger = logging.getLogger(__name__)


def _rpc_error_message(error: Exception) -> str:
    """Pull the node's message out of an RPC error."""
    if error.args and isinstance(error.args[0], dict):
        payload = error.args[0]
        return payload.get("message") or payload.get("reason") or str(payload)
    return str(error)


def _to_receipt(raw: Any) -> Receipt:
    logs = [
        {
            "address": log["address"],
            "topics": [bytes(t) for t in log["topics"]],
            "data": bytes(log["data"]),
            "logIndex": log.get("logIndex"),
        }
        for log in raw["logs"]
    ]
    return Receipt(
        tx_hash=encode_hex(raw["transactionHash"]),
        status=raw["status"],
        block_number=raw.get("blockNumber"),
        gas_used=raw.get("gasUsed"),
        logs=logs,
    )


class Web3Transaction(TransactionHandle):
    """Transaction broadcast to a node, awaited through eth_getTransactionReceipt."""

    def __init__(self, gateway: "Web3ContractGateway", tx_hash: bytes, tx: dict):
        super().__init__(encode_hex(tx_hash))
        self._gateway = gateway
        self._raw_hash = tx_hash
        self._tx = tx

    async def wait(self) -> Receipt:
        w3 = self._gateway.w3
        try:
            raw = await w3.eth.wait_for_transaction_receipt(
                self._raw_hash, timeout=self._gateway.tx_timeout
            )
        except TimeExhausted:
            raise TransactionNotConfirmed(self.tx_hash, self._gateway.tx_timeout) from None
        except (Web3Exception, ValueError) as e:
            # broadcast already happened; the outcome is unknown, not refused
            raise TransactionNotConfirmed(
                self.tx_hash, self._gateway.tx_timeout, detail=_rpc_error_message(e)
            ) from e

        receipt = _to_receipt(raw)
        if not receipt.succeeded:
            reason = await self._gateway.revert_reason(self._tx, receipt.block_number)
            logger.warning(f"Transaction {self.tx_hash} reverted: {reason}")
            raise TransactionReverted(reason, tx_hash=self.tx_hash)

        logger.info(f"Transaction {self.tx_hash} confirmed in block {receipt.block_number}")
        return receipt


class Web3ContractGateway(ContractGateway):
    """Escrow contract access over JSON-RPC.

    Args:
        chain_id: Chain the contract lives on
        contract_version: Contract generation (selects the ABI)
        contract_address: Escrow contract address
        rpc_url: JSON-RPC endpoint
        private_key: Key of the account paying for transactions
        tx_timeout: Seconds to wait for a receipt
        w3: Pre-built AsyncWeb3 instance (overrides rpc_url)
    """

    def __init__(
        self,
        chain_id: int,
        contract_version: str,
        contract_address: str,
        rpc_url: Optional[str] = None,
        private_key: Optional[str] = None,
        tx_timeout: float = 120.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        super().__init__(chain_id, contract_version)

        abi = ESCROW_ABIS.get(contract_version)
        if abi is None:
            raise ConfigurationError(f"Unsupported contract version: {contract_version}")
        if w3 is None and not rpc_url:
            raise ConfigurationError(f"No RPC URL for chain {chain_id}")

        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.tx_timeout = tx_timeout
        self.contract = self.w3.eth.contract(
            address=to_checksum_address(contract_address), abi=abi
        )

        self.account: Optional[LocalAccount] = None
        if private_key:
            try:
                self.account = Account.from_key(private_key)
            except Exception:
                raise ConfigurationError("Invalid private key format (key not shown)") from None

    @classmethod
    def from_settings(
        cls,
        chain_id: int,
        settings: Settings,
        contract_version: Optional[str] = None,
    ) -> "Web3ContractGateway":
        """Build a gateway from application settings."""
        version = contract_version or settings.contract_version
        return cls(
            chain_id=chain_id,
            contract_version=version,
            contract_address=get_contract_address(chain_id, version, settings),
            rpc_url=get_rpc_url(chain_id, settings),
            private_key=settings.private_key,
            tx_timeout=settings.tx_timeout,
        )

    def _require_account(self) -> LocalAccount:
        if self.account is None:
            raise ConfigurationError("No private key configured for sending transactions")
        return self.account

    async def _send(self, func, value: int = 0) -> Web3Transaction:
        """Estimate, sign and broadcast a contract call."""
        account = self._require_account()

        try:
            nonce = await self.w3.eth.get_transaction_count(account.address, "pending")
            tx = await func.build_transaction({
                "from": account.address,
                "value": value,
                "nonce": nonce,
                "chainId": self.chain_id,
            })
            signed = account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            # gas estimation replays the call, so this is the contract's own revert
            raise TransactionReverted(e.message or str(e)) from e
        except (Web3Exception, ValueError) as e:
            raise TransactionRejected(_rpc_error_message(e)) from e

        logger.info(f"Submitted {func.fn_name} on chain {self.chain_id}: {encode_hex(tx_hash)}")
        return Web3Transaction(self, tx_hash, tx)

    async def revert_reason(self, tx: dict, block_number: Optional[int]) -> str:
        """Replay a reverted transaction as a call to recover its reason."""
        replay = {key: tx[key] for key in ("from", "to", "data", "value") if key in tx}
        try:
            await self.w3.eth.call(replay, block_identifier=block_number or "latest")
        except ContractLogicError as e:
            return e.message or str(e)
        except (Web3Exception, ValueError) as e:
            return _rpc_error_message(e)
        return "execution reverted"

    async def deposit(
        self,
        token_address: str,
        link_type: LinkType,
        amount: int,
        token_id: int,
        claimer_address: str,
        value: int = 0,
    ) -> TransactionHandle:
        func = self.contract.functions.makeDeposit(
            to_checksum_address(token_address or ZERO_ADDRESS),
            int(link_type),
            amount,
            token_id,
            to_checksum_address(claimer_address),
        )
        return await self._send(func, value=value)

    async def withdraw(
        self,
        deposit_index: int,
        recipient: str,
        address_hash: bytes,
        signature: bytes,
    ) -> TransactionHandle:
        func = self.contract.functions.withdrawDeposit(
            deposit_index,
            to_checksum_address(recipient),
            bytes(address_hash),
            bytes(signature),
        )
        return await self._send(func)

    async def get_deposit(self, deposit_index: int) -> DepositRecord:
        try:
            claimer, amount, token_address, contract_type, token_id = (
                await self.contract.functions.deposits(deposit_index).call()
            )
        except ContractLogicError as e:
            raise ConfigurationError(
                f"Deposit {deposit_index} does not exist on chain {self.chain_id}: {e}"
            ) from e
        except (Web3Exception, ValueError) as e:
            raise TransactionRejected(_rpc_error_message(e)) from e

        # withdrawn deposits are deleted, leaving a zeroed struct
        return DepositRecord(
            deposit_index=deposit_index,
            claimer_address=claimer,
            link_type=LinkType(contract_type),
            amount=amount,
            token_address=token_address,
            token_id=token_id,
            claimed=claimer == ZERO_ADDRESS,
        )
