"""Deposit index extraction from transaction receipts.

The escrow contract assigns the deposit index when the deposit is mined and
reports it as the first argument of DepositEvent. Which log holds that event
is decided by a LogSelector:

- EventSignatureSelector (default): last log whose topic0 is DepositEvent
- OffsetSelector: fixed position from the end of the log list

Polygon's MATIC token contract emits a fee-transfer log after the deposit
event, which is why positional selection needs -2 on chain 137. Selecting by
signature needs no per-chain override; LEGACY_SELECTORS keeps the positional
behaviour available for callers that depend on it.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

from eth_abi import decode
from eth_utils import event_abi_to_log_topic, to_bytes

from claimlink.errors import DepositEventNotFound
from claimlink.gateway.abi import DEPOSIT_EVENT_ABI
from claimlink.gateway.base import Receipt

logger = logging.getLogger(__name__)

Log = Mapping[str, Any]


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return to_bytes(hexstr=value)
    return bytes(value)


class LogSelector(ABC):
    """Strategy picking the deposit event log out of a receipt."""

    @abstractmethod
    def select(self, logs: Sequence[Log]) -> Optional[Log]:
        """Return the log holding the deposit event, or None."""
        pass


class OffsetSelector(LogSelector):
    """Pick the log at a fixed offset from the end of the list."""

    def __init__(self, offset: int = -1):
        if offset >= 0:
            raise ValueError("Offset must count from the end (negative)")
        self.offset = offset

    def select(self, logs: Sequence[Log]) -> Optional[Log]:
        if len(logs) < -self.offset:
            return None
        return logs[self.offset]

    def __repr__(self) -> str:
        return f"OffsetSelector({self.offset})"


class EventSignatureSelector(LogSelector):
    """Pick the last log emitted as the given event.

    Args:
        event_abi: ABI of the event to look for
        contract_address: Only accept logs from this contract, if set
    """

    def __init__(self, event_abi: dict = DEPOSIT_EVENT_ABI, contract_address: Optional[str] = None):
        self.event_abi = event_abi
        self.topic = event_abi_to_log_topic(event_abi)
        self.contract_address = contract_address.lower() if contract_address else None

    def _matches(self, log: Log) -> bool:
        if self.contract_address and str(log.get("address", "")).lower() != self.contract_address:
            return False

        # Logs already decoded by web3 carry the event name instead of raw topics
        if "args" in log and "topics" not in log:
            return log.get("event") == self.event_abi["name"]

        topics = log.get("topics") or []
        return bool(topics) and _as_bytes(topics[0]) == self.topic

    def select(self, logs: Sequence[Log]) -> Optional[Log]:
        for log in reversed(logs):
            if self._matches(log):
                return log
        return None

    def __repr__(self) -> str:
        return f"EventSignatureSelector({self.event_abi['name']})"


LEGACY_SELECTORS: dict[int, LogSelector] = {
    137: OffsetSelector(-2),
}


def decode_first_argument(log: Log, event_abi: dict = DEPOSIT_EVENT_ABI) -> int:
    """Decode the first argument of an event log.

    Indexed arguments are read from the topics, the others from the data
    payload. Logs with decoded `args` are read directly.

    Raises:
        DepositEventNotFound: If the log does not have the event's shape
    """
    first_input = event_abi["inputs"][0]

    args = log.get("args")
    if args is not None:
        if isinstance(args, Mapping):
            if first_input["name"] in args:
                return int(args[first_input["name"]])
            return int(next(iter(args.values())))
        return int(args[0])

    try:
        if first_input["indexed"]:
            topic = _as_bytes(log["topics"][1])
            return int(decode([first_input["type"]], topic)[0])

        data_types = [i["type"] for i in event_abi["inputs"] if not i["indexed"]]
        values = decode(data_types, _as_bytes(log["data"]))
        return int(values[0])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise DepositEventNotFound(
            f"Selected log is not a {event_abi['name']}: {e}"
        ) from e


class DepositReceiptParser:
    """Reads the escrow-assigned deposit index from a deposit receipt.

    Args:
        selectors: Per-chain selector overrides (chain id -> selector)
        default: Selector for chains without an override
        event_abi: Deposit event ABI used to decode the index
    """

    def __init__(
        self,
        selectors: Optional[Mapping[int, LogSelector]] = None,
        default: Optional[LogSelector] = None,
        event_abi: dict = DEPOSIT_EVENT_ABI,
    ):
        self.selectors = dict(selectors or {})
        self.event_abi = event_abi
        self.default = default or EventSignatureSelector(event_abi)

    def selector_for(self, chain_id: int) -> LogSelector:
        return self.selectors.get(chain_id, self.default)

    def extract_deposit_index(self, receipt: Union[Receipt, Mapping], chain_id: int) -> int:
        """Get the deposit index from a deposit transaction's receipt.

        Raises:
            DepositEventNotFound: If no log holds the deposit event
        """
        logs = receipt.logs if isinstance(receipt, Receipt) else receipt.get("logs", [])
        selector = self.selector_for(chain_id)

        log = selector.select(list(logs))
        if log is None:
            raise DepositEventNotFound(
                f"No {self.event_abi['name']} in receipt ({len(logs)} logs, {selector!r})"
            )

        deposit_index = decode_first_argument(log, self.event_abi)
        logger.debug(f"Deposit index {deposit_index} read with {selector!r} on chain {chain_id}")
        return deposit_index


_default_parser = DepositReceiptParser()


def extract_deposit_index(
    receipt: Union[Receipt, Mapping],
    chain_id: int,
    selectors: Optional[Mapping[int, LogSelector]] = None,
) -> int:
    """Get the deposit index from a receipt.

    Args:
        receipt: Receipt of the deposit transaction
        chain_id: Chain the deposit was made on
        selectors: Optional per-chain selector overrides, e.g. LEGACY_SELECTORS

    Returns:
        Deposit index
    """
    parser = _default_parser if selectors is None else DepositReceiptParser(selectors)
    return parser.extract_deposit_index(receipt, chain_id)
