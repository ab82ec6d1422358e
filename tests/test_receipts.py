"""Tests for deposit index extraction from receipts."""

import pytest
from eth_abi import encode
from eth_utils import keccak

from claimlink.errors import DepositEventNotFound
from claimlink.gateway.abi import DEPOSIT_EVENT_TOPIC
from claimlink.gateway.base import Receipt
from claimlink.receipts import (
    LEGACY_SELECTORS,
    DepositReceiptParser,
    EventSignatureSelector,
    OffsetSelector,
    decode_first_argument,
    extract_deposit_index,
)

ESCROW = "0x000000000000000000000000000000000000e5c0"
SENDER = "0x00000000000000000000000000000000000051de"


def deposit_log(index: int, amount: int = 10**15) -> dict:
    return {
        "address": ESCROW,
        "topics": [
            DEPOSIT_EVENT_TOPIC,
            encode(["uint256"], [index]),
            encode(["uint8"], [0]),
            encode(["address"], [SENDER]),
        ],
        "data": encode(["uint256"], [amount]),
    }


def fee_log() -> dict:
    return {
        "address": "0x0000000000000000000000000000000000001010",
        "topics": [
            keccak(text="LogFeeTransfer(address,address,address,uint256,uint256,uint256,uint256,uint256)"),
            encode(["uint256"], [999]),
        ],
        "data": encode(["uint256"] * 5, [1, 2, 3, 4, 5]),
    }


def transfer_log() -> dict:
    return {
        "address": "0x00000000000000000000000000000000000070c3",
        "topics": [
            keccak(text="Transfer(address,address,uint256)"),
            encode(["address"], [SENDER]),
            encode(["address"], [ESCROW]),
        ],
        "data": encode(["uint256"], [500]),
    }


class TestDefaultParsing:
    """Tests for extraction with the default event-signature selector."""

    def test_event_is_last_log(self):
        """Test reading the index when the deposit event is the last log."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[transfer_log(), deposit_log(7)])
        assert extract_deposit_index(receipt, chain_id=1) == 7

    def test_trailing_log_is_skipped(self):
        """Test an extra trailing log does not move the selection."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[deposit_log(8), fee_log()])
        assert extract_deposit_index(receipt, chain_id=137) == 8

    def test_last_matching_event_wins(self):
        """Test the last deposit event is used when several are present."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[deposit_log(1), deposit_log(2), fee_log()])
        assert extract_deposit_index(receipt, chain_id=5) == 2

    def test_mapping_receipt(self):
        """Test plain mapping receipts (as returned by web3) are accepted."""
        receipt = {"logs": [deposit_log(3)]}
        assert extract_deposit_index(receipt, chain_id=5) == 3

    def test_hex_string_topics(self):
        """Test topics given as hex strings."""
        log = deposit_log(11)
        log["topics"] = ["0x" + bytes(t).hex() for t in log["topics"]]
        log["data"] = "0x" + log["data"].hex()

        receipt = Receipt(tx_hash="0x01", status=1, logs=[log])
        assert extract_deposit_index(receipt, chain_id=5) == 11

    def test_no_deposit_event(self):
        """Test a receipt without the event raises DepositEventNotFound."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[transfer_log(), fee_log()])
        with pytest.raises(DepositEventNotFound):
            extract_deposit_index(receipt, chain_id=5)

    def test_empty_logs(self):
        """Test an empty log list raises DepositEventNotFound."""
        with pytest.raises(DepositEventNotFound):
            extract_deposit_index(Receipt(tx_hash="0x01", status=1), chain_id=5)

    def test_contract_address_filter(self):
        """Test a selector bound to a contract ignores other emitters."""
        foreign = deposit_log(99)
        foreign["address"] = "0x0000000000000000000000000000000000000bad"
        receipt = Receipt(tx_hash="0x01", status=1, logs=[deposit_log(4), foreign])

        parser = DepositReceiptParser(default=EventSignatureSelector(contract_address=ESCROW))
        assert parser.extract_deposit_index(receipt, chain_id=5) == 4


class TestLegacyOffsetParsing:
    """Tests for positional selection (the original per-chain offsets)."""

    def test_last_entry_by_default(self):
        """Test non-designated chains read the last log."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[transfer_log(), deposit_log(5)])
        assert extract_deposit_index(receipt, chain_id=1, selectors=LEGACY_SELECTORS) == 5

    def test_second_to_last_on_polygon(self):
        """Test chain 137 reads the second-to-last log."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[deposit_log(6), fee_log()])
        assert extract_deposit_index(receipt, chain_id=137, selectors=LEGACY_SELECTORS) == 6

    def test_offset_past_start(self):
        """Test an offset beyond the log list finds nothing."""
        assert OffsetSelector(-2).select([deposit_log(1)]) is None

    def test_offset_on_wrong_log(self):
        """Test positional selection of a non-deposit log fails cleanly."""
        receipt = Receipt(tx_hash="0x01", status=1, logs=[{"address": ESCROW, "topics": [], "data": b""}])
        parser = DepositReceiptParser(default=OffsetSelector(-1))

        with pytest.raises(DepositEventNotFound):
            parser.extract_deposit_index(receipt, chain_id=1)

    def test_offset_must_be_negative(self):
        """Test offsets count from the end."""
        with pytest.raises(ValueError):
            OffsetSelector(0)


class TestDecodeFirstArgument:
    """Tests for decode_first_argument()."""

    def test_decoded_args_sequence(self):
        """Test logs carrying positional args."""
        assert decode_first_argument({"args": [12, 0, 100]}) == 12

    def test_decoded_args_mapping(self):
        """Test logs carrying web3-style named args."""
        log = {"event": "DepositEvent", "args": {"_index": 13, "_amount": 1}}
        assert decode_first_argument(log) == 13

    def test_decoded_event_selected_by_name(self):
        """Test decoded events are matched by event name."""
        logs = [
            {"event": "DepositEvent", "args": {"_index": 21}},
            {"event": "Transfer", "args": {"value": 5}},
        ]
        receipt = {"logs": logs}
        assert extract_deposit_index(receipt, chain_id=5) == 21

    def test_non_indexed_first_argument(self):
        """Test the first argument is read from data when it is not indexed."""
        event_abi = {
            "anonymous": False,
            "name": "Deposited",
            "type": "event",
            "inputs": [
                {"indexed": False, "name": "index", "type": "uint256"},
                {"indexed": True, "name": "sender", "type": "address"},
                {"indexed": False, "name": "amount", "type": "uint256"},
            ],
        }
        log = {
            "topics": [keccak(text="Deposited(uint256,address,uint256)"), encode(["address"], [SENDER])],
            "data": encode(["uint256", "uint256"], [31, 1000]),
        }
        assert decode_first_argument(log, event_abi) == 31

        parser = DepositReceiptParser(event_abi=event_abi)
        assert parser.extract_deposit_index({"logs": [log, fee_log()]}, chain_id=5) == 31
