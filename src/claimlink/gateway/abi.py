"""Escrow contract ABI fragments.

Only the functions and events the link protocol touches are listed.
"""

from eth_utils import event_abi_to_log_topic

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEPOSIT_EVENT_ABI = {
    "anonymous": False,
    "name": "DepositEvent",
    "type": "event",
    "inputs": [
        {"indexed": True, "name": "_index", "type": "uint256"},
        {"indexed": True, "name": "_contractType", "type": "uint8"},
        {"indexed": False, "name": "_amount", "type": "uint256"},
        {"indexed": True, "name": "_senderAddress", "type": "address"},
    ],
}

WITHDRAW_EVENT_ABI = {
    "anonymous": False,
    "name": "WithdrawEvent",
    "type": "event",
    "inputs": [
        {"indexed": True, "name": "_index", "type": "uint256"},
        {"indexed": True, "name": "_contractType", "type": "uint8"},
        {"indexed": False, "name": "_amount", "type": "uint256"},
        {"indexed": True, "name": "_recipientAddress", "type": "address"},
    ],
}

ESCROW_ABI_V3 = [
    {
        "name": "makeDeposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_tokenAddress", "type": "address"},
            {"name": "_contractType", "type": "uint8"},
            {"name": "_amount", "type": "uint256"},
            {"name": "_tokenId", "type": "uint256"},
            {"name": "_pubKey20", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "withdrawDeposit",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_index", "type": "uint256"},
            {"name": "_recipientAddress", "type": "address"},
            {"name": "_recipientAddressHash", "type": "bytes32"},
            {"name": "_signature", "type": "bytes"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "deposits",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [
            {"name": "pubKey20", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "tokenAddress", "type": "address"},
            {"name": "contractType", "type": "uint8"},
            {"name": "tokenId", "type": "uint256"},
        ],
    },
    DEPOSIT_EVENT_ABI,
    WITHDRAW_EVENT_ABI,
]

ESCROW_ABIS: dict[str, list] = {
    "v3": ESCROW_ABI_V3,
}

DEPOSIT_EVENT_TOPIC: bytes = event_abi_to_log_topic(DEPOSIT_EVENT_ABI)
WITHDRAW_EVENT_TOPIC: bytes = event_abi_to_log_topic(WITHDRAW_EVENT_ABI)
