"""Escrow contract gateways.

- ContractGateway: interface the link protocol talks to
- Web3ContractGateway (gateway.rpc): JSON-RPC node + local signing key
- SimulatedContractGateway (gateway.simulated): in-memory escrow for dry runs and tests

Implementations are imported on demand by get_gateway().
"""

from claimlink.gateway.base import (
    ContractGateway,
    DepositRecord,
    LinkType,
    Receipt,
    TransactionHandle,
)
from claimlink.gateway.factory import get_gateway, reset_gateways

__all__ = [
    "ContractGateway",
    "DepositRecord",
    "LinkType",
    "Receipt",
    "TransactionHandle",
    "get_gateway",
    "reset_gateways",
]
