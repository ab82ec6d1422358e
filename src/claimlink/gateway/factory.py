"""Gateway factory.

Creates the escrow gateway for a chain based on configuration:
- dry_run=True  -> SimulatedContractGateway (one shared instance per chain/version)
- dry_run=False -> Web3ContractGateway over the chain's RPC endpoint
"""

import logging
from typing import Optional, Union

from claimlink.chains import resolve_chain_id
from claimlink.config import Settings, get_settings
from claimlink.gateway.base import ContractGateway

logger = logging.getLogger(__name__)

_simulated_gateways: dict[tuple[int, str], ContractGateway] = {}


def get_gateway(
    chain: Union[int, str],
    settings: Optional[Settings] = None,
    contract_version: Optional[str] = None,
) -> ContractGateway:
    """Get the escrow gateway for a chain.

    Args:
        chain: Chain id or name
        settings: Settings to use (defaults to get_settings())
        contract_version: Contract generation (defaults to settings.contract_version)

    Raises:
        ConfigurationError: If the chain, version or contract is not configured
    """
    settings = settings or get_settings()
    chain_id = resolve_chain_id(chain)
    version = contract_version or settings.contract_version

    if settings.dry_run:
        key = (chain_id, version)
        if key not in _simulated_gateways:
            from claimlink.gateway.simulated import SimulatedContractGateway
            logger.info(f"Initializing simulated escrow for chain {chain_id} ({version})")
            _simulated_gateways[key] = SimulatedContractGateway(chain_id, version)
        return _simulated_gateways[key]

    from claimlink.gateway.rpc import Web3ContractGateway
    logger.info(f"Initializing RPC escrow gateway for chain {chain_id} ({version})")
    return Web3ContractGateway.from_settings(chain_id, settings, contract_version=version)


def reset_gateways():
    """Drop cached simulated gateways (for testing)."""
    _simulated_gateways.clear()
