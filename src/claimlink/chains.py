"""EVM chain registry and escrow contract resolution.

Links carry the chain as either a numeric chain id or a chain name, so every
lookup goes through resolve_chain_id(). Escrow contract addresses are
configured per chain and per contract version (see Settings.contracts); an
unknown chain or version is a configuration error, never a protocol error.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from eth_utils import is_address, to_checksum_address

from claimlink.config import Settings
from claimlink.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for an EVM chain."""

    name: str
    symbol: str
    chain_id: int
    rpc_url: str
    explorer_url: str
    testnet: bool = False
    aliases: tuple[str, ...] = field(default_factory=tuple)


# ======================
# Chain Configurations
# ======================

CHAINS: dict[int, ChainConfig] = {
    1: ChainConfig(
        name="Ethereum",
        symbol="ETH",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        explorer_url="https://etherscan.io",
        aliases=("ethereum", "mainnet", "eth"),
    ),
    5: ChainConfig(
        name="Goerli",
        symbol="ETH",
        chain_id=5,
        rpc_url="https://rpc.ankr.com/eth_goerli",
        explorer_url="https://goerli.etherscan.io",
        testnet=True,
        aliases=("goerli",),
    ),
    11155111: ChainConfig(
        name="Sepolia",
        symbol="ETH",
        chain_id=11155111,
        rpc_url="https://rpc.sepolia.org",
        explorer_url="https://sepolia.etherscan.io",
        testnet=True,
        aliases=("sepolia",),
    ),
    10: ChainConfig(
        name="Optimism",
        symbol="ETH",
        chain_id=10,
        rpc_url="https://mainnet.optimism.io",
        explorer_url="https://optimistic.etherscan.io",
        aliases=("optimism", "op"),
    ),
    56: ChainConfig(
        name="BNB Smart Chain",
        symbol="BNB",
        chain_id=56,
        rpc_url="https://bsc-dataseed.binance.org",
        explorer_url="https://bscscan.com",
        aliases=("bsc", "bnb"),
    ),
    100: ChainConfig(
        name="Gnosis",
        symbol="xDAI",
        chain_id=100,
        rpc_url="https://rpc.gnosischain.com",
        explorer_url="https://gnosisscan.io",
        aliases=("gnosis", "xdai"),
    ),
    137: ChainConfig(
        name="Polygon",
        symbol="MATIC",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        explorer_url="https://polygonscan.com",
        aliases=("polygon", "matic"),
    ),
    80001: ChainConfig(
        name="Mumbai",
        symbol="MATIC",
        chain_id=80001,
        rpc_url="https://rpc-mumbai.maticvigil.com",
        explorer_url="https://mumbai.polygonscan.com",
        testnet=True,
        aliases=("mumbai",),
    ),
    8453: ChainConfig(
        name="Base",
        symbol="ETH",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        explorer_url="https://basescan.org",
        aliases=("base",),
    ),
    42161: ChainConfig(
        name="Arbitrum One",
        symbol="ETH",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_url="https://arbiscan.io",
        aliases=("arbitrum", "arb"),
    ),
}


def resolve_chain_id(chain: Union[int, str, None]) -> int:
    """Resolve a chain id or chain name to a known chain id.

    Args:
        chain: Chain id (int or numeric string) or a chain name/alias

    Returns:
        Numeric chain id

    Raises:
        ConfigurationError: If the chain is missing or unknown
    """
    if chain is None or (isinstance(chain, str) and not chain.strip()):
        raise ConfigurationError("Chain is missing")

    if isinstance(chain, int):
        chain_id = chain
    elif chain.strip().isdigit():
        chain_id = int(chain.strip())
    else:
        wanted = chain.strip().lower()
        for config in CHAINS.values():
            if wanted == config.name.lower() or wanted in config.aliases:
                return config.chain_id
        raise ConfigurationError(f"Unknown chain: {chain}")

    if chain_id not in CHAINS:
        raise ConfigurationError(f"Unknown chain id: {chain_id}")
    return chain_id


def get_chain(chain: Union[int, str]) -> ChainConfig:
    """Get chain configuration by id or name."""
    return CHAINS[resolve_chain_id(chain)]


def get_rpc_url(chain_id: int, settings: Settings) -> str:
    """Get RPC URL for a chain, preferring the configured override."""
    if chain_id in settings.rpc_urls:
        return settings.rpc_urls[chain_id]
    return get_chain(chain_id).rpc_url


def get_contract_address(
    chain_id: int,
    contract_version: Optional[str],
    settings: Settings,
) -> str:
    """Get the escrow contract address for a chain and contract version.

    Raises:
        ConfigurationError: If no contract is deployed for the pair
    """
    chain_id = resolve_chain_id(chain_id)
    if not contract_version:
        raise ConfigurationError("Contract version is missing")

    versions = settings.contracts.get(chain_id, {})
    address = versions.get(contract_version)
    if not address:
        raise ConfigurationError(
            f"No {contract_version} escrow contract configured for chain {chain_id}"
        )
    if not is_address(address):
        raise ConfigurationError(
            f"Invalid escrow contract address for chain {chain_id}: {address}"
        )

    return to_checksum_address(address)
