"""Application configuration using pydantic-settings.

All settings can be provided through environment variables prefixed with
CLAIMLINK_ or a .env file. Complex fields (rpc_urls, contracts) take JSON:

    CLAIMLINK_CONTRACTS='{"137": {"v3": "0x..."}}'
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from claimlink.links import DEFAULT_BASE_URL

DEFAULT_CONTRACT_VERSION = "v3"


def redact_url(url: str) -> str:
    """Keep scheme and host only; providers put API keys in the path, query or userinfo."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return "***"
    host = parts.netloc.rsplit("@", 1)[-1]
    if parts.path.strip("/") or parts.query or parts.username:
        return f"{parts.scheme}://{host}/***"
    return f"{parts.scheme}://{host}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLAIMLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    log_level: str = Field(default="INFO", description="Log level when debug is off")

    # ======================
    # Protocol
    # ======================
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base URL links are built on")
    contract_version: str = Field(
        default=DEFAULT_CONTRACT_VERSION,
        description="Escrow contract generation new links target",
    )

    # ======================
    # Chain access
    # ======================
    rpc_urls: dict[int, str] = Field(
        default_factory=dict, description="Per-chain RPC URL overrides (chain id -> URL)"
    )
    contracts: dict[int, dict[str, str]] = Field(
        default_factory=dict,
        description="Escrow contract addresses (chain id -> {version -> address})",
    )
    tx_timeout: float = Field(
        default=120.0, description="Seconds to wait for a transaction receipt"
    )

    # ======================
    # Wallet
    # ======================
    private_key: Optional[str] = Field(
        default=None, description="Private key of the account that pays for transactions"
    )

    # ======================
    # Safety
    # ======================
    dry_run: bool = Field(
        default=True, description="Use the in-memory escrow instead of a real chain"
    )

    @property
    def has_wallet(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.private_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "base_url": self.base_url,
            "contract_version": self.contract_version,
            "rpc_urls": {chain: redact_url(url) for chain, url in self.rpc_urls.items()},
            "contracts": {chain: dict(v) for chain, v in self.contracts.items()},
            "tx_timeout": self.tx_timeout,
            "private_key": "***" if self.private_key else "(not set)",
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
