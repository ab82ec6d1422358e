"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["CLAIMLINK_ENVIRONMENT"] = "test"
os.environ["CLAIMLINK_DRY_RUN"] = "true"
os.environ.pop("CLAIMLINK_PRIVATE_KEY", None)

from claimlink.config import get_settings
from claimlink.gateway.factory import reset_gateways
from claimlink.gateway.simulated import SimulatedContractGateway
from claimlink.keys import derive_keys
from claimlink.protocol import LinkProtocol

PASSWORD = "super_secret_password"


@pytest.fixture(autouse=True)
def clean_state():
    """Reset cached settings and simulated escrows around each test."""
    get_settings.cache_clear()
    reset_gateways()
    yield
    get_settings.cache_clear()
    reset_gateways()


@pytest.fixture
def gateway() -> SimulatedContractGateway:
    """Simulated escrow on Goerli."""
    return SimulatedContractGateway(chain_id=5)


@pytest.fixture
def polygon_gateway() -> SimulatedContractGateway:
    """Simulated escrow on Polygon (emits the trailing fee-transfer log)."""
    return SimulatedContractGateway(chain_id=137)


@pytest.fixture
def protocol(gateway) -> LinkProtocol:
    """Link protocol bound to the Goerli escrow."""
    return LinkProtocol(gateway)


@pytest.fixture
def recipient() -> str:
    """Arbitrary recipient address."""
    return derive_keys("recipient wallet").address
