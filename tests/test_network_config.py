"""
Tests for the NetworkConfig module.
"""
import os
from unittest.mock import patch

import pytest

from avocado_sdk.config import NetworkConfig

# Sample network configuration
MOCK_NETWORKS = {
    "test-network": {
        "chainId": 123,
        "rpc": "https://test.example.com",
    },
    "other": {
        "chainId": 456,
        "rpc": "https://other.example.com",
    },
}


@pytest.fixture
def mock_networks():
    NetworkConfig._networks_cache = MOCK_NETWORKS
    yield MOCK_NETWORKS
    # Reset cache for other tests
    NetworkConfig._networks_cache = None


class TestNetworkConfig:
    """Test NetworkConfig class."""

    def test_load_networks_cached(self, mock_networks):
        """Test that networks are cached after first load."""
        # This should return from cache without opening the file
        with patch("importlib.resources.files") as mock_files:
            result = NetworkConfig.load_networks()
            mock_files.assert_not_called()

        assert result == MOCK_NETWORKS

    def test_load_packaged_networks(self):
        """The packaged table includes the home chain and the address-derivation chain."""
        NetworkConfig._networks_cache = None
        try:
            networks = NetworkConfig.load_networks()
            assert networks["avocado"]["chainId"] == 634
            assert networks["polygon"]["chainId"] == 137
            for network in networks.values():
                assert network["rpc"].startswith("https://")
        finally:
            NetworkConfig._networks_cache = None

    def test_get_network(self, mock_networks):
        result = NetworkConfig.get_network("test-network")

        assert result["chainId"] == 123
        assert result["rpc"] == "https://test.example.com"

    def test_get_network_not_found(self, mock_networks):
        """Test getting a non-existent network."""
        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("non-existent-network")

        # Verify error message includes available networks
        assert "test-network" in str(exc_info.value)
        assert "other" in str(exc_info.value)

    def test_get_network_name(self, mock_networks):
        assert NetworkConfig.get_network_name(456) == "other"
        assert NetworkConfig.get_network_name("123") == "test-network"

    def test_get_network_name_unknown_chain(self, mock_networks):
        with pytest.raises(ValueError, match="999"):
            NetworkConfig.get_network_name(999)

    def test_get_chain_id(self, mock_networks):
        assert NetworkConfig.get_chain_id("test-network") == 123

    def test_get_rpc_url_default(self, mock_networks):
        assert NetworkConfig.get_rpc_url(123) == "https://test.example.com"

    def test_get_rpc_url_override(self, mock_networks):
        result = NetworkConfig.get_rpc_url(123, override="https://override.example.com")

        assert result == "https://override.example.com"

    def test_get_rpc_url_env_var(self, mock_networks):
        """Test RPC URL from environment variable."""
        with patch.dict(os.environ, {"TEST_NETWORK_RPC_URL": "https://env.example.com"}):
            assert NetworkConfig.get_rpc_url(123) == "https://env.example.com"

    def test_override_beats_env_var(self, mock_networks):
        with patch.dict(os.environ, {"TEST_NETWORK_RPC_URL": "https://env.example.com"}):
            result = NetworkConfig.get_rpc_url(123, override="https://override.example.com")

        assert result == "https://override.example.com"
