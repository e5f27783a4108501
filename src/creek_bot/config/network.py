"""
Network configuration for the Creek bot.

Contains fullnode URLs and explorer endpoints for the Sui networks the
protocol is deployed on.
"""

import os
from typing import Any

from creek_bot.errors import ConfigurationError


# =============================================================================
# NETWORK CONFIGURATIONS
# =============================================================================

NETWORKS: dict[str, dict[str, Any]] = {
    "mainnet": {
        "name": "Sui Mainnet",
        "currency": "SUI",
        "fullnode_urls": [
            "https://fullnode.mainnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan",
            "url": "https://suiscan.xyz/mainnet",
        },
    },
    "testnet": {
        "name": "Sui Testnet",
        "currency": "SUI",
        "fullnode_urls": [
            "https://fullnode.testnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan",
            "url": "https://suiscan.xyz/testnet",
        },
    },
    "devnet": {
        "name": "Sui Devnet",
        "currency": "SUI",
        "fullnode_urls": [
            "https://fullnode.devnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan",
            "url": "https://suiscan.xyz/devnet",
        },
    },
    "localnet": {
        "name": "Sui Localnet",
        "currency": "SUI",
        "fullnode_urls": [
            "http://127.0.0.1:9000",
        ],
        "explorer": None,
    },
}

DEFAULT_NETWORK = "testnet"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_network_config(network: str | None = None) -> dict[str, Any]:
    """Get configuration for a Sui network.

    Args:
        network: Network name (e.g., 'testnet', 'mainnet').
                 If None, uses SUI_NETWORK environment variable or defaults to 'testnet'.

    Returns:
        Network configuration dictionary.

    Raises:
        ConfigurationError: If network is not supported.
    """
    if network is None:
        network = os.getenv("SUI_NETWORK", DEFAULT_NETWORK)

    network = network.lower()
    if network not in NETWORKS:
        raise ConfigurationError(f"Unsupported network: {network}. Supported: {list(NETWORKS.keys())}")

    return NETWORKS[network]


def get_fullnode_url(network: str | None = None) -> str:
    """Resolve the fullnode URL.

    Priority: SUI_FULLNODE, FULLNODE_URL, then the first URL of the network.
    """
    explicit = os.getenv("SUI_FULLNODE") or os.getenv("FULLNODE_URL")
    if explicit:
        return explicit
    return get_network_config(network)["fullnode_urls"][0]


def get_explorer_tx_url(digest: str, network: str | None = None) -> str | None:
    """Explorer link for a transaction digest, if the network has an explorer."""
    explorer = get_network_config(network).get("explorer")
    if not explorer:
        return None
    return f"{explorer['url']}/tx/{digest}"
