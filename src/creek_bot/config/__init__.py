"""
Configuration package for the Creek bot.
"""

from creek_bot.config.network import (
    NETWORKS,
    DEFAULT_NETWORK,
    get_network_config,
    get_fullnode_url,
    get_explorer_tx_url,
)

from creek_bot.config.protocol import (
    PROTOCOL_ADDRESSES,
    TOKEN_TYPES,
    SUI_TYPE,
    ACTION_PROFILES,
    get_action_profile,
)

from creek_bot.config.settings import (
    Settings,
    RefreshAsset,
    load_env,
)

__all__ = [
    # Network
    'NETWORKS',
    'DEFAULT_NETWORK',
    'get_network_config',
    'get_fullnode_url',
    'get_explorer_tx_url',

    # Protocol
    'PROTOCOL_ADDRESSES',
    'TOKEN_TYPES',
    'SUI_TYPE',
    'ACTION_PROFILES',
    'get_action_profile',

    # Settings
    'Settings',
    'RefreshAsset',
    'load_env',
]
