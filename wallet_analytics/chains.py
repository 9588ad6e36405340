"""
Chain Registry - Static list of supported EVM networks.

Every chain is served through the Etherscan V2 unified endpoint, which
multiplexes networks behind one host via the `chainid` parameter
(the per-chain V1 hosts are deprecated).
"""

import logging
from typing import Iterable, Optional

from .models import ChainDescriptor


logger = logging.getLogger(__name__)


ETHERSCAN_V2_API_URL = "https://api.etherscan.io/v2/api"


SUPPORTED_CHAINS: list[ChainDescriptor] = [
    ChainDescriptor(
        id="eth",
        name="Ethereum",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=1,
        explorer_url="https://etherscan.io",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="polygon",
        name="Polygon",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=137,
        explorer_url="https://polygonscan.com",
        native_currency="MATIC",
    ),
    ChainDescriptor(
        id="arbitrum",
        name="Arbitrum",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=42161,
        explorer_url="https://arbiscan.io",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="optimism",
        name="Optimism",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=10,
        explorer_url="https://optimistic.etherscan.io",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="base",
        name="Base",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=8453,
        explorer_url="https://basescan.org",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="zksync",
        name="zkSync Era",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=324,
        explorer_url="https://era.zksync.network",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="linea",
        name="Linea",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=59144,
        explorer_url="https://lineascan.build",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="scroll",
        name="Scroll",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=534352,
        explorer_url="https://scrollscan.com",
        native_currency="ETH",
    ),
    ChainDescriptor(
        id="avalanche",
        name="Avalanche",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=43114,
        explorer_url="https://snowtrace.io",
        native_currency="AVAX",
    ),
    ChainDescriptor(
        id="bsc",
        name="BNB Chain",
        explorer_api_url=ETHERSCAN_V2_API_URL,
        chain_id=56,
        explorer_url="https://bscscan.com",
        native_currency="BNB",
    ),
]


def get_chain_by_id(chain_id: str) -> Optional[ChainDescriptor]:
    """Look up a chain by registry id ("eth", "base", ...)."""
    for chain in SUPPORTED_CHAINS:
        if chain.id == chain_id:
            return chain
    return None


def get_enabled_chains() -> list[ChainDescriptor]:
    """All chains currently enabled in the registry."""
    return [chain for chain in SUPPORTED_CHAINS if chain.enabled]


def resolve_chains(chain_ids: Optional[Iterable[str]] = None) -> list[ChainDescriptor]:
    """
    Turn requested ids into descriptors.
    
    An empty or missing selection means every enabled chain. Unknown and
    disabled ids are skipped with a warning; duplicates keep their first
    position.
    """
    ids = [c.strip() for c in (chain_ids or []) if c and c.strip()]
    if not ids:
        return get_enabled_chains()
    
    resolved: list[ChainDescriptor] = []
    seen: set[str] = set()
    for chain_id in ids:
        if chain_id in seen:
            continue
        seen.add(chain_id)
        
        chain = get_chain_by_id(chain_id)
        if chain is None:
            logger.warning(f"Unknown chain id '{chain_id}', skipping")
            continue
        if not chain.enabled:
            logger.warning(f"Chain '{chain_id}' is disabled, skipping")
            continue
        resolved.append(chain)
    
    return resolved
