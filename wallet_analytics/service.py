"""
Wallet Service - The "fetch and analyze wallet data" operation.

Validates the caller's input, runs the aggregator and the analyzer, and
returns a WalletReport. Input errors are raised before any network call;
explorer failures never surface here, they degrade to missing data.
"""

import logging
import re
from typing import Iterable, Optional

from .aggregator import MultiChainAggregator
from .analyzer import analyze_wallet_data
from .chains import resolve_chains
from .config import WalletAnalyticsConfig
from .exceptions import InvalidAddressError
from .models import WalletReport


logger = logging.getLogger(__name__)


ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address: Optional[str]) -> bool:
    """True for a 0x-prefixed 40-hex-digit address."""
    return bool(address) and ADDRESS_PATTERN.match(address) is not None


def validate_address(address: Optional[str]) -> str:
    """Return the address unchanged or raise InvalidAddressError."""
    if not address:
        raise InvalidAddressError("Wallet address is required", address=address)
    if not is_valid_address(address):
        raise InvalidAddressError("Invalid Ethereum address format", address=address)
    return address


async def fetch_and_analyze(
    address: str,
    chain_ids: Optional[Iterable[str]] = None,
    *,
    aggregator: Optional[MultiChainAggregator] = None,
    config: Optional[WalletAnalyticsConfig] = None,
) -> WalletReport:
    """
    Fetch a wallet's activity across chains and derive its statistics.
    
    Args:
        address: Wallet address, must match ^0x[a-fA-F0-9]{40}$
        chain_ids: Registry ids; None or empty means all enabled chains
        aggregator: Aggregator to reuse; a short-lived one is built otherwise
        config: Used only when no aggregator is passed
        
    Raises:
        InvalidAddressError: Address missing or malformed
    """
    validate_address(address)
    chains = resolve_chains(chain_ids)
    
    logger.info(f"Fetching data for {address} on {', '.join(c.id for c in chains) or 'no chains'}")
    
    if aggregator is not None:
        data = await aggregator.aggregate(address, chains)
    else:
        config = config or WalletAnalyticsConfig.from_env()
        async with MultiChainAggregator(
            schedule=config.schedule,
            fetcher_config=config.fetcher,
        ) as owned:
            data = await owned.aggregate(address, chains)
    
    logger.info(f"Chains with data: {', '.join(data.chains) or 'None'}")
    
    stats = analyze_wallet_data(data, address)
    return WalletReport(
        address=address,
        stats=stats,
        transactions=data.transactions,
        token_transfers=data.token_transfers,
        chains=data.chains,
    )
