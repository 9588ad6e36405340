"""
Wallet Analytics Package - Multi-chain wallet activity and statistics.

Fetches a wallet's native transactions and token transfers from
Etherscan-compatible explorers on many EVM chains, merges them, and
derives a consolidated statistics summary.

Features:
- Fail-open fetching: a failing chain contributes nothing, never an error
- Static two-level rate-limit schedule (batch delay + intra-chain stagger)
- Chain-tagged, globally time-sorted dataset
- Pure, deterministic statistics with arbitrary-precision integer math

Quick Start:
    from wallet_analytics import (
        MultiChainAggregator,
        WalletAnalyticsConfig,
        analyze_wallet_data,
    )
    
    async def wrapped(address):
        config = WalletAnalyticsConfig.from_env()
        async with MultiChainAggregator(
            schedule=config.schedule,
            fetcher_config=config.fetcher,
        ) as aggregator:
            data = await aggregator.fetch_wallet_data(address, ["eth", "base"])
        
        stats = analyze_wallet_data(data, address)
        print(f"Transactions: {stats.total_transactions}")
        print(f"Net flow (wei): {stats.net_flow}")
        print(f"Chains with data: {data.chains}")

Or in one call:
    from wallet_analytics import fetch_and_analyze
    
    report = await fetch_and_analyze("0x...", ["eth"])
"""

from wallet_analytics.aggregator import (
    MultiChainAggregator,
    fetch_multichain_wallet_data,
)
from wallet_analytics.analyzer import analyze_wallet_data
from wallet_analytics.chains import (
    SUPPORTED_CHAINS,
    get_chain_by_id,
    get_enabled_chains,
    resolve_chains,
)
from wallet_analytics.config import (
    FetcherConfig,
    ScheduleConfig,
    WalletAnalyticsConfig,
)
from wallet_analytics.exceptions import (
    ConfigurationError,
    ExplorerAccessError,
    ExplorerResponseError,
    FetchError,
    InvalidAddressError,
    RateLimitError,
    WalletAnalyticsError,
)
from wallet_analytics.fetcher import ExplorerClient
from wallet_analytics.formatting import (
    format_ether,
    format_gwei,
    format_number,
    format_token_amount,
    shorten_address,
)
from wallet_analytics.models import (
    AggregatedWalletData,
    AirdropSummary,
    ChainDescriptor,
    ContractRanking,
    ExplorerAction,
    ExplorerQuery,
    FetchIncident,
    LargestTransaction,
    MonthlyActivity,
    TokenRanking,
    TokenTransfer,
    Transaction,
    WalletReport,
    WalletStats,
)
from wallet_analytics.service import (
    fetch_and_analyze,
    is_valid_address,
    validate_address,
)


__version__ = "1.0.0"

__all__ = [
    # Fetcher / Aggregator / Analyzer
    "ExplorerClient",
    "MultiChainAggregator",
    "fetch_multichain_wallet_data",
    "analyze_wallet_data",
    
    # Service
    "fetch_and_analyze",
    "is_valid_address",
    "validate_address",
    
    # Chains
    "SUPPORTED_CHAINS",
    "get_chain_by_id",
    "get_enabled_chains",
    "resolve_chains",
    
    # Config
    "FetcherConfig",
    "ScheduleConfig",
    "WalletAnalyticsConfig",
    
    # Models
    "AggregatedWalletData",
    "AirdropSummary",
    "ChainDescriptor",
    "ContractRanking",
    "ExplorerAction",
    "ExplorerQuery",
    "FetchIncident",
    "LargestTransaction",
    "MonthlyActivity",
    "TokenRanking",
    "TokenTransfer",
    "Transaction",
    "WalletReport",
    "WalletStats",
    
    # Exceptions
    "WalletAnalyticsError",
    "FetchError",
    "RateLimitError",
    "ExplorerAccessError",
    "ExplorerResponseError",
    "ConfigurationError",
    "InvalidAddressError",
    
    # Formatting
    "format_ether",
    "format_gwei",
    "format_number",
    "format_token_amount",
    "shorten_address",
]
