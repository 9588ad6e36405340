"""
Multi-Chain Aggregator - Runs the fetcher across chains under a shared rate limit.

Schedule:
- Chains are processed in batches of `batch_size`, concurrently within a batch
- Batches are separated by `batch_delay_seconds`
- Inside a chain the token-transfer query follows the transaction query
  after `stagger_delay_seconds`, never at the same time

Every record is tagged with its chain's display name, records without a
hash are dropped, and both merged lists are sorted by timestamp at the
end, independent of which fetch completed first.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from .chains import resolve_chains
from .config import FetcherConfig, ScheduleConfig
from .fetcher import ExplorerClient
from .models import (
    AggregatedWalletData,
    ChainDescriptor,
    TokenTransfer,
    Transaction,
)


logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    """Tagged records contributed by one chain."""
    chain: ChainDescriptor
    transactions: list[Transaction] = field(default_factory=list)
    token_transfers: list[TokenTransfer] = field(default_factory=list)
    
    @property
    def has_data(self) -> bool:
        return bool(self.transactions or self.token_transfers)


def _sort_key(record: Any) -> int:
    # Unparseable timestamps sort first
    timestamp = record.timestamp
    return timestamp if timestamp is not None else 0


def _valid_records(records: Any) -> list[dict[str, Any]]:
    if not isinstance(records, list):
        return []
    return [r for r in records if isinstance(r, dict) and r.get("hash")]


class MultiChainAggregator:
    """
    Orchestrates explorer fetches for one wallet across many chains.
    
    A chain that fails at any stage contributes zero records; it never
    aborts the other chains or the overall call. Chains that yield
    nothing are left out of `chains` whether they were idle or failed.
    
    Usage:
        async with MultiChainAggregator(fetcher_config=cfg.fetcher) as aggregator:
            data = await aggregator.fetch_wallet_data(address, ["eth", "base"])
    """
    
    def __init__(
        self,
        client: Optional[ExplorerClient] = None,
        schedule: Optional[ScheduleConfig] = None,
        fetcher_config: Optional[FetcherConfig] = None,
    ) -> None:
        self._schedule = schedule or ScheduleConfig()
        self._schedule.validate()
        self._owns_client = client is None
        self._client = client or ExplorerClient(fetcher_config)
    
    @property
    def schedule(self) -> ScheduleConfig:
        return self._schedule
    
    async def fetch_wallet_data(
        self,
        address: str,
        chain_ids: Optional[Iterable[str]] = None,
    ) -> AggregatedWalletData:
        """
        Fetch and merge wallet activity for the requested chain ids.
        
        Args:
            address: Wallet address
            chain_ids: Registry ids; empty or None means all enabled chains
            
        Returns:
            AggregatedWalletData sorted ascending by timestamp
        """
        chains = resolve_chains(chain_ids)
        return await self.aggregate(address, chains)
    
    async def aggregate(
        self,
        address: str,
        chains: Sequence[ChainDescriptor],
    ) -> AggregatedWalletData:
        """Fetch from the given chains following the batch schedule."""
        batch_size = self._schedule.batch_size
        batches = [
            list(chains[i:i + batch_size])
            for i in range(0, len(chains), batch_size)
        ]
        
        logger.info(
            f"Fetching {address} from {len(chains)} chains "
            f"in {len(batches)} batches of up to {batch_size}"
        )
        
        results: list[ChainResult] = []
        for index, batch in enumerate(batches):
            if index > 0:
                await asyncio.sleep(self._schedule.batch_delay_seconds)
            
            outcomes = await asyncio.gather(
                *(self._fetch_chain(chain, address) for chain in batch),
                return_exceptions=True,
            )
            
            for chain, outcome in zip(batch, outcomes):
                if isinstance(outcome, ChainResult):
                    results.append(outcome)
                elif isinstance(outcome, Exception):
                    logger.error(f"[{chain.name}] Chain fetch failed: {outcome}")
                else:
                    raise outcome
        
        return self._merge(results)
    
    async def _fetch_chain(
        self,
        chain: ChainDescriptor,
        address: str,
    ) -> ChainResult:
        """Transaction query, stagger, then token-transfer query."""
        raw_transactions = await self._client.fetch_transactions(chain, address)
        await asyncio.sleep(self._schedule.stagger_delay_seconds)
        raw_transfers = await self._client.fetch_token_transfers(chain, address)
        
        transactions = [
            Transaction.from_dict(record).with_chain(chain.name)
            for record in _valid_records(raw_transactions)
        ]
        token_transfers = [
            TokenTransfer.from_dict(record).with_chain(chain.name)
            for record in _valid_records(raw_transfers)
        ]
        
        if transactions or token_transfers:
            logger.info(
                f"[{chain.name}] Found {len(transactions)} transactions, "
                f"{len(token_transfers)} token transfers"
            )
        
        return ChainResult(
            chain=chain,
            transactions=transactions,
            token_transfers=token_transfers,
        )
    
    def _merge(self, results: list[ChainResult]) -> AggregatedWalletData:
        data = AggregatedWalletData()
        
        for result in results:
            data.transactions.extend(result.transactions)
            data.token_transfers.extend(result.token_transfers)
            if result.has_data:
                data.chains.append(result.chain.name)
        
        # list.sort is stable, so ties keep chain order
        data.transactions.sort(key=_sort_key)
        data.token_transfers.sort(key=_sort_key)
        
        logger.info(
            f"Total aggregated: {len(data.transactions)} transactions, "
            f"{len(data.token_transfers)} token transfers from {len(data.chains)} chains"
        )
        return data
    
    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────
    
    async def close(self) -> None:
        """Close the explorer client if this aggregator created it."""
        if self._owns_client:
            await self._client.close()
    
    async def __aenter__(self) -> "MultiChainAggregator":
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def fetch_multichain_wallet_data(
    address: str,
    chain_ids: Optional[Iterable[str]] = None,
    fetcher_config: Optional[FetcherConfig] = None,
    schedule: Optional[ScheduleConfig] = None,
) -> AggregatedWalletData:
    """One-shot aggregation with a short-lived explorer client."""
    async with MultiChainAggregator(
        schedule=schedule,
        fetcher_config=fetcher_config,
    ) as aggregator:
        return await aggregator.fetch_wallet_data(address, chain_ids)
