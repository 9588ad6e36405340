"""
Statistics Analyzer - Pure derivation of WalletStats from a merged dataset.

No I/O. The same dataset and address always produce the same stats.
Value and gas math is done on Python ints; floats never touch base units.

Calendar buckets use UTC. Ties in every ranking are broken by first
encounter, which for the time-sorted input means the earliest record.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence

from .models import (
    ZERO_ADDRESS,
    AggregatedWalletData,
    AirdropSummary,
    ContractRanking,
    LargestTransaction,
    MonthlyActivity,
    TokenRanking,
    TokenTransfer,
    Transaction,
    WalletStats,
)


logger = logging.getLogger(__name__)


TOP_N = 10
NOT_AVAILABLE = "N/A"

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_day(day: date) -> str:
    """Long date, e.g. "March 5, 2025"."""
    return f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def format_month(year: int, month: int) -> str:
    """Month bucket label, e.g. "March 2025"."""
    return f"{MONTH_NAMES[month - 1]} {year}"


def _to_utc_date(timestamp: Optional[int]) -> Optional[date]:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        return None


# ─────────────────────────────────────────────────────────────
# Activity calendar
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActivityCalendar:
    total_days_active: int
    most_active_day: str
    most_active_month: str
    transactions_by_month: tuple[MonthlyActivity, ...]


def _first_max(counts: dict) -> Optional[object]:
    """Key with the highest count; the earliest inserted key wins ties."""
    best_key = None
    best_count = 0
    for key, count in counts.items():
        if count > best_count:
            best_key = key
            best_count = count
    return best_key


def build_activity_calendar(transactions: Iterable[Transaction]) -> ActivityCalendar:
    """Bucket transactions by UTC day and month."""
    by_day: dict[date, int] = {}
    by_month: dict[tuple[int, int], int] = {}
    
    for tx in transactions:
        day = _to_utc_date(tx.timestamp)
        if day is None:
            # Still counted in totals, just not placed on the calendar
            continue
        month_key = (day.year, day.month)
        by_day[day] = by_day.get(day, 0) + 1
        by_month[month_key] = by_month.get(month_key, 0) + 1
    
    busiest_day = _first_max(by_day)
    busiest_month = _first_max(by_month)
    
    return ActivityCalendar(
        total_days_active=len(by_day),
        most_active_day=format_day(busiest_day) if busiest_day else NOT_AVAILABLE,
        most_active_month=(
            format_month(*busiest_month) if busiest_month else NOT_AVAILABLE
        ),
        transactions_by_month=tuple(
            MonthlyActivity(month=format_month(year, month), count=count)
            for (year, month), count in sorted(by_month.items())
        ),
    )


# ─────────────────────────────────────────────────────────────
# Rankings
# ─────────────────────────────────────────────────────────────

def rank_tokens(token_transfers: Iterable[TokenTransfer], limit: int = TOP_N) -> tuple[TokenRanking, ...]:
    """Token contracts by transfer count, descending."""
    counts: dict[str, int] = {}
    values: dict[str, int] = defaultdict(int)
    symbols: dict[str, str] = {}
    
    for tt in token_transfers:
        key = tt.contract_address.lower()
        counts[key] = counts.get(key, 0) + 1
        values[key] += tt.raw_value
        if not symbols.get(key):
            symbols[key] = tt.token_symbol
    
    ranked = sorted(counts.items(), key=lambda item: -item[1])[:limit]
    return tuple(
        TokenRanking(
            contract_address=key,
            symbol=symbols.get(key) or "UNKNOWN",
            count=count,
            value=str(values[key]),
        )
        for key, count in ranked
    )


def rank_contracts(transactions: Iterable[Transaction], limit: int = TOP_N) -> tuple[ContractRanking, ...]:
    """Recipient addresses by transaction count, descending."""
    counts: dict[str, int] = {}
    for tx in transactions:
        key = tx.to_address.lower()
        if not key:
            continue
        counts[key] = counts.get(key, 0) + 1
    
    ranked = sorted(counts.items(), key=lambda item: -item[1])[:limit]
    return tuple(ContractRanking(address=key, count=count) for key, count in ranked)


# ─────────────────────────────────────────────────────────────
# Airdrops
# ─────────────────────────────────────────────────────────────

def is_airdrop_candidate(
    transfer: TokenTransfer,
    wallet: str,
    outbound_hashes: dict[str, set[str]],
) -> bool:
    """
    Received from the zero address, or with no send of the same token
    from the wallet in a different transaction.
    """
    wallet = wallet.lower()
    if transfer.to_address.lower() != wallet:
        return False
    if transfer.from_address.lower() == ZERO_ADDRESS:
        return True
    
    sends = outbound_hashes.get(transfer.contract_address.lower(), set())
    return not (sends - {transfer.hash.lower()})


def detect_airdrops(
    token_transfers: Sequence[TokenTransfer],
    wallet: str,
    limit: int = TOP_N,
) -> tuple[AirdropSummary, ...]:
    """
    Heuristic airdrop detection grouped by token contract.
    
    Sorted by summed raw value, descending. This is an approximation:
    a received token the wallet later sold in the same transaction, or
    a gift from a friend, are indistinguishable from an airdrop here.
    """
    wallet = wallet.lower()
    outbound_hashes: dict[str, set[str]] = defaultdict(set)
    for tt in token_transfers:
        if tt.from_address.lower() == wallet:
            outbound_hashes[tt.contract_address.lower()].add(tt.hash.lower())
    
    counts: dict[str, int] = {}
    values: dict[str, int] = defaultdict(int)
    first_seen: dict[str, TokenTransfer] = {}
    
    for tt in token_transfers:
        if not is_airdrop_candidate(tt, wallet, outbound_hashes):
            continue
        key = tt.contract_address.lower()
        counts[key] = counts.get(key, 0) + 1
        values[key] += tt.raw_value
        first_seen.setdefault(key, tt)
    
    ranked = sorted(counts, key=lambda key: -values[key])[:limit]
    return tuple(
        AirdropSummary(
            contract_address=key,
            symbol=first_seen[key].token_symbol or "UNKNOWN",
            name=first_seen[key].token_name,
            count=counts[key],
            value=str(values[key]),
        )
        for key in ranked
    )


def find_largest_transaction(
    transactions: Iterable[Transaction],
    wallet: str,
) -> Optional[LargestTransaction]:
    """Transaction with the greatest native value, compared as ints."""
    wallet = wallet.lower()
    largest: Optional[Transaction] = None
    for tx in transactions:
        if largest is None or tx.value_wei > largest.value_wei:
            largest = tx
    
    if largest is None:
        return None
    
    return LargestTransaction(
        hash=largest.hash,
        value=str(largest.value_wei),
        direction="in" if largest.to_address.lower() == wallet else "out",
        chain=largest.chain,
        time_stamp=largest.time_stamp,
    )


# ─────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────

def analyze_wallet_data(data: AggregatedWalletData, wallet_address: str) -> WalletStats:
    """
    Compute WalletStats for a merged, chain-tagged dataset.
    
    Args:
        data: Aggregated transactions and token transfers
        wallet_address: Wallet the dataset belongs to (any case)
        
    Returns:
        WalletStats; all-zero with "N/A" calendar fields for an empty dataset
    """
    wallet = wallet_address.lower()
    transactions = list(data.transactions)
    token_transfers = list(data.token_transfers)
    
    total = len(transactions)
    successful = sum(1 for tx in transactions if tx.succeeded)
    
    sent = sum(tx.value_wei for tx in transactions if tx.from_address.lower() == wallet)
    received = sum(tx.value_wei for tx in transactions if tx.to_address.lower() == wallet)
    gas_spent = sum(tx.gas_cost_wei for tx in transactions)
    gas_price_total = sum(tx.gas_price_wei for tx in transactions)
    
    token_sent = sum(
        tt.raw_value for tt in token_transfers if tt.from_address.lower() == wallet
    )
    token_received = sum(
        tt.raw_value for tt in token_transfers if tt.to_address.lower() == wallet
    )
    
    unique_tokens = {tt.contract_address.lower() for tt in token_transfers}
    unique_contracts = {tx.to_address.lower() for tx in transactions if tx.to_address}
    
    calendar = build_activity_calendar(transactions)
    
    stats = WalletStats(
        total_transactions=total,
        successful_transactions=successful,
        failed_transactions=total - successful,
        total_value_sent=str(sent),
        total_value_received=str(received),
        net_flow=str(received - sent),
        total_gas_spent=str(gas_spent),
        average_gas_price=str(gas_price_total // total) if total else "0",
        unique_tokens_interacted=len(unique_tokens),
        unique_contracts_interacted=len(unique_contracts),
        contract_interactions=sum(1 for tx in transactions if tx.is_contract_call),
        total_days_active=calendar.total_days_active,
        most_active_day=calendar.most_active_day,
        most_active_month=calendar.most_active_month,
        transactions_by_month=calendar.transactions_by_month,
        top_tokens=rank_tokens(token_transfers),
        top_contracts=rank_contracts(transactions),
        total_token_value_sent=str(token_sent),
        total_token_value_received=str(token_received),
        airdrops=detect_airdrops(token_transfers, wallet),
        largest_transaction=find_largest_transaction(transactions, wallet),
    )
    
    logger.debug(
        f"Analyzed {total} transactions and {len(token_transfers)} token transfers "
        f"for {wallet}"
    )
    return stats
