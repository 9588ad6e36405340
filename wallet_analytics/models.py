"""
Wallet Analytics Data Models - Explorer records and derived statistics.

All monetary and gas amounts stay as decimal strings of base units on the
records. Arithmetic on them is done with Python ints only; conversion to a
human unit happens in the formatting helpers.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def parse_base_units(raw: Any) -> int:
    """Parse a base-unit decimal string, treating blanks as zero."""
    if raw is None:
        return 0
    text = str(raw).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        return 0


def parse_timestamp(raw: Any) -> Optional[int]:
    """Parse a unix seconds string; None if it is not an integer."""
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


class ExplorerAction(Enum):
    """Explorer account queries used by the fetcher."""
    TXLIST = "txlist"
    TOKENTX = "tokentx"


@dataclass(frozen=True)
class ChainDescriptor:
    """Static description of one EVM network and its explorer API."""
    id: str
    name: str
    explorer_api_url: str
    native_currency: str
    chain_id: Optional[int] = None  # set when the endpoint multiplexes chains
    explorer_url: str = ""
    enabled: bool = True
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "explorerApiUrl": self.explorer_api_url,
            "chainId": self.chain_id,
            "explorerUrl": self.explorer_url,
            "nativeCurrency": self.native_currency,
            "enabled": self.enabled,
        }


@dataclass
class ExplorerQuery:
    """Parameters of one explorer account query."""
    action: ExplorerAction
    address: str
    start_block: int = 0
    end_block: int = 99999999
    page: int = 1
    offset: int = 10000
    sort: str = "asc"
    
    def validate(self) -> None:
        """Validate query parameters."""
        if not self.address:
            raise ValueError("address is required")
        if self.offset < 1:
            raise ValueError("offset must be positive")
        if self.start_block > self.end_block:
            raise ValueError("start_block must not exceed end_block")
        if self.sort not in ("asc", "desc"):
            raise ValueError("sort must be 'asc' or 'desc'")
    
    def to_params(self, chain: ChainDescriptor, api_key: str) -> dict[str, str]:
        """Build the explorer query string for a chain."""
        params = {
            "module": "account",
            "action": self.action.value,
            "address": self.address,
            "startblock": str(self.start_block),
            "endblock": str(self.end_block),
            "page": str(self.page),
            "offset": str(self.offset),
            "sort": self.sort,
            "apikey": api_key,
        }
        if chain.chain_id is not None:
            params["chainid"] = str(chain.chain_id)
        return params


@dataclass(frozen=True)
class Transaction:
    """
    Native-currency transfer or contract call on one chain.
    
    Field names follow Python conventions; to_dict()/from_dict() speak the
    explorer's camelCase. Fields the explorer sends that are not modelled
    here are kept in `extra` and passed through untouched.
    """
    hash: str
    from_address: str
    to_address: str
    value: str
    time_stamp: str
    gas_used: str = "0"
    gas_price: str = "0"
    is_error: str = "0"
    method_id: str = ""
    function_name: str = ""
    chain: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    
    _FIELDS = (
        "hash", "from", "to", "value", "timeStamp", "gasUsed", "gasPrice",
        "isError", "methodId", "functionName", "chain",
    )
    
    @property
    def timestamp(self) -> Optional[int]:
        return parse_timestamp(self.time_stamp)
    
    @property
    def value_wei(self) -> int:
        return parse_base_units(self.value)
    
    @property
    def gas_price_wei(self) -> int:
        return parse_base_units(self.gas_price)
    
    @property
    def gas_cost_wei(self) -> int:
        """Fee paid: gasUsed * gasPrice."""
        return parse_base_units(self.gas_used) * self.gas_price_wei
    
    @property
    def succeeded(self) -> bool:
        return self.is_error == "0"
    
    @property
    def is_contract_call(self) -> bool:
        # Explorers report "0x" as the method id of a plain transfer
        return self.method_id not in ("", "0x") or bool(self.function_name)
    
    def with_chain(self, chain_name: str) -> "Transaction":
        """Return a copy tagged with the source chain."""
        return replace(self, chain=chain_name)
    
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create from an explorer txlist record."""
        return cls(
            hash=str(data.get("hash") or ""),
            from_address=str(data.get("from") or ""),
            to_address=str(data.get("to") or ""),
            value=str(data.get("value") or "0"),
            time_stamp=str(data.get("timeStamp") or ""),
            gas_used=str(data.get("gasUsed") or "0"),
            gas_price=str(data.get("gasPrice") or "0"),
            is_error=str(data.get("isError") or "0"),
            method_id=str(data.get("methodId") or ""),
            function_name=str(data.get("functionName") or ""),
            chain=data.get("chain"),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to the explorer's record shape plus the chain tag."""
        data = dict(self.extra)
        data.update({
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "timeStamp": self.time_stamp,
            "gasUsed": self.gas_used,
            "gasPrice": self.gas_price,
            "isError": self.is_error,
            "methodId": self.method_id,
            "functionName": self.function_name,
            "chain": self.chain,
        })
        return data


@dataclass(frozen=True)
class TokenTransfer:
    """
    ERC20-style transfer event.
    
    `value` is in the token's own base units (see `token_decimal`) and must
    never be added to native-currency amounts.
    """
    hash: str
    from_address: str
    to_address: str
    value: str
    time_stamp: str
    contract_address: str
    token_name: str = ""
    token_symbol: str = ""
    token_decimal: str = "0"
    chain: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    
    _FIELDS = (
        "hash", "from", "to", "value", "timeStamp", "contractAddress",
        "tokenName", "tokenSymbol", "tokenDecimal", "chain",
    )
    
    @property
    def timestamp(self) -> Optional[int]:
        return parse_timestamp(self.time_stamp)
    
    @property
    def raw_value(self) -> int:
        return parse_base_units(self.value)
    
    def with_chain(self, chain_name: str) -> "TokenTransfer":
        """Return a copy tagged with the source chain."""
        return replace(self, chain=chain_name)
    
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenTransfer":
        """Create from an explorer tokentx record."""
        return cls(
            hash=str(data.get("hash") or ""),
            from_address=str(data.get("from") or ""),
            to_address=str(data.get("to") or ""),
            value=str(data.get("value") or "0"),
            time_stamp=str(data.get("timeStamp") or ""),
            contract_address=str(data.get("contractAddress") or ""),
            token_name=str(data.get("tokenName") or ""),
            token_symbol=str(data.get("tokenSymbol") or ""),
            token_decimal=str(data.get("tokenDecimal") or "0"),
            chain=data.get("chain"),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to the explorer's record shape plus the chain tag."""
        data = dict(self.extra)
        data.update({
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "timeStamp": self.time_stamp,
            "contractAddress": self.contract_address,
            "tokenName": self.token_name,
            "tokenSymbol": self.token_symbol,
            "tokenDecimal": self.token_decimal,
            "chain": self.chain,
        })
        return data


@dataclass
class AggregatedWalletData:
    """Merged, chain-tagged, time-sorted records from every queried chain."""
    transactions: list[Transaction] = field(default_factory=list)
    token_transfers: list[TokenTransfer] = field(default_factory=list)
    chains: list[str] = field(default_factory=list)  # display names with data
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "transactions": [tx.to_dict() for tx in self.transactions],
            "tokenTransfers": [tt.to_dict() for tt in self.token_transfers],
            "chains": list(self.chains),
        }


# ─────────────────────────────────────────────────────────────
# Statistics
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MonthlyActivity:
    month: str  # "March 2025"
    count: int
    
    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "count": self.count}


@dataclass(frozen=True)
class TokenRanking:
    contract_address: str
    symbol: str
    count: int
    value: str
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "symbol": self.symbol,
            "count": self.count,
            "value": self.value,
        }


@dataclass(frozen=True)
class ContractRanking:
    address: str
    count: int
    
    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "count": self.count}


@dataclass(frozen=True)
class AirdropSummary:
    """Tokens received without a matching send, grouped per contract."""
    contract_address: str
    symbol: str
    name: str
    count: int
    value: str
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "symbol": self.symbol,
            "name": self.name,
            "count": self.count,
            "value": self.value,
        }


@dataclass(frozen=True)
class LargestTransaction:
    hash: str
    value: str
    direction: str  # "in" | "out"
    chain: Optional[str] = None
    time_stamp: str = ""
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "value": self.value,
            "type": self.direction,
            "chain": self.chain,
            "timeStamp": self.time_stamp,
        }


@dataclass(frozen=True)
class WalletStats:
    """
    Derived statistics for one wallet over one merged dataset.
    
    Amounts are base-unit decimal strings. Native and token totals are
    reported separately because token values carry their own decimals.
    """
    total_transactions: int
    successful_transactions: int
    failed_transactions: int
    total_value_sent: str
    total_value_received: str
    net_flow: str
    total_gas_spent: str
    average_gas_price: str
    unique_tokens_interacted: int
    unique_contracts_interacted: int
    contract_interactions: int
    total_days_active: int
    most_active_day: str
    most_active_month: str
    transactions_by_month: tuple[MonthlyActivity, ...] = ()
    top_tokens: tuple[TokenRanking, ...] = ()
    top_contracts: tuple[ContractRanking, ...] = ()
    total_token_value_sent: str = "0"
    total_token_value_received: str = "0"
    airdrops: tuple[AirdropSummary, ...] = ()
    largest_transaction: Optional[LargestTransaction] = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase shape returned to callers."""
        return {
            "totalTransactions": self.total_transactions,
            "successfulTransactions": self.successful_transactions,
            "failedTransactions": self.failed_transactions,
            "totalValueSent": self.total_value_sent,
            "totalValueReceived": self.total_value_received,
            "netFlow": self.net_flow,
            "totalGasSpent": self.total_gas_spent,
            "averageGasPrice": self.average_gas_price,
            "uniqueTokensInteracted": self.unique_tokens_interacted,
            "uniqueContractsInteracted": self.unique_contracts_interacted,
            "contractInteractions": self.contract_interactions,
            "totalDaysActive": self.total_days_active,
            "mostActiveDay": self.most_active_day,
            "mostActiveMonth": self.most_active_month,
            "transactionsByMonth": [m.to_dict() for m in self.transactions_by_month],
            "topTokens": [t.to_dict() for t in self.top_tokens],
            "topContracts": [c.to_dict() for c in self.top_contracts],
            "totalTokenValueSent": self.total_token_value_sent,
            "totalTokenValueReceived": self.total_token_value_received,
            "airdrops": [a.to_dict() for a in self.airdrops],
            "largestTransaction": (
                self.largest_transaction.to_dict() if self.largest_transaction else None
            ),
        }


@dataclass
class WalletReport:
    """Result of the fetch-and-analyze operation."""
    address: str
    stats: WalletStats
    transactions: list[Transaction] = field(default_factory=list)
    token_transfers: list[TokenTransfer] = field(default_factory=list)
    chains: list[str] = field(default_factory=list)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "address": self.address,
            "stats": self.stats.to_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "tokenTransfers": [tt.to_dict() for tt in self.token_transfers],
            "chains": list(self.chains),
        }


@dataclass
class FetchIncident:
    """Record of a suppressed explorer failure."""
    chain: str
    action: str
    incident_type: str
    message: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "chain": self.chain,
            "action": self.action,
            "incident_type": self.incident_type,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
