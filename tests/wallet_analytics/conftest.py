"""
Shared fixtures for wallet analytics tests.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from wallet_analytics.models import ChainDescriptor, TokenTransfer, Transaction


WALLET = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
OTHER = "0x1111111111111111111111111111111111111111"
ZERO = "0x0000000000000000000000000000000000000000"
TOKEN_A = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
TOKEN_B = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


def unix(year: int, month: int, day: int, hour: int = 12) -> str:
    """UTC wall-clock time as an explorer timestamp string."""
    return str(int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp()))


# ============================================================
# FAKE HTTP LAYER
# ============================================================

class FakeResponse:
    """Async context manager standing in for aiohttp's response."""
    
    def __init__(self, payload=None, status=200, body="", headers=None, json_error=None, delay=0):
        self.status = status
        self.headers = headers or {}
        self._payload = payload
        self._body = body
        self._json_error = json_error
        self._delay = delay
    
    async def __aenter__(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self
    
    async def __aexit__(self, exc_type, exc, tb):
        return False
    
    async def json(self, content_type="application/json"):
        if self._json_error:
            raise self._json_error
        return self._payload
    
    async def text(self):
        return self._body


class FakeSession:
    """
    Records GET calls and answers with a response or raises.
    
    `handler(url, params)` takes precedence over the fixed response and
    may itself raise.
    """
    
    def __init__(self, response=None, error=None, handler=None):
        self.closed = False
        self.calls = []
        self._response = response
        self._error = error
        self._handler = handler
    
    def get(self, url, params=None):
        self.calls.append((url, dict(params or {})))
        if self._error:
            raise self._error
        if self._handler:
            return self._handler(url, params or {})
        return self._response
    
    async def close(self):
        self.closed = True


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def make_tx():
    """Factory for Transaction records with sensible defaults."""
    counter = {"n": 0}
    
    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "hash": f"0xtx{counter['n']:04d}",
            "from_address": WALLET,
            "to_address": OTHER,
            "value": "0",
            "time_stamp": unix(2025, 3, 5),
            "gas_used": "21000",
            "gas_price": "1000000000",
            "is_error": "0",
        }
        fields.update(overrides)
        return Transaction(**fields)
    
    return _make


@pytest.fixture
def make_transfer():
    """Factory for TokenTransfer records with sensible defaults."""
    counter = {"n": 0}
    
    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "hash": f"0xtt{counter['n']:04d}",
            "from_address": OTHER,
            "to_address": WALLET,
            "value": "1000000",
            "time_stamp": unix(2025, 3, 5),
            "contract_address": TOKEN_A,
            "token_name": "USD Coin",
            "token_symbol": "USDC",
            "token_decimal": "6",
        }
        fields.update(overrides)
        return TokenTransfer(**fields)
    
    return _make


@pytest.fixture
def chain_x():
    return ChainDescriptor(
        id="x",
        name="X",
        explorer_api_url="https://api.x.example/api",
        native_currency="ETH",
    )


@pytest.fixture
def chain_y():
    return ChainDescriptor(
        id="y",
        name="Y",
        explorer_api_url="https://api.y.example/api",
        native_currency="ETH",
        chain_id=8453,
    )
