"""
Wallet Service, API and CLI Tests.

The aggregator is replaced by a fake so these tests cover input
validation, report assembly and the HTTP/CLI surfaces only.
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wallet_analytics import cli
from wallet_analytics.api import app, get_aggregator
from wallet_analytics.chains import SUPPORTED_CHAINS
from wallet_analytics.exceptions import InvalidAddressError
from wallet_analytics.models import AggregatedWalletData
from wallet_analytics.service import (
    fetch_and_analyze,
    is_valid_address,
    validate_address,
)

from conftest import WALLET, unix


class FakeAggregator:
    """Returns canned data and remembers what it was asked for."""
    
    def __init__(self, data=None, error=None):
        self.data = data or AggregatedWalletData()
        self.error = error
        self.calls = []
    
    async def aggregate(self, address, chains):
        self.calls.append((address, [c.id for c in chains]))
        if self.error:
            raise self.error
        return self.data


@pytest.fixture
def sample_data(make_tx, make_transfer):
    return AggregatedWalletData(
        transactions=[
            make_tx(value="1000", time_stamp=unix(2025, 3, 5), chain="Ethereum"),
            make_tx(value="500", time_stamp=unix(2025, 3, 6), chain="Base"),
        ],
        token_transfers=[make_transfer(chain="Base")],
        chains=["Ethereum", "Base"],
    )


# ============================================================
# ADDRESS VALIDATION
# ============================================================

class TestAddressValidation:
    
    @pytest.mark.parametrize("address", [
        WALLET,
        "0x" + "a" * 40,
        "0x" + "F" * 40,
    ])
    def test_valid(self, address):
        assert is_valid_address(address)
        assert validate_address(address) == address
    
    @pytest.mark.parametrize("address", [
        "0x" + "a" * 39,
        "0x" + "a" * 41,
        "a" * 42,
        "0x" + "g" * 40,
        "not-an-address",
    ])
    def test_invalid_format(self, address):
        with pytest.raises(InvalidAddressError, match="Invalid Ethereum address format"):
            validate_address(address)
    
    @pytest.mark.parametrize("address", [None, ""])
    def test_missing(self, address):
        with pytest.raises(InvalidAddressError, match="Wallet address is required"):
            validate_address(address)


# ============================================================
# FETCH AND ANALYZE
# ============================================================

class TestFetchAndAnalyze:
    
    @pytest.mark.asyncio
    async def test_report_combines_data_and_stats(self, sample_data):
        aggregator = FakeAggregator(sample_data)
        
        report = await fetch_and_analyze(WALLET, ["eth", "base"], aggregator=aggregator)
        
        assert aggregator.calls == [(WALLET, ["eth", "base"])]
        assert report.address == WALLET
        assert report.chains == ["Ethereum", "Base"]
        assert report.stats.total_transactions == 2
        assert report.stats.total_value_sent == "1500"
        assert len(report.token_transfers) == 1
    
    @pytest.mark.asyncio
    async def test_no_chains_means_all_enabled(self):
        aggregator = FakeAggregator()
        
        await fetch_and_analyze(WALLET, None, aggregator=aggregator)
        
        assert aggregator.calls[0][1] == [c.id for c in SUPPORTED_CHAINS if c.enabled]
    
    @pytest.mark.asyncio
    async def test_invalid_address_makes_no_requests(self):
        aggregator = FakeAggregator()
        
        with pytest.raises(InvalidAddressError):
            await fetch_and_analyze("0x123", ["eth"], aggregator=aggregator)
        
        assert aggregator.calls == []
    
    @pytest.mark.asyncio
    async def test_empty_wallet_has_na_stats(self):
        report = await fetch_and_analyze(WALLET, ["eth"], aggregator=FakeAggregator())
        
        assert report.stats.total_transactions == 0
        assert report.stats.most_active_day == "N/A"
        assert report.chains == []


# ============================================================
# HTTP API
# ============================================================

@pytest.fixture
def api_client():
    aggregator = FakeAggregator()
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    try:
        yield TestClient(app), aggregator
    finally:
        app.dependency_overrides.clear()


class TestWalletEndpoint:
    
    def test_missing_address_is_400(self, api_client):
        client, aggregator = api_client
        
        response = client.get("/api/wallet")
        
        assert response.status_code == 400
        assert response.json() == {"detail": "Wallet address is required"}
        assert aggregator.calls == []
    
    def test_malformed_address_is_400(self, api_client):
        client, _ = api_client
        
        response = client.get("/api/wallet", params={"address": "0x123"})
        
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid Ethereum address format"}
    
    def test_success_shape(self, api_client, sample_data):
        client, aggregator = api_client
        aggregator.data = sample_data
        
        response = client.get("/api/wallet", params={"address": WALLET, "chains": "eth,base"})
        
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"address", "stats", "transactions", "tokenTransfers", "chains"}
        assert body["chains"] == ["Ethereum", "Base"]
        assert body["stats"]["totalTransactions"] == 2
        assert body["stats"]["largestTransaction"]["type"] == "out"
        assert body["transactions"][0]["chain"] == "Ethereum"
        assert aggregator.calls == [(WALLET, ["eth", "base"])]
    
    def test_unknown_chain_ids_are_skipped_not_rejected(self, api_client):
        client, aggregator = api_client
        
        response = client.get("/api/wallet", params={"address": WALLET, "chains": "dogechain"})
        
        assert response.status_code == 200
        assert response.json()["chains"] == []
        assert aggregator.calls == [(WALLET, [])]
    
    def test_unexpected_failure_is_500(self, api_client):
        client, aggregator = api_client
        aggregator.error = RuntimeError("boom")
        
        response = client.get("/api/wallet", params={"address": WALLET})
        
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to fetch wallet data. Please try again later."}


class TestAuxiliaryEndpoints:
    
    def test_chains(self, api_client):
        client, _ = api_client
        
        body = client.get("/api/chains").json()
        
        assert [c["id"] for c in body] == [c.id for c in SUPPORTED_CHAINS]
        assert body[0]["chainId"] == 1
    
    def test_health(self, api_client):
        client, _ = api_client
        
        body = client.get("/health").json()
        
        assert body["status"] == "healthy"


# ============================================================
# CLI
# ============================================================

class TestCli:
    
    def test_invalid_address_exit_code(self, capsys):
        assert cli.main(["not-an-address"]) == cli.EXIT_INVALID_INPUT
        assert "Invalid Ethereum address format" in capsys.readouterr().err
    
    def test_stats_only_output(self, capsys, sample_data):
        report_data = FakeAggregator(sample_data)
        
        async def fake_fetch(address, chain_ids, config=None):
            return await fetch_and_analyze(address, chain_ids, aggregator=report_data)
        
        with patch("wallet_analytics.cli.fetch_and_analyze", side_effect=fake_fetch):
            code = cli.main([WALLET, "--chains", "eth,base", "--stats-only"])
        
        assert code == cli.EXIT_OK
        output = json.loads(capsys.readouterr().out)
        assert output["totalTransactions"] == 2
        assert report_data.calls == [(WALLET, ["eth", "base"])]
    
    def test_parser_defaults(self):
        args = cli.create_parser().parse_args([WALLET])
        
        assert args.chains == ""
        assert args.stats_only is False
        assert args.indent == 2
