"""
Chain Data Fetcher Tests.

============================================================
PURPOSE
============================================================
The fetcher must never raise for remote failures. Each test
drives ExplorerClient through a fake aiohttp session and
checks the returned records and the suppressed incident.

TEST CATEGORIES:
- Envelope handling: success, no records, refusals, failures
- Transport: timeout, connection errors, HTTP status
- Credential redaction in logs
============================================================
"""

import asyncio
import logging

import aiohttp
import pytest
from yarl import URL

from wallet_analytics.config import FetcherConfig
from wallet_analytics.fetcher import ExplorerClient
from wallet_analytics.logging_utils import redact_params, redact_text, redact_url
from wallet_analytics.models import ExplorerAction

from conftest import FakeResponse, FakeSession


ADDRESS = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
API_KEY = "SECRETKEY1234567890ABCDEFGHIJKLMN"


def make_client(response=None, error=None, **config):
    session = FakeSession(response=response, error=error)
    client = ExplorerClient(FetcherConfig(api_key=API_KEY, **config), session=session)
    return client, session


# ============================================================
# ENVELOPE TESTS
# ============================================================

class TestEnvelopeHandling:
    """Explorer {status, message, result} interpretation."""
    
    @pytest.mark.asyncio
    async def test_success_returns_records(self, chain_x):
        records = [{"hash": "0x1"}, {"hash": "0x2"}]
        client, _ = make_client(FakeResponse({"status": "1", "message": "OK", "result": records}))
        
        result = await client.fetch_transactions(chain_x, ADDRESS)
        
        assert result == records
        assert client.get_incidents() == []
    
    @pytest.mark.asyncio
    async def test_no_transactions_found_is_empty_not_error(self, chain_x):
        client, _ = make_client(FakeResponse(
            {"status": "0", "message": "No transactions found", "result": []}
        ))
        
        result = await client.fetch_transactions(chain_x, ADDRESS)
        
        assert result == []
        assert client.get_incidents() == []
    
    @pytest.mark.asyncio
    async def test_no_record_found_for_token_transfers(self, chain_x):
        client, _ = make_client(FakeResponse(
            {"status": "0", "message": "No record found", "result": []}
        ))
        
        assert await client.fetch_token_transfers(chain_x, ADDRESS) == []
        assert client.get_incidents() == []
    
    @pytest.mark.asyncio
    async def test_rate_limit_in_result_string(self, chain_x, caplog):
        client, _ = make_client(FakeResponse(
            {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"}
        ))
        
        with caplog.at_level(logging.WARNING):
            result = await client.fetch_transactions(chain_x, ADDRESS)
        
        assert result == []
        incident = client.get_incidents()[-1]
        assert incident.incident_type == "rate_limited"
        assert incident.chain == "X"
        assert "rate limit" in caplog.text.lower()
    
    @pytest.mark.asyncio
    async def test_invalid_api_key(self, chain_x):
        client, _ = make_client(FakeResponse(
            {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
        ))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "access_denied"
    
    @pytest.mark.asyncio
    async def test_paid_plan_required(self, chain_x):
        client, _ = make_client(FakeResponse({
            "status": "0",
            "message": "NOTOK",
            "result": "Free API access is not supported for this chain. "
                      "Please upgrade your api plan for full chain coverage.",
        }))
        
        assert await client.fetch_token_transfers(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "access_denied"
    
    @pytest.mark.asyncio
    async def test_other_failure_is_suppressed(self, chain_x):
        client, _ = make_client(FakeResponse(
            {"status": "0", "message": "NOTOK", "result": "Error! Invalid address format"}
        ))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "ExplorerResponseError"
    
    @pytest.mark.asyncio
    async def test_non_list_result_is_empty(self, chain_x):
        client, _ = make_client(FakeResponse(
            {"status": "1", "message": "OK", "result": {"unexpected": "shape"}}
        ))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
    
    @pytest.mark.asyncio
    async def test_non_dict_payload_is_suppressed(self, chain_x):
        client, _ = make_client(FakeResponse(["not", "an", "envelope"]))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []


# ============================================================
# TRANSPORT TESTS
# ============================================================

class TestTransportFailures:
    """Timeouts, connection errors and HTTP status codes."""
    
    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, chain_x, caplog):
        client = ExplorerClient(FetcherConfig(api_key=API_KEY, timeout_seconds=0.01))
        
        async def hang(chain, params):
            await asyncio.sleep(5)
        
        client._get_json = hang
        
        with caplog.at_level(logging.WARNING):
            result = await client.fetch_transactions(chain_x, ADDRESS)
        
        assert result == []
        assert client.get_incidents()[-1].incident_type == "timeout"
        assert "timed out" in caplog.text
    
    @pytest.mark.asyncio
    async def test_connection_refused_returns_empty(self, chain_x):
        client, _ = make_client(error=aiohttp.ClientConnectionError("Connection refused"))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "FetchError"
    
    @pytest.mark.asyncio
    async def test_http_429_is_rate_limit(self, chain_x):
        client, _ = make_client(FakeResponse(status=429, headers={"Retry-After": "2"}))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "rate_limited"
        assert "retry after 2s" in client.get_incidents()[-1].message
    
    @pytest.mark.asyncio
    async def test_http_500_returns_empty(self, chain_x):
        client, _ = make_client(FakeResponse(status=502, body="Bad Gateway"))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert "HTTP 502" in client.get_incidents()[-1].message
    
    @pytest.mark.asyncio
    async def test_invalid_json_returns_empty(self, chain_x):
        client, _ = make_client(FakeResponse(json_error=ValueError("Expecting value")))
        
        assert await client.fetch_transactions(chain_x, ADDRESS) == []
        assert client.get_incidents()[-1].incident_type == "ExplorerResponseError"
    
    @pytest.mark.asyncio
    async def test_incident_log_is_bounded(self, chain_x):
        client, _ = make_client(error=aiohttp.ClientConnectionError("down"))
        
        for _ in range(ExplorerClient.MAX_INCIDENTS + 5):
            await client.fetch_transactions(chain_x, ADDRESS)
        
        assert len(client.get_incidents(limit=1000)) == ExplorerClient.MAX_INCIDENTS


# ============================================================
# REQUEST SHAPE TESTS
# ============================================================

class TestRequestShape:
    """Query parameters sent to the explorer."""
    
    @pytest.mark.asyncio
    async def test_txlist_parameters(self, chain_x):
        client, session = make_client(FakeResponse({"status": "1", "result": []}))
        
        await client.fetch_transactions(chain_x, ADDRESS)
        
        url, params = session.calls[0]
        assert url == chain_x.explorer_api_url
        assert params == {
            "module": "account",
            "action": "txlist",
            "address": ADDRESS,
            "startblock": "0",
            "endblock": "99999999",
            "page": "1",
            "offset": "10000",
            "sort": "asc",
            "apikey": API_KEY,
        }
    
    @pytest.mark.asyncio
    async def test_chainid_added_for_multiplexed_endpoint(self, chain_y):
        client, session = make_client(FakeResponse({"status": "1", "result": []}))
        
        await client.fetch_token_transfers(chain_y, ADDRESS)
        
        _, params = session.calls[0]
        assert params["action"] == ExplorerAction.TOKENTX.value
        assert params["chainid"] == "8453"
    
    @pytest.mark.asyncio
    async def test_api_key_never_logged(self, chain_x, caplog):
        client, _ = make_client(error=aiohttp.ClientConnectionError("refused"))
        
        with caplog.at_level(logging.DEBUG):
            await client.fetch_transactions(chain_x, ADDRESS)
        
        assert "Requesting txlist" in caplog.text
        assert API_KEY not in caplog.text
        assert API_KEY not in str(client.get_incidents()[-1].to_dict())
    
    @pytest.mark.asyncio
    async def test_api_key_hidden_when_response_error_embeds_url(self, chain_x, caplog):
        params = ExplorerClient(FetcherConfig(api_key=API_KEY)).build_query(
            ExplorerAction.TXLIST, ADDRESS
        ).to_params(chain_x, API_KEY)
        full_url = URL(chain_x.explorer_api_url).with_query(params)
        request_info = aiohttp.RequestInfo(full_url, "GET", {}, full_url)
        client, _ = make_client(error=aiohttp.TooManyRedirects(request_info, ()))
        
        with caplog.at_level(logging.DEBUG):
            assert await client.fetch_transactions(chain_x, ADDRESS) == []
        
        incident = client.get_incidents()[-1]
        assert "TooManyRedirects" in incident.message
        assert API_KEY not in caplog.text
        assert API_KEY not in incident.message
    
    @pytest.mark.asyncio
    async def test_api_key_hidden_in_connection_error_text(self, chain_x, caplog):
        error = aiohttp.ClientConnectionError(
            f"Cannot connect to {chain_x.explorer_api_url}?action=txlist&apikey={API_KEY}"
        )
        client, _ = make_client(error=error)
        
        with caplog.at_level(logging.WARNING):
            await client.fetch_transactions(chain_x, ADDRESS)
        
        assert API_KEY not in caplog.text
        assert "apikey=SECR...***" in client.get_incidents()[-1].message
    
    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self, chain_x):
        client, session = make_client(FakeResponse({"status": "1", "result": []}))
        
        async with client:
            await client.fetch_transactions(chain_x, ADDRESS)
        
        assert session.closed is False


class TestRedaction:
    """Credential masking helpers."""
    
    def test_redact_params_masks_apikey(self):
        masked = redact_params({"apikey": API_KEY, "action": "txlist"})
        
        assert masked["apikey"] == "SECR...***"
        assert masked["action"] == "txlist"
    
    def test_redact_url(self):
        url = redact_url("https://api.example/api", {"action": "txlist", "apikey": API_KEY})
        
        assert url.startswith("https://api.example/api?action=txlist&apikey=SECR")
        assert API_KEY not in url
    
    def test_redact_text_masks_credentials_in_free_text(self):
        text = f"url='https://api.example/api?apikey={API_KEY}&page=1' token=abcdef123"
        
        redacted = redact_text(text)
        
        assert API_KEY not in redacted
        assert "apikey=SECR...***&page=1" in redacted
        assert "token=abcd...***" in redacted
    
    def test_redact_text_leaves_plain_text_alone(self):
        assert redact_text("Connection refused") == "Connection refused"
