"""
Chain Data Fetcher - One explorer query for one chain and one address.

The public fetch methods NEVER raise for remote failures:
- "No transactions found" style answers are a legitimate empty result
- Rate limit, invalid key and paid-plan refusals are logged and dropped
- Any other failure envelope is logged and dropped
- Transport errors and timeouts are logged and dropped

One chain's failure must never block the others.
"""

import asyncio
import logging
import time
from typing import Any, Optional

import aiohttp

from .config import FetcherConfig
from .exceptions import (
    ExplorerAccessError,
    ExplorerResponseError,
    FetchError,
    RateLimitError,
    WalletAnalyticsError,
)
from .logging_utils import redact_text, redact_url
from .models import ChainDescriptor, ExplorerAction, ExplorerQuery, FetchIncident


logger = logging.getLogger(__name__)


# Lowercased fragments matched against the envelope's message and string result
NO_RECORD_MARKERS = (
    "no transactions found",
    "no record found",
    "no records found",
)
RATE_LIMIT_MARKERS = (
    "rate limit",
)
ACCESS_MARKERS = (
    "invalid api key",
    "missing/invalid api key",
    "paid plan",
    "api plan",
)


class ExplorerClient:
    """
    Async client for Etherscan-compatible explorer account queries.
    
    Usage:
        async with ExplorerClient(FetcherConfig(api_key=key)) as client:
            txs = await client.fetch_transactions(chain, address)
            transfers = await client.fetch_token_transfers(chain, address)
    """
    
    MAX_INCIDENTS = 100
    
    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._config = config or FetcherConfig()
        self._session = session
        self._owns_session = session is None
        self._incidents: list[FetchIncident] = []
    
    @property
    def config(self) -> FetcherConfig:
        return self._config
    
    # ─────────────────────────────────────────────────────────────
    # Public fetch operations
    # ─────────────────────────────────────────────────────────────
    
    def build_query(self, action: ExplorerAction, address: str) -> ExplorerQuery:
        """Full-range, single-page, ascending query for an address."""
        return ExplorerQuery(
            action=action,
            address=address,
            start_block=self._config.start_block,
            end_block=self._config.end_block,
            page=1,
            offset=self._config.page_size,
            sort=self._config.sort,
        )
    
    async def fetch_transactions(
        self,
        chain: ChainDescriptor,
        address: str,
    ) -> list[dict[str, Any]]:
        """Native transactions of an address on a chain (raw records)."""
        return await self.fetch_records(chain, self.build_query(ExplorerAction.TXLIST, address))
    
    async def fetch_token_transfers(
        self,
        chain: ChainDescriptor,
        address: str,
    ) -> list[dict[str, Any]]:
        """ERC20 transfer events of an address on a chain (raw records)."""
        return await self.fetch_records(chain, self.build_query(ExplorerAction.TOKENTX, address))
    
    async def fetch_records(
        self,
        chain: ChainDescriptor,
        query: ExplorerQuery,
    ) -> list[dict[str, Any]]:
        """
        Run one explorer query (main entry point).
        
        Args:
            chain: Chain to query
            query: Account query parameters
            
        Returns:
            Raw explorer records, possibly empty. Never raises for
            remote or transport failures.
        """
        action = query.action.value
        timeout = self._config.timeout_seconds
        
        try:
            query.validate()
            params = query.to_params(chain, self._config.api_key)
            logger.debug(
                f"[{chain.name}] Requesting {action}: "
                f"{redact_url(chain.explorer_api_url, params)}"
            )
            
            payload = await asyncio.wait_for(
                self._get_json(chain, params),
                timeout=timeout,
            )
            records = self._unwrap_envelope(chain, payload)
            
            logger.debug(f"[{chain.name}] {action} returned {len(records)} records")
            return records
            
        except asyncio.TimeoutError:
            logger.warning(f"[{chain.name}] {action} timed out after {timeout:.1f}s")
            self._record_incident(chain, action, "timeout", f"Timed out after {timeout}s")
            return []
        
        except RateLimitError as e:
            detail = e.message
            if e.retry_after_seconds is not None:
                detail = f"{detail} (retry after {e.retry_after_seconds}s)"
            logger.warning(f"[{chain.name}] {action} rate limited: {detail}")
            self._record_incident(chain, action, "rate_limited", detail)
            return []
        
        except ExplorerAccessError as e:
            logger.warning(f"[{chain.name}] {action} refused: {e.message}")
            self._record_incident(chain, action, "access_denied", e.message)
            return []
        
        except WalletAnalyticsError as e:
            logger.warning(f"[{chain.name}] {action} failed: {redact_text(str(e))}")
            self._record_incident(chain, action, e.__class__.__name__, e.message)
            return []
        
        except Exception as e:
            detail = redact_text(str(e))
            logger.error(f"[{chain.name}] {action} unexpected error: {detail}")
            self._record_incident(chain, action, "unexpected_error", detail)
            return []
    
    # ─────────────────────────────────────────────────────────────
    # Envelope handling
    # ─────────────────────────────────────────────────────────────
    
    def _unwrap_envelope(
        self,
        chain: ChainDescriptor,
        payload: Any,
    ) -> list[dict[str, Any]]:
        """
        Extract the record list from {status, message, result}.
        
        Raises:
            RateLimitError: Explorer reported a rate limit
            ExplorerAccessError: Invalid key or paid plan required
            ExplorerResponseError: Any other failure envelope
        """
        if not isinstance(payload, dict):
            raise ExplorerResponseError(
                message=f"Unexpected response type {type(payload).__name__}",
                chain=chain.name,
                response_body=str(payload)[:500],
            )
        
        status = str(payload.get("status", ""))
        message = str(payload.get("message") or "")
        result = payload.get("result")
        
        if status == "0":
            # The string result often carries the real explanation
            detail = message
            if isinstance(result, str) and result:
                detail = f"{message}: {result}" if message else result
            text = detail.lower()
            
            if any(marker in text for marker in NO_RECORD_MARKERS):
                return []
            if any(marker in text for marker in RATE_LIMIT_MARKERS):
                raise RateLimitError(message=detail, chain=chain.name)
            if any(marker in text for marker in ACCESS_MARKERS):
                raise ExplorerAccessError(message=detail, chain=chain.name)
            raise ExplorerResponseError(
                message=detail or "Explorer reported failure without a message",
                chain=chain.name,
                response_body=str(payload)[:500],
            )
        
        if not isinstance(result, list):
            logger.warning(
                f"[{chain.name}] Result is {type(result).__name__}, not a list; ignoring"
            )
            return []
        
        return result
    
    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
                headers={
                    "Accept": "application/json",
                    "User-Agent": self._config.user_agent,
                },
            )
            self._owns_session = True
        return self._session
    
    async def _get_json(
        self,
        chain: ChainDescriptor,
        params: dict[str, str],
    ) -> Any:
        """GET the explorer endpoint and decode the JSON body."""
        session = await self._get_session()
        url = chain.explorer_api_url
        
        start_time = time.time()
        try:
            async with session.get(url, params=params) as response:
                latency_ms = (time.time() - start_time) * 1000
                logger.debug(
                    f"[{chain.name}] HTTP {response.status} in {latency_ms:.0f}ms"
                )
                
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="HTTP 429 Too Many Requests",
                        chain=chain.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                    )
                
                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        chain=chain.name,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=redact_url(url, params),
                    )
                
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ExplorerResponseError(
                        message="Response body is not valid JSON",
                        chain=chain.name,
                        original_error=e,
                    ) from e
                
        except aiohttp.ClientResponseError as e:
            # str(e) embeds the full request URL, credential included
            raise FetchError(
                message=f"{e.__class__.__name__} (status {e.status})",
                chain=chain.name,
                status_code=e.status or None,
                request_url=redact_url(url, params),
            ) from e
        
        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {redact_text(str(e))}",
                chain=chain.name,
                request_url=redact_url(url, params),
            ) from e
    
    # ─────────────────────────────────────────────────────────────
    # Diagnostics
    # ─────────────────────────────────────────────────────────────
    
    def _record_incident(
        self,
        chain: ChainDescriptor,
        action: str,
        incident_type: str,
        message: str,
    ) -> None:
        self._incidents.append(
            FetchIncident(
                chain=chain.name,
                action=action,
                incident_type=incident_type,
                message=message,
            )
        )
        if len(self._incidents) > self.MAX_INCIDENTS:
            self._incidents = self._incidents[-self.MAX_INCIDENTS:]
    
    def get_incidents(self, limit: int = 10) -> list[FetchIncident]:
        """Get recent suppressed failures."""
        return self._incidents[-limit:]
    
    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────
    
    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
    
    async def __aenter__(self) -> "ExplorerClient":
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
    
    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(timeout={self._config.timeout_seconds}s)>"
