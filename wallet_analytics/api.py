"""
Wallet Analytics - API.

============================================================
RESPONSIBILITY
============================================================
Exposes the fetch-and-analyze operation over HTTP.

GET /api/wallet?address=0x...&chains=eth,base
GET /api/chains
GET /health
============================================================
"""

import logging
import os
import sys
from datetime import datetime
from typing import Any, AsyncIterator, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .aggregator import MultiChainAggregator
from .chains import SUPPORTED_CHAINS
from .config import WalletAnalyticsConfig
from .exceptions import InvalidAddressError
from .logging_utils import configure_logging
from .service import fetch_and_analyze


logger = logging.getLogger(__name__)


# ============================================================
# Response Models
# ============================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"


# ============================================================
# FastAPI Application
# ============================================================

app = FastAPI(
    title="Wallet Analytics API",
    description="Multi-chain wallet activity aggregation and statistics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_config: Optional[WalletAnalyticsConfig] = None


def get_config() -> WalletAnalyticsConfig:
    """Configuration is read from the environment once per process."""
    global _config
    if _config is None:
        _config = WalletAnalyticsConfig.from_env()
    return _config


async def get_aggregator(
    config: WalletAnalyticsConfig = Depends(get_config),
) -> AsyncIterator[MultiChainAggregator]:
    """Per-request aggregator, closed when the response is done."""
    async with MultiChainAggregator(
        schedule=config.schedule,
        fetcher_config=config.fetcher,
    ) as aggregator:
        yield aggregator


# ============================================================
# API Endpoints
# ============================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
    )


@app.get("/api/chains", tags=["Chains"])
async def list_chains() -> list[dict[str, Any]]:
    """Supported chains and whether they are enabled."""
    return [chain.to_dict() for chain in SUPPORTED_CHAINS]


@app.get("/api/wallet", tags=["Wallet"])
async def get_wallet(
    address: Optional[str] = Query(None, description="Wallet address (0x + 40 hex)"),
    chains: Optional[str] = Query(None, description="Comma separated chain ids"),
    aggregator: MultiChainAggregator = Depends(get_aggregator),
) -> dict[str, Any]:
    """Fetch and analyze a wallet across the requested chains."""
    chain_ids = [c for c in chains.split(",") if c] if chains else None
    
    try:
        report = await fetch_and_analyze(address, chain_ids, aggregator=aggregator)
    except InvalidAddressError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Error fetching wallet data for {address}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch wallet data. Please try again later.",
        )
    
    logger.info(
        f"{address}: {report.stats.total_transactions} transactions, "
        f"{len(report.token_transfers)} token transfers"
    )
    return report.to_dict()


# ============================================================
# Server Runner
# ============================================================

def run_server() -> None:
    """Run the API with uvicorn."""
    configure_logging()
    
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", os.getenv("PORT", "8000")))
    
    logger.info(f"Starting Wallet Analytics API on {host}:{port}")
    
    try:
        uvicorn.run(
            "wallet_analytics.api:app",
            host=host,
            port=port,
            log_level="info",
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start API: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run_server()
