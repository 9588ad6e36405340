"""
Wallet Analytics - CLI.

============================================================
USAGE
============================================================
python -m wallet_analytics 0xYourWallet
python -m wallet_analytics 0xYourWallet --chains eth,base --stats-only
============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .chains import SUPPORTED_CHAINS
from .config import WalletAnalyticsConfig
from .exceptions import ConfigurationError, InvalidAddressError
from .logging_utils import configure_logging
from .service import fetch_and_analyze


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wallet-analytics",
        description="Aggregate a wallet's on-chain activity across EVM chains",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Chains: " + ", ".join(c.id for c in SUPPORTED_CHAINS),
    )
    parser.add_argument(
        "address",
        help="Wallet address (0x followed by 40 hex digits)",
    )
    parser.add_argument(
        "--chains", "-c",
        default="",
        help="Comma separated chain ids (default: all enabled chains)",
    )
    parser.add_argument(
        "--stats-only",
        action="store_true",
        help="Print only the statistics, not the raw records",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = create_parser().parse_args(argv)
    configure_logging(args.log_level)
    
    chain_ids = [c for c in args.chains.split(",") if c]
    
    try:
        config = WalletAnalyticsConfig.from_env()
        report = asyncio.run(fetch_and_analyze(args.address, chain_ids, config=config))
    except InvalidAddressError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_ERROR
    
    output = report.stats.to_dict() if args.stats_only else report.to_dict()
    print(json.dumps(output, indent=args.indent or None))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
