"""
Wallet Analytics - Logging Utilities.

============================================================
PURPOSE
============================================================
- Credential masking for explorer URLs and query parameters
- One-time root logger configuration for entry points

The explorer credential travels in the query string, so every
logged URL must pass through redact_url().
============================================================
"""

import logging
import os
import re
from typing import Any, Optional
from urllib.parse import urlencode


# Parameter names that should be masked
SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "token",
    "access_token",
}

_SENSITIVE_QUERY = re.compile(
    r"\b(" + "|".join(sorted(SENSITIVE_PARAMS)) + r")=([^&\s'\"]+)",
    re.IGNORECASE,
)

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.
    
    Args:
        value: Value to mask
        show_chars: Number of chars to show at start
        
    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def redact_params(params: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Copy of params with credential values masked."""
    if not params:
        return {}
    
    masked = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        else:
            masked[key] = value
    return masked


def redact_url(base_url: str, params: Optional[dict[str, Any]] = None) -> str:
    """Full request URL with the credential masked."""
    if not params:
        return base_url
    return f"{base_url}?{urlencode(redact_params(params), safe='*.')}"


def redact_text(text: str) -> str:
    """Mask credential values in free text such as an exception message."""
    return _SENSITIVE_QUERY.sub(
        lambda match: f"{match.group(1)}={mask_value(match.group(2))}",
        text,
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; level defaults to $LOG_LEVEL or INFO."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
