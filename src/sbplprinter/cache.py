"""
Printer address caching for remembering the last-used printer.

Stores the last printer the CLI sent a job to, so --address can be omitted
on following commands.
"""

import json
import time
from dataclasses import dataclass
from typing import Optional

from .config import CONFIG_DIR

# Default cache TTL: 24 hours
DEFAULT_TTL_SECONDS = 24 * 60 * 60

CACHE_FILE = CONFIG_DIR / "last_printer"


@dataclass
class CachedPrinter:
    """Cached printer information."""

    address: str  # "host:port"
    last_used: float  # Unix timestamp


def load_cached_printer(ttl_seconds: int = DEFAULT_TTL_SECONDS) -> Optional[CachedPrinter]:
    """Load the cached printer if it exists and hasn't expired.

    Args:
        ttl_seconds: Maximum age of cache in seconds. Default 24 hours.

    Returns:
        CachedPrinter if valid cache exists, None otherwise.
    """
    if not CACHE_FILE.exists():
        return None

    try:
        data = json.loads(CACHE_FILE.read_text())
        cached = CachedPrinter(
            address=data["address"],
            last_used=float(data["last_used"]),
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        # Invalid cache file - treat as missing
        return None

    if time.time() - cached.last_used > ttl_seconds:
        return None

    return cached


def save_printer(address: str) -> None:
    """Save printer address ("host:port") to cache."""
    CACHE_FILE.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "address": address,
        "last_used": time.time(),
    }
    CACHE_FILE.write_text(json.dumps(data, indent=2))


def clear_cache() -> bool:
    """Clear the cached printer.

    Returns:
        True if cache was cleared, False if no cache existed.
    """
    if CACHE_FILE.exists():
        CACHE_FILE.unlink()
        return True
    return False
