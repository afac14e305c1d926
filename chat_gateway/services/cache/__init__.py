"""Response cache."""

from .response_cache import ResponseCache
from .volatility import DEFAULT_VOLATILE_PATTERNS, WARMUP_ENTRIES

__all__ = ["ResponseCache", "DEFAULT_VOLATILE_PATTERNS", "WARMUP_ENTRIES"]
