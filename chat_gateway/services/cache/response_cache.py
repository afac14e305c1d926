"""In-memory response cache with TTL, frequency-aware eviction and warmup."""

import copy
import hashlib
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from chat_gateway.config.models import CacheConfig
from chat_gateway.models.context import CacheEntry, CacheStats
from chat_gateway.models.errors import CacheError
from chat_gateway.models.responses import NormalizedResponse
from .volatility import WARMUP_ENTRIES, compile_patterns, is_volatile


logger = logging.getLogger(__name__)

# Eviction by score starts once the store is this full after dropping expired entries.
EVICTION_HIGH_WATER = 0.9
EVICTION_FRACTION = 0.25

PREWARMED_MODEL = "cache:prewarmed"


class ResponseCache:
    """Caches provider answers keyed by normalized message and mode.

    The store is guarded by a re-entrant lock that is held only for in-memory
    work, never while a provider is being called. ``get`` hands out deep copies
    so callers cannot mutate stored payloads.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.config = config or CacheConfig()
        self._clock = clock
        self._patterns = compile_patterns(self.config.volatile_patterns)
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hit_count = 0
        self._miss_count = 0
        self._warmed = False

    def should_cache(self, message: str, mode: str) -> bool:
        """Whether answers to this message may be cached at all."""
        if not self.config.enabled:
            return False
        length = len(message)
        if length < self.config.min_message_length or length > self.config.max_message_length:
            return False
        return not is_volatile(message, self._patterns)

    def key(self, message: str, mode: str, provider_scope: Optional[str] = None) -> str:
        """Deterministic fingerprint of a request."""
        key_data = {
            "message": message.strip().lower(),
            "mode": mode,
            "provider": provider_scope or "any",
        }
        encoded = json.dumps(key_data, ensure_ascii=False, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    def get(self, message: str, mode: str) -> Optional[Any]:
        """Look up a cached payload.

        Returns None for uncacheable messages, absent entries and expired
        entries. Only the last two count as misses.
        """
        if not self.should_cache(message, mode):
            return None

        cache_key = self.key(message, mode)
        now = self._clock()

        with self._lock:
            entry = self._store.get(cache_key)
            if entry is None:
                self._miss_count += 1
                return None

            if entry.is_expired(now):
                del self._store[cache_key]
                self._miss_count += 1
                logger.debug("Cache entry expired", extra={"cache_key": cache_key})
                return None

            entry.access_count += 1
            entry.last_accessed_at = now
            self._hit_count += 1
            payload = entry.payload

        logger.info(
            f"Cache hit for: {message[:50]}",
            extra={"cache_key": cache_key, "mode": mode}
        )
        return self._copy(payload, "get")

    def set(self, message: str, mode: str, payload: Any, ttl: Optional[float] = None) -> None:
        """Store a payload; silently ignored for uncacheable messages."""
        if not self.should_cache(message, mode):
            return

        ttl = self.config.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise CacheError(f"TTL must be positive, got {ttl}", operation="set")

        cache_key = self.key(message, mode)
        stored = self._copy(payload, "set")
        now = self._clock()

        with self._lock:
            if cache_key not in self._store and len(self._store) >= self.config.max_entries:
                self._evict(now)

            self._store[cache_key] = CacheEntry(
                key=cache_key,
                payload=stored,
                created_at=now,
                expires_at=now + ttl,
                access_count=1,
                last_accessed_at=now,
            )

        logger.debug(
            f"Cached response for: {message[:50]} (TTL: {ttl:.0f}s)",
            extra={"cache_key": cache_key, "mode": mode, "ttl": ttl}
        )

    def _evict(self, now: float) -> None:
        """Make room for one new entry. Caller holds the lock."""
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        removed = len(expired)

        size = len(self._store)
        if size >= self.config.max_entries * EVICTION_HIGH_WATER:
            weight = self.config.frequency_weight
            ranked = sorted(self._store.values(), key=lambda entry: entry.score(weight))
            to_remove = max(int(size * EVICTION_FRACTION), size - self.config.max_entries + 1)
            for entry in ranked[:to_remove]:
                del self._store[entry.key]
            removed += to_remove

        if removed:
            logger.info(
                f"Evicted {removed} cache entries",
                extra={"expired": len(expired), "remaining": len(self._store)}
            )

    def warmup(self) -> int:
        """Seed canonical greeting answers. Returns the number of entries seeded."""
        with self._lock:
            if self._warmed:
                return 0
            self._warmed = True

        seeded = 0
        for message, mode, answer in WARMUP_ENTRIES:
            if not self.should_cache(message, mode):
                continue
            self.set(
                message,
                mode,
                NormalizedResponse(content=answer, mode=mode, model=PREWARMED_MODEL),
                ttl=self.config.warmup_ttl
            )
            seeded += 1

        logger.info(f"Cache warmed with {seeded} common queries")
        return seeded

    def stats(self) -> CacheStats:
        """Current counters and approximate size."""
        with self._lock:
            hits = self._hit_count
            misses = self._miss_count
            entries = list(self._store.values())

        total_requests = hits + misses
        return CacheStats(
            total_entries=len(entries),
            hit_count=hits,
            miss_count=misses,
            hit_rate=(hits / total_requests) * 100 if total_requests else 0.0,
            total_size=sum(_payload_size(entry.payload) for entry in entries),
        )

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._store.clear()
            self._hit_count = 0
            self._miss_count = 0
        logger.info("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    @staticmethod
    def _copy(payload: Any, operation: str) -> Any:
        try:
            return copy.deepcopy(payload)
        except Exception as e:
            raise CacheError(f"Payload cannot be copied: {e}", operation=operation) from e


def _payload_size(payload: Any) -> int:
    """Approximate serialized size of a payload in bytes."""
    if isinstance(payload, BaseModel):
        text = payload.model_dump_json()
    else:
        text = json.dumps(payload, ensure_ascii=False, default=str)
    return len(text.encode("utf-8"))
