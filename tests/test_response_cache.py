"""Tests for the response cache."""

import pytest

from chat_gateway.config.models import CacheConfig
from chat_gateway.models.errors import CacheError, ConfigurationError
from chat_gateway.models.responses import NormalizedResponse
from chat_gateway.services.cache import ResponseCache
from chat_gateway.services.cache.response_cache import PREWARMED_MODEL


class TestCacheability:
    @pytest.mark.parametrize("mode", ["fast", "deep"])
    def test_volatile_message_never_cached(self, cache, mode) -> None:
        message = "what time is it now?"

        assert cache.should_cache(message, mode) is False
        cache.set(message, mode, {"content": "noon"})

        assert len(cache) == 0
        assert cache.get(message, mode) is None

    @pytest.mark.parametrize("message", [
        "What is the date tomorrow",
        "Meeting at 10:30",
        "Deadline 2024-05-01",
        "My name is Alex",
        "Какая сегодня погода?",
        "Меня зовут Алекс",
    ])
    def test_volatile_patterns(self, cache, message) -> None:
        assert cache.should_cache(message, "fast") is False

    def test_length_bounds(self, cache) -> None:
        assert cache.should_cache("hi", "fast") is False
        assert cache.should_cache("x" * 1001, "fast") is False
        assert cache.should_cache("Explain recursion", "fast") is True

    def test_uncacheable_get_does_not_count_miss(self, cache) -> None:
        cache.get("hi", "fast")
        assert cache.stats().miss_count == 0

    def test_disabled_cache(self, clock) -> None:
        cache = ResponseCache(CacheConfig(enabled=False), clock=clock)
        cache.set("Explain recursion", "fast", {"content": "..."})
        assert cache.get("Explain recursion", "fast") is None
        assert len(cache) == 0

    def test_custom_patterns(self, clock) -> None:
        cache = ResponseCache(CacheConfig(volatile_patterns=[r"stock price"]), clock=clock)
        assert cache.should_cache("What is the stock price of ACME", "fast") is False
        assert cache.should_cache("what time is it now?", "fast") is True

    def test_invalid_pattern_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ResponseCache(CacheConfig(volatile_patterns=["("]))

class TestKeys:
    def test_key_normalizes_case_and_whitespace(self, cache) -> None:
        assert cache.key("  Hello World ", "fast") == cache.key("hello world", "fast")

    def test_key_depends_on_mode_and_scope(self, cache) -> None:
        assert cache.key("hello", "fast") != cache.key("hello", "deep")
        assert cache.key("hello", "fast") == cache.key("hello", "fast", "any")
        assert cache.key("hello", "fast") != cache.key("hello", "fast", "groq")

    def test_key_is_sha256_hex(self, cache) -> None:
        key = cache.key("hello", "fast")
        assert len(key) == 64
        int(key, 16)

class TestGetSet:
    def test_hit_within_ttl_and_miss_after(self, cache, clock) -> None:
        cache.set("hello", "fast", {"content": "hi"}, ttl=1.0)

        assert cache.get("hello", "fast") == {"content": "hi"}
        assert cache.stats().hit_count == 1

        clock.advance(1.001)

        assert cache.get("hello", "fast") is None
        stats = cache.stats()
        assert stats.miss_count == 1
        assert stats.total_entries == 0

    def test_expires_exactly_at_deadline(self, cache, clock) -> None:
        cache.set("hello", "fast", {"content": "hi"}, ttl=1.0)
        clock.advance(1.0)
        assert cache.get("hello", "fast") is None

    def test_get_returns_independent_copy(self, cache) -> None:
        cache.set("Explain recursion", "deep", {"content": "a function calling itself", "tags": ["cs"]})

        first = cache.get("Explain recursion", "deep")
        first["tags"].append("mutated")

        assert cache.get("Explain recursion", "deep")["tags"] == ["cs"]

    def test_set_copies_payload(self, cache) -> None:
        payload = {"content": "original"}
        cache.set("Explain recursion", "fast", payload)
        payload["content"] = "changed"

        assert cache.get("Explain recursion", "fast") == {"content": "original"}

    def test_default_ttl_applies(self, cache, clock) -> None:
        cache.set("Explain recursion", "fast", {"content": "..."})
        clock.advance(59)
        assert cache.get("Explain recursion", "fast") is not None
        clock.advance(2)
        assert cache.get("Explain recursion", "fast") is None

    def test_non_positive_ttl_rejected(self, cache) -> None:
        with pytest.raises(CacheError):
            cache.set("Explain recursion", "fast", {"content": "..."}, ttl=0)

    def test_hit_rate(self, cache) -> None:
        cache.set("Explain recursion", "fast", {"content": "..."})
        cache.get("Explain recursion", "fast")
        cache.get("Explain closures", "fast")

        stats = cache.stats()
        assert stats.hit_count == 1
        assert stats.miss_count == 1
        assert stats.hit_rate == 50.0
        assert stats.total_size > 0

    def test_clear_resets_everything(self, cache) -> None:
        cache.set("Explain recursion", "fast", {"content": "..."})
        cache.get("Explain recursion", "fast")

        cache.clear()

        stats = cache.stats()
        assert (stats.total_entries, stats.hit_count, stats.miss_count) == (0, 0, 0)

class TestEviction:
    def test_never_exceeds_max_entries(self, clock) -> None:
        cache = ResponseCache(CacheConfig(max_entries=4), clock=clock)

        for index in range(10):
            cache.set(f"question number {index}", "fast", {"content": str(index)})
            clock.advance(1)
            assert len(cache) <= 4

    def test_expired_entries_removed_before_scoring(self, clock) -> None:
        cache = ResponseCache(CacheConfig(max_entries=4), clock=clock)
        cache.set("short lived one", "fast", {"content": "1"}, ttl=5)
        cache.set("short lived two", "fast", {"content": "2"}, ttl=5)
        cache.set("long lived one", "fast", {"content": "3"}, ttl=100)
        cache.set("long lived two", "fast", {"content": "4"}, ttl=100)

        clock.advance(10)
        cache.set("newcomer", "fast", {"content": "5"})

        assert len(cache) == 3
        assert cache.get("long lived one", "fast") is not None
        assert cache.get("long lived two", "fast") is not None
        assert cache.get("newcomer", "fast") is not None

    def test_frequently_used_entries_survive(self, clock) -> None:
        cache = ResponseCache(CacheConfig(max_entries=4, frequency_weight=60), clock=clock)
        for index in range(4):
            cache.set(f"question number {index}", "fast", {"content": str(index)})
            clock.advance(1)

        # The oldest entry is also the most popular.
        for _ in range(3):
            cache.get("question number 0", "fast")

        cache.set("question number 4", "fast", {"content": "4"})

        assert len(cache) == 4
        assert cache.get("question number 0", "fast") is not None
        assert cache.get("question number 1", "fast") is None

    def test_overwrite_does_not_evict(self, clock) -> None:
        cache = ResponseCache(CacheConfig(max_entries=2), clock=clock)
        cache.set("first question", "fast", {"content": "1"})
        cache.set("second question", "fast", {"content": "2"})

        cache.set("first question", "fast", {"content": "updated"})

        assert len(cache) == 2
        assert cache.get("second question", "fast") == {"content": "2"}

class TestWarmup:
    def test_warmup_seeds_greetings(self, cache, clock) -> None:
        seeded = cache.warmup()

        assert seeded == len(cache) == 8
        response = cache.get("hello", "fast")
        assert isinstance(response, NormalizedResponse)
        assert response.model == PREWARMED_MODEL

    def test_warmup_is_idempotent(self, cache) -> None:
        cache.warmup()
        assert cache.warmup() == 0
        assert len(cache) == 8

    def test_warmup_uses_warmup_ttl(self, clock) -> None:
        cache = ResponseCache(CacheConfig(default_ttl=60, warmup_ttl=600), clock=clock)
        cache.warmup()
        clock.advance(300)
        assert cache.get("Thank you", "fast") is not None
