"""
Tests for auth, the analysis cache, structured logging and the
remote provider plumbing.
"""

import hashlib
import json
import logging
import time
from types import SimpleNamespace

import pytest


class TestAuth:
    """API key authentication tests."""

    def test_generate_key_format(self):
        from lieanalyzer.auth import generate_api_key
        key = generate_api_key()
        assert key.startswith("la_")
        assert len(key) > 30

    def test_verify_key_valid(self):
        from lieanalyzer import auth

        test_key = "la_test_key_12345"
        key_hash = hashlib.sha256(test_key.encode()).hexdigest()

        original = auth._VALID_KEY_HASHES.copy()
        auth._VALID_KEY_HASHES.add(key_hash)
        try:
            assert auth._verify_key(test_key) is True
        finally:
            auth._VALID_KEY_HASHES = original

    def test_verify_key_invalid(self):
        from lieanalyzer.auth import _verify_key
        assert _verify_key("totally_fake_key") is False

    def test_verify_key_empty(self):
        from lieanalyzer.auth import _verify_key
        assert _verify_key("") is False

    def test_load_key_hashes_skips_blanks(self):
        from lieanalyzer.auth import load_key_hashes
        hashes = load_key_hashes(" a , ,b,")
        assert len(hashes) == 2
        assert hashlib.sha256(b"a").hexdigest() in hashes


class TestAnalysisCache:
    """TTL cache for remote envelopes."""

    ENVELOPE = {"source": "model", "analysis": {"lieProbability": 70}}

    @pytest.mark.asyncio
    async def test_miss_then_hit(self):
        from lieanalyzer.cache import AnalysisCache
        cache = AnalysisCache()
        assert await cache.get("text", "en", "remote") is None
        await cache.put("text", "en", "remote", self.ENVELOPE)
        hit = await cache.get("text", "en", "remote")
        assert hit["cached"] is True
        assert hit["source"] == "model"
        assert "cached" not in self.ENVELOPE

    @pytest.mark.asyncio
    async def test_key_includes_locale_and_mode(self):
        from lieanalyzer.cache import AnalysisCache
        cache = AnalysisCache()
        await cache.put("text", "en", "remote", self.ENVELOPE)
        assert await cache.get("text", "ko", "remote") is None
        assert await cache.get("text", "en", "local") is None

    @pytest.mark.asyncio
    async def test_expiry(self):
        from lieanalyzer.cache import AnalysisCache
        cache = AnalysisCache(ttl_seconds=0)
        await cache.put("text", "en", "remote", self.ENVELOPE)
        time.sleep(0.01)
        assert await cache.get("text", "en", "remote") is None
        assert cache.stats["entries"] == 0

    @pytest.mark.asyncio
    async def test_oldest_evicted(self):
        from lieanalyzer.cache import AnalysisCache
        cache = AnalysisCache(max_entries=2)
        await cache.put("one", "en", "remote", self.ENVELOPE)
        await cache.put("two", "en", "remote", self.ENVELOPE)
        await cache.put("three", "en", "remote", self.ENVELOPE)
        assert await cache.get("one", "en", "remote") is None
        assert await cache.get("three", "en", "remote") is not None

    @pytest.mark.asyncio
    async def test_stats_and_clear(self):
        from lieanalyzer.cache import AnalysisCache
        cache = AnalysisCache()
        await cache.put("text", "en", "remote", self.ENVELOPE)
        await cache.get("text", "en", "remote")
        await cache.get("other", "en", "remote")
        assert cache.stats == {"entries": 1, "hits": 1, "misses": 1, "hit_rate": 0.5}

        await cache.clear()
        assert cache.stats == {"entries": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


class TestLogging:
    def _record(self, **extra):
        record = logging.LogRecord(
            name="lieanalyzer.test", level=logging.INFO, pathname=__file__,
            lineno=1, msg="Analysis complete", args=(), exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_line(self):
        from lieanalyzer.logging import JSONFormatter
        line = JSONFormatter().format(self._record(lie_probability=61, locale="ko"))
        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "lieanalyzer.test"
        assert entry["message"] == "Analysis complete"
        assert entry["lie_probability"] == 61
        assert entry["locale"] == "ko"

    def test_unknown_and_empty_fields_skipped(self):
        from lieanalyzer.logging import JSONFormatter
        entry = json.loads(JSONFormatter().format(self._record(password="x", reason=None)))
        assert "password" not in entry
        assert "reason" not in entry

    def test_get_logger_namespace(self):
        from lieanalyzer.logging import get_logger
        assert get_logger("api").name == "lieanalyzer.api"

    def test_setup_replaces_handlers(self):
        from lieanalyzer.logging import setup_logging
        setup_logging()
        root = setup_logging()
        assert len(root.handlers) == 1


class TestCircuitBreaker:
    def test_opens_after_threshold(self):
        from lieanalyzer.llm.gemini import CircuitBreaker
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        assert breaker.state == "closed"
        breaker.record_failure()
        assert breaker.is_open

    def test_half_open_after_cool_down(self):
        from lieanalyzer.llm.gemini import CircuitBreaker
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        breaker.record_failure()
        assert breaker.state == "half-open"
        assert breaker.is_open is False

    def test_success_resets(self):
        from lieanalyzer.llm.gemini import CircuitBreaker
        breaker = CircuitBreaker(failure_threshold=2)
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        assert breaker.state == "closed"


class TestProviders:
    def test_factory_unknown_provider(self):
        from lieanalyzer.llm.factory import get_provider
        with pytest.raises(ValueError):
            get_provider("openai")

    def test_factory_gemini(self):
        from lieanalyzer.llm.factory import get_provider
        from lieanalyzer.llm.gemini import GeminiProvider
        assert isinstance(get_provider("gemini"), GeminiProvider)

    @pytest.mark.asyncio
    async def test_missing_key_fails_and_counts(self):
        from lieanalyzer.llm.gemini import GeminiProvider
        provider = GeminiProvider(model="gemini-test")
        provider._api_key = ""
        with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
            await provider.generate("prompt")
        assert provider.circuit_breaker._failures == 1

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast(self):
        from lieanalyzer.llm.gemini import CircuitBreaker, CircuitOpenError, GeminiProvider
        provider = GeminiProvider(model="gemini-test")
        provider._api_key = ""
        provider.circuit_breaker = CircuitBreaker(failure_threshold=1)
        with pytest.raises(RuntimeError):
            await provider.generate("prompt")
        with pytest.raises(CircuitOpenError):
            await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_generate_json_rejects_non_object(self):
        from lieanalyzer.llm import LLMProvider

        class ListLLM(LLMProvider):
            async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
                return "[1, 2]"

        with pytest.raises(ValueError):
            await ListLLM().generate_json("prompt")


class FakeModels:
    """Stands in for client.aio.models; fails for the models it is told to."""

    def __init__(self, failing: set[str]):
        self.failing = failing
        self.calls: list[str] = []

    async def generate_content(self, model, contents, config):
        self.calls.append(model)
        if model in self.failing:
            raise RuntimeError("503 unavailable")
        return SimpleNamespace(text="{}")


class TestGeminiRetries:
    @pytest.fixture
    def sleeps(self, monkeypatch):
        from lieanalyzer.llm import gemini
        recorded = []

        async def fake_sleep(seconds):
            recorded.append(seconds)

        monkeypatch.setattr(gemini, "asyncio", SimpleNamespace(sleep=fake_sleep))
        return recorded

    def _provider(self, failing: set[str]):
        from lieanalyzer.llm.gemini import GeminiProvider
        provider = GeminiProvider(api_key="test-key", model="gemini-pro-x")
        models = FakeModels(failing)
        provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))
        return provider, models

    @pytest.mark.asyncio
    async def test_transient_error_retried_then_fallback_model(self, sleeps):
        from lieanalyzer.llm.gemini import FALLBACK_MODEL
        provider, models = self._provider({"gemini-pro-x"})

        assert await provider.generate("prompt") == "{}"
        assert models.calls == ["gemini-pro-x", "gemini-pro-x", FALLBACK_MODEL]
        assert sleeps == [1]
        assert provider.circuit_breaker.state == "closed"

    @pytest.mark.asyncio
    async def test_primary_success_needs_no_retry(self, sleeps):
        provider, models = self._provider(set())
        assert await provider.generate("prompt") == "{}"
        assert models.calls == ["gemini-pro-x"]
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_fallback_failure_recorded(self, sleeps):
        from lieanalyzer.llm.gemini import FALLBACK_MODEL
        provider, models = self._provider({"gemini-pro-x", FALLBACK_MODEL})

        with pytest.raises(RuntimeError, match="503"):
            await provider.generate("prompt")
        assert models.calls == ["gemini-pro-x", "gemini-pro-x", FALLBACK_MODEL]
        assert provider.circuit_breaker._failures == 1
