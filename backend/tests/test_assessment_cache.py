"""Tests for the Redis assessment cache."""

import json
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from telehealth.services.assessment_cache import (
    DEFAULT_TTL_SECONDS,
    KEY_PREFIX,
    AssessmentCache,
    make_cache_key,
)

PAYLOAD = {"symptoms": [{"name": "cough", "severity": 3}]}
RESPONSE = {"id": "assessment_abc", "overall_urgency": "self-care"}


class TestMakeCacheKey:
    """Tests for cache key derivation."""

    def test_prefixed_digest(self) -> None:
        """Test keys are prefixed SHA-256 hex digests."""
        key = make_cache_key(PAYLOAD)

        assert key.startswith(KEY_PREFIX)
        assert len(key) == len(KEY_PREFIX) + 64

    def test_key_order_irrelevant(self) -> None:
        """Test equal payloads with different key order share a key."""
        assert make_cache_key({"a": 1, "b": [1, 2]}) == make_cache_key({"b": [1, 2], "a": 1})

    def test_different_payloads_differ(self) -> None:
        """Test different payloads get different keys."""
        assert make_cache_key(PAYLOAD) != make_cache_key({"symptoms": [{"name": "fever"}]})

    def test_lone_surrogate_in_payload(self) -> None:
        """Test text that cannot be encoded as UTF-8 still yields a key."""
        key = make_cache_key({"symptoms": [{"name": "fever \udcff"}]})

        assert key.startswith(KEY_PREFIX)
        assert key != make_cache_key({"symptoms": [{"name": "fever"}]})


class TestAssessmentCache:
    """Tests for cache reads and writes."""

    def setup_method(self) -> None:
        """Create a cache over a mocked Redis client."""
        self.redis = MagicMock()
        self.cache = AssessmentCache(lambda: self.redis)

    def test_miss(self) -> None:
        """Test a missing key is a miss."""
        self.redis.get.return_value = None

        assert self.cache.get(PAYLOAD) is None
        self.redis.get.assert_called_once_with(make_cache_key(PAYLOAD))

    def test_hit(self) -> None:
        """Test a stored response is decoded."""
        self.redis.get.return_value = json.dumps(RESPONSE)
        assert self.cache.get(PAYLOAD) == RESPONSE

    def test_read_failure_is_miss(self) -> None:
        """Test Redis errors on read are treated as a miss."""
        self.redis.get.side_effect = RedisConnectionError("down")
        assert self.cache.get(PAYLOAD) is None

    def test_unreadable_entry_is_miss(self) -> None:
        """Test corrupt or non-object entries are ignored."""
        self.redis.get.return_value = "{not json"
        assert self.cache.get(PAYLOAD) is None

        self.redis.get.return_value = "[1, 2]"
        assert self.cache.get(PAYLOAD) is None

    def test_set(self) -> None:
        """Test responses are stored with the configured TTL."""
        assert self.cache.set(PAYLOAD, RESPONSE) is True

        key, ttl, value = self.redis.setex.call_args[0]
        assert key == make_cache_key(PAYLOAD)
        assert ttl == DEFAULT_TTL_SECONDS
        assert json.loads(value) == RESPONSE

    def test_custom_ttl(self) -> None:
        """Test the TTL is configurable."""
        AssessmentCache(lambda: self.redis, ttl_seconds=60).set(PAYLOAD, RESPONSE)
        assert self.redis.setex.call_args[0][1] == 60

    def test_write_failure(self) -> None:
        """Test Redis errors on write are reported, not raised."""
        self.redis.setex.side_effect = RedisConnectionError("down")
        assert self.cache.set(PAYLOAD, RESPONSE) is False

    def test_connection_failure_is_miss(self) -> None:
        """Test a failing client factory is treated as a miss."""

        def unavailable():
            raise RedisConnectionError("no server")

        cache = AssessmentCache(unavailable)
        assert cache.get(PAYLOAD) is None
        assert cache.set(PAYLOAD, RESPONSE) is False

    def test_disabled(self) -> None:
        """Test a disabled cache never touches Redis."""
        cache = AssessmentCache(lambda: self.redis, enabled=False)

        assert cache.get(PAYLOAD) is None
        assert cache.set(PAYLOAD, RESPONSE) is False
        self.redis.get.assert_not_called()
        self.redis.setex.assert_not_called()
