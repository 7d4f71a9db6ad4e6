"""
Tests for bridge wire types and request results.

Run: python3 -m pytest tests/test_types.py -v
"""

import os
import sys
from dataclasses import FrozenInstanceError

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from polo.result import Failure, FailureKind, Result
from polo.types import ChatMessage, HealthStatus, InboundChatBatch, Player


class TestPlayer:
    """Tests for Player."""

    def test_to_api(self):
        player = Player(uuid="abc-123", name="Alex")

        assert player.to_api() == {'uuid': "abc-123", 'name': "Alex"}

    def test_immutable(self):
        player = Player(uuid="abc-123", name="Alex")

        with pytest.raises(FrozenInstanceError):
            player.name = "Steve"


class TestChatMessage:
    """Tests for ChatMessage serialization."""

    def test_to_api(self):
        message = ChatMessage(player=Player(uuid="u", name="Alex"), text="gg")

        assert message.to_api() == {
            'player': {'uuid': "u", 'name': "Alex"},
            'text': "gg",
        }

    def test_unicode_text(self):
        message = ChatMessage(player=Player(uuid="u", name="Alex"), text="héllo ✓")

        assert message.to_api()['text'] == "héllo ✓"


class TestInboundChatBatch:
    """Tests for InboundChatBatch parsing."""

    def test_from_api(self):
        batch = InboundChatBatch.from_api({'chat': ["first", "second"]})

        assert batch.messages == ("first", "second")
        assert len(batch) == 2
        assert list(batch) == ["first", "second"]

    def test_from_api_empty(self):
        batch = InboundChatBatch.from_api({'chat': []})

        assert not batch
        assert batch == InboundChatBatch.empty()

    def test_extra_keys_ignored(self):
        batch = InboundChatBatch.from_api({'chat': ["x"], 'cursor': 5})

        assert batch.messages == ("x",)

    @pytest.mark.parametrize("data", [
        None,
        [],
        "chat",
        {},
        {'chat': None},
        {'chat': "text"},
        {'chat': ["ok", 3]},
        {'chat': [{'text': "nested"}]},
    ])
    def test_rejects_bad_shapes(self, data):
        with pytest.raises(ValueError):
            InboundChatBatch.from_api(data)


class TestHealthStatus:
    """Tests for HealthStatus parsing."""

    def test_ok(self):
        assert HealthStatus.from_api({'ok': True}).ok is True

    def test_not_ok(self):
        assert HealthStatus.from_api({'ok': False}).ok is False

    def test_missing_key_defaults_false(self):
        assert HealthStatus.from_api({}).ok is False

    @pytest.mark.parametrize("data", [None, [], {'ok': "true"}, {'ok': 1}])
    def test_rejects_bad_shapes(self, data):
        with pytest.raises(ValueError):
            HealthStatus.from_api(data)


class TestResult:
    """Tests for Result and Failure."""

    def test_success(self):
        result = Result.success(5)

        assert result.ok
        assert bool(result) is True
        assert result.value == 5
        assert result.failure is None
        assert result.unwrap_or(0) == 5

    def test_success_without_value(self):
        result = Result.success()

        assert result.ok
        assert result.unwrap_or("default") == "default"

    def test_failure(self):
        failure = Failure(FailureKind.UNREACHABLE, "refused")
        result = Result.fail(failure)

        assert not result.ok
        assert bool(result) is False
        assert result.failure is failure
        assert result.unwrap_or([]) == []

    def test_failure_str(self):
        assert str(Failure(FailureKind.TIMEOUT, "slow")) == "timeout: slow"
        assert str(Failure(FailureKind.REJECTED, "denied", status_code=401)) == \
            "rejected (HTTP 401): denied"

    @pytest.mark.parametrize("kind,transient", [
        (FailureKind.UNREACHABLE, True),
        (FailureKind.TIMEOUT, True),
        (FailureKind.INVALID_ENDPOINT, False),
        (FailureKind.MALFORMED_RESPONSE, False),
        (FailureKind.REJECTED, False),
        (FailureKind.UNEXPECTED, False),
    ])
    def test_transient_kinds(self, kind, transient):
        assert kind.transient is transient
