"""Unit tests for the default reflection strategy."""

from __future__ import annotations

import asyncio
import logging

import pytest

from izanami import ReflectionStrategy, default_reflection, unique_messages


@pytest.mark.unit
class TestUniqueMessages:
    def test_deduplicates_first_seen_order(self):
        errors = [
            RuntimeError("Network error"),
            RuntimeError("Rate limit"),
            ValueError("Network error"),
            RuntimeError("Invalid parameter"),
            RuntimeError("Rate limit"),
        ]
        assert unique_messages(errors) == [
            "Network error",
            "Rate limit",
            "Invalid parameter",
        ]

    def test_compares_by_message_only(self):
        assert unique_messages([KeyError("k"), RuntimeError("'k'")]) == ["'k'"]

    def test_empty(self):
        assert unique_messages([]) == []


@pytest.mark.unit
class TestDefaultReflection:
    def test_satisfies_protocol(self):
        assert isinstance(default_reflection, ReflectionStrategy)

    def test_logs_numbered_unique_messages(self, caplog):
        errors = [RuntimeError("a"), RuntimeError("b"), RuntimeError("a")]
        with caplog.at_level(logging.WARNING, logger="izanami.reflection"):
            asyncio.run(default_reflection(errors))
        messages = [r.getMessage() for r in caplog.records]
        assert "1. a" in messages
        assert "2. b" in messages
        assert "3. a" not in messages
        assert messages[0] == "Reflect on the following recurring issues:"

    def test_never_raises_on_empty_input(self):
        assert asyncio.run(default_reflection([])) is None
