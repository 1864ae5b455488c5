"""Tests for JSON extraction helpers."""

from __future__ import annotations

import pytest

from opencode_mem.utils.json_helpers import extract_json_object, fenced_blocks, loads_value

pytestmark = pytest.mark.unit


class TestFencedBlocks:
    def test_multiple_blocks(self) -> None:
        text = "a\n```json\n{\"x\": 1}\n```\nb\n```\nplain\n```"
        assert fenced_blocks(text) == ['{"x": 1}\n', "plain\n"]

    def test_no_blocks(self) -> None:
        assert fenced_blocks("no fences here") == []
        assert fenced_blocks("") == []


class TestLoadsValue:
    def test_valid(self) -> None:
        assert loads_value(' {"a": 1} ') == (True, {"a": 1})
        assert loads_value("[1, 2]") == (True, [1, 2])

    def test_invalid(self) -> None:
        assert loads_value("nope") == (False, None)


class TestExtractJsonObject:
    def test_preamble_and_trailing_text(self) -> None:
        assert extract_json_object('Sure! {"a": {"b": "}"}} hope it helps') == {"a": {"b": "}"}}

    def test_skips_invalid_braces(self) -> None:
        assert extract_json_object('{oops} then {"ok": true}') == {"ok": True}

    def test_none_when_missing(self) -> None:
        assert extract_json_object("no json") is None
        assert extract_json_object("") is None
