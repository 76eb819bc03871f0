"""Unit tests for environment-driven settings."""

from __future__ import annotations

import pytest

from fedoragraph import config


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_eager_load_truthy_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("FEDORAGRAPH_EAGER_LOAD", raw)

    assert config.eager_load_datastream_content()


def test_eager_load_is_off_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FEDORAGRAPH_EAGER_LOAD", raising=False)

    assert not config.eager_load_datastream_content()


def test_chunk_size_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEDORAGRAPH_CHUNK_SIZE", "1024")

    assert config.stream_chunk_size() == 1024


@pytest.mark.parametrize("raw", ["", "abc", "0", "-5"])
def test_chunk_size_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("FEDORAGRAPH_CHUNK_SIZE", raw)

    assert config.stream_chunk_size() == config.DEFAULT_CHUNK_SIZE
