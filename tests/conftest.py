"""Shared fixtures for the fedoragraph test-suite."""

from __future__ import annotations

import pytest

from fedoragraph.datastream import Datastream
from tests.support import RecordingRepository, ntriples


@pytest.fixture
def repository() -> RecordingRepository:
    return RecordingRepository()


@pytest.fixture
def labelled(repository: RecordingRepository) -> RecordingRepository:
    """Repository holding object ``pid`` titled "label"."""
    repository.load(
        "pid",
        ntriples('<http://repository/pid> <http://purl.org/dc/terms/title> "label" .'),
    )
    return repository


@pytest.fixture(autouse=True)
def _lazy_content(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Datastream, "eager_load_datastream_content", False)
