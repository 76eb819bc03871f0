"""Test doubles shared by the fedoragraph test-suite."""

from __future__ import annotations

from typing import Any, List, Tuple

from fedoragraph.repository import MemoryRepository

BASE_URL = "http://repository"


class RecordingRepository(MemoryRepository):
    """MemoryRepository that remembers every call made against it."""

    def __init__(self, base_url: str = BASE_URL) -> None:
        super().__init__(base_url)
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def queries(self) -> List[str]:
        return [
            args[-1]
            for name, args in self.calls
            if name in ("apply_object_update", "apply_datastream_update")
        ]

    def fetch_object_profile(self, pid, as_of_date_time=None):
        self.calls.append(("fetch_object_profile", (pid, as_of_date_time)))
        return super().fetch_object_profile(pid, as_of_date_time)

    def fetch_datastream_profile(self, pid, dsid, as_of_date_time=None):
        self.calls.append(("fetch_datastream_profile", (pid, dsid, as_of_date_time)))
        return super().fetch_datastream_profile(pid, dsid, as_of_date_time)

    def fetch_datastream_content(self, pid, dsid, as_of_date_time=None):
        self.calls.append(("fetch_datastream_content", (pid, dsid, as_of_date_time)))
        return super().fetch_datastream_content(pid, dsid, as_of_date_time)

    def ingest(self, pid=None, attributes=None):
        self.calls.append(("ingest", (pid, attributes)))
        return super().ingest(pid, attributes)

    def apply_object_update(self, pid, query):
        self.calls.append(("apply_object_update", (pid, query)))
        return super().apply_object_update(pid, query)

    def apply_datastream_update(self, pid, dsid, query):
        self.calls.append(("apply_datastream_update", (pid, dsid, query)))
        return super().apply_datastream_update(pid, dsid, query)

    def push_datastream_content(self, pid, dsid, content=None, location=None):
        self.calls.append(("push_datastream_content", (pid, dsid, content, location)))
        return super().push_datastream_content(pid, dsid, content=content, location=location)

    def purge_object(self, pid):
        self.calls.append(("purge_object", (pid,)))
        return super().purge_object(pid)

    def purge_datastream(self, pid, dsid):
        self.calls.append(("purge_datastream", (pid, dsid)))
        return super().purge_datastream(pid, dsid)


def ntriples(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def fail_once(monkeypatch, repository, name, error=None):
    """Make ``repository.<name>`` raise on its next call only."""
    original = getattr(repository, name)

    def failing(*args, **kwargs):
        monkeypatch.setattr(repository, name, original)
        raise error or ConnectionError(f"{name} failed")

    monkeypatch.setattr(repository, name, failing)
