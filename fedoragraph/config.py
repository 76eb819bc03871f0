# ================================================================
# FEDORAGRAPH
# Constants and environment-driven settings
# ================================================================

import os
from typing import Optional

# ==========================
# REPOSITORY ADDRESSING
# ==========================

# used when a repository has no base url
DEFAULT_BASE_URL = "info:fedora"

# subject carrying content metadata such as the size
CONTENT_SUBJECT_SUFFIX = "/fcr:content"


# ==========================
# DATASTREAM CONTENT
# ==========================

DEFAULT_CHUNK_SIZE = 8192


def _truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def eager_load_datastream_content() -> bool:
    """Return True when remote content should be fetched for change checks.

    Controlled by ``FEDORAGRAPH_EAGER_LOAD``; any of "1/true/yes/on" enables it.
    """

    return _truthy(os.environ.get("FEDORAGRAPH_EAGER_LOAD"))


def stream_chunk_size() -> int:
    """Chunk size read from ``FEDORAGRAPH_CHUNK_SIZE``, falling back to the default."""

    raw = os.environ.get("FEDORAGRAPH_CHUNK_SIZE")
    try:
        size = int(raw) if raw else DEFAULT_CHUNK_SIZE
    except ValueError:
        return DEFAULT_CHUNK_SIZE
    return size if size > 0 else DEFAULT_CHUNK_SIZE
