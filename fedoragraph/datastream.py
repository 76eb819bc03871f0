# ================================================================
# FEDORAGRAPH
# Datastream: one versioned content unit of a digital object
# ================================================================

import logging
from datetime import datetime
from typing import Iterator, Optional

from fedoragraph import config, xmlcompare
from fedoragraph.errors import (
    NotFoundError, PreconditionError, ReadOnlyError, UnknownSizeError
)
from fedoragraph.graph import Graph
from fedoragraph.namespaces import (
    CHECKSUM, CHECKSUM_TYPE, CONTROL_GROUP, CREATED, DS_LOCATION, FORMAT,
    IDENTIFIER, LAST_MODIFIED, SIZE, STATE, TITLE, TYPE, VERSIONABLE
)
from fedoragraph.node import (
    Attribute, AttributeStore, ProfileLoader, TrackedAttribute,
    attribute_table, predicate_mapping
)
from fedoragraph.repository import read_content
from fedoragraph.sparql import serialize_changes

logger = logging.getLogger(__name__)


# ==========================
# CONTROL GROUPS
# ==========================

MANAGED = "M"
INLINE = "X"
EXTERNAL = "E"
REDIRECT = "R"

# location-backed datastreams carry no content of their own
LOCATION_GROUPS = (EXTERNAL, REDIRECT)


DS_ATTRIBUTES = attribute_table(
    Attribute("control_group", CONTROL_GROUP, MANAGED),
    Attribute("ds_location", DS_LOCATION),
    Attribute("alt_ids", IDENTIFIER),
    Attribute("label", TITLE),
    Attribute("versionable", VERSIONABLE, True),
    Attribute("state", STATE, "A"),
    Attribute("format_uri", FORMAT),
    Attribute("checksum_type", CHECKSUM_TYPE),
    Attribute("checksum", CHECKSUM),
    Attribute("mime_type", TYPE, "application/octet-stream"),
    Attribute("last_modified_date", LAST_MODIFIED),
    Attribute("log_message"),
    Attribute("ignore_content"),
)


class Datastream:
    """
    A datastream of a :class:`~fedoragraph.digital_object.DigitalObject`.

    Profile information is fetched from the repository the first time an
    attribute is read (or seeded from the owning object's graph). Content
    is fetched only when it is read, or, with
    ``eager_load_datastream_content``, when it has to be compared.

    Initialization parameters:
        :param digital_object: the object this datastream belongs to
        :param dsid: datastream id
        :param profile: optional profile graph (or N-Triples text) to use
            instead of fetching one
        :param as_of_date_time: makes this a read-only historical view
        :param defaults: extra default attribute values for new datastreams
        :param attributes: initial attribute values (``content`` included)
    """

    eager_load_datastream_content = config.eager_load_datastream_content()

    control_group = TrackedAttribute("control_group", single=True)
    ds_location = TrackedAttribute("ds_location", single=True)
    alt_ids = TrackedAttribute("alt_ids")
    label = TrackedAttribute("label", single=True)
    versionable = TrackedAttribute("versionable", single=True)
    state = TrackedAttribute("state", single=True)
    format_uri = TrackedAttribute("format_uri", single=True)
    checksum_type = TrackedAttribute("checksum_type", single=True)
    checksum = TrackedAttribute("checksum", single=True)
    mime_type = TrackedAttribute("mime_type", single=True)
    last_modified_date = TrackedAttribute("last_modified_date", single=True)
    log_message = TrackedAttribute("log_message", single=True)
    ignore_content = TrackedAttribute("ignore_content", single=True)

    def __init__(self, digital_object, dsid, profile=None, as_of_date_time=None,
                 defaults=None, **attributes):
        self.digital_object = digital_object
        self.dsid = dsid
        self.as_of_date_time = as_of_date_time

        self._profile = ProfileLoader(
            self._fetch_profile, lambda: self.uri, predicate_mapping(DS_ATTRIBUTES)
        )
        if profile is not None:
            self.seed_profile(profile)
        self._attributes = AttributeStore(self, DS_ATTRIBUTES, self._profile, defaults=defaults)

        self._content = None
        self._remote_content = None
        self._remote_fetched = False

        if "content" in attributes:
            self.content = attributes.pop("content")
        for name, value in attributes.items():
            self.write(name, value)

    def __repr__(self):
        return f"<Datastream {self.pid}/{self.dsid}>"

    # ================================================================
    # IDENTITY
    # ================================================================

    @property
    def pid(self):
        return self.digital_object.pid

    @property
    def uri(self) -> str:
        return f"{self.digital_object.uri}/{self.dsid}"

    @property
    def repository(self):
        return self.digital_object.repository

    @property
    def is_new(self) -> bool:
        """True when the datastream (or its object) does not exist remotely."""
        if self.digital_object is None or self.digital_object.is_new:
            return True
        return self._profile.missing_profile

    def as_of(self, as_of_date_time) -> "Datastream":
        return type(self)(self.digital_object, self.dsid, as_of_date_time=as_of_date_time)

    # ================================================================
    # PROFILE
    # ================================================================

    def _fetch_profile(self):
        return self.repository.fetch_datastream_profile(self.pid, self.dsid, self.as_of_date_time)

    @property
    def profile(self) -> Graph:
        return self._profile.get()

    def seed_profile(self, profile):
        if not isinstance(profile, Graph):
            profile = Graph(self.uri, profile, predicate_mapping(DS_ATTRIBUTES))
        self._profile.seed(profile)

    @property
    def size(self) -> Optional[int]:
        values = self.profile.with_content_subject().read(SIZE)
        return int(values[0]) if values else None

    @property
    def created(self) -> Optional[datetime]:
        values = self.profile.read(CREATED)
        return datetime.fromisoformat(values[0]) if values else None

    # ================================================================
    # ATTRIBUTES (delegated to the attribute store)
    # ================================================================

    def read(self, name):
        return self._attributes.read(name)

    def write(self, name, value):
        self._attributes.write(name, value)

    def add(self, name, value):
        self._attributes.add(name, value)

    def remove(self, name, value):
        self._attributes.remove(name, value)

    @property
    def attributes(self):
        return self._attributes.overrides

    @property
    def changed_attributes(self):
        return self._attributes.changed_attributes

    @property
    def changed_multivalued_attributes(self):
        return self._attributes.changed_multivalued_attributes

    def check_if_read_only(self):
        if self.as_of_date_time is not None:
            raise ReadOnlyError(f"Can't change values of {self!r} as of {self.as_of_date_time}")

    @property
    def is_versionable(self) -> bool:
        return str(self.versionable).lower() == "true"

    # ================================================================
    # CONTROL GROUP
    # ================================================================

    @property
    def managed(self) -> bool:
        return self.control_group == MANAGED

    @property
    def inline(self) -> bool:
        return self.control_group == INLINE

    @property
    def external(self) -> bool:
        return self.control_group == EXTERNAL

    @property
    def redirect(self) -> bool:
        return self.control_group == REDIRECT

    # ================================================================
    # CONTENT
    # ================================================================

    @property
    def content(self):
        """Local content if set, else the remote content (fetched once)."""
        if self._content is not None:
            if hasattr(self._content, "read"):
                return read_content(self._content)
            return self._content
        if self.is_new:
            return None
        return self.datastream_content

    @content.setter
    def content(self, value):
        self.check_if_read_only()
        self._content = value

    @property
    def datastream_content(self) -> Optional[bytes]:
        """Remote content, fetched on first access and cached until reset."""
        if self.is_new:
            return None
        if not self._remote_fetched:
            try:
                data = self.repository.fetch_datastream_content(
                    self.pid, self.dsid, self.as_of_date_time
                )
                self._remote_content = read_content(data)
            except NotFoundError:
                logger.debug("No content for %r", self)
                self._remote_content = None
            self._remote_fetched = True
        return self._remote_content

    @property
    def content_changed(self) -> bool:
        if self.control_group in LOCATION_GROUPS:
            return False
        if self._content is None:
            return False
        if self.is_new:
            return True

        local = read_content(self._content)
        if self.eager_load_datastream_content:
            remote = self.datastream_content
        else:
            remote = self._remote_content

        if self.inline:
            return not xmlcompare.equivalent(local, remote)
        return local != remote

    @property
    def has_content(self) -> bool:
        if self._content is not None:
            return True
        # persisted datastreams are required to have content
        if not self.is_new:
            return True
        if self.control_group in LOCATION_GROUPS:
            return bool(self.ds_location)
        return False

    def stream(self, start=0, length=None) -> Iterator[bytes]:
        """
        Lazily yield the bytes in ``[start, start + length)`` of the content.

        The repository has no range requests, so the whole content is
        downloaded and trimmed here. ``length`` defaults to the rest of the
        content.
        """
        size = self.size
        if size is None:
            raise UnknownSizeError(f"Can't determine the size of {self!r}")
        if length is None:
            length = size - start
        return self._stream_window(start, start + length)

    def _stream_window(self, start, end):
        position = 0
        data = self.repository.fetch_datastream_content(self.pid, self.dsid, self.as_of_date_time)
        for chunk in _chunks(data, config.stream_chunk_size()):
            chunk_start = position
            position += len(chunk)
            if position <= start:
                continue
            if chunk_start >= end:
                break
            yield chunk[max(start - chunk_start, 0):min(end - chunk_start, len(chunk))]

    # ================================================================
    # PERSISTENCE
    # ================================================================

    @property
    def changed(self) -> bool:
        return self._attributes.changed or self.content_changed

    @property
    def needs_to_be_saved(self) -> bool:
        return self.changed

    def serialize_changes(self) -> Optional[str]:
        return serialize_changes(
            self.uri, DS_ATTRIBUTES,
            self.changed_attributes, self.changed_multivalued_attributes
        )

    def save(self) -> "Datastream":
        """
        Push content (or the location of E/R datastreams), then the SPARQL
        update of changed attributes, then drop local state.

        Raises PreconditionError when there is no content to save. Nothing
        is reset when a repository call fails.
        """
        self.check_if_read_only()
        if not self.has_content:
            raise PreconditionError(f"Unable to save {self!r} without content")

        query = self.serialize_changes()

        if self.content_changed:
            logger.debug("Pushing content of %r", self)
            self.repository.push_datastream_content(self.pid, self.dsid, content=self._content)
        elif self.control_group in LOCATION_GROUPS:
            self.repository.push_datastream_content(self.pid, self.dsid, location=self.ds_location)

        if query:
            self.repository.apply_datastream_update(self.pid, self.dsid, query)

        self.reset()
        return self

    def delete(self) -> "Datastream":
        self.check_if_read_only()
        if not self.is_new:
            self.repository.purge_datastream(self.pid, self.dsid)
        self.digital_object.datastreams.pop(self.dsid, None)
        self.reset()
        return self

    def reset(self):
        self._attributes.reset()
        self._content = None
        self._remote_content = None
        self._remote_fetched = False
        logger.debug("Reset %r", self)


def _chunks(data, chunk_size):
    if isinstance(data, str):
        data = data.encode("utf-8")
    if isinstance(data, (bytes, bytearray)):
        for i in range(0, len(data), chunk_size):
            yield bytes(data[i:i + chunk_size])
    elif hasattr(data, "read"):
        while True:
            chunk = data.read(chunk_size)
            if not chunk:
                return
            yield chunk
    else:
        yield from data
