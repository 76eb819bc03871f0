# ================================================================
# FEDORAGRAPH
# Repository collaborator: interface + in-memory rdflib store
# ================================================================

import abc
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from uuid import uuid4

from lxml import etree
from rdflib import Graph as RdfGraph
from rdflib import Literal, URIRef
from rdflib.namespace import XSD

from fedoragraph.config import DEFAULT_BASE_URL
from fedoragraph.errors import FedoraError, NotFoundError
from fedoragraph.namespaces import (
    CREATED, HAS_CHILD, LAST_MODIFIED, SIZE, STATE, content_subject
)

logger = logging.getLogger(__name__)

# Fedora 3 REST history documents
ACCESS_NS = "http://www.fedora.info/definitions/1/0/access/"
MANAGEMENT_NS = "http://www.fedora.info/definitions/1/0/management/"


def iso_timestamp():
    return datetime.now(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def object_uri(base_url, pid) -> URIRef:
    """Full URI of an object; pids that already look like paths are kept as is."""
    pid = str(pid)
    if "/" in pid.strip("/"):
        return URIRef(pid)
    return URIRef(f"{(base_url or DEFAULT_BASE_URL).rstrip('/')}/{pid}")


def datastream_uri(base_url, pid, dsid) -> URIRef:
    return URIRef(f"{object_uri(base_url, pid)}/{dsid}")


def read_content(content) -> bytes:
    """Bytes of str, bytes or file-like content (file-like objects are rewound)."""
    if content is None:
        return b""
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if hasattr(content, "read"):
        if hasattr(content, "seek"):
            content.seek(0)
        data = content.read()
        if hasattr(content, "seek"):
            content.seek(0)
        return data.encode("utf-8") if isinstance(data, str) else data
    return b"".join(content)


# ================================================================
# INTERFACE
# ================================================================

class Repository(abc.ABC):
    """
    Transport-side contract consumed by the object model.

    Implementations talk to a Fedora endpoint (or anything shaped like
    one). Fetches raise :class:`NotFoundError` for missing resources; every
    other error is left to propagate to the caller unchanged.
    """

    base_url: str = DEFAULT_BASE_URL

    @abc.abstractmethod
    def fetch_object_profile(self, pid, as_of_date_time=None) -> str:
        """N-Triples profile of an object."""

    @abc.abstractmethod
    def fetch_datastream_profile(self, pid, dsid, as_of_date_time=None) -> str:
        """N-Triples profile of a datastream."""

    @abc.abstractmethod
    def fetch_datastream_content(self, pid, dsid, as_of_date_time=None):
        """Datastream content as bytes, a file-like object or an iterable of chunks."""

    @abc.abstractmethod
    def ingest(self, pid=None, attributes=None) -> str:
        """Create an object and return its (possibly newly minted) pid."""

    @abc.abstractmethod
    def apply_object_update(self, pid, query):
        """Run a SPARQL update against an object."""

    @abc.abstractmethod
    def apply_datastream_update(self, pid, dsid, query):
        """Run a SPARQL update against a datastream."""

    @abc.abstractmethod
    def push_datastream_content(self, pid, dsid, content=None, location=None):
        """Create or replace datastream content, or point it at ``location``."""

    @abc.abstractmethod
    def fetch_object_versions(self, pid) -> str:
        """Version history of an object as XML."""

    @abc.abstractmethod
    def fetch_datastream_versions(self, pid, dsid) -> str:
        """Version history of a datastream as XML."""

    @abc.abstractmethod
    def purge_object(self, pid):
        """Remove an object and all of its datastreams."""

    @abc.abstractmethod
    def purge_datastream(self, pid, dsid):
        """Remove one datastream."""


# ================================================================
# IN-MEMORY IMPLEMENTATION
# ================================================================

class MemoryRepository(Repository):
    """
    Repository kept in process: one rdflib graph per object.

    Datastream triples live in their object's graph, so an object profile
    also describes its datastreams. Updates run through rdflib's SPARQL
    Update engine. No history is kept; ``as_of_date_time`` is accepted and
    answered from the current state.
    """

    def __init__(self, base_url=DEFAULT_BASE_URL):
        self.base_url = base_url
        self._graphs: Dict[str, RdfGraph] = {}
        self._contents: Dict[Tuple[str, str], bytes] = {}
        self._locations: Dict[Tuple[str, str], str] = {}

    # ================================================================
    # UTILITY
    # ================================================================

    def _object_uri(self, pid):
        return object_uri(self.base_url, pid)

    def _datastream_uri(self, pid, dsid):
        return datastream_uri(self.base_url, pid, dsid)

    def _context(self, pid) -> RdfGraph:
        try:
            return self._graphs[pid]
        except KeyError:
            raise NotFoundError(f"No object {pid}") from None

    def _datastream_context(self, pid, dsid) -> RdfGraph:
        g = self._context(pid)
        if (self._object_uri(pid), HAS_CHILD, self._datastream_uri(pid, dsid)) not in g:
            raise NotFoundError(f"No datastream {pid}/{dsid}")
        return g

    def _touch(self, g, subject):
        g.set((subject, LAST_MODIFIED, Literal(iso_timestamp(), datatype=XSD.dateTime)))

    def __contains__(self, pid):
        return pid in self._graphs

    def load(self, pid, ntriples, contents=None):
        """
        Store an object from an N-Triples document, replacing any existing
        one. ``contents`` maps dsids to datastream content.
        """
        g = RdfGraph()
        g.parse(data=ntriples, format="nt")
        self._graphs[pid] = g
        for dsid, content in (contents or {}).items():
            self._contents[(pid, dsid)] = read_content(content)
        logger.debug("Loaded %s (%d triples)", pid, len(g))

    # ================================================================
    # READS
    # ================================================================

    def fetch_object_profile(self, pid, as_of_date_time=None):
        logger.debug("Fetching profile of %s", pid)
        return self._context(pid).serialize(format="nt")

    def fetch_datastream_profile(self, pid, dsid, as_of_date_time=None):
        logger.debug("Fetching profile of %s/%s", pid, dsid)
        g = self._datastream_context(pid, dsid)
        ds_uri = self._datastream_uri(pid, dsid)

        profile = RdfGraph()
        for subject in (ds_uri, content_subject(ds_uri)):
            for t in g.triples((subject, None, None)):
                profile.add(t)
        return profile.serialize(format="nt")

    def fetch_datastream_content(self, pid, dsid, as_of_date_time=None):
        logger.debug("Fetching content of %s/%s", pid, dsid)
        self._datastream_context(pid, dsid)
        try:
            return self._contents[(pid, dsid)]
        except KeyError:
            raise NotFoundError(f"No content for {pid}/{dsid}") from None

    def datastream_location(self, pid, dsid) -> Optional[str]:
        return self._locations.get((pid, dsid))

    def fetch_object_versions(self, pid):
        """History document listing the single version kept in memory."""
        g = self._context(pid)
        root = etree.Element(f"{{{ACCESS_NS}}}fedoraObjectHistory", nsmap={None: ACCESS_NS}, pid=pid)
        changed = g.value(self._object_uri(pid), LAST_MODIFIED)
        if changed is not None:
            etree.SubElement(root, f"{{{ACCESS_NS}}}objectChangeDate").text = str(changed)
        return etree.tostring(root, encoding="unicode")

    def fetch_datastream_versions(self, pid, dsid):
        g = self._datastream_context(pid, dsid)
        ds_uri = self._datastream_uri(pid, dsid)
        root = etree.Element(
            f"{{{MANAGEMENT_NS}}}datastreamHistory", nsmap={None: MANAGEMENT_NS},
            pid=pid, dsID=dsid
        )
        profile = etree.SubElement(root, f"{{{MANAGEMENT_NS}}}datastreamProfile", pid=pid, dsID=dsid)
        created = g.value(ds_uri, CREATED)
        if created is not None:
            etree.SubElement(profile, f"{{{MANAGEMENT_NS}}}dsCreateDate").text = str(created)
        size = g.value(content_subject(ds_uri), SIZE)
        if size is not None:
            etree.SubElement(profile, f"{{{MANAGEMENT_NS}}}dsSize").text = str(size)
        return etree.tostring(root, encoding="unicode")

    # ================================================================
    # WRITES
    # ================================================================

    def ingest(self, pid=None, attributes=None):
        pid = pid or f"fedoragraph:{uuid4().hex}"
        if pid in self._graphs:
            raise FedoraError(f"Object {pid} already exists")

        uri = self._object_uri(pid)
        g = RdfGraph()
        g.add((uri, CREATED, Literal(iso_timestamp(), datatype=XSD.dateTime)))
        self._touch(g, uri)

        attributes = dict(attributes or {})
        attributes.setdefault(str(STATE), "A")
        for predicate, values in attributes.items():
            if not isinstance(values, (list, tuple, set)):
                values = [values]
            for v in values:
                g.add((uri, URIRef(str(predicate)), Literal(v)))

        self._graphs[pid] = g
        logger.info("Ingested %s", pid)
        return pid

    def apply_object_update(self, pid, query):
        g = self._context(pid)
        logger.debug("Updating %s:\n%s", pid, query)
        g.update(query)
        self._touch(g, self._object_uri(pid))

    def apply_datastream_update(self, pid, dsid, query):
        g = self._datastream_context(pid, dsid)
        logger.debug("Updating %s/%s:\n%s", pid, dsid, query)
        g.update(query)
        self._touch(g, self._datastream_uri(pid, dsid))

    def push_datastream_content(self, pid, dsid, content=None, location=None):
        g = self._context(pid)
        obj_uri = self._object_uri(pid)
        ds_uri = self._datastream_uri(pid, dsid)

        if (obj_uri, HAS_CHILD, ds_uri) not in g:
            g.add((obj_uri, HAS_CHILD, ds_uri))
            g.add((ds_uri, CREATED, Literal(iso_timestamp(), datatype=XSD.dateTime)))
            logger.info("Created datastream %s/%s", pid, dsid)

        if location is not None:
            self._locations[(pid, dsid)] = str(location)
            self._contents.pop((pid, dsid), None)
            g.remove((content_subject(ds_uri), SIZE, None))
        else:
            data = read_content(content)
            self._contents[(pid, dsid)] = data
            self._locations.pop((pid, dsid), None)
            g.set((content_subject(ds_uri), SIZE, Literal(len(data), datatype=XSD.long)))

        self._touch(g, ds_uri)

    def purge_object(self, pid):
        self._context(pid)
        del self._graphs[pid]
        for key in [k for k in self._contents if k[0] == pid]:
            del self._contents[key]
        for key in [k for k in self._locations if k[0] == pid]:
            del self._locations[key]
        logger.info("Purged %s", pid)

    def purge_datastream(self, pid, dsid):
        g = self._datastream_context(pid, dsid)
        ds_uri = self._datastream_uri(pid, dsid)
        g.remove((self._object_uri(pid), HAS_CHILD, ds_uri))
        g.remove((ds_uri, None, None))
        g.remove((content_subject(ds_uri), None, None))
        self._contents.pop((pid, dsid), None)
        self._locations.pop((pid, dsid), None)
        logger.info("Purged %s/%s", pid, dsid)
