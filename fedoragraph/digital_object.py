# ================================================================
# FEDORAGRAPH
# DigitalObject: a repository object and its datastreams
# ================================================================

import logging
from typing import Optional

from fedoragraph.config import DEFAULT_BASE_URL
from fedoragraph.datastream import Datastream
from fedoragraph.errors import NotFoundError, ReadOnlyError, ValidationError
from fedoragraph.graph import Graph
from fedoragraph.namespaces import (
    CREATOR, HAS_CHILD, LAST_MODIFIED, MIXIN_TYPES, RELS_EXT, STATE, TITLE,
    last_segment
)
from fedoragraph.node import (
    Attribute, AttributeStore, ProfileLoader, TrackedAttribute, as_tuple,
    attribute_table, predicate_mapping
)
from fedoragraph.repository import object_uri
from fedoragraph.sparql import serialize_changes

logger = logging.getLogger(__name__)


# ==========================
# OBJECT STATES
# ==========================

STATES = {
    "I": "Inactive",
    "A": "Active",
    "D": "Deleted",
}


def validate_state(value):
    values = as_tuple(value)
    if len(values) != 1 or values[0] not in STATES:
        raise ValidationError(
            f"Allowed values for state are 'I', 'A' and 'D'. You provided {value!r}"
        )


# ==========================
# RELATIONSHIPS (RELS-EXT)
# ==========================

RELATIONSHIPS = {
    "parts": RELS_EXT.hasPart,
    "part_of": RELS_EXT.isPartOf,
    "members": RELS_EXT.hasMember,
    "member_of": RELS_EXT.isMemberOf,
    "collection_members": RELS_EXT.hasCollectionMember,
    "member_of_collection": RELS_EXT.isMemberOfCollection,
    "constituents": RELS_EXT.hasConstituent,
    "constituent_of": RELS_EXT.isConstituentOf,
    "subsets": RELS_EXT.hasSubset,
    "subset_of": RELS_EXT.isSubsetOf,
    "descriptions": RELS_EXT.hasDescription,
    "description_of": RELS_EXT.isDescriptionOf,
    "annotations": RELS_EXT.hasAnnotation,
    "annotation_of": RELS_EXT.isAnnotationOf,
    "dependents": RELS_EXT.hasDependent,
    "dependent_of": RELS_EXT.isDependentOf,
    "derivations": RELS_EXT.hasDerivation,
    "derivation_of": RELS_EXT.isDerivationOf,
    "equivalents": RELS_EXT.hasEquivalent,
    "metadata": RELS_EXT.hasMetadata,
    "metadata_for": RELS_EXT.isMetadataFor,
}


OBJ_ATTRIBUTES = attribute_table(
    Attribute("state", STATE),
    Attribute("owner_id", CREATOR),
    Attribute("label", TITLE),
    Attribute("log_message"),
    Attribute("last_modified_date", LAST_MODIFIED),
    Attribute("models", MIXIN_TYPES),
    *(Attribute(name, predicate) for name, predicate in RELATIONSHIPS.items())
)


class DatastreamMap(dict):
    """Datastreams by dsid; unknown ids get a new, unsaved datastream."""

    def __init__(self, factory):
        super().__init__()
        self._factory = factory

    def __missing__(self, dsid):
        datastream = self[dsid] = self._factory(dsid)
        return datastream


class DigitalObject:
    """
    A Fedora object.

    The profile is fetched lazily the first time anything needs it; an
    object whose profile cannot be found is new and will be ingested on
    :meth:`save`. Attribute writes are tracked and sent back as one SPARQL
    update. Datastreams are reached through :attr:`datastreams` (or
    ``obj[dsid]``).
    """

    state = TrackedAttribute("state", single=True)
    owner_id = TrackedAttribute("owner_id")
    label = TrackedAttribute("label", single=True)
    log_message = TrackedAttribute("log_message", single=True)
    last_modified_date = TrackedAttribute("last_modified_date", single=True)
    models = TrackedAttribute("models")

    parts = TrackedAttribute("parts")
    part_of = TrackedAttribute("part_of")
    members = TrackedAttribute("members")
    member_of = TrackedAttribute("member_of")
    collection_members = TrackedAttribute("collection_members")
    member_of_collection = TrackedAttribute("member_of_collection")

    def __init__(self, pid=None, repository=None, as_of_date_time=None,
                 defaults=None, **attributes):
        self.pid = pid
        self.repository = repository
        self.as_of_date_time = as_of_date_time

        self._profile = ProfileLoader(
            self._fetch_profile, lambda: self.uri, predicate_mapping(OBJ_ATTRIBUTES)
        )
        self._attributes = AttributeStore(
            self, OBJ_ATTRIBUTES, self._profile,
            defaults=defaults, validators={"state": validate_state}
        )
        self._datastreams: Optional[DatastreamMap] = None

        for name, value in attributes.items():
            self.write(name, value)

    def __repr__(self):
        return f"<DigitalObject {self.pid}>"

    # ================================================================
    # CONSTRUCTORS
    # ================================================================

    @classmethod
    def find(cls, pid, repository, **options) -> "DigitalObject":
        """Load an existing object; raises NotFoundError if it does not exist."""
        obj = cls(pid, repository, **options)
        if obj.is_new:
            raise NotFoundError(f"{cls.__name__}.find called for an object that doesn't exist: {pid}")
        return obj

    @classmethod
    def find_or_initialize(cls, pid, repository, **options) -> "DigitalObject":
        return cls(pid, repository, **options)

    @classmethod
    def create(cls, pid, repository, **attributes) -> "DigitalObject":
        """Ingest a new object with ``attributes`` and return it."""
        if "state" in attributes:
            validate_state(attributes["state"])
        mapped = {}
        for name, value in attributes.items():
            try:
                predicate = OBJ_ATTRIBUTES[name].predicate
            except KeyError:
                raise KeyError(f"Unknown attribute {name!r} for {cls.__name__}") from None
            if predicate is not None:
                mapped[str(predicate)] = value

        assigned_pid = repository.ingest(pid, mapped)
        return cls(assigned_pid, repository)

    def as_of(self, as_of_date_time) -> "DigitalObject":
        return type(self)(self.pid, self.repository, as_of_date_time=as_of_date_time)

    # ================================================================
    # IDENTITY
    # ================================================================

    @property
    def pid(self):
        return self._pid

    @pid.setter
    def pid(self, pid):
        self._pid = pid.replace("info:fedora/", "", 1) if pid else pid

    @property
    def uri(self) -> str:
        base_url = getattr(self.repository, "base_url", None) or DEFAULT_BASE_URL
        return str(object_uri(base_url, self.pid))

    fqpid = uri

    @property
    def is_new(self) -> bool:
        """True when the repository has no profile for this object."""
        return self._profile.missing_profile

    # ================================================================
    # PROFILE
    # ================================================================

    def _fetch_profile(self):
        if not self.pid:
            raise NotFoundError("Objects without a pid are not persisted")
        return self.repository.fetch_object_profile(self.pid, self.as_of_date_time)

    @property
    def profile(self) -> Graph:
        return self._profile.get()

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

    @property
    def changed(self) -> bool:
        return self._attributes.changed

    def check_if_read_only(self):
        if self.as_of_date_time is not None:
            raise ReadOnlyError(f"Can't change values of {self!r} as of {self.as_of_date_time}")

    # ================================================================
    # DATASTREAMS
    # ================================================================

    @property
    def datastreams(self) -> DatastreamMap:
        """
        Datastreams of this object, seeded from the ``hasChild`` links of
        the profile. Each seeded datastream reads its own subject from the
        object graph, so no extra profile fetch is needed.
        """
        if self._datastreams is None:
            datastreams = DatastreamMap(self.datastream_object_for)
            graph = self.profile
            for child in graph.read(HAS_CHILD):
                dsid = last_segment(child)
                datastreams[dsid] = self.datastream_object_for(
                    dsid, profile=graph.with_subject(child)
                )
            self._datastreams = datastreams
        return self._datastreams

    def datastream_object_for(self, dsid, **options) -> Datastream:
        if self.as_of_date_time is not None:
            options.setdefault("as_of_date_time", self.as_of_date_time)
        return Datastream(self, dsid, **options)

    def __getitem__(self, dsid) -> Datastream:
        return self.datastreams[dsid]

    fetch = __getitem__

    # ================================================================
    # PERSISTENCE
    # ================================================================

    def serialize_changes(self) -> Optional[str]:
        return serialize_changes(
            self.uri, OBJ_ATTRIBUTES,
            self.changed_attributes, self.changed_multivalued_attributes
        )

    def save(self) -> "DigitalObject":
        """
        Persist attribute changes, ingesting the object first if it is new,
        then save every loaded datastream that needs it.

        Datastreams that were never loaded are left alone.
        """
        self.check_if_read_only()

        if self.is_new:
            self.pid = self.repository.ingest(self.pid, {})
            # the next read must see the ingested object
            self._profile.invalidate()

        query = self.serialize_changes()
        if query:
            self.repository.apply_object_update(self.pid, query)
        self._attributes.reset()

        for dsid, datastream in list(self.datastreams.items()):
            if datastream.needs_to_be_saved:
                datastream.save()
        return self

    def delete(self):
        """Purge the object and drop every piece of local state."""
        self.check_if_read_only()
        self.repository.purge_object(self.pid)
        self._datastreams = None
        self._attributes.reset()
        logger.debug("Deleted %r", self)
