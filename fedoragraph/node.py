# ================================================================
# FEDORAGRAPH
# Attribute tables, profile loading and dirty tracking
# ================================================================

import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from fedoragraph.errors import NotFoundError
from fedoragraph.graph import Graph

logger = logging.getLogger(__name__)


# ==========================
# ATTRIBUTE TABLE
# ==========================

@dataclass(frozen=True)
class Attribute:
    """One trackable attribute: its profile predicate and optional default.

    A ``predicate`` of None marks a local-only attribute (e.g. a log
    message) that is never read from, nor written to, the profile.
    """
    name: str
    predicate: Optional[str] = None
    default: Any = None


def attribute_table(*attributes: Attribute) -> Dict[str, Attribute]:
    return {a.name: a for a in attributes}


def predicate_mapping(attributes: Mapping[str, Attribute]) -> Dict[str, Optional[str]]:
    return {name: a.predicate for name, a in attributes.items()}


# ==========================
# VALUE HELPERS
# ==========================

def is_sequence(value) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def as_tuple(value) -> tuple:
    if value is None:
        return ()
    if is_sequence(value):
        return tuple(value)
    return (value,)


def dereference(value):
    # entities are stored as their URI
    uri = getattr(value, "uri", None)
    return uri if uri is not None else value


def normalize(value):
    if is_sequence(value):
        return tuple(dereference(v) for v in value)
    return dereference(value)


def equivalent(a, b) -> bool:
    """
    Compare two attribute values the way a profile sees them: a scalar is
    the same as a one-element sequence holding it, None is the same as an
    empty sequence, and element order does not matter (profiles have none).
    """
    if a == b:
        return True
    a, b = as_tuple(a), as_tuple(b)
    return len(a) == len(b) and Counter(a) == Counter(b)


# ==========================
# NET DIFF
# ==========================

@dataclass
class PropertyDiff:
    """
    Net change of one multi-valued attribute since the profile was read.

    Adding a value that is pending removal cancels the removal (and the
    other way round), so the diff is always the minimal delta between the
    server state and the local state.
    """
    added: List[Any] = field(default_factory=list)
    removed: List[Any] = field(default_factory=list)

    def merge(self, added=(), removed=()):
        for value in removed:
            if value in self.added:
                self.added.remove(value)
            elif value not in self.removed:
                self.removed.append(value)
        for value in added:
            if value in self.removed:
                self.removed.remove(value)
            elif value not in self.added:
                self.added.append(value)
        return self

    def __bool__(self):
        return bool(self.added or self.removed)


# ==========================
# PROFILE LOADING
# ==========================

class ProfileState(enum.Enum):
    UNFETCHED = "unfetched"
    FETCHED = "fetched"
    STALE = "stale"


class ProfileLoader:
    """
    Fetches a profile on first use and keeps it until invalidated.

    ``fetch`` returns N-Triples text or raises NotFoundError; a missing
    profile is cached as an empty graph and flags the entity as new.
    """

    def __init__(self, fetch: Callable[[], Any], subject: Callable[[], Any], mapping):
        self._fetch = fetch
        self._subject = subject
        self.mapping = mapping
        self.state = ProfileState.UNFETCHED
        self.graph: Optional[Graph] = None
        self.missing = False

    def get(self) -> Graph:
        if self.state is not ProfileState.FETCHED:
            self._load()
        return self.graph

    def _load(self):
        subject = self._subject()
        try:
            data = self._fetch()
            missing = False
        except NotFoundError:
            logger.debug("No profile for %s", subject)
            data, missing = None, True

        graph = data if isinstance(data, Graph) else Graph(subject, data, self.mapping)
        self.graph = graph
        self.missing = missing
        self.state = ProfileState.FETCHED

    def seed(self, graph: Graph):
        self.graph = graph
        self.missing = False
        self.state = ProfileState.FETCHED

    def invalidate(self):
        if self.state is ProfileState.FETCHED:
            self.state = ProfileState.STALE
        self.graph = None
        self.missing = False

    @property
    def missing_profile(self) -> bool:
        self.get()
        return self.missing


# ==========================
# ATTRIBUTE STORE
# ==========================

class AttributeStore:
    """
    Generic dirty-tracking engine embedded by every entity.

    Reads go through the local overrides first and then through the
    entity's profile graph. Single-valued writes are recorded as
    ``(old, new)`` pairs in ``changed_attributes``; edits made through
    :meth:`add` and :meth:`remove` accumulate in
    ``changed_multivalued_attributes`` as net diffs. Both maps always
    describe the delta from the server state, never an edit log.
    """

    def __init__(
        self,
        owner,
        attributes: Mapping[str, Attribute],
        profile: ProfileLoader,
        defaults: Optional[Mapping[str, Any]] = None,
        validators: Optional[Mapping[str, Callable[[Any], None]]] = None
    ):
        self.owner = owner
        self.attributes = attributes
        self.profile = profile
        self.defaults = {name: a.default for name, a in attributes.items() if a.default is not None}
        self.defaults.update(defaults or {})
        self.validators = dict(validators or {})

        self.overrides: Dict[str, Any] = {}
        self.changed_attributes: Dict[str, Tuple[Any, Any]] = {}
        self.changed_multivalued_attributes: Dict[str, PropertyDiff] = {}

    def attribute(self, name) -> Attribute:
        try:
            return self.attributes[name]
        except KeyError:
            raise KeyError(f"Unknown attribute {name!r} for {type(self.owner).__name__}") from None

    # ================================================================
    # READ
    # ================================================================

    def baseline(self, name):
        """Value of ``name`` as the server holds it, ignoring local edits."""
        attribute = self.attribute(name)
        values = ()
        if attribute.predicate is not None:
            values = self.profile.get().read(attribute.predicate)

        # Only an absent predicate falls back to the default; an explicit
        # empty literal is a value.
        if not values and name in self.defaults:
            return as_tuple(self.defaults[name])
        return values

    def read(self, name):
        self.attribute(name)
        if name in self.overrides:
            return self.overrides[name]
        return self.baseline(name)

    # ================================================================
    # WRITE
    # ================================================================

    def write(self, name, value):
        self.owner.check_if_read_only()
        self.attribute(name)

        validator = self.validators.get(name)
        if validator is not None:
            validator(value)

        # entity references compare and persist as their URI
        value = normalize(value)
        if equivalent(self.read(name), value):
            return

        # A whole-value write supersedes any pending element edits.
        self.changed_multivalued_attributes.pop(name, None)
        self._record(name, value)

    def add(self, name, value):
        self.owner.check_if_read_only()
        value = dereference(value)
        current = as_tuple(self.read(name))
        if value in current:
            return
        self._edit(name, current + (value,), added=[value])

    def remove(self, name, value):
        self.owner.check_if_read_only()
        value = dereference(value)
        current = as_tuple(self.read(name))
        if value not in current:
            return
        self._edit(name, tuple(v for v in current if v != value), removed=[value])

    def _edit(self, name, new_value, added=(), removed=()):
        if name in self.changed_attributes:
            self._record(name, new_value)
        else:
            self.overrides[name] = new_value
            self.multivalued_attribute_changed(name, added, removed)

    def _record(self, name, value):
        old = self.baseline(name)
        if equivalent(old, value):
            self.changed_attributes.pop(name, None)
        else:
            self.changed_attributes[name] = (old, value)
        self.overrides[name] = value

    def multivalued_attribute_changed(self, name, added=(), removed=()):
        diff = self.changed_multivalued_attributes.get(name) or PropertyDiff()
        diff.merge(added, removed)
        if diff:
            self.changed_multivalued_attributes[name] = diff
        else:
            self.changed_multivalued_attributes.pop(name, None)

    # ================================================================
    # STATE
    # ================================================================

    @property
    def changed(self) -> bool:
        return bool(self.changed_attributes or self.changed_multivalued_attributes)

    def reset(self):
        self.changed_attributes.clear()
        self.changed_multivalued_attributes.clear()
        self.overrides.clear()
        self.profile.invalidate()


class TrackedAttribute:
    """Descriptor exposing one entry of an entity's attribute table."""

    def __init__(self, name, single=False, doc=None):
        self.name = name
        self.single = single
        self.__doc__ = doc

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        value = obj.read(self.name)
        if self.single and is_sequence(value):
            return value[0] if value else None
        return value

    def __set__(self, obj, value):
        obj.write(self.name, value)
