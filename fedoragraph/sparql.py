# ================================================================
# FEDORAGRAPH
# SPARQL update serialization of attribute diffs
# ================================================================

from typing import Mapping, Optional

from rdflib import URIRef

from fedoragraph.node import Attribute, PropertyDiff, as_tuple, dereference

# N-Triples ECHAR escapes
_ESCAPES = str.maketrans({
    "\\": "\\\\",
    "\"": "\\\"",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
})

# Attributes persisted through other channels (content upload, parsed
# documents) never appear in an update.
EXCLUDED_ATTRIBUTES = frozenset({"content", "ng_xml"})


def escape_literal(value) -> str:
    """
    Render a value as a quoted N-Triples literal.

    Booleans become "true"/"false"; other values are stringified and quoted
    with N-Triples escaping (quotes, backslashes, line breaks, tabs).
    """
    if isinstance(value, bool):
        value = "true" if value else "false"
    return '"%s"' % str(value).translate(_ESCAPES)


def triple(subject, predicate, value) -> str:
    return f"{URIRef(str(subject)).n3()} {URIRef(str(predicate)).n3()} {escape_literal(dereference(value))} ."


def serialize_changes(
    uri,
    attributes: Mapping[str, Attribute],
    changed_attributes: Mapping,
    changed_multivalued_attributes: Mapping[str, PropertyDiff]
) -> Optional[str]:
    """
    Build a ``DELETE { } INSERT { } WHERE { }`` update from an entity's diffs.

    Single-valued changes delete every old element and insert every new one;
    multi-valued net diffs delete ``removed`` and insert ``added``. Returns
    None when no triple would be emitted.
    """
    deletes = []
    inserts = []

    def predicate_for(name):
        if name in EXCLUDED_ATTRIBUTES:
            return None
        return attributes[name].predicate

    for name, (old_value, new_value) in changed_attributes.items():
        predicate = predicate_for(name)
        if predicate is None:
            continue
        deletes.extend(triple(uri, predicate, v) for v in as_tuple(old_value) if v is not None)
        inserts.extend(triple(uri, predicate, v) for v in as_tuple(new_value) if v is not None)

    for name, diff in changed_multivalued_attributes.items():
        predicate = predicate_for(name)
        if predicate is None:
            continue
        deletes.extend(triple(uri, predicate, v) for v in diff.removed if v is not None)
        inserts.extend(triple(uri, predicate, v) for v in diff.added if v is not None)

    if not deletes and not inserts:
        return None

    query = ""
    if deletes:
        query += "DELETE { %s }\n" % "\n".join(deletes)
    if inserts:
        query += "INSERT { %s }\n" % "\n".join(inserts)
    query += "WHERE { }"
    return query
