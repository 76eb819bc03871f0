# ================================================================
# FEDORAGRAPH
# Namespaces, predicates, URI helpers
# ================================================================

from rdflib import Namespace, URIRef
from rdflib.namespace import DCTERMS

from fedoragraph.config import CONTENT_SUBJECT_SUFFIX


# ==========================
# FEDORA NAMESPACES
# ==========================

FEDORA3 = Namespace("info:fedora3/")
FEDORA = Namespace("info:fedora/")
FEDORA_INTERNAL = Namespace("info:fedora/fedora-system:def/internal#")
RELS_EXT = Namespace("info:fedora/fedora-system:def/relations-external#")


# ==========================
# PROFILE PREDICATES
# ==========================

STATE = FEDORA3.state
CONTROL_GROUP = FEDORA3.controlGroup
DS_LOCATION = FEDORA3.dsLocation
VERSIONABLE = FEDORA3.versionable
CHECKSUM_TYPE = FEDORA3.checksumType
CHECKSUM = FEDORA3.checksum

TITLE = DCTERMS.title
CREATOR = DCTERMS.creator
IDENTIFIER = DCTERMS.identifier
FORMAT = DCTERMS.format
TYPE = DCTERMS.type

LAST_MODIFIED = FEDORA_INTERNAL.lastModified
CREATED = FEDORA_INTERNAL.created
HAS_CHILD = FEDORA_INTERNAL.hasChild
MIXIN_TYPES = FEDORA_INTERNAL.mixinTypes

SIZE = FEDORA.size


# ==========================
# URI HELPERS
# ==========================

def content_subject(uri) -> URIRef:
    return URIRef(f"{uri}{CONTENT_SUBJECT_SUFFIX}")


def last_segment(uri) -> str:
    return str(uri).rstrip("/").split("/")[-1]
