# ================================================================
# FEDORAGRAPH
# Attribute Graph: N-Triples profile scoped to one subject
# ================================================================

from typing import Mapping, Optional, Tuple, Union

from rdflib import Graph as RdfGraph
from rdflib import URIRef
from rdflib.exceptions import ParserError

from fedoragraph.errors import ParseError
from fedoragraph.namespaces import content_subject


class Graph:
    """
    Read-only view of a profile document.

    Every query is scoped to ``subject``. Keywords are translated to
    predicate URIs through ``mapping``; anything not in the mapping is
    taken to be a predicate URI itself. Views created with
    :meth:`with_subject` share the same rdflib store, so they are cheap.
    """

    __slots__ = ("subject", "mapping", "_rdf", "_frozen")

    def __init__(
        self,
        subject,
        content: Union[str, bytes, RdfGraph, None] = None,
        mapping: Optional[Mapping] = None
    ):
        object.__setattr__(self, "subject", URIRef(str(subject)))
        object.__setattr__(self, "mapping", dict(mapping or {}))
        object.__setattr__(self, "_rdf", self._load(content))
        object.__setattr__(self, "_frozen", True)

    @staticmethod
    def _load(content) -> RdfGraph:
        if isinstance(content, RdfGraph):
            return content

        rdf = RdfGraph()
        if content is None:
            return rdf
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"Profile is not UTF-8: {e}") from e
        if not content.strip():
            return rdf

        try:
            rdf.parse(data=content, format="nt")
        except ParserError as e:
            raise ParseError(f"Invalid N-Triples profile: {e}") from e
        return rdf

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is frozen")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is frozen")

    # ================================================================
    # QUERIES
    # ================================================================

    def map_keyword_to_term(self, term_or_keyword) -> Optional[URIRef]:
        if isinstance(term_or_keyword, URIRef):
            return term_or_keyword
        if term_or_keyword in self.mapping:
            term = self.mapping[term_or_keyword]
            return None if term is None else URIRef(str(term))
        return URIRef(str(term_or_keyword))

    def read(self, term_or_keyword) -> Tuple[str, ...]:
        predicate = self.map_keyword_to_term(term_or_keyword)
        if predicate is None:
            return ()
        return tuple(str(o) for o in self._rdf.objects(self.subject, predicate))

    __getitem__ = read

    def has(self, term_or_keyword) -> bool:
        return len(self.read(term_or_keyword)) > 0

    __contains__ = has

    def __len__(self):
        return len(self._rdf)

    def __repr__(self):
        return f"<Graph subject={self.subject} triples={len(self._rdf)}>"

    @property
    def rdf(self) -> RdfGraph:
        return self._rdf

    # ================================================================
    # VIEWS
    # ================================================================

    def with_subject(self, subject) -> "Graph":
        return Graph(subject, self._rdf, self.mapping)

    def with_content_subject(self) -> "Graph":
        return self.with_subject(content_subject(self.subject))
