"""Unit tests for the profile graph."""

from __future__ import annotations

import pytest
from rdflib import Graph as RdfGraph
from rdflib import URIRef

from fedoragraph.errors import ParseError
from fedoragraph.graph import Graph

PREDICATE_MAPPING = {
    "uuid": "info:fedora/fedora-system:def/internal#uuid",
    "log_message": None,
}

GRAPH_DATA = """\
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#uuid> "bf55d19a-f0da-4486-a2a2-2c5ed0de1a79" .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#lastModifiedBy> "<anonymous>" .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#numberOfChildren> "1"^^<http://www.w3.org/2001/XMLSchema#long> .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#hasParent> <info:fedora/objects> .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#createdBy> "<anonymous>" .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#hasChild> <info:fedora/a-uri/58b527b4-9920-4c03-9581-773ba08c3f11> .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#created> "2013-05-10T18:09:43.682+01:00"^^<http://www.w3.org/2001/XMLSchema#dateTime> .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#mixinTypes> "fedora:resource" .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#mixinTypes> "fedora:object" .
<info:fedora/a-uri> <info:fedora/fedora-system:def/internal#lastModified> "2013-05-15T16:17:35.198+01:00"^^<http://www.w3.org/2001/XMLSchema#dateTime> .
<info:fedora/a-uri/fcr:content> <info:fedora/size> "1024" .
"""


@pytest.fixture
def graph() -> Graph:
    return Graph("info:fedora/a-uri", GRAPH_DATA, PREDICATE_MAPPING)


def test_loads_every_statement(graph: Graph) -> None:
    assert isinstance(graph.rdf, RdfGraph)
    assert len(graph) == 11


def test_queries_by_predicate_string_or_term(graph: Graph) -> None:
    predicate = "info:fedora/fedora-system:def/internal#createdBy"

    assert graph[predicate] == ("<anonymous>",)
    assert graph.read(URIRef(predicate)) == ("<anonymous>",)


def test_maps_keywords_to_predicates(graph: Graph) -> None:
    assert graph["uuid"] == ("bf55d19a-f0da-4486-a2a2-2c5ed0de1a79",)
    assert "uuid" in graph


def test_multiple_values_are_all_returned(graph: Graph) -> None:
    values = graph.read("info:fedora/fedora-system:def/internal#mixinTypes")

    assert sorted(values) == ["fedora:object", "fedora:resource"]


def test_missing_predicate_reads_empty(graph: Graph) -> None:
    assert graph["http://example.org/nothing"] == ()
    assert not graph.has("http://example.org/nothing")


def test_keyword_mapped_to_none_reads_empty(graph: Graph) -> None:
    assert graph["log_message"] == ()


def test_with_subject_shares_the_store(graph: Graph) -> None:
    content = graph.with_subject("info:fedora/a-uri/fcr:content")

    assert content.rdf is graph.rdf
    assert content["info:fedora/size"] == ("1024",)
    assert graph["info:fedora/size"] == ()


def test_with_content_subject(graph: Graph) -> None:
    content = graph.with_content_subject()

    assert str(content.subject) == "info:fedora/a-uri/fcr:content"
    assert content.read("info:fedora/size") == ("1024",)


def test_is_frozen(graph: Graph) -> None:
    with pytest.raises(AttributeError):
        graph.subject = URIRef("info:fedora/other")
    with pytest.raises(AttributeError):
        graph.mapping = {}


def test_empty_content_builds_an_empty_graph() -> None:
    assert len(Graph("info:fedora/a-uri", "")) == 0
    assert len(Graph("info:fedora/a-uri", None)) == 0
    assert len(Graph("info:fedora/a-uri", b"  \n")) == 0


def test_bytes_content_is_decoded() -> None:
    data = b'<info:fedora/a-uri> <http://purl.org/dc/terms/title> "t" .\n'

    assert Graph("info:fedora/a-uri", data)["http://purl.org/dc/terms/title"] == ("t",)


def test_malformed_content_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        Graph("info:fedora/a-uri", "this is not n-triples")
    with pytest.raises(ParseError):
        Graph("info:fedora/a-uri", b'<http://a> <http://b> "\xff\xfe" .\n')
