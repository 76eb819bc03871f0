# ================================================================
# FEDORAGRAPH
# XML equivalence for inline (control group X) datastreams
# ================================================================

from typing import Optional, Union

from lxml import etree

XmlSource = Union[str, bytes, None]

_PARSER = etree.XMLParser(remove_blank_text=True, remove_comments=True, remove_pis=True)


def parse(content: XmlSource) -> Optional[etree._Element]:
    """Parse ``content`` into an element, or return None when it is not XML."""
    if content is None:
        return None
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not content.strip():
        return None
    try:
        return etree.fromstring(content, parser=_PARSER)
    except etree.XMLSyntaxError:
        return None


def _normalize_text(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def elements_equivalent(a: etree._Element, b: etree._Element) -> bool:
    if a.tag != b.tag:
        return False
    if dict(a.attrib) != dict(b.attrib):
        return False
    if _normalize_text(a.text) != _normalize_text(b.text):
        return False
    if _normalize_text(a.tail) != _normalize_text(b.tail):
        return False

    children_a = [c for c in a if isinstance(c.tag, str)]
    children_b = [c for c in b if isinstance(c.tag, str)]
    if len(children_a) != len(children_b):
        return False
    return all(elements_equivalent(x, y) for x, y in zip(children_a, children_b))


def equivalent(a: XmlSource, b: XmlSource) -> bool:
    """
    True when two documents carry the same XML: tags (with namespaces),
    attributes regardless of order, and whitespace-normalized text.

    Content that does not parse as XML is compared byte for byte.
    """
    tree_a = parse(a)
    tree_b = parse(b)
    if tree_a is None or tree_b is None:
        return _as_bytes(a) == _as_bytes(b)
    return elements_equivalent(tree_a, tree_b)


def _as_bytes(content: XmlSource) -> Optional[bytes]:
    if isinstance(content, str):
        return content.encode("utf-8")
    return content
