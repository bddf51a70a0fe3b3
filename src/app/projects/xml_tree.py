"""Generic XML tree and total lookup helpers.

``parse_xml`` turns one XML document into a plain dict/list/str tree:

- the document becomes ``{root_tag: node}``;
- an element with neither attributes nor child elements becomes its text;
- any other element becomes a dict with ``"$"`` (attributes), ``"_"``
  (non-blank text) and one key per child tag holding a list of child nodes.

Consumers never rely on that cardinality. Every nested access goes through
``as_list``/``first`` so a key may equally hold a bare node or a list, and
every lookup returns None on a miss instead of raising.
"""

from __future__ import annotations

from typing import Any

from lxml import etree

from src.app.core.errors import XMLParseError

ATTRS_KEY = "$"
TEXT_KEY = "_"


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element or attribute name."""
    return etree.QName(tag).localname if tag.startswith("{") else tag


def _element_text(element: etree._Element) -> str:
    parts = [element.text or ""]
    for child in element:
        parts.append(child.tail or "")
    return "".join(parts).strip()


def _element_to_node(element: etree._Element) -> Any:
    attrs = {_local_name(k): v for k, v in element.attrib.items()}
    children = [c for c in element if isinstance(c.tag, str)]
    text = _element_text(element)

    if not attrs and not children:
        return text

    node: dict[str, Any] = {}
    if attrs:
        node[ATTRS_KEY] = attrs
    if text:
        node[TEXT_KEY] = text
    for child in children:
        node.setdefault(_local_name(child.tag), []).append(_element_to_node(child))
    return node


def parse_xml(data: bytes, path: str | None = None) -> dict[str, Any]:
    """Parse an XML document into the generic tree.

    Entity resolution and network access are disabled. The declared encoding
    of the document is honoured.

    Args:
        data: Raw document bytes.
        path: Archive entry path, used only for error messages.

    Raises:
        XMLParseError: The document is not well-formed XML.
    """
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        root = etree.fromstring(data, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise XMLParseError(str(exc), path=path) from exc
    if root is None:
        raise XMLParseError("empty document", path=path)
    return {_local_name(root.tag): _element_to_node(root)}


# ── Total lookups ───────────────────────────────────────────────────────────


def as_list(value: Any) -> list[Any]:
    """Coerce a missing, single or repeated value to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def first(value: Any) -> Any:
    """First item of ``as_list(value)``, or None."""
    items = as_list(value)
    return items[0] if items else None


def child(node: Any, key: str) -> Any:
    """Raw value stored under ``key``; None unless ``node`` is a dict."""
    if isinstance(node, dict):
        return node.get(key)
    return None


def attr(node: Any, name: str) -> str | None:
    """Attribute ``name`` of a (possibly list-wrapped) node, or None."""
    attrs = child(first(node), ATTRS_KEY)
    if isinstance(attrs, dict):
        return attrs.get(name)
    return None


def text_of(node: Any) -> str | None:
    """Text content of a (possibly list-wrapped) node, or None."""
    node = first(node)
    if isinstance(node, str):
        return node
    return child(node, TEXT_KEY)


def child_text(node: Any, key: str) -> str | None:
    """Text of the first ``key`` child of ``node``, or None."""
    return text_of(child(first(node), key))


def collection(node: Any, container: str, item: str) -> list[Any]:
    """Items of a ``<container><item/>...</container>`` wrapper, as a list.

    Only the first container is read; a missing container yields ``[]``.
    """
    return as_list(child(first(child(first(node), container)), item))
