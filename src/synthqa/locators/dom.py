"""
DOM helpers over BeautifulSoup documents.

The recorder captures a snapshot of the page markup at the moment of an
interaction and addresses the event target by its element-child index path
from the document root. These helpers parse snapshots and convert between
elements and paths.
"""

from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag


def parse_document(html: str) -> BeautifulSoup:
    """Parse a markup snapshot into a document."""
    return BeautifulSoup(html, "html.parser")


def element_children(node: Tag) -> List[Tag]:
    """Element (non-text) children of ``node``, in document order."""
    return [child for child in node.children if isinstance(child, Tag)]


def is_document(node: Optional[Tag]) -> bool:
    return isinstance(node, BeautifulSoup)


def document_root(element: Tag) -> Tag:
    """Walk up to the top-most ancestor (the document for attached elements)."""
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def index_among(nodes: Sequence[Tag], element: Tag) -> int:
    """Identity-based index; bs4 tags compare equal by content."""
    for i, node in enumerate(nodes):
        if node is element:
            return i
    raise ValueError("element is not in the sequence")


def element_path(element: Tag) -> List[int]:
    """
    Child-index path from the document to ``element``.

    Matches the path the in-page listener computes from
    ``parentNode.children``, so a path captured in the browser addresses the
    same element in a snapshot of ``document.documentElement.outerHTML``.
    """
    path: List[int] = []
    node = element
    while node is not None and not is_document(node):
        parent = node.parent
        siblings = element_children(parent) if parent is not None else [node]
        path.insert(0, index_among(siblings, node))
        node = parent
    return path


def element_at_path(document: Tag, path: Sequence[int]) -> Optional[Tag]:
    """Element addressed by ``path``, or None if the path does not exist."""
    node = document
    for index in path:
        children = element_children(node)
        if index < 0 or index >= len(children):
            return None
        node = children[index]
    return None if node is document else node


def visible_text(element: Tag) -> str:
    """Trimmed text content, the equivalent of ``textContent.trim()``."""
    return element.get_text().strip()
