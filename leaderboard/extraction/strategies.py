"""Lookup strategies for the extraction engine.

Every strategy is a plain function ``(document, identifier, config)`` that
returns a :class:`CandidateRecord` for the first node matching the
identifier, or ``None``. Strategies never mutate the document and never
look past their first match: when a handle is a substring of another one
(``ann`` inside ``anna``) whichever appears first in the document wins.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag  # type: ignore

from .text import full_text, own_text
from .types import CandidateRecord, Document, Identifier

logger = logging.getLogger(__name__)

Strategy = Callable[[Document, Identifier, Dict[str, Any]], Optional[CandidateRecord]]


def scan_rows(document: Document, identifier: Identifier, config: Dict[str, Any]) -> Optional[CandidateRecord]:
    """Return the cells of the first table-like row mentioning the identifier."""

    if document.soup is None:
        return None

    needle = identifier.normalized
    for index, row in enumerate(_iter_rows(document.soup, config)):
        text = full_text(row).lower()
        if needle not in text:
            continue
        logger.info("Found handle %r in table row %d", needle, index)
        cells = [full_text(cell) for cell in _row_cells(row, config)]
        return CandidateRecord(strategy="rows", matched_text=text, cells=cells)
    return None


def scan_elements(document: Document, identifier: Identifier, config: Dict[str, Any]) -> Optional[CandidateRecord]:
    """Return the sibling scope of the first element whose own text names the identifier.

    Only the element's own text is compared, so wrappers that merely contain
    the match further down are not mistaken for it. The handle and its rank
    and score are usually siblings, hence the scope is everything under the
    matched element's parent.
    """

    if document.soup is None:
        return None

    needle = identifier.normalized
    skip_tags = {tag.lower() for tag in config.get("skip_tags", [])}
    for element in document.soup.find_all(True):
        if _should_skip(element, skip_tags):
            continue
        text = own_text(element).lower()
        if not text or needle not in text:
            continue

        logger.info("Found handle %r in element <%s>", needle, element.name)
        container = element.parent if isinstance(element.parent, Tag) else element
        scope = [
            full_text(node)
            for node in container.find_all(True)
            if not _should_skip(node, skip_tags)
        ]
        return CandidateRecord(strategy="elements", matched_text=text, scope=scope)
    return None


def search_json(document: Document, identifier: Identifier, config: Dict[str, Any]) -> Optional[CandidateRecord]:
    """Depth-first, pre-order search of the embedded state for a handle-bearing object."""

    if not document.state:
        return None

    needle = identifier.normalized
    handle_keys = [key.lower() for key in config.get("handle_keys", [])]

    # (node, enclosing object when ``node`` is one of its values)
    stack: List[Tuple[Any, Optional[Dict[str, Any]]]] = [(blob, None) for blob in reversed(document.state)]
    while stack:
        node, parent = stack.pop()
        if isinstance(node, dict):
            handle = _matching_handle(node, handle_keys, needle)
            if handle is not None:
                logger.info("Found handle %r in embedded state", needle)
                return CandidateRecord(
                    strategy="json",
                    matched_text=handle,
                    fields=node,
                    parent_fields=parent or {},
                )
            stack.extend((value, node) for value in reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend((value, None) for value in reversed(node))
    return None


STRATEGIES: Dict[str, Strategy] = {
    "json": search_json,
    "rows": scan_rows,
    "elements": scan_elements,
}


def _iter_rows(soup: BeautifulSoup, config: Dict[str, Any]) -> Iterator[Tag]:
    selectors: Sequence[str] = config.get("row_selectors", ["tr"])
    yield from soup.select(", ".join(selectors))


def _row_cells(row: Tag, config: Dict[str, Any]) -> List[Tag]:
    cells = row.find_all(config.get("cell_tags", ["td", "th"]), recursive=False)
    if cells:
        return cells
    children = row.find_all(True, recursive=False)
    roles = set(config.get("cell_roles", []))
    by_role = [child for child in children if child.get("role") in roles]
    return by_role or children


def _should_skip(node: Tag, skip_tags: set[str]) -> bool:
    """Return ``True`` if ``node`` sits in a tag that is never rendered as text."""

    current: Any = node
    while current is not None and getattr(current, "name", None):
        if current.name.lower() in skip_tags:
            return True
        current = current.parent
    return False


def _matching_handle(node: Dict[str, Any], handle_keys: Sequence[str], needle: str) -> Optional[str]:
    lowered = {str(key).lower(): value for key, value in node.items()}
    for key in handle_keys:
        value = lowered.get(key)
        if isinstance(value, str) and needle in value.lower():
            return value
    return None
