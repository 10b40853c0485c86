"""Shared text utilities for the extraction engine."""

from __future__ import annotations

import re

from bs4 import Tag  # type: ignore
from bs4.element import NavigableString, PreformattedString  # type: ignore

from .types import Identifier

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_identifier(raw: str | None) -> Identifier:
    """Strip an optional ``@`` prefix and lower-case the handle."""

    value = (raw or "").strip()
    if value.startswith("@"):
        value = value[1:]
    return Identifier(raw=raw or "", normalized=value.strip().lower())


def collapse(text: str) -> str:
    """Return ``text`` with runs of whitespace collapsed to single spaces."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def full_text(node: Tag) -> str:
    """All descendant text of ``node``, whitespace-collapsed."""

    return collapse(node.get_text(" "))


def own_text(node: Tag) -> str:
    """Text held directly by ``node``, ignoring its child elements."""

    parts = [
        str(child)
        for child in node.children
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
    ]
    return collapse("".join(parts))


def strip_separators(text: str) -> str:
    """Drop thousands separators and surrounding whitespace from numeric text."""

    return text.strip().replace(",", "")
