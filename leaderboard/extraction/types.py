"""Typed data structures used by the extraction engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup  # type: ignore


@dataclass(frozen=True)
class Identifier:
    """A user-supplied handle together with its normalized lookup form."""

    raw: str
    normalized: str

    def __bool__(self) -> bool:
        return bool(self.normalized)


@dataclass(frozen=True)
class Document:
    """Loaded page: markup tree and/or decoded embedded state blobs."""

    soup: Optional[BeautifulSoup] = None
    state: List[Any] = field(default_factory=list)
    text_length: int = 0

    @property
    def loaded(self) -> bool:
        return self.soup is not None or bool(self.state)


@dataclass(frozen=True)
class CandidateRecord:
    """Raw fragment produced by the strategy that matched the identifier.

    Exactly one of ``cells`` (row scan), ``scope`` (element scan) or
    ``fields`` (JSON search) is populated, depending on ``strategy``.
    ``parent_fields`` is the object enclosing a JSON match, consulted only
    for fields the matched object itself lacks.
    """

    strategy: str
    matched_text: str
    cells: List[str] = field(default_factory=list)
    scope: List[str] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)
    parent_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WindowStats:
    """Rank and score for a single time window (``24h``, ``7d``, ...)."""

    rank: Optional[int]
    score: Optional[Decimal]


@dataclass(frozen=True)
class CanonicalRecord:
    """Normalized lookup result. ``None`` marks an unresolved field."""

    found: bool
    handle: str
    rank: Optional[int] = None
    score: Optional[Decimal] = None
    windows: Dict[str, WindowStats] = field(default_factory=dict)
    strategy: Optional[str] = None
