"""Document loading for the extraction engine.

The loader turns the raw bytes of a leaderboard page into a
:class:`~leaderboard.extraction.types.Document`. Pages that ship their data
as hydration state (``<script id="__NEXT_DATA__">``, ``window.__INITIAL_STATE__
= {...}`` and friends) are decoded into plain JSON values, which the engine
prefers over markup heuristics. The markup tree is kept as well so that the
row and element strategies can still run when the JSON holds no match.

Failures here are never fatal. A representation that cannot be parsed is
left out of the document and logged; the engine falls through to whatever
else is available.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, FeatureNotFound  # type: ignore

from ..errors import ParseDegraded
from .config import CSR_MIN_LENGTH, EngineConfig, load_config
from .types import Document

logger = logging.getLogger(__name__)

_JSON_PARSE_PREFIX = "JSON.parse("


def decode_body(body: bytes, content_type: str = "") -> str:
    """Decode ``body`` as UTF-8, falling back to the declared charset."""

    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        match = re.search(r"charset=([\w.:-]+)", content_type or "", flags=re.IGNORECASE)
        encoding = match.group(1) if match else "utf-8"
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")


def parse_json(text: str) -> Any:
    """Decode a JSON document, raising :class:`ParseDegraded` on failure."""

    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise ParseDegraded(f"invalid JSON: {exc}") from exc


def parse_markup(text: str) -> Optional[BeautifulSoup]:
    """Build a markup tree, preferring lxml. Returns ``None`` when unusable."""

    if not text or not text.strip():
        return None
    try:
        return BeautifulSoup(text, "lxml")
    except FeatureNotFound:
        pass
    try:
        # Fallback to html.parser if lxml isn't installed
        return BeautifulSoup(text, "html.parser")
    except Exception as exc:
        logger.warning("Markup could not be parsed: %s", exc)
        return None


def load_document(body: bytes, content_type: str = "", config: EngineConfig | None = None) -> Document:
    """Decide how to represent ``body`` and return the loaded document."""

    engine_config = config or load_config(None)
    text = decode_body(body, content_type)

    if _looks_like_json(text, content_type):
        try:
            value = parse_json(text)
        except ParseDegraded as exc:
            logger.warning("Response looked like JSON but could not be decoded: %s", exc)
        else:
            return Document(soup=None, state=[value], text_length=len(text))

    soup = parse_markup(text)
    state: List[Any] = []
    if soup is not None:
        state = collect_state_blobs(soup, engine_config.raw)
    return Document(soup=soup, state=state, text_length=len(text))


def collect_state_blobs(soup: BeautifulSoup, config: Dict[str, Any]) -> List[Any]:
    """Return decoded hydration blobs embedded in ``soup``, in document order."""

    script_ids = set(config.get("state_script_ids", []))
    script_types = {value.lower() for value in config.get("state_script_types", [])}
    assignment = _assignment_pattern(config.get("state_globals", []))

    blobs: List[Any] = []
    for script in soup.find_all("script"):
        content = script.string if script.string is not None else script.get_text()
        if not content or not content.strip():
            continue

        script_type = (script.get("type") or "").split(";")[0].strip().lower()
        if script.get("id") in script_ids or script_type in script_types:
            try:
                blobs.append(parse_json(content.strip()))
            except ParseDegraded as exc:
                logger.warning("Embedded state script %r could not be decoded: %s", script.get("id"), exc)
            continue

        if assignment is None:
            continue
        for match in assignment.finditer(content):
            try:
                blobs.append(_decode_assignment(content, match.end()))
            except ParseDegraded as exc:
                logger.warning("Inline state %s could not be decoded: %s", match.group("name"), exc)
    return blobs


def diagnose(document: Document, config: EngineConfig | None = None) -> List[str]:
    """Explain why a markup document may not contain the leaderboard."""

    if document.soup is None:
        return []

    settings = (config or load_config(None)).get("diagnostics", {})
    root = document.soup.body or document.soup
    body_text = root.get_text(" ").lower()

    warnings: List[str] = []
    markers = settings.get("csr_markers", [])
    min_length = settings.get("csr_min_length", CSR_MIN_LENGTH)
    if any(marker in body_text for marker in markers) or document.text_length < min_length:
        warnings.append(
            "Page might be rendered client-side; the static HTML may not contain the leaderboard."
        )

    keywords = settings.get("keywords", [])
    if keywords and not any(keyword in body_text for keyword in keywords):
        warnings.append(
            f"Keywords ({', '.join(keywords)}) not found in the page; check the source URL."
        )
    return warnings


def _looks_like_json(text: str, content_type: str) -> bool:
    if "json" in (content_type or "").lower():
        return True
    return text.lstrip()[:1] in ("{", "[")


def _assignment_pattern(names: Iterable[str]) -> Optional[re.Pattern[str]]:
    names = [re.escape(name) for name in names]
    if not names:
        return None
    return re.compile(r"\b(?P<name>%s)\s*=\s*" % "|".join(names))


def _decode_assignment(content: str, start: int) -> Any:
    decoder = json.JSONDecoder()
    try:
        if content.startswith(_JSON_PARSE_PREFIX, start):
            # window.__STATE__ = JSON.parse("{\"...\"}")
            literal, _ = decoder.raw_decode(content, start + len(_JSON_PARSE_PREFIX))
            if not isinstance(literal, str):
                raise ParseDegraded("JSON.parse argument is not a string literal")
            return json.loads(literal)
        value, _ = decoder.raw_decode(content, start)
        return value
    except (ValueError, RecursionError) as exc:
        raise ParseDegraded(f"invalid JSON: {exc}") from exc
