"""Field normalization: raw cells, scopes and JSON objects to canonical records."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULTS, RANK_LOWER_BOUND, RANK_UPPER_BOUND, SCORE_COLUMN
from .text import strip_separators
from .types import CandidateRecord, CanonicalRecord, Identifier, WindowStats

TWO_PLACES = Decimal("0.01")

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_INTEGER_RE = re.compile(r"^[0-9]+$")
_DECIMAL_RE = re.compile(r"^(?:[0-9]+\.[0-9]*|\.[0-9]+)$")
_LEADING_NUMBER_RE = re.compile(r"[-+]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")


def parse_rank(value: Any, config: Mapping[str, Any] | None = None) -> Optional[int]:
    """Return the rank held by ``value`` or ``None`` when it is unusable.

    Medal symbols win over any digits in the same text. Otherwise every
    non-digit is dropped and the rest read as an integer. Ranks outside the
    configured sanity bounds are discarded.
    """

    settings = config if config is not None else DEFAULTS
    if value is None or isinstance(value, (bool, dict, list)):
        return None

    if isinstance(value, int):
        rank = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        rank = int(value)
    else:
        text = str(value)
        medal = _medal_rank(text, settings)
        if medal is not None:
            rank = medal
        else:
            digits = _NON_DIGIT_RE.sub("", text)
            if not digits:
                return None
            rank = int(digits)

    lower = settings.get("rank_lower_bound", RANK_LOWER_BOUND)
    upper = settings.get("rank_upper_bound", RANK_UPPER_BOUND)
    if not lower < rank < upper:
        return None
    return rank


def parse_score(value: Any) -> Optional[Decimal]:
    """Return ``value`` as a two-place decimal, or ``None`` if it is not numeric."""

    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, (int, float)):
            number = Decimal(str(value))
        else:
            match = _LEADING_NUMBER_RE.match(strip_separators(str(value)))
            if match is None:
                return None
            number = Decimal(match.group(0))
        if not number.is_finite():
            return None
        return number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def format_score(value: Any) -> Optional[str]:
    """Render a score with two fixed decimals, whatever its source representation."""

    score = parse_score(value)
    if score is None:
        return None
    return format(score, "f")


def is_rank_candidate(text: str, config: Mapping[str, Any] | None = None) -> bool:
    """A medal, a ``#``-prefixed value or a bare integer."""

    settings = config if config is not None else DEFAULTS
    cleaned = strip_separators(text)
    if not cleaned:
        return False
    if _medal_rank(cleaned, settings) is not None:
        return True
    return cleaned.startswith("#") or bool(_INTEGER_RE.match(cleaned))


def is_score_candidate(text: str) -> bool:
    """A number with a decimal point."""

    return bool(_DECIMAL_RE.match(strip_separators(text)))


def normalize_cells(cells: Sequence[str], config: Mapping[str, Any]) -> Tuple[Optional[int], Optional[Decimal]]:
    """Pick rank and score out of the ordered cells of a row."""

    rank: Optional[int] = None
    rank_index: Optional[int] = None
    for index, cell in enumerate(cells):
        if not is_rank_candidate(cell, config):
            continue
        rank = parse_rank(cell, config)
        if rank is not None:
            rank_index = index
            break

    score: Optional[Decimal] = None
    column = config.get("score_column", SCORE_COLUMN)
    if 0 <= column < len(cells) and column != rank_index and is_score_candidate(cells[column]):
        score = parse_score(cells[column])
    last = len(cells) - 1
    if score is None and last >= 0 and last != rank_index:
        score = parse_score(cells[last])
    return rank, score


def normalize_scope(scope: Sequence[str], config: Mapping[str, Any]) -> Tuple[Optional[int], Optional[Decimal]]:
    """Pick the first plausible rank and decimal score among companion texts."""

    rank: Optional[int] = None
    score: Optional[Decimal] = None
    for text in scope:
        if rank is None and is_rank_candidate(text, config):
            rank = parse_rank(text, config)
        if score is None and is_score_candidate(text):
            score = parse_score(text)
        if rank is not None and score is not None:
            break
    return rank, score


def lookup_field(mapping: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the value of the first of ``keys`` present in ``mapping``.

    Keys are compared case-insensitively; a ``null`` value counts as absent.
    """

    lowered = {str(key).lower(): value for key, value in mapping.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if value is not None:
            return value
    return None


def normalize_fields(
    fields: Mapping[str, Any],
    config: Mapping[str, Any],
    parent_fields: Mapping[str, Any] | None = None,
) -> Tuple[Optional[int], Optional[Decimal]]:
    """Resolve rank and score of a JSON object through the ordered key fallbacks."""

    field_keys = config.get("field_keys", {})
    rank_keys = field_keys.get("rank", [])
    score_keys = field_keys.get("score", [])

    raw_rank = lookup_field(fields, rank_keys)
    raw_score = lookup_field(fields, score_keys)
    if parent_fields:
        if raw_rank is None:
            raw_rank = lookup_field(parent_fields, rank_keys)
        if raw_score is None:
            raw_score = lookup_field(parent_fields, score_keys)
    return parse_rank(raw_rank, config), parse_score(raw_score)


def extract_windows(fields: Mapping[str, Any], config: Mapping[str, Any]) -> Dict[str, WindowStats]:
    """Collect per-window rank/score breakdowns exposed by a JSON object."""

    sources: List[Mapping[str, Any]] = [fields]
    for container in config.get("window_containers", []):
        value = lookup_field(fields, [container])
        if isinstance(value, dict):
            sources.append(value)

    windows: Dict[str, WindowStats] = {}
    for name, aliases in config.get("windows", {}).items():
        for source in sources:
            value = lookup_field(source, aliases)
            if isinstance(value, dict):
                rank, score = normalize_fields(value, config)
                windows[name] = WindowStats(rank=rank, score=score)
                break
    return windows


def normalize(candidate: CandidateRecord, identifier: Identifier, config: Mapping[str, Any]) -> CanonicalRecord:
    """Turn the matched fragment into a :class:`CanonicalRecord`."""

    normalizer = _NORMALIZERS[candidate.strategy]
    rank, score, windows = normalizer(candidate, config)
    return CanonicalRecord(
        found=True,
        handle=identifier.normalized,
        rank=rank,
        score=score,
        windows=windows,
        strategy=candidate.strategy,
    )


def _medal_rank(text: str, config: Mapping[str, Any]) -> Optional[int]:
    for symbol, rank in config.get("medal_ranks", {}).items():
        if symbol in text:
            return int(rank)
    return None


def _from_cells(candidate: CandidateRecord, config: Mapping[str, Any]):
    rank, score = normalize_cells(candidate.cells, config)
    return rank, score, {}


def _from_scope(candidate: CandidateRecord, config: Mapping[str, Any]):
    rank, score = normalize_scope(candidate.scope, config)
    return rank, score, {}


def _from_fields(candidate: CandidateRecord, config: Mapping[str, Any]):
    rank, score = normalize_fields(candidate.fields, config, candidate.parent_fields)
    return rank, score, extract_windows(candidate.fields, config)


_NORMALIZERS: Dict[str, Callable[[CandidateRecord, Mapping[str, Any]], tuple]] = {
    "rows": _from_cells,
    "elements": _from_scope,
    "json": _from_fields,
}
