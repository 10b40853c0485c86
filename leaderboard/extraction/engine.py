"""Coordinator for the extraction pipeline."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..errors import ParseDegraded
from .config import EngineConfig, load_config
from .loader import diagnose
from .normalize import normalize
from .strategies import STRATEGIES
from .types import CandidateRecord, CanonicalRecord, Document, Identifier

logger = logging.getLogger(__name__)


def find_candidate(
    document: Document,
    identifier: Identifier,
    config: EngineConfig | None = None,
) -> Optional[CandidateRecord]:
    """Run the configured strategies in order and return the first match."""

    if not identifier:
        return None

    engine_config = config or load_config(None)
    for name in engine_config.strategy_order():
        strategy = STRATEGIES.get(name)
        if strategy is None:
            logger.warning("Unknown extraction strategy %r skipped", name)
            continue
        try:
            candidate = strategy(document, identifier, engine_config.raw)
        except ParseDegraded as exc:
            logger.warning("Strategy %s could not complete: %s", name, exc)
            continue
        if candidate is not None:
            return candidate
    return None


def extract(
    document: Document,
    identifier: Identifier,
    config: EngineConfig | None = None,
) -> CanonicalRecord:
    """Locate ``identifier`` in ``document`` and return its canonical record."""

    record, _ = extract_with_diagnostics(document, identifier, config)
    return record


def extract_with_diagnostics(
    document: Document,
    identifier: Identifier,
    config: EngineConfig | None = None,
) -> Tuple[CanonicalRecord, list[str]]:
    """Like :func:`extract`, also returning diagnostics when nothing matched."""

    engine_config = config or load_config(None)
    candidate = find_candidate(document, identifier, engine_config)
    if candidate is None:
        warnings = diagnose(document, engine_config)
        for warning in warnings:
            logger.warning(warning)
        logger.info("Handle %r not found in the page", identifier.normalized)
        return CanonicalRecord(found=False, handle=identifier.normalized), warnings

    record = normalize(candidate, identifier, engine_config.raw)
    logger.info(
        "Handle %r matched by %s strategy: rank=%s score=%s",
        record.handle,
        record.strategy,
        record.rank,
        record.score,
    )
    return record, []
