"""Configuration helpers for the extraction engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

# Ranks must be strictly greater than this value.
RANK_LOWER_BOUND = 0
# Ranks must be strictly below this value. The element scan picks up stray
# numbers from the surrounding page (years, counters), so anything this large
# is treated as noise.
RANK_UPPER_BOUND = 10000

# Position (0-based) of the score column in a "Rank | Name | Score" row.
SCORE_COLUMN = 2

MEDAL_RANKS: Dict[str, int] = {
    "\U0001F947": 1,  # gold
    "\U0001F948": 2,  # silver
    "\U0001F949": 3,  # bronze
}

# Pages shorter than this are usually an empty client-side rendering shell.
CSR_MIN_LENGTH = 5000

RANK_SENTINEL = 9999
SCORE_SENTINEL = "---"


DEFAULTS: Dict[str, Any] = {
    "strategy_order": ["json", "rows", "elements"],
    "rank_lower_bound": RANK_LOWER_BOUND,
    "rank_upper_bound": RANK_UPPER_BOUND,
    "score_column": SCORE_COLUMN,
    "medal_ranks": dict(MEDAL_RANKS),
    "row_selectors": ["tr", "[role=row]"],
    "cell_tags": ["td", "th"],
    "cell_roles": ["cell", "gridcell", "rowheader"],
    "skip_tags": ["script", "style", "noscript", "template"],
    "handle_keys": [
        "handle",
        "username",
        "user_name",
        "screen_name",
        "alias",
        "login",
        "twitter",
        "x_handle",
        "name",
    ],
    "field_keys": {
        "rank": ["rank", "position", "pos", "place"],
        "score": ["score", "points", "mindshare"],
    },
    "windows": {
        "24h": ["24h", "1d", "day", "daily"],
        "7d": ["7d", "week", "weekly"],
        "30d": ["30d", "month", "monthly"],
    },
    "window_containers": ["stats", "windows", "periods", "timeframes"],
    "state_script_ids": ["__NEXT_DATA__", "__NUXT_DATA__"],
    "state_script_types": ["application/json", "application/ld+json"],
    "state_globals": [
        "__INITIAL_STATE__",
        "__PRELOADED_STATE__",
        "__APOLLO_STATE__",
        "__NUXT__",
        "__DATA__",
    ],
    "diagnostics": {
        "csr_min_length": CSR_MIN_LENGTH,
        "csr_markers": ["loading"],
        "keywords": ["rank", "leaderboard"],
    },
    "sentinels": {
        "rank": RANK_SENTINEL,
        "score": SCORE_SENTINEL,
    },
}


@dataclass(frozen=True)
class EngineConfig:
    """Typed wrapper around the engine configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def strategy_order(self) -> List[str]:
        return list(self.raw.get("strategy_order", DEFAULTS["strategy_order"]))

    def field_keys(self, name: str) -> Sequence[str]:
        keys = self.raw.get("field_keys", {})
        return keys.get(name, [])

    def sentinel(self, name: str) -> Any:
        sentinels = self.raw.get("sentinels", {})
        return sentinels.get(name, DEFAULTS["sentinels"][name])


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        merge_into(data, user)

    return EngineConfig(data)


def merge_into(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
