"""Shared fixtures for extraction engine tests."""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

import pytest

from leaderboard.extraction.config import load_config
from leaderboard.extraction.loader import load_document
from leaderboard.extraction.types import Document


@pytest.fixture()
def engine_config():
    """Provide a mutable copy of the default engine configuration."""

    return load_config(None)


def make_table(rows: Iterable[Sequence[str]], *, header: Sequence[str] = ("Rank", "Creator", "Score")) -> str:
    head = "".join(f"<th>{cell}</th>" for cell in header)
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def make_page(body: str, *, head: str = "") -> bytes:
    return (
        "<!DOCTYPE html><html><head><title>Creator Leaderboard</title>"
        f"{head}</head><body><h1>Leaderboard</h1>{body}</body></html>"
    ).encode("utf-8")


def make_state_page(state: Any, *, body: str = "", script_id: str = "__NEXT_DATA__") -> bytes:
    script = f'<script id="{script_id}" type="application/json">{json.dumps(state)}</script>'
    return make_page(body + script)


def load(html: bytes, config=None, content_type: str = "text/html; charset=utf-8") -> Document:
    return load_document(html, content_type, config)
