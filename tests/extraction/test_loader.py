"""Document loader tests."""

from __future__ import annotations

import json

from leaderboard.extraction.loader import decode_body, diagnose, load_document

from .conftest import make_page, make_state_page, make_table


def test_markup_page_builds_tree_without_state():
    document = load_document(make_page(make_table([["#1", "alice", "10.5"]])), "text/html")

    assert document.soup is not None
    assert document.state == []
    assert document.loaded


def test_next_data_script_is_decoded():
    state = {"props": {"pageProps": {"leaderboard": [{"handle": "alice", "rank": 1}]}}}

    document = load_document(make_state_page(state), "text/html")

    assert document.state == [state]
    assert document.soup is not None


def test_inline_state_assignment_is_decoded():
    html = make_page(
        "<div id='app'></div>",
        head=(
            "<script>window.__INITIAL_STATE__ = "
            '{"entries": [{"username": "bob", "points": 12}]};'
            "window.analytics = true;</script>"
        ),
    )

    document = load_document(html, "text/html")

    assert document.state == [{"entries": [{"username": "bob", "points": 12}]}]


def test_inline_json_parse_assignment_is_decoded():
    payload = json.dumps({"board": [{"handle": "carol", "rank": 3}]})
    html = make_page(
        "",
        head=f"<script>window.__PRELOADED_STATE__ = JSON.parse({json.dumps(payload)});</script>",
    )

    document = load_document(html, "text/html")

    assert document.state == [{"board": [{"handle": "carol", "rank": 3}]}]


def test_malformed_state_is_skipped_and_markup_kept():
    html = make_page(
        make_table([["#2", "alice", "9.75"]]),
        head='<script id="__NEXT_DATA__" type="application/json">{"props": </script>',
    )

    document = load_document(html, "text/html")

    assert document.state == []
    assert document.soup is not None
    assert document.soup.find("td") is not None


def test_multiple_blobs_keep_document_order():
    html = make_page(
        '<script type="application/json">{"first": true}</script>'
        '<script type="application/json">{"second": true}</script>'
    )

    document = load_document(html, "text/html")

    assert document.state == [{"first": True}, {"second": True}]


def test_plain_scripts_are_ignored():
    html = make_page("<script>var rank = 5; console.log('alice');</script>")

    assert load_document(html, "text/html").state == []


def test_json_body_is_loaded_directly():
    body = json.dumps([{"handle": "alice", "score": 1.5}]).encode("utf-8")

    document = load_document(body, "application/json")

    assert document.soup is None
    assert document.state == [[{"handle": "alice", "score": 1.5}]]


def test_broken_json_body_falls_back_to_markup():
    document = load_document(b'{"handle": "alice"', "application/json")

    assert document.state == []
    assert document.soup is not None


def test_deeply_nested_json_degrades_instead_of_raising():
    body = ("[" * 100000 + "]" * 100000).encode("utf-8")

    document = load_document(body, "application/json")

    assert document.state == []


def test_empty_body_is_not_loaded():
    document = load_document(b"", "text/html")

    assert not document.loaded


def test_decode_body_uses_declared_charset():
    body = "Classement: Zoë".encode("latin-1")

    assert decode_body(body, "text/html; charset=ISO-8859-1") == "Classement: Zoë"


def test_decode_body_tolerates_unknown_charset():
    body = "Zoë".encode("latin-1")

    assert decode_body(body, "text/html; charset=not-a-codec").startswith("Zo")


def test_diagnose_flags_client_side_shell(engine_config):
    html = make_page("<div id='root'>Loading...</div>")

    warnings = diagnose(load_document(html, "text/html"), engine_config)

    assert any("client-side" in warning for warning in warnings)


def test_diagnose_flags_missing_keywords(engine_config):
    html = b"<html><body><p>Welcome to our blog</p></body></html>"

    warnings = diagnose(load_document(html, "text/html"), engine_config)

    assert any("check the source URL" in warning for warning in warnings)


def test_diagnose_quiet_for_large_leaderboard(engine_config):
    rows = [[f"#{index}", f"user{index}", f"{index}.50"] for index in range(1, 400)]
    html = make_page(make_table(rows))

    assert diagnose(load_document(html, "text/html"), engine_config) == []
