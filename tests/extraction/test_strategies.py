"""Lookup strategy tests."""

from __future__ import annotations

from leaderboard.extraction.strategies import scan_elements, scan_rows, search_json
from leaderboard.extraction.text import normalize_identifier
from leaderboard.extraction.types import Document

from .conftest import load, make_page, make_table


def test_row_scan_returns_ordered_cells(engine_config):
    document = load(make_page(make_table([["#4", "bob", "50.00"], ["#5", "@alice", "1,234.50"]])))

    candidate = scan_rows(document, normalize_identifier("@Alice"), engine_config.raw)

    assert candidate is not None
    assert candidate.strategy == "rows"
    assert candidate.cells == ["#5", "@alice", "1,234.50"]


def test_row_scan_first_matching_row_wins(engine_config):
    document = load(make_page(make_table([["#1", "alice_fan", "99.00"], ["#8", "alice", "10.00"]])))

    candidate = scan_rows(document, normalize_identifier("alice"), engine_config.raw)

    assert candidate.cells[0] == "#1"


def test_row_scan_supports_aria_rows(engine_config):
    html = make_page(
        '<div role="table">'
        '<div role="row"><span role="cell">#12</span><span role="cell">dave</span>'
        '<span role="cell">7.25</span></div>'
        "</div>"
    )

    candidate = scan_rows(load(html), normalize_identifier("dave"), engine_config.raw)

    assert candidate.cells == ["#12", "dave", "7.25"]


def test_row_scan_without_tree_or_match(engine_config):
    identifier = normalize_identifier("alice")

    assert scan_rows(Document(), identifier, engine_config.raw) is None
    assert scan_rows(load(make_page(make_table([["#1", "bob", "1.0"]]))), identifier, engine_config.raw) is None


def test_element_scan_collects_parent_scope(engine_config):
    html = make_page(
        '<section class="board">'
        '<div class="entry"><span class="pos">#3</span><span class="name">@carol</span>'
        '<span class="pts">812.40</span></div>'
        '<div class="entry"><span class="pos">#4</span><span class="name">@dave</span>'
        '<span class="pts">700.00</span></div>'
        "</section>"
    )

    candidate = scan_elements(load(html), normalize_identifier("carol"), engine_config.raw)

    assert candidate is not None
    assert candidate.strategy == "elements"
    assert candidate.matched_text == "@carol"
    assert candidate.scope == ["#3", "@carol", "812.40"]


def test_element_scan_matches_own_text_not_wrappers(engine_config):
    html = make_page(
        '<div class="outer">Top creators<div class="card"><b>eve</b><i>#9</i></div></div>'
    )

    candidate = scan_elements(load(html), normalize_identifier("eve"), engine_config.raw)

    assert candidate.matched_text == "eve"
    assert candidate.scope == ["eve", "#9"]


def test_element_scan_ignores_script_text(engine_config):
    html = make_page("<script>track('frank')</script><p>nobody here</p>")

    assert scan_elements(load(html), normalize_identifier("frank"), engine_config.raw) is None


def test_json_search_finds_nested_handle(engine_config):
    state = {"props": {"pageProps": {"rows": [{"username": "Bob", "rank": 2}, {"username": "Alice", "rank": 1}]}}}
    document = Document(state=[state])

    candidate = search_json(document, normalize_identifier("ALICE"), engine_config.raw)

    assert candidate.strategy == "json"
    assert candidate.fields == {"username": "Alice", "rank": 1}


def test_json_search_is_depth_first_pre_order(engine_config):
    deep_first = {"group": {"members": [{"handle": "alice", "rank": 1}]}}
    shallow_second = {"handle": "alice", "rank": 2}
    document = Document(state=[[deep_first, shallow_second]])

    candidate = search_json(document, normalize_identifier("alice"), engine_config.raw)

    assert candidate.fields["rank"] == 1


def test_json_search_parent_checked_before_children(engine_config):
    state = {"handle": "alice", "rank": 1, "team": {"handle": "alice-team", "rank": 50}}

    candidate = search_json(Document(state=[state]), normalize_identifier("alice"), engine_config.raw)

    assert candidate.fields["rank"] == 1


def test_json_search_records_enclosing_object(engine_config):
    state = {"entries": [{"rank": 6, "score": 42.0, "user": {"handle": "gina"}}]}

    candidate = search_json(Document(state=[state]), normalize_identifier("gina"), engine_config.raw)

    assert candidate.fields == {"handle": "gina"}
    assert candidate.parent_fields["rank"] == 6


def test_json_search_terminates_on_deep_nesting(engine_config):
    node = {"handle": "target", "rank": 1}
    for _ in range(5000):
        node = {"child": [node]}

    candidate = search_json(Document(state=[node]), normalize_identifier("target"), engine_config.raw)

    assert candidate.fields == {"handle": "target", "rank": 1}


def test_json_search_ignores_non_handle_keys(engine_config):
    state = {"title": "alice's leaderboard", "rows": [{"bio": "alice"}]}

    assert search_json(Document(state=[state]), normalize_identifier("alice"), engine_config.raw) is None


def test_substring_handles_match_first_occurrence(engine_config):
    # Matching is substring based: "ann" also matches "anna" when anna comes first.
    document = load(make_page(make_table([["#1", "anna", "300.00"], ["#2", "ann", "200.00"]])))

    candidate = scan_rows(document, normalize_identifier("ann"), engine_config.raw)

    assert candidate.cells == ["#1", "anna", "300.00"]
