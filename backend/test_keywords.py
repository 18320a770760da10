"""Keyword tables and YAML overrides"""

import dataclasses
import logging

import pytest

from conftest import make_summary
from reqgraph.compiler.keywords import (
    DEFAULT_TABLES,
    KeywordTables,
    load_keyword_tables,
    tables_from_dict,
)
from reqgraph.compiler.synthesizer import build_graph
from reqgraph.validation.diagnostics import analyze_diagram


def test_defaults_when_no_path():
    assert load_keyword_tables() is DEFAULT_TABLES
    assert load_keyword_tables("") is DEFAULT_TABLES


def test_tables_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_TABLES.client_roles = ("patient",)
    with pytest.raises(TypeError):
        DEFAULT_TABLES.role_synonyms["tutor"] = ("tutor",)


def test_tables_from_dict_overrides_and_normalizes(caplog):
    with caplog.at_level(logging.WARNING, logger="reqgraph.compiler.keywords"):
        tables = tables_from_dict({
            "client_roles": ["Patient", "Client"],
            "role_synonyms": {"Tutor": ["Tutor", "Coach"]},
            "co_manager_anchor": None,
            "colour_scheme": ["blue"],
        })

    assert tables.client_roles == ("patient", "client")
    assert tables.synonyms_for("tutor") == ("tutor", "coach")
    assert tables.synonyms_for("owner") is None
    # null means "keep the default"
    assert tables.co_manager_anchor == DEFAULT_TABLES.co_manager_anchor
    assert tables.stopwords == DEFAULT_TABLES.stopwords
    assert "colour_scheme" in caplog.text


def test_load_from_yaml(tmp_path):
    path = tmp_path / "keywords.yaml"
    path.write_text(
        "role_synonyms:\n"
        "  tutor: [tutor, coach, instructor]\n"
        "key_module_patterns:\n"
        "  - booking calendar\n"
        "co_manager_anchor: ''\n",
        encoding="utf-8",
    )

    tables = load_keyword_tables(str(path))

    assert isinstance(tables, KeywordTables)
    assert tables.synonyms_for("tutor") == ("tutor", "coach", "instructor")
    assert tables.key_module_patterns == ("booking calendar",)
    assert tables.co_manager_anchor is None


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "keywords.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_keyword_tables(str(path))


def test_empty_yaml_keeps_defaults(tmp_path):
    path = tmp_path / "keywords.yaml"
    path.write_text("", encoding="utf-8")
    assert load_keyword_tables(str(path)) == DEFAULT_TABLES


def test_custom_tables_change_scoring_and_diagnostics():
    summary = make_summary(
        actors=[("Instructor", "")],
        modules=[("Booking Calendar", "coach books lesson slots", "should-have")],
    )

    assert build_graph(summary).edges == []

    tables = tables_from_dict({
        "role_synonyms": {"instructor": ["instructor", "coach"]},
        "key_module_patterns": ["booking calendar"],
    })
    graph = build_graph(summary, tables=tables)
    assert graph.edge_labels()[0][:2] == ("Instructor", "Booking Calendar")

    report = analyze_diagram(summary, "flowchart TD", tables)
    assert report.key_modules_missing_or_orphaned == ["Booking Calendar"]
