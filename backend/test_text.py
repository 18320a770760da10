"""Text normalization and role keyword expansion"""

from reqgraph.compiler.keywords import ROLE_SYNONYMS
from reqgraph.compiler.scoring import extract_actor_keywords
from reqgraph.compiler.text import (
    has_any_common_word,
    is_strong_keyword_match,
    is_weak_keyword_match,
    normalize_text,
    tokenize_words,
)


def test_normalize_text_drops_stopwords_digits_and_punctuation():
    assert normalize_text("The 3 owners, and 42 invoices!") == {"owners", "invoices"}


def test_normalize_text_keeps_mixed_alphanumeric_tokens():
    assert normalize_text("Q3 report for 2024") == {"q3", "report"}


def test_normalize_text_keeps_underscores():
    assert normalize_text("status_tracking module") == {"status_tracking", "module"}


def test_normalize_text_empty_input():
    assert normalize_text("") == set()
    assert normalize_text(None) == set()


def test_normalize_text_is_deterministic():
    text = "Reporting & Analytics: owner-facing, weekly."
    assert normalize_text(text) == normalize_text(text) == {
        "reporting", "analytics", "owner", "facing", "weekly",
    }


def test_tokenize_words_keeps_order_digits_and_duplicates():
    assert tokenize_words("Team 2 and Team B") == ["team", "2", "team", "b"]


def test_strong_match_is_exact_membership():
    assert is_strong_keyword_match(["owner"], {"owner", "reports"})
    assert not is_strong_keyword_match(["owner"], {"owners"})


def test_weak_match_is_substring_with_length_guard():
    assert is_weak_keyword_match(["consultant"], {"consultants"})
    # "man" is too short to count
    assert not is_weak_keyword_match(["man"], {"management"})
    assert is_weak_keyword_match(["staff"], {"staffing"})


def test_has_any_common_word():
    assert has_any_common_word({"invoice", "portal"}, {"invoice"})
    assert not has_any_common_word({"invoice"}, set())


def test_role_keyword_expansion_uses_synonym_table():
    assert extract_actor_keywords("Owner") == list(ROLE_SYNONYMS["owner"])
    assert extract_actor_keywords("Project Manager") == list(ROLE_SYNONYMS["manager"])


def test_role_keyword_expansion_strips_punctuation():
    assert extract_actor_keywords("Client (Omnigo)") == ["client", "customer", "user"]


def test_role_keyword_expansion_falls_back_to_name_words():
    assert extract_actor_keywords("Field Technician") == ["field", "technician"]
    assert extract_actor_keywords("Head of Sales") == ["head", "sales"]
