import re
from typing import Iterable, List, Optional, Set

from reqgraph.compiler.keywords import DEFAULT_TABLES, KeywordTables

_PUNCT_RE = re.compile(r"[^\w\s]")
_DIGITS_RE = re.compile(r"^\d+$")


def tokenize_words(
    text: Optional[str],
    tables: KeywordTables = DEFAULT_TABLES,
) -> List[str]:
    """
    Lowercase, punctuation-free words in source order, stopwords removed.
    Duplicates are kept.
    """
    if not text:
        return []

    cleaned = _PUNCT_RE.sub(" ", text.lower())
    return [w for w in cleaned.split() if w not in tables.stopwords]


def normalize_text(
    text: Optional[str],
    tables: KeywordTables = DEFAULT_TABLES,
) -> Set[str]:
    """
    Converts free text into a comparable keyword set.
    Same rules as tokenize_words, plus pure-digit tokens are dropped.
    """
    return {w for w in tokenize_words(text, tables) if not _DIGITS_RE.match(w)}


def is_strong_keyword_match(keywords: Iterable[str], target_words: Set[str]) -> bool:
    return any(kw in target_words for kw in keywords)


def is_weak_keyword_match(keywords: Iterable[str], target_words: Set[str]) -> bool:
    # keyword must be 4+ chars so "man" does not match "management", "manual", ...
    for kw in keywords:
        if len(kw) < 4:
            continue
        if any(kw in word for word in target_words):
            return True
    return False


def has_any_common_word(a: Set[str], b: Set[str]) -> bool:
    return not a.isdisjoint(b)
