"""
Relationship scoring between actors and candidate modules.

Signals, strongest first:
- module description and name mention the actor (or a role synonym)
- a pain point mentions both the actor and the module
- a goal loosely mentions both (alignment only)
- must-have priority and management/reporting affinity as tie-breakers

A score at or above the threshold draws an edge. Scores are bounded
to [0, MAX_SCORE].
"""

from typing import Dict, List, Set

from reqgraph.compiler.keywords import DEFAULT_TABLES, MAX_SCORE, KeywordTables
from reqgraph.compiler.text import (
    has_any_common_word,
    is_strong_keyword_match,
    is_weak_keyword_match,
    normalize_text,
    tokenize_words,
)
from reqgraph.ir.requirements_ir import Actor, CandidateModule, RequirementsSummary


DEFAULT_SCORE_THRESHOLD = 2


def extract_actor_keywords(
    actor_name: str,
    tables: KeywordTables = DEFAULT_TABLES,
) -> List[str]:
    """
    "Business Owner" -> owner synonyms, "Field Technician" -> ["field", "technician"].
    """
    words = tokenize_words(actor_name, tables)

    for word in words:
        synonyms = tables.synonyms_for(word)
        if synonyms:
            return list(synonyms)

    return words


def has_management_affinity(
    actor: Actor,
    actor_keywords: List[str],
    summary: RequirementsSummary,
    tables: KeywordTables = DEFAULT_TABLES,
) -> bool:
    if any(role in actor_keywords for role in tables.management_roles):
        return True

    if not tables.co_manager_anchor:
        return False

    actor_lower = actor.name.lower()
    if not any(marker in actor_lower for marker in tables.co_manager_markers):
        return False

    return any(
        tables.co_manager_anchor in a.name.lower()
        for a in summary.main_actors
        if a.name != actor.name
    )


def is_management_module(module: CandidateModule, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    name_lower = module.name.lower()
    return any(kw in name_lower for kw in tables.management_module_keywords)


def score_actor_module(
    actor: Actor,
    module: CandidateModule,
    summary: RequirementsSummary,
    actor_keywords: List[str],
    module_desc_words: Set[str],
    module_name_words: Set[str],
    tables: KeywordTables = DEFAULT_TABLES,
) -> int:
    """
    Pure scoring function: depends only on its arguments.
    Keyword and word sets must be normalized by the caller.
    """
    # Too little description to judge
    if not module_desc_words or len(module_desc_words) < 2:
        return 0

    score = 0

    # Description (0-2)
    if is_strong_keyword_match(actor_keywords, module_desc_words):
        score += 2
    elif is_weak_keyword_match(actor_keywords, module_desc_words):
        score += 1

    # Name (0-2), no weak variant
    if is_strong_keyword_match(actor_keywords, module_name_words):
        score += 2

    # Pain points (0-2): one pain point must mention both actor and module
    for pain_point in summary.pain_points:
        pp_words = normalize_text(pain_point.description, tables)
        if (
            is_strong_keyword_match(actor_keywords, pp_words)
            and has_any_common_word(module_name_words, pp_words)
        ):
            score += 2
            break

    # Goals (0-1): weak alignment only
    for goal in summary.goals:
        goal_words = normalize_text(goal, tables)
        if (
            is_weak_keyword_match(actor_keywords, goal_words)
            and has_any_common_word(module_name_words, goal_words)
        ):
            score += 1
            break

    if module.is_must_have:
        score += 1

    if (
        has_management_affinity(actor, actor_keywords, summary, tables)
        and is_management_module(module, tables)
    ):
        score += 1

    return min(score, MAX_SCORE)


def score_matrix(
    summary: RequirementsSummary,
    tables: KeywordTables = DEFAULT_TABLES,
) -> Dict[str, Dict[str, int]]:
    """
    Scores for every (actor, module) pair: {actor name: {module name: score}}.
    Later duplicates of a name overwrite earlier ones.
    """
    module_words = {
        m.name: (normalize_text(m.description, tables), normalize_text(m.name, tables))
        for m in summary.candidate_modules
    }

    matrix: Dict[str, Dict[str, int]] = {}
    for actor in summary.main_actors:
        keywords = extract_actor_keywords(actor.name, tables)
        row = {}
        for module in summary.candidate_modules:
            desc_words, name_words = module_words[module.name]
            row[module.name] = score_actor_module(
                actor, module, summary, keywords, desc_words, name_words, tables
            )
        matrix[actor.name] = row

    return matrix
