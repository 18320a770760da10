from typing import Dict, List, Optional, Tuple

from reqgraph.compiler.keywords import DEFAULT_TABLES, KeywordTables
from reqgraph.compiler.text import tokenize_words
from reqgraph.ir.requirements_ir import Actor, CandidateModule


def is_client_actor(actor_name: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    words = set(tokenize_words(actor_name, tables))
    return any(role in words for role in tables.client_roles)


def find_best_fallback_module(
    actor: Actor,
    modules: List[CandidateModule],
    scores_for_actor: Dict[str, int],
    tables: KeywordTables = DEFAULT_TABLES,
) -> Optional[Tuple[CandidateModule, int]]:
    """
    Pick the most plausible module for an actor that drew no scored edge.

    Reuses precomputed scores; nothing is rescored. Client actors are
    never force-connected: they only get a fallback with a score of 2+.
    Returns (module, score) or None.
    """
    best: Optional[CandidateModule] = None
    best_score = 0

    for module in modules:
        score = scores_for_actor.get(module.name, 0)
        if score > best_score:
            best_score = score
            best = module

    if is_client_actor(actor.name, tables) and best_score < 2:
        return None

    if best is None:
        # Nothing scored: look for a generic entry point
        for module in modules:
            name_lower = module.name.lower()
            if not any(p in name_lower for p in tables.entry_point_patterns):
                continue
            if module.is_must_have:
                return module, 0
            if best is None:
                best = module

    if best is None:
        return None

    return best, best_score
