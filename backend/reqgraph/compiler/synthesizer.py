"""
Graph Synthesizer - turns a RequirementsSummary into an actor/module/tool graph.

Emission order is fixed so the same summary always renders to the same text:
actor nodes, module nodes, tool nodes, actor->module edges, tool->module edges.
Actors, modules and tools are each sorted by name.
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from reqgraph.compiler.fallback import find_best_fallback_module
from reqgraph.compiler.keywords import DEFAULT_TABLES, KeywordTables
from reqgraph.compiler.render_mermaid import render_mermaid, strip_fences, wrap_in_markdown, NO_DIAGRAM
from reqgraph.compiler.scoring import (
    DEFAULT_SCORE_THRESHOLD,
    extract_actor_keywords,
    score_actor_module,
)
from reqgraph.compiler.text import has_any_common_word, normalize_text
from reqgraph.compiler.types import Edge, EdgeKind, Graph, Node, NodeKind
from reqgraph.ir.requirements_ir import Actor, CandidateModule, RequirementsSummary

logger = logging.getLogger(__name__)

EMPTY_NODE = Node("empty", "No actors or modules identified", NodeKind.PLACEHOLDER)
NO_MODULES_NODE = Node("no_modules", "No modules identified", NodeKind.PLACEHOLDER)


class NodeIdAllocator:
    """
    Collision-free Mermaid ids derived from display names.

    "Invoice Portal" -> invoice_portal, a second "Invoice Portal!" -> invoice_portal_1.
    The same (kind, name) always maps to the same id.
    """

    def __init__(self, reserved: Optional[Set[str]] = None):
        self.used: Set[str] = set(reserved or ())
        self._by_name: Dict[Tuple[NodeKind, str], str] = {}

    @staticmethod
    def slugify(name: str) -> str:
        base = re.sub(r"[^a-z0-9_ ]+", "", name.strip().lower())
        base = re.sub(r"\s+", "_", base)
        return base or "node"

    def allocate(self, name: str, kind: NodeKind) -> str:
        key = (kind, name)
        if key in self._by_name:
            return self._by_name[key]

        base = self.slugify(name)
        node_id = base
        counter = 1
        while node_id in self.used:
            node_id = f"{base}_{counter}"
            counter += 1

        self.used.add(node_id)
        self._by_name[key] = node_id
        return node_id


def _unique_by_name(items):
    seen = set()
    unique = []
    for item in items:
        if item.name in seen:
            continue
        seen.add(item.name)
        unique.append(item)
    return unique


def _prepare(summary: RequirementsSummary) -> Tuple[List[Actor], List[CandidateModule], List[str]]:
    actors = sorted(_unique_by_name(summary.main_actors), key=lambda a: a.name)
    modules = sorted(_unique_by_name(summary.candidate_modules), key=lambda m: m.name)
    tools = sorted({t for t in summary.current_tools if t and t.strip()})
    return actors, modules, tools


def build_graph(
    summary: RequirementsSummary,
    score_threshold: int = DEFAULT_SCORE_THRESHOLD,
    simple_mode: bool = False,
    tables: KeywordTables = DEFAULT_TABLES,
) -> Graph:
    """
    Build a fresh relationship graph for the summary.

    simple_mode skips scoring and connects every actor to every module
    (debug aid).
    """
    actors, modules, tools = _prepare(summary)
    graph = Graph()

    if not actors and not modules:
        graph.nodes.append(Node(EMPTY_NODE.id, EMPTY_NODE.label, EMPTY_NODE.kind))
        return graph

    # placeholder ids are reserved so a module named "No Modules" cannot collide
    ids = NodeIdAllocator(reserved={EMPTY_NODE.id, NO_MODULES_NODE.id})

    for actor in actors:
        graph.nodes.append(Node(ids.allocate(actor.name, NodeKind.ACTOR), actor.name, NodeKind.ACTOR))

    if not modules:
        graph.nodes.append(Node(NO_MODULES_NODE.id, NO_MODULES_NODE.label, NO_MODULES_NODE.kind))
        return graph

    for module in modules:
        graph.nodes.append(Node(ids.allocate(module.name, NodeKind.MODULE), module.name, NodeKind.MODULE))

    module_desc_words = {m.name: normalize_text(m.description, tables) for m in modules}
    module_name_words = {m.name: normalize_text(m.name, tables) for m in modules}

    # Tools only appear when they touch some module
    tool_links: List[Tuple[str, List[CandidateModule]]] = []
    for tool in tools:
        tool_words = normalize_text(tool, tables)
        linked = [m for m in modules if has_any_common_word(tool_words, module_desc_words[m.name])]
        if linked:
            tool_links.append((tool, linked))
            graph.nodes.append(Node(ids.allocate(tool, NodeKind.TOOL), tool, NodeKind.TOOL))

    for actor in actors:
        actor_id = ids.allocate(actor.name, NodeKind.ACTOR)

        if simple_mode:
            for module in modules:
                graph.edges.append(
                    Edge(actor_id, ids.allocate(module.name, NodeKind.MODULE), EdgeKind.SCORED)
                )
            continue

        keywords = extract_actor_keywords(actor.name, tables)
        scores: Dict[str, int] = {}
        drawn = 0

        for module in modules:
            score = score_actor_module(
                actor,
                module,
                summary,
                keywords,
                module_desc_words[module.name],
                module_name_words[module.name],
                tables,
            )
            scores[module.name] = score

            if score >= score_threshold:
                graph.edges.append(
                    Edge(actor_id, ids.allocate(module.name, NodeKind.MODULE), EdgeKind.SCORED, score)
                )
                drawn += 1

        if drawn:
            continue

        fallback = find_best_fallback_module(actor, modules, scores, tables)
        if fallback is None:
            logger.debug("[SYNTH] No edge for actor '%s'", actor.name)
            continue

        module, score = fallback
        logger.debug("[SYNTH] Fallback edge %s -> %s (score=%s)", actor.name, module.name, score)
        graph.edges.append(
            Edge(actor_id, ids.allocate(module.name, NodeKind.MODULE), EdgeKind.FALLBACK, score)
        )

    for tool, linked in tool_links:
        tool_id = ids.allocate(tool, NodeKind.TOOL)
        for module in linked:
            graph.edges.append(
                Edge(tool_id, ids.allocate(module.name, NodeKind.MODULE), EdgeKind.INTEGRATION)
            )

    return graph


def synthesize_graph(
    summary: RequirementsSummary,
    score_threshold: int = DEFAULT_SCORE_THRESHOLD,
    simple_mode: bool = False,
    tables: KeywordTables = DEFAULT_TABLES,
) -> str:
    """
    Render the relationship graph for a summary as Mermaid flowchart text.
    """
    graph = build_graph(summary, score_threshold, simple_mode, tables)
    logger.debug(
        "[SYNTH] %d nodes, %d edges (threshold=%s, simple=%s)",
        len(graph.nodes), len(graph.edges), score_threshold, simple_mode,
    )
    return render_mermaid(graph)


def diagram_for(
    summary: RequirementsSummary,
    score_threshold: int = DEFAULT_SCORE_THRESHOLD,
    tables: KeywordTables = DEFAULT_TABLES,
) -> str:
    """
    The diagram a summary is judged by: its own authored diagram when it
    carries one, otherwise the synthesized graph.
    """
    authored = strip_fences(summary.workflow_diagram)
    if authored:
        return authored
    return synthesize_graph(summary, score_threshold, tables=tables)


def render_workflow_diagram(summary: RequirementsSummary) -> str:
    """Fenced Mermaid block for display, with a placeholder when nothing was authored."""
    if not summary.workflow_diagram or not summary.workflow_diagram.strip():
        return wrap_in_markdown(NO_DIAGRAM)
    return wrap_in_markdown(summary.workflow_diagram)
