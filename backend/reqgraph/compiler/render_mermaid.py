# backend/reqgraph/compiler/render_mermaid.py

import re
from typing import List, Optional

from reqgraph.compiler.types import EdgeKind, Graph

HEADER = "flowchart TD"

# direction is optional: a bare "flowchart" renders top-down
MERMAID_DIRECTIVE_RE = re.compile(r"^(flowchart|graph)\b", re.IGNORECASE)
FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")
FENCED_BLOCK_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n(.*?)```", re.DOTALL)

NO_DIAGRAM = f'{HEADER}\n  no_diagram["No workflow diagram generated"]'

EDGE_ARROWS = {
    EdgeKind.SCORED: "-->",
    EdgeKind.FALLBACK: "-.->|fallback|",
    EdgeKind.INTEGRATION: "-->|integration|",
}


def escape_label(label: str) -> str:
    # a double quote would end the ["..."] label early
    return label.replace('"', "'").replace("\n", " ").strip()


def render_mermaid(graph: Graph, comments: Optional[List[str]] = None) -> str:
    lines = [HEADER]

    for comment in comments or []:
        lines.append(f"  %% {comment}")

    for node in graph.nodes:
        lines.append(f'  {node.id}["{escape_label(node.label)}"]')

    for edge in graph.edges:
        arrow = EDGE_ARROWS[edge.kind]
        lines.append(f"  {edge.source} {arrow} {edge.target}")

    return "\n".join(lines)


def strip_fences(code: str) -> str:
    """Remove ```mermaid ... ``` fences if present."""
    if not code:
        return ""
    cleaned = code.strip()
    if cleaned.startswith("```"):
        cleaned = FENCE_OPEN_RE.sub("", cleaned, count=1)
        cleaned = FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_mermaid_block(text: str) -> str:
    """
    Diagram body from model output: the first fenced block when the fence
    is surrounded by prose, otherwise the text with any outer fence removed.
    """
    if not text:
        return ""
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        match = FENCED_BLOCK_RE.search(cleaned)
        if match:
            return match.group(1).strip()
    return strip_fences(cleaned)


def wrap_in_markdown(code: str) -> str:
    return "```mermaid\n" + strip_fences(code) + "\n```"


def looks_like_mermaid(code: str) -> bool:
    """
    First non-comment line must be a flowchart/graph directive.
    """
    for line in strip_fences(code).splitlines():
        line = line.strip()
        if not line or line.startswith("%%"):
            continue
        return bool(MERMAID_DIRECTIVE_RE.match(line))
    return False
