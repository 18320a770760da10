"""
Tolerant scanner for Mermaid flowchart text.

Recognises two line shapes and ignores everything else:
    id["Label"]            node declaration (also inline inside edge lines)
    a --> b                edge; also -.-> and ==>, optional |label|, chains
Lines starting with %% are comments. Never raises.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List

from reqgraph.compiler.render_mermaid import strip_fences

NODE_RE = re.compile(r'(\w+)\["([^"]+)"\]')
EDGE_RE = re.compile(r"(\w+)\s*(-->|-\.->|==>)\s*(?:\|([^|]*)\|\s*)?(?=(\w+))")

DOTTED_ARROW = "-.->"


@dataclass
class ParsedEdge:
    source: str
    target: str
    arrow: str = "-->"
    label: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.arrow == DOTTED_ARROW or self.label.strip().lower() == "fallback"


@dataclass
class ParsedDiagram:
    node_labels: Dict[str, str] = field(default_factory=dict)   # id -> label
    label_to_id: Dict[str, str] = field(default_factory=dict)   # label -> id
    edges: List[ParsedEdge] = field(default_factory=list)

    def label_of(self, node_id: str) -> str:
        return self.node_labels.get(node_id, "")

    @property
    def is_empty(self) -> bool:
        return not self.node_labels and not self.edges


def parse_diagram(text: str) -> ParsedDiagram:
    parsed = ParsedDiagram()
    if not text or not isinstance(text, str):
        return parsed

    for raw_line in strip_fences(text).splitlines():
        line = raw_line.strip()
        if not line or line.startswith("%%"):
            continue

        for match in NODE_RE.finditer(line):
            parsed.node_labels[match.group(1)] = match.group(2)

        # a["A"] --> b["B"]  ->  a --> b
        bare = NODE_RE.sub(lambda m: m.group(1), line)

        for match in EDGE_RE.finditer(bare):
            parsed.edges.append(
                ParsedEdge(
                    source=match.group(1),
                    target=match.group(4),
                    arrow=match.group(2),
                    label=(match.group(3) or "").strip(),
                )
            )

    for node_id, label in parsed.node_labels.items():
        parsed.label_to_id[label] = node_id

    return parsed
