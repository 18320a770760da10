from reqgraph.compiler.render_mermaid import render_mermaid, strip_fences, wrap_in_markdown
from reqgraph.compiler.synthesizer import build_graph, diagram_for, synthesize_graph
from reqgraph.compiler.types import Edge, EdgeKind, Graph, Node, NodeKind
