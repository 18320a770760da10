"""
Requirements relationship graph: synthesis, diagnostics and refinement.
"""

from reqgraph.compiler.synthesizer import build_graph, synthesize_graph
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.pipeline.refinement import RefinementPipeline, RefinementResult, run_pipeline
from reqgraph.validation.diagnostics import DiagnosticsReport, analyze_diagram

__all__ = [
    "RequirementsSummary",
    "build_graph",
    "synthesize_graph",
    "analyze_diagram",
    "DiagnosticsReport",
    "run_pipeline",
    "RefinementPipeline",
    "RefinementResult",
]
