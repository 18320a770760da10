"""
Validation module for workflow diagram diagnostics.
"""

from reqgraph.validation.diagram_parser import ParsedDiagram, ParsedEdge, parse_diagram
from reqgraph.validation.diagnostics import (
    DiagnosticsReport,
    ValidationIssue,
    ValidationSeverity,
    analyze_diagram,
)
