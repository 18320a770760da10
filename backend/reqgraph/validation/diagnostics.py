"""
Diagram Diagnostics - reads a workflow diagram back against its summary.

Catches:
- Actors with no connections
- Modules with no connections
- Client actors wired to internal-looking modules
- Key modules (dashboards, reporting, status tracking, ...) left orphaned

The diagram may come from the synthesizer or from an external generator,
so the scan is tolerant: anything it cannot read contributes nothing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import logging

from reqgraph.compiler.keywords import DEFAULT_TABLES, KeywordTables
from reqgraph.compiler.render_mermaid import escape_label
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.validation.diagram_parser import parse_diagram

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    ERROR = "error"      # Diagram misrepresents who uses what
    WARNING = "warning"  # Diagram is incomplete
    INFO = "info"        # Worth a look, not a defect on its own


@dataclass
class ValidationIssue:
    """A single finding, in the shape the rest of the tooling reports issues"""
    severity: ValidationSeverity
    code: str
    message: str
    subject: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "subject": self.subject,
        }


@dataclass
class DiagnosticsReport:
    actors_with_no_connections: List[str] = field(default_factory=list)
    modules_with_no_connections: List[str] = field(default_factory=list)
    suspicious_client_edges: List[str] = field(default_factory=list)
    key_modules_missing_or_orphaned: List[str] = field(default_factory=list)

    # Informational: edges drawn as best-effort fallbacks
    fallback_edges: List[str] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return (
            len(self.actors_with_no_connections)
            + len(self.modules_with_no_connections)
            + len(self.suspicious_client_edges)
            + len(self.key_modules_missing_or_orphaned)
        )

    @property
    def is_clean(self) -> bool:
        return self.issue_count == 0

    def issues(self) -> List[ValidationIssue]:
        issues = []
        for name in self.actors_with_no_connections:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="ACTOR_NO_CONNECTIONS",
                message=f"Actor '{name}' is not connected to any module",
                subject=name,
            ))
        for edge in self.suspicious_client_edges:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="SUSPICIOUS_CLIENT_EDGE",
                message=f"Client actor reaches an internal module: {edge}",
                subject=edge,
            ))
        for name in self.key_modules_missing_or_orphaned:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="KEY_MODULE_ORPHANED",
                message=f"Key module '{name}' has no users",
                subject=name,
            ))
        for name in self.modules_with_no_connections:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                code="MODULE_NO_CONNECTIONS",
                message=f"Module '{name}' is not connected to anything",
                subject=name,
            ))
        for edge in self.fallback_edges:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.INFO,
                code="FALLBACK_EDGE",
                message=f"Best-effort connection: {edge}",
                subject=edge,
            ))
        return issues

    def to_dict(self) -> Dict[str, List[str]]:
        """camelCase keys, as sent to the refinement model"""
        return {
            "actorsWithNoConnections": list(self.actors_with_no_connections),
            "modulesWithNoConnections": list(self.modules_with_no_connections),
            "suspiciousClientEdges": list(self.suspicious_client_edges),
            "keyModulesMissingOrOrphaned": list(self.key_modules_missing_or_orphaned),
        }

    def get_summary(self) -> str:
        return (
            f"Actors w/o edges: {len(self.actors_with_no_connections)}, "
            f"Modules w/o edges: {len(self.modules_with_no_connections)}, "
            f"Suspicious client edges: {len(self.suspicious_client_edges)}, "
            f"Orphaned key modules: {len(self.key_modules_missing_or_orphaned)}"
        )


def _append_unique(items: List[str], value: str):
    if value not in items:
        items.append(value)


def is_key_module(name: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    name_lower = name.lower()
    return any(pattern in name_lower for pattern in tables.key_module_patterns)


def is_client_facing_module(name: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    name_lower = name.lower()
    return any(kw in name_lower for kw in tables.client_facing_keywords)


def _index_by_label(names: List[str]) -> Dict[str, List[str]]:
    """
    Rendered label -> names. A name is reachable both as written and as
    render_mermaid escapes it ("Lead \"Dev\"" is drawn as Lead 'Dev').
    """
    index: Dict[str, List[str]] = {}
    for name in names:
        for label in (name, escape_label(name)):
            if not label:
                continue
            bucket = index.setdefault(label, [])
            if name not in bucket:
                bucket.append(name)
    return index


def analyze_diagram(
    summary: RequirementsSummary,
    diagram_text: str,
    tables: KeywordTables = DEFAULT_TABLES,
) -> DiagnosticsReport:
    """
    Compute structural defect signals for a diagram of `summary`.

    Actors and modules are matched to nodes by label, either exact or as
    the renderer escapes it; findings always carry the summary's names.
    Returns an empty report when there are no actors, no modules or no
    diagram.
    """
    report = DiagnosticsReport()

    actors = summary.main_actors if summary else []
    modules = summary.candidate_modules if summary else []

    if not actors or not modules or not diagram_text or not diagram_text.strip():
        return report

    diagram = parse_diagram(diagram_text)

    actor_connections: Dict[str, int] = {a.name: 0 for a in actors}
    module_connections: Dict[str, int] = {m.name: 0 for m in modules}
    actors_by_label = _index_by_label(list(actor_connections))
    modules_by_label = _index_by_label(list(module_connections))

    client_actors = {
        a.name for a in actors
        if any(role in a.name.lower() for role in tables.client_roles)
    }

    def display(label: str) -> str:
        names = actors_by_label.get(label) or modules_by_label.get(label)
        return names[0] if names else label

    for edge in diagram.edges:
        from_label = diagram.label_of(edge.source)
        to_label = diagram.label_of(edge.target)

        for label in {from_label, to_label}:
            for name in actors_by_label.get(label, ()):
                actor_connections[name] += 1
            for name in modules_by_label.get(label, ()):
                module_connections[name] += 1

        if edge.is_fallback and from_label and to_label:
            _append_unique(report.fallback_edges, f"{display(from_label)} --> {display(to_label)}")

        for actor_name in actors_by_label.get(from_label, ()):
            if actor_name not in client_actors:
                continue
            for module_name in modules_by_label.get(to_label, ()):
                if not is_client_facing_module(module_name, tables):
                    _append_unique(report.suspicious_client_edges, f"{actor_name} --> {module_name}")

    for actor in actors:
        if actor_connections[actor.name] == 0:
            _append_unique(report.actors_with_no_connections, actor.name)

    for module in modules:
        if module_connections[module.name] == 0:
            _append_unique(report.modules_with_no_connections, module.name)
            if is_key_module(module.name, tables):
                _append_unique(report.key_modules_missing_or_orphaned, module.name)

    logger.debug("[DIAGNOSTICS] %s", report.get_summary())
    return report
