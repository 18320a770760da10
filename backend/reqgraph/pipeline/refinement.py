"""
Two-pass requirements extraction with diagram-driven refinement.

Pipeline:
1. Extract a base summary with the fast model
2. Diagnose the summary's workflow diagram
3. If the diagram shows structural problems, refine with the stronger model
4. Return the final summary, its diagram and the diagnostics

Extraction failures propagate. Refinement failures are logged and the
base summary is used unchanged.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union
import logging
import time

from reqgraph import config
from reqgraph.compiler.keywords import KeywordTables, load_keyword_tables
from reqgraph.compiler.synthesizer import diagram_for, synthesize_graph
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.llm.parser import SummaryLike, parse_requirements_summary
from reqgraph.pipeline.extractor import RequirementsExtractor, RequirementsRefiner, build_transcript
from reqgraph.validation.diagnostics import DiagnosticsReport, analyze_diagram

logger = logging.getLogger(__name__)


ProgressSink = Callable[[int, str], None]
ExtractFn = Callable[[str], SummaryLike]
RefineFn = Callable[[str, RequirementsSummary, DiagnosticsReport], SummaryLike]


@dataclass
class RefinementPolicy:
    """
    Which diagnostics trigger the expensive second pass.

    Unused modules alone are tolerated by default: non-critical modules
    may legitimately have no users yet.
    """
    refine_on_orphan_modules: bool = False

    def needs_refinement(self, report: DiagnosticsReport) -> bool:
        if report.actors_with_no_connections:
            return True
        if report.key_modules_missing_or_orphaned:
            return True
        if report.suspicious_client_edges:
            return True
        if self.refine_on_orphan_modules and report.modules_with_no_connections:
            return True
        return False


@dataclass
class RefinementResult:
    summary: RequirementsSummary
    diagram: str
    was_refined: bool
    diagnostics: DiagnosticsReport
    refined_diagnostics: Optional[DiagnosticsReport] = None
    issues_fixed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requirements": self.summary.to_dict(),
            "mermaid": self.diagram,
            "wasRefined": self.was_refined,
            "metrics": self.diagnostics.to_dict(),
            "refinedMetrics": (
                self.refined_diagnostics.to_dict() if self.refined_diagnostics else None
            ),
            "issuesFixed": self.issues_fixed,
        }


class ProgressReporter:
    """
    Forwards coarse progress to an optional sink.

    Percentages only move forward. A failing sink is logged and otherwise
    ignored; progress never changes the pipeline's result.
    """

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink
        self.last = -1
        self.started = time.monotonic()

    def __call__(self, percent: int, label: str):
        if self.sink is None or percent <= self.last:
            return
        self.last = percent
        elapsed = time.monotonic() - self.started
        logger.debug("[PROGRESS] %d%% at %.2fs: %s", percent, elapsed, label)
        try:
            self.sink(percent, label)
        except Exception:
            logger.warning("[PROGRESS] Progress sink failed at %d%%", percent, exc_info=True)


def _describe(summary: RequirementsSummary) -> str:
    company = summary.business_context.company_name or "unnamed business"
    return (
        f"{company} ({len(summary.main_actors)} actors, "
        f"{len(summary.candidate_modules)} modules)"
    )


def _log_findings(report: DiagnosticsReport):
    if report.actors_with_no_connections:
        logger.warning(
            "[PIPELINE] %d actors with no connections: %s",
            len(report.actors_with_no_connections),
            ", ".join(report.actors_with_no_connections),
        )
    if report.modules_with_no_connections:
        logger.warning(
            "[PIPELINE] %d modules with no connections: %s",
            len(report.modules_with_no_connections),
            ", ".join(report.modules_with_no_connections),
        )
    if report.key_modules_missing_or_orphaned:
        logger.warning(
            "[PIPELINE] %d key modules orphaned: %s",
            len(report.key_modules_missing_or_orphaned),
            ", ".join(report.key_modules_missing_or_orphaned),
        )
    if report.suspicious_client_edges:
        logger.warning(
            "[PIPELINE] %d suspicious client connections detected",
            len(report.suspicious_client_edges),
        )


def count_issues_fixed(before: DiagnosticsReport, after: DiagnosticsReport) -> int:
    return (
        (len(before.actors_with_no_connections) - len(after.actors_with_no_connections))
        + (len(before.modules_with_no_connections) - len(after.modules_with_no_connections))
        + (len(before.key_modules_missing_or_orphaned) - len(after.key_modules_missing_or_orphaned))
    )


def run_pipeline(
    transcript: str,
    extract_fn: ExtractFn,
    refine_fn: RefineFn,
    progress_sink: Optional[ProgressSink] = None,
    score_threshold: Optional[int] = None,
    policy: Optional[RefinementPolicy] = None,
    tables: Optional[KeywordTables] = None,
) -> RefinementResult:
    """
    Run extraction, diagnose, and refine only when the diagram needs it.

    extract_fn(transcript) and refine_fn(transcript, base, diagnostics) may
    return a RequirementsSummary, a dict or raw JSON text.
    """
    threshold = config.SCORE_THRESHOLD if score_threshold is None else score_threshold
    policy = policy or RefinementPolicy()
    tables = tables or load_keyword_tables(config.KEYWORD_TABLES_PATH)
    progress = ProgressReporter(progress_sink)
    started = time.monotonic()

    # 1) Base extraction (fatal on failure)
    progress(25, "Extracting requirements from conversation")
    base = parse_requirements_summary(extract_fn(transcript))
    logger.info(
        "[PIPELINE] Extraction took %.2fs: %s",
        time.monotonic() - started, _describe(base),
    )

    # 2) Diagnostics
    progress(60, "Analyzing requirements quality")
    base_diagram = diagram_for(base, threshold, tables)
    diagnostics = analyze_diagram(base, base_diagram, tables)
    progress(65, "Checking relationships")
    _log_findings(diagnostics)

    # 3) Optional refinement
    final = base
    was_refined = False
    refined_diagnostics = None
    issues_fixed = 0

    if policy.needs_refinement(diagnostics):
        logger.info("[PIPELINE] Issues detected, refining %s", _describe(base))
        progress(70, "Refining requirements for quality")
        refine_started = time.monotonic()

        try:
            final = parse_requirements_summary(
                refine_fn(transcript, base, diagnostics),
                base=base,
            )
            was_refined = True
        except Exception:
            logger.exception(
                "[PIPELINE] Refinement failed for %s, falling back to base summary",
                _describe(base),
            )
            final = base

        logger.info("[PIPELINE] Refinement took %.2fs", time.monotonic() - refine_started)
        progress(80, "Verifying improvements")
    else:
        logger.info("[PIPELINE] No issues detected, using base summary")

    # 4) Final diagram, re-checked when the summary changed
    progress(85 if was_refined else 75, "Preparing workflow diagram")
    if was_refined:
        final_diagram = _refined_diagram(base, final, threshold, tables)
        refined_diagnostics = analyze_diagram(final, final_diagram, tables)
        issues_fixed = count_issues_fixed(diagnostics, refined_diagnostics)
        logger.info("[PIPELINE] Refinement complete. Fixed %d relationship issues", issues_fixed)
    else:
        final_diagram = base_diagram

    progress(90, "Finalizing results")
    logger.info("[PIPELINE] Total pipeline took %.2fs", time.monotonic() - started)
    progress(100, "Complete")

    return RefinementResult(
        summary=final,
        diagram=final_diagram,
        was_refined=was_refined,
        diagnostics=diagnostics,
        refined_diagnostics=refined_diagnostics,
        issues_fixed=issues_fixed,
    )


def _refined_diagram(
    base: RequirementsSummary,
    refined: RequirementsSummary,
    threshold: int,
    tables: KeywordTables,
) -> str:
    # a diagram carried over unchanged from the base pass describes the old summary
    if refined.workflow_diagram and refined.workflow_diagram == base.workflow_diagram:
        return synthesize_graph(refined, threshold, tables=tables)
    return diagram_for(refined, threshold, tables)


class RefinementPipeline:
    """
    Wires the LLM-backed extractor and refiner into run_pipeline.

    Usage:
        pipeline = RefinementPipeline()
        result = pipeline.run(chat_history, progress_sink=print_progress)
    """

    def __init__(
        self,
        extractor=None,
        refiner=None,
        score_threshold: Optional[int] = None,
        policy: Optional[RefinementPolicy] = None,
        tables: Optional[KeywordTables] = None,
    ):
        self.extractor = extractor or RequirementsExtractor()
        self.refiner = refiner or RequirementsRefiner()
        self.score_threshold = score_threshold
        self.policy = policy or RefinementPolicy()
        self.tables = tables

    def run(
        self,
        conversation: Union[str, List[Dict[str, Any]]],
        progress_sink: Optional[ProgressSink] = None,
    ) -> RefinementResult:
        if isinstance(conversation, str):
            transcript = conversation
        else:
            transcript = build_transcript(conversation)

        return run_pipeline(
            transcript,
            self.extractor,
            self.refiner,
            progress_sink=progress_sink,
            score_threshold=self.score_threshold,
            policy=self.policy,
            tables=self.tables,
        )
