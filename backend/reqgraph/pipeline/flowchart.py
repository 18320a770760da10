import json
from typing import Optional

from reqgraph import config
from reqgraph.compiler.render_mermaid import extract_mermaid_block, looks_like_mermaid
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.llm.base import LLMClient
from reqgraph.llm.client import ChatCompletionsClient
from reqgraph.llm.prompts import SYSTEM_PROMPT_FLOWCHART_GENERATOR


class FlowchartGenerationError(ValueError):
    """Raised when the model returns something that is not a Mermaid flowchart."""
    pass


class FlowchartGenerator:
    """
    Asks a model to author the workflow diagram for a summary.

    The result is an external diagram: run it through analyze_diagram
    before trusting it.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or ChatCompletionsClient(
            model=config.FLOWCHART_MODEL,
            temperature=config.FLOWCHART_TEMPERATURE,
        )

    def generate_flowchart(self, summary: RequirementsSummary) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT_FLOWCHART_GENERATOR},
            {"role": "user", "content": json.dumps(summary.to_dict(), indent=2)},
        ]

        diagram = extract_mermaid_block(self.client.generate(messages, response_format="text"))

        if not diagram:
            raise FlowchartGenerationError("No flowchart diagram generated")

        if not looks_like_mermaid(diagram):
            raise FlowchartGenerationError(
                "Generated output does not appear to be a valid Mermaid diagram"
            )

        return diagram

    def attach(self, summary: RequirementsSummary) -> RequirementsSummary:
        """Copy of the summary carrying a freshly generated workflow diagram."""
        return summary.model_copy(update={"workflow_diagram": self.generate_flowchart(summary)})
