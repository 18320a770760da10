import json
from typing import Any, Dict, List, Optional, Union

from reqgraph import config
from reqgraph.llm.base import LLMClient
from reqgraph.ir.requirements_ir import RequirementsSummary
from reqgraph.llm.client import ChatCompletionsClient
from reqgraph.llm.parser import parse_requirements_summary
from reqgraph.llm.prompts import (
    REFINER_USER_INSTRUCTION,
    SYSTEM_PROMPT_EXTRACTOR,
    SYSTEM_PROMPT_REFINER,
)
from reqgraph.validation.diagnostics import DiagnosticsReport


def _content_text(content: Union[str, List[Dict[str, Any]], None]) -> str:
    if isinstance(content, str):
        return content
    if not content:
        return ""

    texts = [part.get("text", "") for part in content if part.get("type") == "text"]
    images = sum(1 for part in content if part.get("type") == "image_url")

    text = " ".join(t for t in texts if t)
    if images:
        text += f" [{images} image(s) uploaded]"
    return text


def build_transcript(history: List[Dict[str, Any]]) -> str:
    """
    Condense chat history into "ROLE: text" paragraphs.

    System messages are skipped. Multimodal messages keep their text
    parts and note how many images were attached.
    """
    parts = []
    for message in history:
        role = message.get("role", "user")
        if role == "system":
            continue
        parts.append(f"{role.upper()}: {_content_text(message.get('content'))}")
    return "\n\n".join(parts)


class RequirementsExtractor:
    """
    First pass: transcript -> RequirementsSummary with the fast model.
    Failures propagate to the caller.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or ChatCompletionsClient(
            model=config.EXTRACTOR_MODEL,
            temperature=config.EXTRACTOR_TEMPERATURE,
        )

    def extract_from_transcript(self, transcript: str) -> RequirementsSummary:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT_EXTRACTOR},
            {"role": "user", "content": transcript},
        ]
        raw = self.client.generate(messages, response_format="json")
        return parse_requirements_summary(raw)

    __call__ = extract_from_transcript


class RequirementsRefiner:
    """
    Second pass with the stronger model, driven by diagram diagnostics.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or ChatCompletionsClient(
            model=config.REFINER_MODEL,
            temperature=config.REFINER_TEMPERATURE,
        )

    def build_messages(
        self,
        transcript: str,
        original: RequirementsSummary,
        diagnostics: DiagnosticsReport,
    ) -> List[Dict[str, str]]:
        payload = {
            "transcript": transcript,
            "originalRequirementsSummary": original.to_dict(),
            "mermaidDiagnostics": diagnostics.to_dict(),
        }
        return [
            {"role": "system", "content": SYSTEM_PROMPT_REFINER},
            {
                "role": "user",
                "content": f"{REFINER_USER_INSTRUCTION}\n\n{json.dumps(payload, indent=2)}",
            },
        ]

    def refine(
        self,
        transcript: str,
        original: RequirementsSummary,
        diagnostics: DiagnosticsReport,
    ) -> RequirementsSummary:
        raw = self.client.generate(
            self.build_messages(transcript, original, diagnostics),
            response_format="json",
        )
        return parse_requirements_summary(raw, base=original)

    __call__ = refine
