import json
import re
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from reqgraph.ir.requirements_ir import BusinessContext, RequirementsSummary


class SummaryParseError(ValueError):
    """Raised when model output cannot be read as a RequirementsSummary."""
    pass


# ============================================================
# SAFE JSON LOADER (LLM TRUST BOUNDARY)
# ============================================================

def safe_load_json(json_text: str) -> Dict[str, Any]:
    """
    Safely extract and parse a JSON object from LLM output.

    Strategy:
    1. Try direct json.loads (fast path)
    2. Fallback to extracting first {...} block
    3. Fail gracefully with empty dict

    NEVER throws.
    """

    if not json_text or not isinstance(json_text, str):
        return {}

    try:
        data = json.loads(json_text)
        return data if isinstance(data, dict) else {}
    except ValueError:
        pass

    match = re.search(r"\{.*\}", json_text, re.DOTALL)
    if not match:
        return {}

    try:
        data = json.loads(match.group(0))
        return data if isinstance(data, dict) else {}
    except ValueError:
        return {}


# ============================================================
# SUMMARY PARSER
# ============================================================

SummaryLike = Union[RequirementsSummary, Dict[str, Any], str]


def summary_to_dict(value: SummaryLike) -> Dict[str, Any]:
    """
    Model output (summary, dict or JSON text) -> plain dict with wire keys.
    Raises SummaryParseError if there is nothing usable.
    """
    if isinstance(value, RequirementsSummary):
        return value.to_dict()

    if isinstance(value, dict):
        return value

    if isinstance(value, str):
        data = safe_load_json(value)
        if not data:
            raise SummaryParseError(f"No JSON object in model output: {value[:200]!r}")
        return data

    raise SummaryParseError(f"Unsupported summary type: {type(value).__name__}")


def parse_requirements_summary(
    value: SummaryLike,
    base: Optional[RequirementsSummary] = None,
) -> RequirementsSummary:
    """
    Parse model output into a RequirementsSummary.

    With `base`, fields missing from the output keep the base values, so a
    refined summary never loses fields the first pass produced.
    """
    if isinstance(value, RequirementsSummary) and base is None:
        return value

    data = summary_to_dict(value)

    if base is not None:
        data = _merge_over(base.to_dict(), _to_wire_keys(data))

    try:
        return RequirementsSummary.model_validate(data)
    except ValidationError as e:
        raise SummaryParseError(f"Model output does not match RequirementsSummary: {e}") from e


def _aliases(model) -> Dict[str, str]:
    return {name: (info.alias or name) for name, info in model.model_fields.items()}


def _to_wire_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """snake_case keys -> the camelCase aliases used by to_dict()"""
    aliases = _aliases(RequirementsSummary)
    wire = {aliases.get(k, k): v for k, v in data.items()}

    context = wire.get("businessContext")
    if isinstance(context, dict):
        context_aliases = _aliases(BusinessContext)
        wire["businessContext"] = {context_aliases.get(k, k): v for k, v in context.items()}

    return wire


def _merge_over(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursive merge: nested objects (businessContext) merge key by key,
    lists and scalars replace, nulls keep the base value.
    """
    merged = dict(base)
    for key, value in update.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_over(merged[key], value)
        else:
            merged[key] = value
    return merged
