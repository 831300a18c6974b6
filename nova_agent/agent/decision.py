"""
Decision parsing: turn raw model text into Final, ToolCall, or a named failure.

The model is asked for a single JSON object but often wraps it in a code fence
or prose. Extraction is a heuristic (fence strip, then brace/bracket slicing),
not a grammar: stray braces in surrounding prose can still mis-extract.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from nova_agent.agent.tools import is_tool_name
from nova_agent.core.errors import ErrorKind

_FENCE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


@dataclass(frozen=True)
class FinalDecision:
    output: str


@dataclass(frozen=True)
class ToolCallDecision:
    tool: str
    input: Any


@dataclass(frozen=True)
class DecisionFailure:
    kind: ErrorKind
    message: str


Decision = Union[FinalDecision, ToolCallDecision]


def extract_json_text(text: str) -> str:
    """Best guess at the JSON part of text. Returns text (trimmed) when nothing better is found."""
    trimmed = (text or "").strip()
    match = _FENCE.match(trimmed)
    candidate = match.group(1).strip() if match else trimmed

    if candidate.startswith("{") or candidate.startswith("["):
        return candidate

    first, last = candidate.find("{"), candidate.rfind("}")
    if first >= 0 and last > first:
        return candidate[first : last + 1]

    first, last = candidate.find("["), candidate.rfind("]")
    if first >= 0 and last > first:
        return candidate[first : last + 1]

    return candidate


def safe_json_parse(text: str) -> Any | None:
    """Parse the extracted JSON; None on any failure."""
    try:
        return json.loads(extract_json_text(text))
    except (TypeError, ValueError, RecursionError):
        return None


def _final_text(output: Any) -> str:
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    return json.dumps(output, ensure_ascii=False)


def interpret_decision(value: Any) -> Decision | DecisionFailure:
    """
    Accepted shapes, in order:
      {"action": "final", "output": ...}
      {"action": "tool", "tool": <name>, "input": ...}
      {"action": <name>, "input": ...}
    """
    if not isinstance(value, dict) or "action" not in value:
        return DecisionFailure(
            ErrorKind.DECISION_PARSE,
            "Model did not return valid JSON decision. Ensure the model is following the JSON-only contract.",
        )
    action = value["action"]
    if action == "final":
        return FinalDecision(_final_text(value.get("output")))
    if action == "tool":
        tool = value.get("tool")
        if not is_tool_name(tool):
            return DecisionFailure(ErrorKind.UNKNOWN_TOOL, f"Unknown or missing tool: {tool}")
        return ToolCallDecision(tool, value.get("input"))
    if is_tool_name(action):
        return ToolCallDecision(action, value.get("input"))
    return DecisionFailure(ErrorKind.DECISION_PARSE, f"Unknown model action: {action}")


def parse_decision(text: str) -> Decision | DecisionFailure:
    """Total over any input: never raises for malformed model text."""
    return interpret_decision(safe_json_parse(text))
