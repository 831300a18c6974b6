"""
Agent tools: the fixed registry the model may call by name.

Tools: makePlan, retrieve, writeDraft. Each takes (context, input) where context
is the per-run ToolContext owned by the agent loop.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from nova_agent.core.config import RETRIEVE_LIMIT
from nova_agent.core.errors import UnknownToolError
from nova_agent.services.retrieval_service import SearchFn, retrieve as search_corpus

logger = logging.getLogger(__name__)

# Action values the decision parser treats as keywords; no tool may use them
RESERVED_ACTIONS = frozenset({"final", "tool"})


@dataclass
class ToolContext:
    """Mutable per-run state. Created by the agent loop, discarded when the run ends."""

    plan: list[str] = field(default_factory=list)
    draft: str = ""


def _as_text(tool_input: Any) -> str:
    if isinstance(tool_input, str):
        return tool_input
    return json.dumps(tool_input, ensure_ascii=False)


def make_plan(ctx: ToolContext, tool_input: Any, **_: Any) -> dict[str, list[str]]:
    """Static five-step template around the goal text; no inference."""
    goal = _as_text(tool_input)
    plan = [
        f"Understand the goal: {goal}",
        "Retrieve relevant context and constraints",
        "Propose an approach and key steps",
        "Draft the output",
        "Refine and finalize",
    ]
    ctx.plan = plan
    return {"plan": list(plan)}


def retrieve(ctx: ToolContext, tool_input: Any, search: SearchFn = search_corpus) -> dict[str, Any]:
    query = _as_text(tool_input)
    return {"hits": search(query, RETRIEVE_LIMIT)}


def write_draft(ctx: ToolContext, tool_input: Any, **_: Any) -> dict[str, str]:
    ctx.draft = _as_text(tool_input)
    return {"draft": ctx.draft}


TOOLS: dict[str, Callable[..., dict[str, Any]]] = {
    "makePlan": make_plan,
    "retrieve": retrieve,
    "writeDraft": write_draft,
}
TOOL_NAMES = frozenset(TOOLS)

# A tool named "final" or "tool" would make the compact {"action": <tool>} form ambiguous
_collisions = TOOL_NAMES & RESERVED_ACTIONS
if _collisions:
    raise ValueError(f"Tool names collide with reserved decision actions: {sorted(_collisions)}")


def is_tool_name(name: Any) -> bool:
    return isinstance(name, str) and name in TOOL_NAMES


def execute_tool(
    name: Any,
    ctx: ToolContext,
    tool_input: Any,
    search: SearchFn = search_corpus,
) -> dict[str, Any]:
    """
    Execute a tool by name against the run's context. Returns the tool output.
    Raises UnknownToolError (before touching ctx) when name is not registered.
    """
    logger.info("[tools] execute_tool name=%r input=%r", name, tool_input)
    if not is_tool_name(name):
        raise UnknownToolError(name)
    output = TOOLS[name](ctx, tool_input, search=search)
    logger.info("[tools] execute_tool name=%s OUT keys=%s", name, list(output))
    return output
