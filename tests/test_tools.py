"""
Unit tests for the tool registry and dispatch.
"""

import pytest

from nova_agent.agent.tools import RESERVED_ACTIONS, TOOL_NAMES, ToolContext, execute_tool
from nova_agent.core.errors import UnknownToolError


def test_registry_is_exactly_three_tools() -> None:
    assert TOOL_NAMES == {"makePlan", "retrieve", "writeDraft"}


def test_make_plan_is_five_step_template() -> None:
    ctx = ToolContext()
    out = execute_tool("makePlan", ctx, "ship the demo")
    assert out == {
        "plan": [
            "Understand the goal: ship the demo",
            "Retrieve relevant context and constraints",
            "Propose an approach and key steps",
            "Draft the output",
            "Refine and finalize",
        ]
    }
    assert ctx.plan == out["plan"]


def test_make_plan_serializes_non_string_input() -> None:
    ctx = ToolContext()
    out = execute_tool("makePlan", ctx, {"goal": "x"})
    assert out["plan"][0] == 'Understand the goal: {"goal": "x"}'


def test_make_plan_overwrites_previous_plan() -> None:
    ctx = ToolContext(plan=["old"])
    execute_tool("makePlan", ctx, "new")
    assert ctx.plan[0] == "Understand the goal: new"
    assert len(ctx.plan) == 5


def test_write_draft_stores_verbatim() -> None:
    ctx = ToolContext()
    assert execute_tool("writeDraft", ctx, "  Draft v1\n") == {"draft": "  Draft v1\n"}
    assert ctx.draft == "  Draft v1\n"


def test_retrieve_uses_injected_search_with_cap_and_leaves_context() -> None:
    calls = []

    def fake_search(query: str, limit: int):
        calls.append((query, limit))
        return [{"id": "d1", "title": "T", "snippet": "s", "score": 1}]

    ctx = ToolContext(plan=["p"], draft="d")
    out = execute_tool("retrieve", ctx, "demo video", search=fake_search)
    assert out == {"hits": [{"id": "d1", "title": "T", "snippet": "s", "score": 1}]}
    assert calls == [("demo video", 5)]
    assert ctx == ToolContext(plan=["p"], draft="d")


def test_retrieve_against_default_corpus() -> None:
    out = execute_tool("retrieve", ToolContext(), "demo video")
    assert out["hits"][0]["id"] == "hackathon-submission"


@pytest.mark.parametrize("name", ["deleteAll", "", None, "final", "tool", "MakePlan"])
def test_unknown_tool_raises_and_leaves_context(name) -> None:
    ctx = ToolContext(plan=["keep"], draft="keep")
    with pytest.raises(UnknownToolError):
        execute_tool(name, ctx, "x")
    assert ctx == ToolContext(plan=["keep"], draft="keep")


def test_no_tool_uses_a_reserved_action_name() -> None:
    assert not TOOL_NAMES & RESERVED_ACTIONS
