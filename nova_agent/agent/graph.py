"""
LangGraph agent: call_model → (END or run_tool) → call_model ... bounded by MAX_TURNS.

The model answers every turn with one JSON decision: finish with a final
output, or call one of the registered tools. Tool results are fed back as a
user turn. Runs end on a final decision, a fatal error, or the turn budget.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict

from langgraph.graph import END, StateGraph

from nova_agent.agent.decision import DecisionFailure, FinalDecision, ToolCallDecision, parse_decision
from nova_agent.agent.llm import TextModelClient, get_llm_client
from nova_agent.agent.tools import ToolContext, execute_tool
from nova_agent.core import config
from nova_agent.core.config import AGENT_MAX_TOKENS, AGENT_TEMPERATURE, HISTORY_LIMIT, MAX_TURNS
from nova_agent.core.errors import AgentCancelledError, ErrorKind, ModelServiceError, UnknownToolError
from nova_agent.schemas.agent import ErrorStep, ModelStep, Step, ToolCall, ToolStep
from nova_agent.services.retrieval_service import SearchFn, retrieve as search_corpus

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an agent. You MUST respond with a single JSON object only (no markdown, no extra text). "
    "Choose one: "
    '{"action":"tool","tool":"makePlan"|"retrieve"|"writeDraft","input":...} '
    'or {"action":"final","output":"..."}. '
    "You are continuing a conversation; use the prior messages for context when answering follow-ups. "
    "Be reliable: if you need constraints or context, call retrieve."
)

GOAL_SUFFIX = "\n\nIf needed, start by making a plan, then use tools as needed, then finalize."

_HINTS = {
    ErrorKind.VALIDATION: "Send a JSON body with a non-empty 'goal' string.",
    ErrorKind.CONFIGURATION: "Set NOVA_MODEL_ID in the server environment and enable Bedrock access for that model.",
    ErrorKind.TURN_BUDGET_EXCEEDED: "The model kept calling tools without finalizing. Try a narrower goal or more specific context.",
}


@dataclass(frozen=True)
class AgentSuccess:
    final: str
    steps: list[Step] = field(default_factory=list)


@dataclass(frozen=True)
class AgentFailure:
    kind: ErrorKind
    error: str
    details: dict[str, Any] = field(default_factory=dict)
    hint: str = ""
    steps: list[Step] = field(default_factory=list)


AgentOutcome = AgentSuccess | AgentFailure


class AgentState(TypedDict):
    messages: list  # list of {"role": "user"|"assistant", "content": str}
    steps: list
    turn: int
    tool_context: ToolContext
    decision: ToolCallDecision | None
    final: str | None
    failure: AgentFailure | None


def hint_for(kind: ErrorKind | None) -> str:
    return _HINTS.get(kind) or (
        f"If this is an AWS/Bedrock issue, verify AWS_REGION={config.AWS_REGION}, "
        "credentials, Bedrock model access, and NOVA_MODEL_ID."
    )


def _failure(kind: ErrorKind, message: str, steps: list, details: dict[str, Any] | None = None) -> AgentFailure:
    return AgentFailure(
        kind=kind,
        error=message,
        details={"kind": kind.value, "message": message, **(details or {})},
        hint=hint_for(kind),
        steps=list(steps),
    )


def _error_text(err: Exception) -> str:
    return str(err) or type(err).__name__


def _internal_failure(err: Exception, steps: list) -> AgentFailure:
    return _failure(ErrorKind.INTERNAL, _error_text(err), steps, details={"name": type(err).__name__})


def sanitize_history(history: Any, limit: int = HISTORY_LIMIT) -> list[dict[str, str]]:
    """Keep well-formed, non-blank user/assistant turns (content trimmed); return the last `limit`."""
    if not isinstance(history, list):
        return []
    kept = []
    for m in history:
        if not isinstance(m, dict):
            continue
        role = m.get("role")
        content = m.get("content")
        if role not in ("user", "assistant") or not isinstance(content, str):
            continue
        content = content.strip()
        if content:
            kept.append({"role": role, "content": content})
    return kept[-limit:] if limit > 0 else []


def build_messages(goal: str, context: str = "", history: Any = None) -> list[dict[str, str]]:
    """Retained history plus the goal turn."""
    content = goal + (f"\n\nContext:\n{context}" if context else "") + GOAL_SUFFIX
    return [*sanitize_history(history), {"role": "user", "content": content}]


async def _await_unless_aborted(coro, abort: asyncio.Event | None):
    """Await coro; if abort is set first, cancel it and raise AgentCancelledError."""
    if abort is None:
        return await coro
    call = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(abort.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        call.cancel()
        waiter.cancel()
        raise
    if waiter in done:
        call.cancel()
        await asyncio.gather(call, return_exceptions=True)
        raise AgentCancelledError()
    waiter.cancel()
    return call.result()


def build_graph(
    llm: TextModelClient,
    model_id: str,
    search: SearchFn = search_corpus,
    abort: asyncio.Event | None = None,
    max_turns: int = MAX_TURNS,
):
    """
    Build and compile the agent graph.
    call_model → (END on final/failure, else run_tool) → (END on failure, else call_model).
    """

    async def call_model(state: AgentState) -> dict:
        turn = state["turn"]
        steps = state["steps"]
        if turn >= max_turns:
            logger.info("[graph:call_model] turn budget of %d spent", max_turns)
            return {
                "failure": _failure(
                    ErrorKind.TURN_BUDGET_EXCEEDED,
                    "Agent exceeded max turns without producing a final answer.",
                    steps,
                    details={"maxTurns": max_turns},
                )
            }
        if abort is not None and abort.is_set():
            raise AgentCancelledError()

        messages = state["messages"]
        logger.info("[graph:call_model] IN  turn=%d messages=%d", turn + 1, len(messages))
        try:
            text = await _await_unless_aborted(
                llm.converse_text(
                    model_id,
                    SYSTEM_PROMPT,
                    list(messages),
                    max_tokens=AGENT_MAX_TOKENS,
                    temperature=AGENT_TEMPERATURE,
                ),
                abort,
            )
        except ModelServiceError as e:
            steps = [*steps, ErrorStep(message=e.message)]
            return {
                "turn": turn + 1,
                "steps": steps,
                "failure": _failure(ErrorKind.MODEL_SERVICE, e.message, steps, details=e.to_details()),
            }
        except AgentCancelledError:
            raise
        except Exception as e:
            logger.exception("[graph:call_model] unexpected error on turn %d", turn + 1)
            steps = [*steps, ErrorStep(message=_error_text(e))]
            return {"turn": turn + 1, "steps": steps, "failure": _internal_failure(e, steps)}

        steps = [*steps, ModelStep(output=text)]
        update: dict = {
            "turn": turn + 1,
            "steps": steps,
            "messages": [*messages, {"role": "assistant", "content": text}],
        }
        decision = parse_decision(text)
        logger.info("[graph:call_model] OUT turn=%d decision=%r", turn + 1, decision)
        if isinstance(decision, DecisionFailure):
            steps = [*steps, ErrorStep(message=decision.message)]
            update["steps"] = steps
            update["failure"] = _failure(decision.kind, decision.message, steps)
        elif isinstance(decision, FinalDecision):
            update["final"] = decision.output
        else:
            update["decision"] = decision
        return update

    def run_tool(state: AgentState) -> dict:
        decision = state["decision"]
        steps = state["steps"]
        try:
            output = execute_tool(decision.tool, state["tool_context"], decision.input, search=search)
        except UnknownToolError as e:
            steps = [*steps, ErrorStep(message=e.message)]
            return {"steps": steps, "decision": None, "failure": _failure(ErrorKind.UNKNOWN_TOOL, e.message, steps)}
        except Exception as e:
            logger.exception("[graph:run_tool] tool=%s failed", decision.tool)
            steps = [*steps, ErrorStep(message=_error_text(e))]
            return {"steps": steps, "decision": None, "failure": _internal_failure(e, steps)}
        logger.info("[graph:run_tool] tool=%s", decision.tool)
        feedback = json.dumps({"tool": decision.tool, "output": output}, ensure_ascii=False)
        return {
            "steps": [*steps, ToolStep(call=ToolCall(tool=decision.tool, input=decision.input), output=output)],
            "messages": [*state["messages"], {"role": "user", "content": feedback}],
            "decision": None,
        }

    def route_after_model(state: AgentState) -> Literal["run_tool", "__end__"]:
        if state.get("failure") is not None or state.get("final") is not None:
            return END
        return "run_tool"

    def route_after_tool(state: AgentState) -> Literal["call_model", "__end__"]:
        return END if state.get("failure") is not None else "call_model"

    graph = StateGraph(AgentState)
    graph.add_node("call_model", call_model)
    graph.add_node("run_tool", run_tool)
    graph.set_entry_point("call_model")
    graph.add_conditional_edges("call_model", route_after_model)
    graph.add_conditional_edges("run_tool", route_after_tool)
    return graph.compile()


async def run_agent(
    goal: Any,
    context: Any = None,
    history: Any = None,
    *,
    model_id: str | None = None,
    llm: TextModelClient | None = None,
    search: SearchFn = search_corpus,
    abort: asyncio.Event | None = None,
    max_turns: int = MAX_TURNS,
) -> AgentOutcome:
    """
    Run one agent loop to completion. Returns AgentSuccess or AgentFailure (never
    raises for model/decision/tool failures). Cancellation raises: AgentCancelledError
    when `abort` is set, asyncio.CancelledError when the calling task is cancelled.
    history: optional list of {"role": "user"|"assistant", "content": str}.
    """
    goal_text = goal.strip() if isinstance(goal, str) else ""
    if not goal_text:
        return _failure(ErrorKind.VALIDATION, "Missing required field: goal", [])
    model_id = config.NOVA_MODEL_ID if model_id is None else model_id
    if not model_id:
        return _failure(
            ErrorKind.CONFIGURATION,
            "Missing NOVA_MODEL_ID. Set it in your server environment (and ensure Bedrock model access is enabled).",
            [],
        )
    context_text = context.strip() if isinstance(context, str) else ""
    messages = build_messages(goal_text, context_text, history)
    logger.info("[run_agent] START goal=%r history_len=%d model_id=%s", goal_text, len(messages) - 1, model_id)

    initial: AgentState = {
        "messages": messages,
        "steps": [],
        "turn": 0,
        "tool_context": ToolContext(),
        "decision": None,
        "final": None,
        "failure": None,
    }
    graph = build_graph(llm or get_llm_client(), model_id, search=search, abort=abort, max_turns=max_turns)
    try:
        final_state = await graph.ainvoke(initial, config={"recursion_limit": 2 * max_turns + 4})
    except (AgentCancelledError, asyncio.CancelledError):
        logger.info("[run_agent] CANCELLED goal=%r", goal_text)
        raise

    failure = final_state.get("failure")
    if failure is not None:
        logger.warning("[run_agent] END kind=%s error=%s steps=%d", failure.kind.value, failure.error, len(failure.steps))
        return failure
    steps = final_state["steps"]
    logger.info("[run_agent] END turns=%d steps=%d final_len=%d", final_state["turn"], len(steps), len(final_state["final"]))
    return AgentSuccess(final=final_state["final"], steps=list(steps))
