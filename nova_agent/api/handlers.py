"""
API handlers: run the agent for a request and map the outcome to HTTP.

Responsibility: Bridge HTTP types and the agent loop. Auth check and
error-kind-to-status mapping live here so the agent stays free of FastAPI types.
"""

import hmac
import logging

from fastapi.responses import JSONResponse

from nova_agent.agent.graph import AgentFailure, run_agent
from nova_agent.agent.llm import get_llm_client
from nova_agent.core import config
from nova_agent.core.errors import ErrorKind
from nova_agent.schemas.agent import AgentErrorResponse, AgentRequest, AgentResponse

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
}


def is_authorized(provided_key: str | None) -> bool:
    """True when no DEMO_API_KEY is configured, or the header matches it."""
    expected = config.DEMO_API_KEY
    if not expected:
        return True
    return hmac.compare_digest((provided_key or "").encode(), expected.encode())


def failure_response(failure: AgentFailure) -> JSONResponse:
    body = AgentErrorResponse(
        error=failure.error,
        details=failure.details,
        hint=failure.hint,
        steps=failure.steps,
    )
    return JSONResponse(status_code=_STATUS_BY_KIND.get(failure.kind, 500), content=body.model_dump(mode="json"))


async def handle_agent(body: AgentRequest) -> JSONResponse:
    """Run the agent for one request. 400 on invalid input, 500 on any run failure."""
    outcome = await run_agent(
        body.goal,
        body.context,
        body.messages,
        model_id=config.NOVA_MODEL_ID,
        llm=get_llm_client(),
    )
    if isinstance(outcome, AgentFailure):
        return failure_response(outcome)
    result = AgentResponse(final=outcome.final, steps=outcome.steps)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))
