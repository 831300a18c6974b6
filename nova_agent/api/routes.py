"""
API route aggregator: register endpoints and delegate to handlers.
"""

import logging

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from nova_agent.agent.graph import hint_for
from nova_agent.api.handlers import handle_agent, is_authorized
from nova_agent.core.errors import ErrorKind
from nova_agent.schemas.agent import AgentErrorResponse, AgentRequest, AgentResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Agent ---

@router.post(
    "/api/agent",
    response_model=AgentResponse,
    responses={400: {"model": AgentErrorResponse}, 401: {}, 500: {"model": AgentErrorResponse}},
    tags=["agent"],
    summary="Run the tool-using agent for a goal",
    description="Send a goal (plus optional context and prior messages); receive the final answer and the step transcript. 400 on missing goal, 401 on bad x-demo-api-key, 500 on agent failure (partial steps included).",
)
async def post_agent(
    body: AgentRequest,
    x_demo_api_key: str | None = Header(None),
) -> JSONResponse:
    if not is_authorized(x_demo_api_key):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    logger.info("[api:post_agent] IN  goal=%r", body.goal)
    try:
        return await handle_agent(body)
    except Exception as e:
        logger.exception("Agent failed")
        content = AgentErrorResponse(error=str(e), details={"kind": ErrorKind.INTERNAL.value, "name": type(e).__name__}, hint=hint_for(None))
        return JSONResponse(status_code=500, content=content.model_dump(mode="json"))
