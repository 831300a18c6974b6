"""Schemas for the agent endpoint and the run transcript."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class AgentRequest(BaseModel):
    """Request body for POST /api/agent."""

    goal: str | None = Field(None, description="What the agent should accomplish. Required, non-empty after trimming.")
    context: str | None = Field(None, description="Optional extra context appended to the goal.")
    messages: list[Any] | None = Field(
        None, description="Prior turns [{role: user|assistant, content}]; only the last 12 valid ones are kept."
    )


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool: str
    input: Any = None


class ModelStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["model"] = "model"
    output: str


class ToolStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool"] = "tool"
    call: ToolCall
    output: Any = None


class ErrorStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    message: str


Step = Annotated[Union[ModelStep, ToolStep, ErrorStep], Field(discriminator="type")]


class AgentResponse(BaseModel):
    """Success response for POST /api/agent."""

    final: str = Field(..., description="Output of the model's final decision.")
    steps: list[Step] = Field(default_factory=list)


class AgentErrorResponse(BaseModel):
    """Failure response for POST /api/agent; steps holds the partial transcript."""

    error: str
    details: dict[str, Any] = Field(default_factory=dict)
    hint: str = ""
    steps: list[Step] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "Agent exceeded max turns without producing a final answer.",
                    "details": {"kind": "turn_budget_exceeded", "maxTurns": 8},
                    "hint": "Try a narrower goal.",
                    "steps": [],
                }
            ]
        }
    }
