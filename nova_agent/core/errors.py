"""
Application errors and the error-kind enumeration carried by agent outcomes.

ModelServiceError wraps botocore failures so callers see one classified error
with diagnostics (name, message, fault, request metadata) instead of raw SDK types.
"""

from enum import Enum
from typing import Any

from botocore.exceptions import ClientError


class ErrorKind(str, Enum):
    """Why a run ended without a final answer. The API layer maps kinds to HTTP status."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DECISION_PARSE = "decision_parse"
    UNKNOWN_TOOL = "unknown_tool"
    MODEL_SERVICE = "model_service"
    TURN_BUDGET_EXCEEDED = "turn_budget_exceeded"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class ModelServiceError(Exception):
    """Raised when the model backend rejects a request or returns no usable text."""

    def __init__(
        self,
        name: str,
        message: str,
        *,
        code: str | None = None,
        fault: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.message = message
        self.code = code
        self.fault = fault
        self.metadata = metadata
        super().__init__(message)

    @classmethod
    def from_boto(cls, err: Exception) -> "ModelServiceError":
        if isinstance(err, ClientError):
            error = err.response.get("Error") or {}
            md = err.response.get("ResponseMetadata") or {}
            status = md.get("HTTPStatusCode")
            code = str(error.get("Code") or type(err).__name__)
            fault = None
            if isinstance(status, int):
                fault = "server" if status >= 500 else "client"
            return cls(
                code,
                str(error.get("Message") or err),
                code=code,
                fault=fault,
                metadata={
                    "httpStatusCode": status,
                    "requestId": md.get("RequestId"),
                    "attempts": md.get("RetryAttempts"),
                },
            )
        return cls(type(err).__name__, str(err))

    def is_operation_not_allowed(self) -> bool:
        """True for the validation rejection that means Converse is unavailable for this model."""
        return self.name == "ValidationException" and "operation not allowed" in self.message.lower()

    def to_details(self) -> dict[str, Any]:
        details: dict[str, Any] = {"name": self.name, "message": self.message}
        if self.code:
            details["code"] = self.code
        if self.fault:
            details["fault"] = self.fault
        if self.metadata:
            details["metadata"] = dict(self.metadata)
        return details


class UnknownToolError(Exception):
    """Raised when a decision names a tool outside the registry."""

    def __init__(self, tool: Any) -> None:
        self.tool = tool
        self.message = f"Unknown or missing tool: {tool}"
        super().__init__(self.message)


class AgentCancelledError(Exception):
    """Raised when a caller aborts a run; no result (partial or final) is produced."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Agent run was cancelled.") -> None:
        self.message = message
        super().__init__(message)
