"""
Agent LLM: Amazon Bedrock runtime, Converse (primary) or InvokeModel (fallback).

Converse is tried first. If Bedrock rejects it with "operation not allowed"
(Converse unavailable for this model), the same request is sent once through
InvokeModel. Inference-profile ARNs go straight to InvokeModel.
"""

import json
import logging
from typing import Any, Protocol

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from nova_agent.core.config import AWS_REGION, DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from nova_agent.core.errors import ModelServiceError

logger = logging.getLogger(__name__)

# Flat string fields older InvokeModel response bodies put the text in, tried in order
_LEGACY_TEXT_FIELDS = ("outputText", "generation", "completion", "text")


class TextModelClient(Protocol):
    async def converse_text(
        self,
        model_id: str,
        system: str | None,
        messages: list[dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str: ...


def is_inference_profile_arn(model_id: str) -> bool:
    return model_id.startswith("arn:aws:bedrock:") and ":inference-profile/" in model_id


def to_bedrock_messages(messages: list[dict[str, str]]) -> list[dict[str, Any]]:
    return [{"role": m["role"], "content": [{"text": m["content"]}]} for m in messages]


def _join_content_text(parts: Any) -> str:
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


def extract_text_from_body(data: Any) -> str:
    """Find generated text in an InvokeModel JSON body. Returns "" when nothing usable is there."""
    if not isinstance(data, dict):
        return ""
    output = data.get("output")
    message = output.get("message") if isinstance(output, dict) else None
    if isinstance(message, dict):
        text = _join_content_text(message.get("content"))
        if text:
            return text
    for key in _LEGACY_TEXT_FIELDS:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


class BedrockTextClient:
    """
    Text-in/text-out wrapper over bedrock-runtime.

    A short-lived client is created per call from an aioboto3 session; the call is a real
    coroutine, so cancelling the awaiting task cancels the HTTP request.
    """

    def __init__(self, region: str = AWS_REGION, session: Any = None) -> None:
        self._region = region
        self._session = session or aioboto3.Session()

    async def converse_text(
        self,
        model_id: str,
        system: str | None,
        messages: list[dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        logger.info(
            "[llm:bedrock] IN  model_id=%s messages=%d max_tokens=%d temperature=%s",
            model_id, len(messages), max_tokens, temperature,
        )
        request = {
            "system": system,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        async with self._session.client("bedrock-runtime", region_name=self._region) as client:
            if is_inference_profile_arn(model_id):
                logger.info("[llm:bedrock] inference profile ARN; using InvokeModel")
                return await self._invoke_model(client, model_id, **request)
            try:
                return await self._converse(client, model_id, **request)
            except ModelServiceError as e:
                if not e.is_operation_not_allowed():
                    raise
                logger.info("[llm:bedrock] Converse not allowed for %s; falling back to InvokeModel", model_id)
                return await self._invoke_model(client, model_id, **request)

    async def _converse(self, client, model_id, *, system, messages, max_tokens, temperature) -> str:
        kwargs: dict[str, Any] = {
            "modelId": model_id,
            "messages": to_bedrock_messages(messages),
            "inferenceConfig": {"maxTokens": max_tokens, "temperature": temperature},
        }
        if system:
            kwargs["system"] = [{"text": system}]
        try:
            resp = await client.converse(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise ModelServiceError.from_boto(e) from e
        text = _join_content_text(((resp.get("output") or {}).get("message") or {}).get("content"))
        if not text:
            raise ModelServiceError("EmptyModelResponse", "Empty model response from Bedrock Converse API")
        logger.info("[llm:bedrock:converse] OUT response_len=%d", len(text))
        return text

    async def _invoke_model(self, client, model_id, *, system, messages, max_tokens, temperature) -> str:
        body: dict[str, Any] = {
            "messages": to_bedrock_messages(messages),
            "inferenceConfig": {"maxTokens": max_tokens, "temperature": temperature},
        }
        if system:
            body["system"] = [{"text": system}]
        try:
            resp = await client.invoke_model(
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body).encode("utf-8"),
            )
            raw = await resp["body"].read()
        except (ClientError, BotoCoreError) as e:
            raise ModelServiceError.from_boto(e) from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ModelServiceError("InvalidModelResponse", f"InvokeModel returned non-JSON body: {e}") from e
        text = extract_text_from_body(data)
        if not text:
            raise ModelServiceError("EmptyModelResponse", "Empty model response from Bedrock InvokeModel API")
        logger.info("[llm:bedrock:invoke_model] OUT response_len=%d", len(text))
        return text


_default_client: BedrockTextClient | None = None


def get_llm_client() -> BedrockTextClient:
    """Shared client for the API layer; holds no per-run state."""
    global _default_client
    if _default_client is None:
        _default_client = BedrockTextClient()
    return _default_client
