"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Bedrock model (from env). Empty means every run fails with a configuration error.
NOVA_MODEL_ID: str = os.getenv("NOVA_MODEL_ID", "").strip()
AWS_REGION: str = os.getenv("AWS_REGION", "").strip() or "us-east-1"

# Optional shared secret for POST /api/agent (header x-demo-api-key)
DEMO_API_KEY: str = os.getenv("DEMO_API_KEY", "").strip()

# Comma-separated allowed origins; empty allows any origin
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGIN", "").split(",") if o.strip()
]

PORT: int = int(os.getenv("PORT", "8787") or 8787)

# Agent loop
MAX_TURNS: int = 8
HISTORY_LIMIT: int = 12
AGENT_MAX_TOKENS: int = 700
AGENT_TEMPERATURE: float = 0.2

# Model client defaults when the caller does not pass them
DEFAULT_MAX_TOKENS: int = 800
DEFAULT_TEMPERATURE: float = 0.2

# Retrieval
RETRIEVE_LIMIT: int = 5
SNIPPET_MAX_CHARS: int = 400
