#!/usr/bin/env python3
"""
Run one agent goal in-process and print the result as JSON.

Uses NOVA_MODEL_ID / AWS_REGION from the environment (or .env) unless
--model-id is given. Ctrl-C aborts the run; no partial result is printed.

Run from project root:

    python scripts/run_goal.py "Write a 30-second pitch for this product"
    python scripts/run_goal.py "Draft a demo script" --context "3 minutes max"
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Project root on path so "nova_agent" resolves without installing
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from nova_agent.agent.graph import AgentFailure, run_agent
from nova_agent.schemas.agent import AgentErrorResponse, AgentResponse


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Nova agent for one goal.")
    parser.add_argument("goal", help="What the agent should accomplish.")
    parser.add_argument("--context", default="", help="Optional context appended to the goal.")
    parser.add_argument("--model-id", default=None, help="Override NOVA_MODEL_ID.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log agent progress to stderr.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        outcome = asyncio.run(run_agent(args.goal, args.context, model_id=args.model_id))
    except KeyboardInterrupt:
        print("Aborted.", file=sys.stderr)
        return 130

    if isinstance(outcome, AgentFailure):
        body = AgentErrorResponse(error=outcome.error, details=outcome.details, hint=outcome.hint, steps=outcome.steps)
        print(json.dumps(body.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 1
    body = AgentResponse(final=outcome.final, steps=outcome.steps)
    print(json.dumps(body.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
