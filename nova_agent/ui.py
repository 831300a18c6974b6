# Run from project root: streamlit run nova_agent/ui.py
# UI talks to backend API (POST /api/agent). Chat history lives in the browser session and is sent with each goal.

import json
import os

import requests
import streamlit as st

# Backend config
API_BASE = os.environ.get("API_BASE", "http://localhost:8787")
DEMO_API_KEY = os.environ.get("DEMO_API_KEY", "")
HISTORY_LIMIT = 12

PRESETS = [
    {
        "goal": "Create a 3-minute demo script for our Agentic AI hackathon project. Include a compliance checklist and mention #AmazonNova.",
        "context": "We are using Nova 2 Lite via Bedrock. The demo must show the project functioning end-to-end.",
    },
    {
        "goal": "Write a concise README setup guide for running the client and server locally. Include env vars and troubleshooting.",
        "context": "The backend exposes POST /api/agent and uses Amazon Nova 2 Lite via Bedrock.",
    },
    {
        "goal": "Give me a short pitch (30 seconds) for this product for non-technical users.",
        "context": "The product is an agent powered by Amazon Nova 2 Lite.",
    },
    {
        "goal": "I want to launch this to clients. Suggest 5 features to add next and why each matters.",
        "context": "",
    },
]

st.title("Nova Agent")
st.caption("Nova 2 Lite • Tool-using agent")

try:
    r = requests.get(f"{API_BASE}/health", timeout=5)
    if not r.ok:
        st.caption("Backend health check failed.")
except requests.RequestException:
    st.caption("Backend not reachable — start the API first.")

if "messages" not in st.session_state:
    st.session_state.messages = []


def _submit(goal: str, context: str) -> None:
    """Show the user turn right away; the request is sent on the next rerun."""
    goal, context = goal.strip(), (context or "").strip()
    if not goal:
        return
    shown = f"{goal}\n\nContext:\n{context}" if context else goal
    st.session_state.messages.append({"role": "user", "content": shown})
    st.session_state.pending_goal = {"goal": goal, "context": context}


with st.expander("Presets"):
    for i, preset in enumerate(PRESETS):
        if st.button(preset["goal"][:80], key=f"preset_{i}"):
            _submit(preset["goal"], preset["context"])
            st.rerun()

context = st.text_area("Context (optional)", key="context_input", height=80)

if st.button("Clear chat", key="clear_chat"):
    st.session_state.messages = []
    st.rerun()


def _render_steps(steps: list[dict]) -> None:
    counts = {"model": 0, "tool": 0, "error": 0}
    for s in steps:
        counts[s.get("type", "error")] = counts.get(s.get("type", "error"), 0) + 1
    st.caption(f"Steps: {counts['model']} model · {counts['tool']} tool · {counts['error']} error")
    with st.expander("Transcript", expanded=False):
        for i, s in enumerate(steps, 1):
            kind = s.get("type")
            if kind == "model":
                st.markdown(f"**{i}. model**")
                st.code(s.get("output", ""), language="json")
            elif kind == "tool":
                call = s.get("call") or {}
                st.markdown(f"**{i}. tool** `{call.get('tool', '')}`")
                st.code(json.dumps({"input": call.get("input"), "output": s.get("output")}, indent=2, ensure_ascii=False), language="json")
            else:
                st.markdown(f"**{i}. error**")
                st.error(s.get("message", ""))


# Show previous messages
for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])
        if msg.get("steps"):
            _render_steps(msg["steps"])

# If we just submitted a goal, show "Thinking..." while waiting for the response
if st.session_state.get("pending_goal"):
    pending = st.session_state.pending_goal
    # history excludes the user turn just appended for display
    history = [
        {"role": m["role"], "content": m["content"]}
        for m in st.session_state.messages[:-1]
        if m["content"].strip()
    ][-HISTORY_LIMIT:]
    headers = {"x-demo-api-key": DEMO_API_KEY} if DEMO_API_KEY else {}
    with st.chat_message("assistant"):
        thinking_placeholder = st.empty()
        thinking_placeholder.caption("Thinking...")
        steps: list[dict] = []
        try:
            r = requests.post(
                f"{API_BASE}/api/agent",
                json={"goal": pending["goal"], "context": pending["context"] or None, "messages": history},
                headers=headers,
                timeout=180,
            )
            data = r.json()
            steps = data.get("steps") or []
            if r.ok:
                answer = data.get("final", "")
                thinking_placeholder.markdown(answer)
            else:
                error = data.get("error", f"Request failed ({r.status_code})")
                answer = f"Sorry — I couldn't complete that request.\n\nError: {error}"
                thinking_placeholder.error(answer)
                if data.get("hint"):
                    st.caption(data["hint"])
        except (requests.RequestException, ValueError) as e:
            answer = f"Sorry — I couldn't complete that request.\n\nError: {e}"
            thinking_placeholder.error(answer)
        if steps:
            _render_steps(steps)
        st.session_state.messages.append({"role": "assistant", "content": answer, "steps": steps})
    del st.session_state["pending_goal"]
    st.rerun()

# New goal from user: show it immediately, then rerun so "Thinking..." appears
if goal := st.chat_input("Describe a goal for the agent"):
    _submit(goal, context)
    st.rerun()
