"""Contract Desk Assistant (Streamlit Web UI)

Run locally:
    streamlit run app.py

Configuration comes from CONTRACTDESK_* environment variables (or a .env
file in the project root). ANTHROPIC_API_KEY is only needed when
CONTRACTDESK_USE_CLASSIFIER is enabled.
"""
from __future__ import annotations

import os
import uuid
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Page configuration (must be first st call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Contract Desk Assistant",
    page_icon="📄",
    layout="centered",
    initial_sidebar_state="expanded",
)

load_dotenv(Path(__file__).resolve().parent / ".env")


# ---------------------------------------------------------------------------
# Build / cache the assistant (runs once per server process)
# ---------------------------------------------------------------------------

@st.cache_resource(show_spinner="Loading contract desk…")
def _build_assistant():
    """Build the contract assistant (cached across reruns and browser sessions)."""
    from src.contractdesk.runtime import build_assistant

    return build_assistant(api_key=os.environ.get("ANTHROPIC_API_KEY", ""))


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------

def _init_session():
    st.session_state["session_id"] = f"session_{uuid.uuid4().hex[:8]}"
    st.session_state["messages"] = []
    st.session_state["last_trace"] = None


def _render_response(body: dict) -> str:
    """Turn a serialized response into chat markdown."""
    kind = body["responseType"]
    if kind == "DATA_COLLECTION":
        return body["nextQuestion"]
    if kind == "CONFIRMATION":
        options = " / ".join(body["options"])
        return f"{body['message']}\n\n*{options}*"
    if kind == "SUCCESS":
        lines = [f"✅ **{body['message']}** Contract id: `{body['contractId']}`"]
        lines += [f"- *{k}*: {v}" for k, v in body["generatedFields"].items()]
        lines.append(f"\n{body['nextSteps']}")
        return "\n".join(lines)
    if kind == "VALIDATION_FAILED":
        return f"⚠️ {body['message']}: {body['reason']}\n\n{body['nextAction']}"
    if kind == "HELP":
        lines = [body["message"], ""] + body["steps"]
        if body.get("alternativeAction"):
            lines += ["", f"_{body['alternativeAction']}_"]
        return "\n".join(lines)
    if kind == "QUERY_RESULT":
        payload = body["payload"]
        message = payload.get("message") if isinstance(payload, dict) else None
        return f"**{body['targetDomain']}** / {body['subIntent']}\n\n{message or payload}"
    if kind == "UNKNOWN":
        return body["message"] + "\n\n" + "\n".join(f"- {s}" for s in body["suggestions"])
    lines = [f"❌ {body['message']}"]
    lines += [f"- {alt}" for alt in body.get("alternatives", [])]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Main app
# ---------------------------------------------------------------------------

def main():
    from src.contractdesk.responses import to_dict

    try:
        assistant, assets = _build_assistant()
    except ValueError as e:
        st.error(f"Failed to initialize: {e}")
        st.stop()

    if "session_id" not in st.session_state:
        _init_session()
    session_id = st.session_state["session_id"]

    # --- Sidebar ---
    with st.sidebar:
        st.title("📄 Contract Desk")
        st.caption("Create contracts and route contract questions")
        st.divider()

        if st.button("🔄 New Session", use_container_width=True):
            assistant.discard_session(session_id)
            _init_session()
            st.rerun()

        show_trace = st.toggle("Show routing trace", value=False)

        st.divider()

        snapshot = assistant.session_snapshot(session_id)
        st.subheader("Session Info")
        st.markdown(f"**State:** {snapshot['state'] if snapshot else 'INITIAL'}")
        if snapshot and snapshot["fields"]:
            st.markdown("**Collected:**")
            for k, v in snapshot["fields"].items():
                st.markdown(f"  - *{k}*: {v[:50]}{'…' if len(v) > 50 else ''}")
        if snapshot and snapshot["state"] != "INITIAL" and snapshot["missing_fields"]:
            st.markdown(f"**Still needed:** {', '.join(snapshot['missing_fields'])}")

        st.divider()
        st.caption(f"Lexicon: {assets.lexicon_source} · Classifier: {'on' if assets.classifier_enabled else 'off'}")

    # --- Chat header ---
    st.title("Contract Desk")
    st.caption("Try 'create contract for account 147852369' or 'how to create contract'")

    for msg in st.session_state.get("messages", []):
        with st.chat_message(msg["role"], avatar="📄" if msg["role"] == "assistant" else "👤"):
            st.markdown(msg["content"])

    if prompt := st.chat_input("Ask about contracts…"):
        st.session_state["messages"].append({"role": "user", "content": prompt})
        with st.chat_message("user", avatar="👤"):
            st.markdown(prompt)

        with st.spinner("Thinking…"):
            out = assistant.run_turn(session_id, prompt)

        body = to_dict(out.response)
        reply = _render_response(body)
        st.session_state["messages"].append({"role": "assistant", "content": reply})
        with st.chat_message("assistant", avatar="📄"):
            st.markdown(reply)

        st.session_state["last_trace"] = out.trace

        # refresh sidebar session info
        st.rerun()

    if show_trace and st.session_state.get("last_trace"):
        with st.expander("🔍 Routing Trace", expanded=False):
            st.json(st.session_state["last_trace"])


if __name__ == "__main__":
    main()
