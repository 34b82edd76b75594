"""CLI chat interface for the contract desk assistant.

Usage:
    python -m src.contractdesk.cli
    python -m src.contractdesk.cli --lexicon lexicon.xlsx --fuzzy
    python -m src.contractdesk.cli --classifier --model claude-sonnet-4-20250514
    python -m src.contractdesk.cli --no-trace
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv


def main():
    parser = argparse.ArgumentParser(description="Contract desk assistant CLI")
    parser.add_argument("--lexicon", default=None, help="Path to a lexicon workbook (.xlsx)")
    parser.add_argument("--fuzzy", action="store_true", help="Enable fuzzy spelling correction")
    parser.add_argument("--classifier", action="store_true", help="Refine routing confidence with Claude")
    parser.add_argument("--model", default=None, help="Anthropic model used by the classifier")
    parser.add_argument("--no-trace", action="store_true", help="Hide routing trace output")
    parser.add_argument("--session", default=None, help="Session id (random when omitted)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load environment
    project_root = Path(__file__).resolve().parent.parent.parent
    load_dotenv(project_root / ".env")

    from .config import AssistantConfig
    from .responses import to_json
    from .runtime import build_assistant

    try:
        config = AssistantConfig.from_env()
    except ValueError as e:
        print(f"\n[ERROR] Invalid configuration: {e}")
        sys.exit(1)

    overrides = {}
    if args.lexicon:
        overrides["lexicon_path"] = args.lexicon
    if args.fuzzy:
        overrides["fuzzy_correction"] = True
    if args.classifier:
        overrides["use_classifier"] = True
    if args.model:
        overrides["classifier_model"] = args.model
    config = replace(config, **overrides)

    if config.lexicon_path and not Path(config.lexicon_path).exists():
        print(f"\n[ERROR] Lexicon workbook not found: {config.lexicon_path}")
        sys.exit(1)

    api_key = os.environ.get("ANTHROPIC_API_KEY", "")
    try:
        assistant, assets = build_assistant(config, api_key=api_key)
    except ValueError as e:
        print(f"\n[ERROR] Failed to build assistant: {e}")
        sys.exit(1)

    session_id = args.session or f"session_{uuid.uuid4().hex[:8]}"
    show_trace = not args.no_trace

    print("\n" + "=" * 60)
    print("  Contract Desk Assistant")
    print("=" * 60)
    print(f"  Session: {session_id}")
    print(f"  Lexicon: {assets.lexicon_source} ({assets.correction_count} corrections)")
    print(f"  Fuzzy correction: {'on' if config.fuzzy_correction else 'off'}")
    print(f"  Classifier: {config.classifier_model if assets.classifier_enabled else 'off'}")
    print(f"  Trace: {'hidden' if args.no_trace else 'shown'}")
    print("  Type 'quit' or 'exit' to end the session")
    print("  Type 'reset' to start over")
    print("  Type 'trace' to toggle trace display")
    print("  Type 'state' to see current session state")
    print("=" * 60)

    while True:
        try:
            user_input = input("\n  You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n  Session ended by user.")
            break

        if not user_input:
            continue

        command = user_input.lower()
        if command in ("quit", "exit"):
            print("\n  Session ended.")
            break

        if command == "reset":
            assistant.reset_session(session_id)
            print("  [Session reset]")
            continue

        if command == "trace":
            show_trace = not show_trace
            print(f"  [Trace display: {'ON' if show_trace else 'OFF'}]")
            continue

        if command == "state":
            _print_state_summary(assistant.session_snapshot(session_id))
            continue

        out = assistant.run_turn(session_id, user_input)
        _print_response(to_json(out.response))
        if show_trace:
            _print_trace(out.trace)


def _print_response(body: str):
    print()
    print("  " + "-" * 40)
    for line in body.split("\n"):
        print(f"  {line}")
    print("  " + "-" * 40)


def _print_trace(trace: dict):
    """Print trace in a compact format."""
    print("\n  [TRACE]")
    if "short_circuit" in trace:
        print(f"    Short circuit: {trace['short_circuit']}")
        print("  [/TRACE]")
        return
    route = trace.get("routing_decision", {})
    print(f"    Normalized: {trace.get('normalized_text', '')}")
    print(
        f"    Route: {route.get('target_domain', '?')} / {route.get('sub_intent', '?')}"
        f" ({route.get('confidence', 0):.2f})"
    )
    print(f"    Reason: {route.get('reason', '')}")
    if route.get("entities"):
        print(f"    Entities: {json.dumps(route['entities'])}")
    print(f"    State: {trace.get('state_before', '?')} -> {trace.get('state_after', '?')}")
    missing = trace.get("missing_fields", [])
    if missing:
        print(f"    Missing: {missing}")
    print("  [/TRACE]")


def _print_state_summary(snapshot: dict | None):
    """Print a compact state summary."""
    print("\n  === STATE SUMMARY ===")
    if snapshot is None:
        print("    No turns yet")
    else:
        print(f"    State: {snapshot['state']}")
        print(f"    Fields: {snapshot['fields']}")
        print(f"    Dates: {snapshot['date_fields']}")
        print(f"    Missing: {snapshot['missing_fields']}")
        print(f"    Last input: {snapshot['last_input']!r}")
    print("  =====================")


if __name__ == "__main__":
    main()
