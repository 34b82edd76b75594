"""Optional statistical intent signal backed by the Anthropic Messages API.

The router works without any classifier; when one is wired in it only
refines the confidence of a rule-based decision.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Protocol, Sequence

from anthropic import Anthropic, APIError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

INTENT_LABELS = ("contract_creation", "contract_query", "parts_query", "help", "unknown")


class IntentClassifier(Protocol):
    def classify(self, tokens: Sequence[str]) -> tuple[str, float] | None:
        """Return ``(label, confidence)`` or ``None`` when no verdict is available."""


class AnthropicIntentClassifier:
    """Wrapper around Claude that labels a contract-desk utterance."""

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_MODEL, client: Anthropic | None = None):
        if client is None:
            key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
            if not key or key == "your-key-here":
                raise ValueError(
                    "ANTHROPIC_API_KEY not set. Please set it in .env or as an environment variable."
                )
            client = Anthropic(api_key=key)
        self.client = client
        self.model = model

    def classify(self, tokens: Sequence[str]) -> tuple[str, float] | None:
        utterance = " ".join(tokens)
        if not utterance:
            return None

        system_prompt = f"""You classify requests sent to a contract management assistant.
Pick exactly one label from: {", ".join(INTENT_LABELS)}.
- contract_creation: the user wants the assistant to create a contract now
- contract_query: the user asks about an existing contract (dates, pricing, status, details)
- parts_query: the user asks about parts, lines or components
- help: the user asks how to do something
- unknown: none of the above
Return ONLY valid JSON, no markdown: {{"label": "<label>", "confidence": <0.0-1.0>}}"""

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=64,
                system=system_prompt,
                messages=[{"role": "user", "content": f'Request: "{utterance}"'}],
            )
        except APIError as exc:
            logger.warning("Intent classifier unavailable, using rule confidence: %s", exc)
            return None

        raw = response.content[0].text.strip()
        return self._parse_verdict(raw)

    def _parse_verdict(self, raw: str) -> tuple[str, float] | None:
        cleaned = raw
        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```(?:json)?\n?", "", cleaned)
            cleaned = re.sub(r"\n?```$", "", cleaned)
        cleaned = cleaned.strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning("Classifier returned non-JSON output: %r", raw[:200])
            return None
        if not isinstance(data, dict):
            return None

        label = str(data.get("label") or "").strip().lower().replace(" ", "_").replace("-", "_")
        if label not in INTENT_LABELS:
            label = "unknown"
        try:
            confidence = float(data.get("confidence"))
        except (TypeError, ValueError):
            return None
        return label, min(max(confidence, 0.0), 1.0)
