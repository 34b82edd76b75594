from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .classifier import DEFAULT_MODEL

ENV_PREFIX = "CONTRACTDESK_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _ratio(name: str, value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number between 0 and 1, got {value!r}") from None
    return parsed


@dataclass(frozen=True, slots=True)
class AssistantConfig:
    confidence_threshold: float = 0.6
    fuzzy_correction: bool = False
    similarity_threshold: float = 0.7
    lexicon_path: str | None = None
    use_classifier: bool = False
    classifier_model: str = DEFAULT_MODEL

    def __post_init__(self) -> None:
        for name in ("confidence_threshold", "similarity_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AssistantConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            confidence_threshold=_ratio(
                "CONTRACTDESK_CONFIDENCE_THRESHOLD",
                env.get(f"{ENV_PREFIX}CONFIDENCE_THRESHOLD"),
                defaults.confidence_threshold,
            ),
            fuzzy_correction=_flag(env.get(f"{ENV_PREFIX}FUZZY"), defaults.fuzzy_correction),
            similarity_threshold=_ratio(
                "CONTRACTDESK_SIMILARITY_THRESHOLD",
                env.get(f"{ENV_PREFIX}SIMILARITY_THRESHOLD"),
                defaults.similarity_threshold,
            ),
            lexicon_path=(env.get(f"{ENV_PREFIX}LEXICON") or "").strip() or None,
            use_classifier=_flag(env.get(f"{ENV_PREFIX}USE_CLASSIFIER"), defaults.use_classifier),
            classifier_model=(env.get(f"{ENV_PREFIX}MODEL") or "").strip() or defaults.classifier_model,
        )
