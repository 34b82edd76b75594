from __future__ import annotations

from dataclasses import dataclass

from .classifier import AnthropicIntentClassifier
from .config import AssistantConfig
from .graph import ContractAssistant
from .lexicon import KEYWORD_CATEGORIES, default_lexicon
from .loaders import load_lexicon_workbook


@dataclass(frozen=True, slots=True)
class RuntimeAssets:
    correction_count: int
    keyword_count: int
    vocabulary_size: int
    lexicon_source: str
    classifier_enabled: bool


def build_assistant(
    config: AssistantConfig | None = None,
    api_key: str | None = None,
) -> tuple[ContractAssistant, RuntimeAssets]:
    config = config or AssistantConfig.from_env()

    if config.lexicon_path:
        lexicon = load_lexicon_workbook(config.lexicon_path)
        source = str(config.lexicon_path)
    else:
        lexicon = default_lexicon()
        source = "built-in"

    classifier = None
    if config.use_classifier:
        classifier = AnthropicIntentClassifier(api_key=api_key, model=config.classifier_model)

    assistant = ContractAssistant(lexicon=lexicon, config=config, classifier=classifier)
    assets = RuntimeAssets(
        correction_count=len(lexicon.corrections),
        keyword_count=sum(len(lexicon.keywords_for(c)) for c in KEYWORD_CATEGORIES),
        vocabulary_size=len(lexicon.vocabulary),
        lexicon_source=source,
        classifier_enabled=classifier is not None,
    )
    return assistant, assets
