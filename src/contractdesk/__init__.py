"""Conversational contract assistant: spelling normalization, intent routing and slot filling."""

from .graph import ContractAssistant, ConversationRun, TurnOutput, TurnRecord
from .config import AssistantConfig
from .lexicon import Lexicon, default_lexicon
from .loaders import load_lexicon_workbook
from .runtime import RuntimeAssets, build_assistant
from .normalizer import SpellNormalizer
from .routing import IntentRouter, RouteDecision, RouteEntities, TargetDomain
from .classifier import AnthropicIntentClassifier, IntentClassifier
from .queries import QueryProcessor, RoutingEchoProcessor
from .session import Session, SessionState, SessionStore
from .slot_filling import SlotFillingEngine
from .validators import ValidationResult, validate_account_number, validate_date_pair, validate_field
from .responses import ErrorCode, Response, ResponseBuilder, ResponseType, to_dict, to_json
from .contracts import CONTRACT_VERSIONS, ContractValidationResult, validate_contract_freeze

__all__ = [
    "ContractAssistant",
    "ConversationRun",
    "TurnOutput",
    "TurnRecord",
    "AssistantConfig",
    "Lexicon",
    "default_lexicon",
    "load_lexicon_workbook",
    "RuntimeAssets",
    "build_assistant",
    "SpellNormalizer",
    "IntentRouter",
    "RouteDecision",
    "RouteEntities",
    "TargetDomain",
    "AnthropicIntentClassifier",
    "IntentClassifier",
    "QueryProcessor",
    "RoutingEchoProcessor",
    "Session",
    "SessionState",
    "SessionStore",
    "SlotFillingEngine",
    "ValidationResult",
    "validate_account_number",
    "validate_date_pair",
    "validate_field",
    "ErrorCode",
    "Response",
    "ResponseBuilder",
    "ResponseType",
    "to_dict",
    "to_json",
    "CONTRACT_VERSIONS",
    "ContractValidationResult",
    "validate_contract_freeze",
]
