from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from .classifier import IntentClassifier
from .fields import ACCOUNT_CONTEXT_PATTERN
from .lexicon import ACCOUNT, CONTRACT, CREATE, DATE, HELP, PARTS, PRICING, Lexicon
from .session import SessionState

logger = logging.getLogger(__name__)

CONTRACT_ID_NUMERIC = re.compile(r"\d{6}")
CONTRACT_ID_CODED = re.compile(r"[A-Z]{3}-?\d{3,6}")
ACCOUNT_TOKEN = re.compile(r"\d{6,12}")
PRICING_PHRASE = re.compile(r"\bhow\s+much\b")

_WORD_RE = re.compile(r"[a-z0-9]+")
_EDGE_PUNCT = "".join(chr(c) for c in range(33, 127) if not chr(c).isalnum() and chr(c) != "-")


class TargetDomain(str, Enum):
    CONTRACT_CREATION = "ContractCreation"
    CONTRACT_QUERY = "ContractQuery"
    PARTS_QUERY = "PartsQuery"
    HELP = "Help"
    CREATION_CONFLICT = "CreationConflict"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class RouteEntities:
    contract_id: str | None = None
    account_number: str | None = None

    def as_dict(self) -> dict[str, str]:
        found = {"contractId": self.contract_id, "accountNumber": self.account_number}
        return {k: v for k, v in found.items() if v is not None}


@dataclass(frozen=True, slots=True)
class RouteDecision:
    target_domain: TargetDomain
    sub_intent: str
    confidence: float
    reason: str
    entities: RouteEntities = RouteEntities()


@dataclass(frozen=True, slots=True)
class KeywordSignals:
    parts: bool
    create: bool
    contract: bool
    date: bool
    pricing: bool
    help_qualifier: bool
    account_mention: bool
    pricing_phrase: bool

    @property
    def pricing_inquiry(self) -> bool:
        return self.pricing or self.pricing_phrase


@dataclass(frozen=True, slots=True)
class RoutingRule:
    rule_id: str
    target: TargetDomain
    sub_intent: str
    confidence: float
    reason: str
    applies: Callable[[KeywordSignals, RouteEntities], bool]


# evaluated top to bottom, first match wins
ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(
        "R1", TargetDomain.CREATION_CONFLICT, "PARTS_CREATE_ERROR", 1.0,
        "Parts are not creatable through this channel",
        lambda s, e: s.parts and s.create,
    ),
    RoutingRule(
        "R2", TargetDomain.PARTS_QUERY, "PARTS_QUERY", 0.9,
        "Input contains parts-related keywords",
        lambda s, e: s.parts,
    ),
    RoutingRule(
        "R3", TargetDomain.HELP, "HELP_REQUEST", 0.8,
        "General creation help request",
        lambda s, e: s.create and not s.contract,
    ),
    RoutingRule(
        "R4", TargetDomain.CONTRACT_CREATION, "CONTRACT_CREATION_START", 0.95,
        "Direct contract creation request for an account",
        lambda s, e: s.create and s.contract and not s.help_qualifier
        and (s.account_mention or e.account_number is not None),
    ),
    RoutingRule(
        "R5", TargetDomain.HELP, "CONTRACT_CREATION_HELP", 0.9,
        "Explicit contract creation help request",
        lambda s, e: s.create and s.contract,
    ),
    RoutingRule(
        "R6", TargetDomain.CONTRACT_QUERY, "CONTRACT_QUERY_EXPLICIT", 0.9,
        "Input contains contract-specific keywords",
        lambda s, e: s.contract,
    ),
    RoutingRule(
        "R7", TargetDomain.CONTRACT_QUERY, "CONTRACT_DATE_QUERY", 0.85,
        "Date inquiry with contract ID",
        lambda s, e: s.date and e.contract_id is not None,
    ),
    RoutingRule(
        "R8", TargetDomain.CONTRACT_QUERY, "CONTRACT_PRICING_QUERY", 0.85,
        "Pricing inquiry with contract ID",
        lambda s, e: s.pricing_inquiry and e.contract_id is not None,
    ),
    RoutingRule(
        "R9", TargetDomain.CONTRACT_QUERY, "CONTRACT_ID_DETECTED", 0.8,
        "Contract ID detected without keywords",
        lambda s, e: e.contract_id is not None,
    ),
    RoutingRule(
        "R10", TargetDomain.CONTRACT_QUERY, "DATE_QUERY", 0.7,
        "Date-related query, likely contract information",
        lambda s, e: s.date,
    ),
    RoutingRule(
        "R11", TargetDomain.CONTRACT_QUERY, "PRICING_QUERY", 0.7,
        "Pricing-related query, likely contract information",
        lambda s, e: s.pricing,
    ),
)

DEFAULT_RULE = RoutingRule(
    "R12", TargetDomain.CONTRACT_QUERY, "DEFAULT_ROUTING", 0.6,
    "No specific keywords found, default routing to contract queries",
    lambda s, e: True,
)

SLOT_DATA_SUB_INTENT = "SLOT_DATA"
LOW_CONFIDENCE_SUB_INTENT = "LOW_CONFIDENCE"


def _entity_tokens(text: str) -> list[str]:
    return [t.strip(_EDGE_PUNCT) for t in text.split() if t.strip(_EDGE_PUNCT)]


def extract_entities(text: str) -> RouteEntities:
    tokens = _entity_tokens(text)
    contract_id = next((t for t in tokens if CONTRACT_ID_NUMERIC.fullmatch(t)), None)
    if contract_id is None:
        contract_id = next((t for t in tokens if CONTRACT_ID_CODED.fullmatch(t)), None)
    context = ACCOUNT_CONTEXT_PATTERN.search(text)
    if context is not None:
        account_number = context.group(1)
    else:
        account_number = next((t for t in tokens if ACCOUNT_TOKEN.fullmatch(t)), None)
    return RouteEntities(contract_id=contract_id, account_number=account_number)


class IntentRouter:
    """Deterministic keyword/pattern router with an optional confidence signal.

    ``route`` depends only on the text and the session state; the classifier,
    when wired in, can lower confidence below the threshold and turn the
    decision into Unknown, but never picks a different domain.
    """

    def __init__(
        self,
        lexicon: Lexicon,
        classifier: IntentClassifier | None = None,
        confidence_threshold: float = 0.6,
    ):
        self.lexicon = lexicon
        self.classifier = classifier
        self.confidence_threshold = confidence_threshold

    def signals(self, normalized_text: str) -> KeywordSignals:
        lowered = normalized_text.lower()
        words = set(_WORD_RE.findall(lowered))

        def hit(category: str) -> bool:
            return not words.isdisjoint(self.lexicon.keywords_for(category))

        return KeywordSignals(
            parts=hit(PARTS),
            create=hit(CREATE),
            contract=hit(CONTRACT),
            date=hit(DATE),
            pricing=hit(PRICING),
            help_qualifier=hit(HELP),
            account_mention=hit(ACCOUNT),
            pricing_phrase=bool(PRICING_PHRASE.search(lowered)),
        )

    def route(self, normalized_text: str, session_state: SessionState = SessionState.INITIAL) -> RouteDecision:
        entities = extract_entities(normalized_text)

        if session_state != SessionState.INITIAL:
            return RouteDecision(
                target_domain=TargetDomain.CONTRACT_CREATION,
                sub_intent=SLOT_DATA_SUB_INTENT,
                confidence=1.0,
                reason=f"Session is mid-creation ({session_state.value}); input treated as slot data",
                entities=entities,
            )

        signals = self.signals(normalized_text)
        rule = next((r for r in ROUTING_RULES if r.applies(signals, entities)), DEFAULT_RULE)
        decision = RouteDecision(
            target_domain=rule.target,
            sub_intent=rule.sub_intent,
            confidence=rule.confidence,
            reason=rule.reason,
            entities=entities,
        )
        logger.debug("Rule %s fired for %r -> %s/%s", rule.rule_id, normalized_text, rule.target.value, rule.sub_intent)
        return self._refine_confidence(decision, normalized_text)

    def _refine_confidence(self, decision: RouteDecision, normalized_text: str) -> RouteDecision:
        if self.classifier is None:
            return decision

        verdict = self.classifier.classify(normalized_text.split())
        if verdict is None:
            return decision

        label, confidence = verdict
        confidence = min(max(float(confidence), 0.0), 1.0)
        if confidence < self.confidence_threshold:
            return RouteDecision(
                target_domain=TargetDomain.UNKNOWN,
                sub_intent=LOW_CONFIDENCE_SUB_INTENT,
                confidence=confidence,
                reason=(
                    f"Classifier confidence {confidence:.2f} below {self.confidence_threshold:.2f} "
                    f"(label={label}); rule outcome was {decision.target_domain.value}/{decision.sub_intent}"
                ),
                entities=decision.entities,
            )
        return replace(decision, confidence=confidence)
