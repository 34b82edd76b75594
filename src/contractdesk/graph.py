"""LangGraph-based turn pipeline for the contract desk assistant.

Each turn runs as a small state graph:
  normalize -> route -> one handler node per target domain -> END

The graph is compiled once per assistant. A turn holds its session's lock for
the whole invocation, so a session never sees two turns interleave.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Mapping

from langgraph.graph import END, StateGraph

from .classifier import IntentClassifier
from .config import AssistantConfig
from .guidance import (
    PARTS_CONFLICT_ALTERNATIVES,
    PARTS_CONFLICT_MESSAGE,
    UNKNOWN_INTENT_MESSAGE,
    UNKNOWN_INTENT_SUGGESTIONS,
    help_topic,
)
from .lexicon import Lexicon, default_lexicon
from .normalizer import SpellNormalizer
from .queries import QueryProcessor, RoutingEchoProcessor
from .responses import ErrorCode, Response, ResponseBuilder
from .routing import IntentRouter, RouteDecision, TargetDomain
from .session import SessionStore
from .slot_filling import SlotFillingEngine
from .trace import build_turn_trace

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Please provide a valid input"
PROCESSING_ERROR_MESSAGE = "An unexpected error occurred while processing your request. Please try again."

DOMAIN_NODES = {
    TargetDomain.CONTRACT_CREATION: "slot_filling",
    TargetDomain.CONTRACT_QUERY: "query",
    TargetDomain.PARTS_QUERY: "query",
    TargetDomain.HELP: "help",
    TargetDomain.CREATION_CONFLICT: "creation_conflict",
    TargetDomain.UNKNOWN: "unknown",
}


@dataclass(frozen=True, slots=True)
class LanguagePipeline:
    """Normalizer and router built from one lexicon; replaced as a unit."""

    lexicon: Lexicon
    normalizer: SpellNormalizer
    router: IntentRouter


@dataclass(slots=True)
class TurnOutput:
    response: Response
    trace: dict


@dataclass(slots=True)
class TurnRecord:
    turn_index: int
    raw_text: str
    response_type: str
    target_domain: str | None
    state_after: str | None
    latency_ms: float


@dataclass(slots=True)
class ConversationRun:
    session_id: str
    records: list[TurnRecord] = field(default_factory=list)
    responses: list[Response] = field(default_factory=list)

    @property
    def average_latency_ms(self) -> float:
        if not self.records:
            return 0.0
        return sum(r.latency_ms for r in self.records) / len(self.records)

    @property
    def final_response(self) -> Response | None:
        return self.responses[-1] if self.responses else None


class ContractAssistant:
    """Entry point: ``handle_turn(session_id, raw_text) -> Response``."""

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        config: AssistantConfig | None = None,
        store: SessionStore | None = None,
        classifier: IntentClassifier | None = None,
        query_processors: Mapping[TargetDomain, QueryProcessor] | None = None,
        slot_engine: SlotFillingEngine | None = None,
        builder: ResponseBuilder | None = None,
    ):
        self.config = config or AssistantConfig()
        self.store = store or SessionStore()
        self.builder = builder or ResponseBuilder()
        self.slot_engine = slot_engine or SlotFillingEngine(builder=self.builder)
        self.classifier = classifier
        self.query_processors: dict[TargetDomain, QueryProcessor] = {
            TargetDomain.CONTRACT_QUERY: RoutingEchoProcessor(TargetDomain.CONTRACT_QUERY.value),
            TargetDomain.PARTS_QUERY: RoutingEchoProcessor(TargetDomain.PARTS_QUERY.value),
        }
        self.query_processors.update(query_processors or {})

        unrouted = set(TargetDomain).difference(DOMAIN_NODES)
        if unrouted:
            raise ValueError(f"No handler node for target domains: {sorted(d.value for d in unrouted)}")

        self._swap_lock = threading.Lock()
        self._pipeline = self._build_pipeline(lexicon or default_lexicon())
        self.graph = self._build_graph()

    # ------------------------------------------------------------------
    # Configuration swap
    # ------------------------------------------------------------------

    def _build_pipeline(self, lexicon: Lexicon) -> LanguagePipeline:
        return LanguagePipeline(
            lexicon=lexicon,
            normalizer=SpellNormalizer(
                lexicon,
                fuzzy=self.config.fuzzy_correction,
                similarity_threshold=self.config.similarity_threshold,
            ),
            router=IntentRouter(
                lexicon,
                classifier=self.classifier,
                confidence_threshold=self.config.confidence_threshold,
            ),
        )

    @property
    def lexicon(self) -> Lexicon:
        return self._pipeline.lexicon

    def update_lexicon(self, lexicon: Lexicon) -> None:
        """Replace the whole lexicon; in-flight turns keep the one they started with."""
        pipeline = self._build_pipeline(lexicon)
        with self._swap_lock:
            self._pipeline = pipeline
        logger.info("Lexicon replaced (%d corrections)", len(lexicon.corrections))

    def add_correction(self, typo: str, correction: str) -> None:
        with self._swap_lock:
            self._pipeline = self._build_pipeline(self._pipeline.lexicon.with_correction(typo, correction))

    def add_keyword(self, category: str, keyword: str) -> None:
        with self._swap_lock:
            self._pipeline = self._build_pipeline(self._pipeline.lexicon.with_keyword(category, keyword))

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _build_graph(self) -> Any:
        builder = StateGraph(dict)

        builder.add_node("normalize", self._node_normalize)
        builder.add_node("route", self._node_route)
        builder.add_node("slot_filling", self._node_slot_filling)
        builder.add_node("query", self._node_query)
        builder.add_node("help", self._node_help)
        builder.add_node("creation_conflict", self._node_creation_conflict)
        builder.add_node("unknown", self._node_unknown)

        builder.set_entry_point("normalize")
        builder.add_edge("normalize", "route")
        builder.add_conditional_edges(
            "route",
            self._route_to_handler,
            {node: node for node in set(DOMAIN_NODES.values())},
        )
        for node in set(DOMAIN_NODES.values()):
            builder.add_edge(node, END)

        return builder.compile()

    def _node_normalize(self, state: dict) -> dict:
        pipeline: LanguagePipeline = state["pipeline"]
        state["normalized_text"] = pipeline.normalizer.normalize(state["raw_text"])
        return state

    def _node_route(self, state: dict) -> dict:
        pipeline: LanguagePipeline = state["pipeline"]
        session = state["session"]
        state["route"] = pipeline.router.route(state["normalized_text"], session.state)
        return state

    def _route_to_handler(self, state: dict) -> str:
        return DOMAIN_NODES[state["route"].target_domain]

    def _node_slot_filling(self, state: dict) -> dict:
        state["response"] = self.slot_engine.handle(state["session"], state["raw_text"])
        return state

    def _node_query(self, state: dict) -> dict:
        route: RouteDecision = state["route"]
        entities = route.entities.as_dict()
        processor = self.query_processors[route.target_domain]
        payload = processor.process_query(state["normalized_text"], entities)
        state["response"] = self.builder.query_result(
            target_domain=route.target_domain.value,
            sub_intent=route.sub_intent,
            entities=entities,
            payload=payload,
        )
        return state

    def _node_help(self, state: dict) -> dict:
        route: RouteDecision = state["route"]
        topic = help_topic(route.sub_intent)
        state["response"] = self.builder.help(
            message=topic.message,
            steps=topic.steps,
            sub_intent=route.sub_intent,
            alternative_action=topic.alternative_action,
        )
        return state

    def _node_creation_conflict(self, state: dict) -> dict:
        state["response"] = self.builder.error(
            PARTS_CONFLICT_MESSAGE,
            ErrorCode.CREATION_CONFLICT,
            alternatives=PARTS_CONFLICT_ALTERNATIVES,
        )
        return state

    def _node_unknown(self, state: dict) -> dict:
        state["response"] = self.builder.unknown(UNKNOWN_INTENT_MESSAGE, UNKNOWN_INTENT_SUGGESTIONS)
        return state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_turn(self, session_id: str, raw_text: str | None) -> TurnOutput:
        if raw_text is None or not str(raw_text).strip():
            return TurnOutput(
                response=self.builder.error(EMPTY_INPUT_MESSAGE, ErrorCode.EMPTY_INPUT),
                trace={"session_id": session_id, "short_circuit": ErrorCode.EMPTY_INPUT.value},
            )

        pipeline = self._pipeline
        try:
            with self.store.acquire(session_id) as session:
                state_before = session.state.value
                result = self.graph.invoke(
                    {
                        "session": session,
                        "pipeline": pipeline,
                        "raw_text": str(raw_text),
                    }
                )
                session.last_input = str(raw_text)
                response = result["response"]
                trace = build_turn_trace(
                    session,
                    normalized_text=result["normalized_text"],
                    route=result["route"],
                    response_type=response.response_type.value,
                    state_before=state_before,
                )
                return TurnOutput(response=response, trace=trace)
        except Exception:  # noqa: BLE001
            logger.exception("Turn failed for session %s", session_id)
            return TurnOutput(
                response=self.builder.error(PROCESSING_ERROR_MESSAGE, ErrorCode.PROCESSING_ERROR),
                trace={"session_id": session_id, "short_circuit": ErrorCode.PROCESSING_ERROR.value},
            )

    def handle_turn(self, session_id: str, raw_text: str | None) -> Response:
        return self.run_turn(session_id, raw_text).response

    def reset_session(self, session_id: str) -> None:
        self.store.reset(session_id)

    def session_snapshot(self, session_id: str) -> dict | None:
        return self.store.snapshot(session_id)

    def discard_session(self, session_id: str) -> bool:
        return self.store.discard(session_id)

    def run_scenario(self, session_id: str, inputs: list[str]) -> ConversationRun:
        run = ConversationRun(session_id=session_id)
        for idx, text in enumerate(inputs, start=1):
            start = perf_counter()
            out = self.run_turn(session_id, text)
            latency_ms = round((perf_counter() - start) * 1000, 3)
            route = out.trace.get("routing_decision") or {}
            run.records.append(
                TurnRecord(
                    turn_index=idx,
                    raw_text=text,
                    response_type=out.response.response_type.value,
                    target_domain=route.get("target_domain"),
                    state_after=out.trace.get("state_after"),
                    latency_ms=latency_ms,
                )
            )
            run.responses.append(out.response)
        return run
