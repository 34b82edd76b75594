from __future__ import annotations

from typing import Any, Mapping, Protocol


class QueryProcessor(Protocol):
    """Domain backend for existing contracts or parts.

    Receives the normalized query and extracted entities; whatever it returns
    is wrapped unchanged into the turn's response payload.
    """

    def process_query(self, normalized_text: str, entities: Mapping[str, str]) -> Any: ...


class RoutingEchoProcessor:
    """Placeholder backend that reports what would have been queried."""

    def __init__(self, domain: str):
        self.domain = domain

    def process_query(self, normalized_text: str, entities: Mapping[str, str]) -> dict[str, Any]:
        return {
            "status": "NOT_CONNECTED",
            "message": f"No {self.domain} backend is configured; the query was routed but not executed",
            "query": normalized_text,
            "entities": dict(entities),
        }
