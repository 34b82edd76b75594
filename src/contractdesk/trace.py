from __future__ import annotations

from .routing import RouteDecision
from .session import Session


def build_turn_trace(
    session: Session,
    *,
    normalized_text: str,
    route: RouteDecision,
    response_type: str,
    state_before: str,
) -> dict:
    """Build trace strictly from routing and session artifacts."""
    return {
        "session_id": session.session_id,
        "normalized_text": normalized_text,
        "routing_decision": {
            "target_domain": route.target_domain.value,
            "sub_intent": route.sub_intent,
            "confidence": route.confidence,
            "reason": route.reason,
            "entities": route.entities.as_dict(),
        },
        "state_before": state_before,
        "state_after": session.state.value,
        "missing_fields": session.missing_fields,
        "value_updates": list(session.value_updates),
        "response_type": response_type,
    }
