"""Tagged response values and their single serializer.

Every turn ends in exactly one of these frozen dataclasses. ``ResponseBuilder``
only assembles them; ``to_dict``/``to_json`` is the only place that knows the
wire shape (camelCase keys plus a ``responseType`` tag).
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from .session import SessionState


class ResponseType(str, Enum):
    ERROR = "ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DATA_COLLECTION = "DATA_COLLECTION"
    CONFIRMATION = "CONFIRMATION"
    SUCCESS = "SUCCESS"
    UNKNOWN = "UNKNOWN"
    HELP = "HELP"
    QUERY_RESULT = "QUERY_RESULT"


class ErrorCode(str, Enum):
    EMPTY_INPUT = "EMPTY_INPUT"
    UNKNOWN_INTENT = "UNKNOWN_INTENT"
    INVALID_DATA = "INVALID_DATA"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CREATION_CONFLICT = "CREATION_CONFLICT"
    PROCESSING_ERROR = "PROCESSING_ERROR"


DEFAULT_NEXT_ACTION = "Retry with valid input or say 'how to create contract' for instructions"


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    response_type: ClassVar[ResponseType] = ResponseType.ERROR
    message: str
    error_code: ErrorCode
    next_action: str = DEFAULT_NEXT_ACTION
    alternatives: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ValidationFailedResponse:
    response_type: ClassVar[ResponseType] = ResponseType.VALIDATION_FAILED
    message: str
    reason: str
    next_action: str
    current_state: SessionState
    error_code: ErrorCode = ErrorCode.VALIDATION_FAILED


@dataclass(frozen=True, slots=True)
class DataCollectionResponse:
    response_type: ClassVar[ResponseType] = ResponseType.DATA_COLLECTION
    next_question: str
    missing_fields: tuple[str, ...]
    validated_data_so_far: Mapping[str, str]
    current_state: SessionState


@dataclass(frozen=True, slots=True)
class ConfirmationResponse:
    response_type: ClassVar[ResponseType] = ResponseType.CONFIRMATION
    message: str
    options: tuple[str, ...]
    current_data: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SuccessResponse:
    response_type: ClassVar[ResponseType] = ResponseType.SUCCESS
    contract_id: str
    generated_fields: Mapping[str, str]
    collected_data: Mapping[str, str]
    message: str = "Contract created successfully!"
    next_steps: str = "Submit for approval via Data Management"


@dataclass(frozen=True, slots=True)
class UnknownResponse:
    response_type: ClassVar[ResponseType] = ResponseType.UNKNOWN
    message: str
    suggestions: tuple[str, ...]
    error_code: ErrorCode = ErrorCode.UNKNOWN_INTENT


@dataclass(frozen=True, slots=True)
class HelpResponse:
    response_type: ClassVar[ResponseType] = ResponseType.HELP
    message: str
    steps: tuple[str, ...]
    sub_intent: str
    alternative_action: str = ""


@dataclass(frozen=True, slots=True)
class QueryResultResponse:
    response_type: ClassVar[ResponseType] = ResponseType.QUERY_RESULT
    target_domain: str
    sub_intent: str
    entities: Mapping[str, str]
    payload: Any


Response = Union[
    ErrorResponse,
    ValidationFailedResponse,
    DataCollectionResponse,
    ConfirmationResponse,
    SuccessResponse,
    UnknownResponse,
    HelpResponse,
    QueryResultResponse,
]

RESPONSE_CLASSES: dict[ResponseType, type] = {
    cls.response_type: cls
    for cls in (
        ErrorResponse,
        ValidationFailedResponse,
        DataCollectionResponse,
        ConfirmationResponse,
        SuccessResponse,
        UnknownResponse,
        HelpResponse,
        QueryResultResponse,
    )
}


class ResponseBuilder:
    """Assembles response values; no business decisions happen here."""

    def build(self, tag: ResponseType | str, payload: Mapping[str, Any]) -> Response:
        cls = RESPONSE_CLASSES[ResponseType(tag)]
        # dataclass __init__ raises TypeError on missing or unexpected fields
        return cls(**dict(payload))

    def error(self, message: str, error_code: ErrorCode, alternatives: tuple[str, ...] = ()) -> ErrorResponse:
        return self.build(
            ResponseType.ERROR,
            {"message": message, "error_code": error_code, "alternatives": tuple(alternatives)},
        )

    def validation_failed(
        self, message: str, reason: str, next_action: str, current_state: SessionState
    ) -> ValidationFailedResponse:
        return self.build(
            ResponseType.VALIDATION_FAILED,
            {"message": message, "reason": reason, "next_action": next_action, "current_state": current_state},
        )

    def data_collection(
        self,
        next_question: str,
        missing_fields: list[str] | tuple[str, ...],
        validated_data_so_far: Mapping[str, str],
        current_state: SessionState,
    ) -> DataCollectionResponse:
        return self.build(
            ResponseType.DATA_COLLECTION,
            {
                "next_question": next_question,
                "missing_fields": tuple(missing_fields),
                "validated_data_so_far": dict(validated_data_so_far),
                "current_state": current_state,
            },
        )

    def confirmation(
        self, message: str, options: tuple[str, ...], current_data: Mapping[str, str] | None = None
    ) -> ConfirmationResponse:
        return self.build(
            ResponseType.CONFIRMATION,
            {"message": message, "options": tuple(options), "current_data": dict(current_data or {})},
        )

    def success(
        self, contract_id: str, generated_fields: Mapping[str, str], collected_data: Mapping[str, str]
    ) -> SuccessResponse:
        return self.build(
            ResponseType.SUCCESS,
            {
                "contract_id": contract_id,
                "generated_fields": dict(generated_fields),
                "collected_data": dict(collected_data),
            },
        )

    def unknown(self, message: str, suggestions: tuple[str, ...]) -> UnknownResponse:
        return self.build(ResponseType.UNKNOWN, {"message": message, "suggestions": tuple(suggestions)})

    def help(self, message: str, steps: tuple[str, ...], sub_intent: str, alternative_action: str = "") -> HelpResponse:
        return self.build(
            ResponseType.HELP,
            {
                "message": message,
                "steps": tuple(steps),
                "sub_intent": sub_intent,
                "alternative_action": alternative_action,
            },
        )

    def query_result(
        self, target_domain: str, sub_intent: str, entities: Mapping[str, str], payload: Any
    ) -> QueryResultResponse:
        return self.build(
            ResponseType.QUERY_RESULT,
            {
                "target_domain": target_domain,
                "sub_intent": sub_intent,
                "entities": dict(entities),
                "payload": payload,
            },
        )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return value


def to_dict(response: Response) -> dict[str, Any]:
    body = {"responseType": response.response_type.value}
    body.update(_plain(response))
    return body


def to_json(response: Response) -> str:
    return json.dumps(to_dict(response), indent=2, default=str)
