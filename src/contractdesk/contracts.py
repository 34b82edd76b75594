from __future__ import annotations

from dataclasses import dataclass, fields

from .fields import REQUIRED_CONTRACT_FIELDS
from .responses import RESPONSE_CLASSES, ErrorCode, ResponseType
from .routing import TargetDomain
from .session import Session, SessionState


CONTRACT_VERSIONS = {
    "response_schema": "v1",
    "session_schema": "v1",
    "route_schema": "v1",
    "trace_schema": "v1",
}


REQUIRED_SESSION_FIELDS = {
    "session_id",
    "state",
    "fields",
    "date_fields",
    "last_input",
    "created_at",
    "value_updates",
}


REQUIRED_RESPONSE_FIELDS = {
    ResponseType.ERROR: {"message", "error_code", "next_action", "alternatives"},
    ResponseType.VALIDATION_FAILED: {"message", "reason", "next_action", "current_state", "error_code"},
    ResponseType.DATA_COLLECTION: {"next_question", "missing_fields", "validated_data_so_far", "current_state"},
    ResponseType.CONFIRMATION: {"message", "options", "current_data"},
    ResponseType.SUCCESS: {"contract_id", "generated_fields", "collected_data", "message", "next_steps"},
    ResponseType.UNKNOWN: {"message", "suggestions", "error_code"},
    ResponseType.HELP: {"message", "steps", "sub_intent", "alternative_action"},
    ResponseType.QUERY_RESULT: {"target_domain", "sub_intent", "entities", "payload"},
}


EXPECTED_SESSION_STATES = {
    "INITIAL",
    "COLLECTING_ACCOUNT",
    "COLLECTING_CONTRACT_DATA",
    "COLLECTING_DATES",
    "COMPLETED",
}

EXPECTED_TARGET_DOMAINS = {
    "ContractCreation",
    "ContractQuery",
    "PartsQuery",
    "Help",
    "CreationConflict",
    "Unknown",
}

EXPECTED_ERROR_CODES = {
    "EMPTY_INPUT",
    "UNKNOWN_INTENT",
    "INVALID_DATA",
    "VALIDATION_FAILED",
    "CREATION_CONFLICT",
    "PROCESSING_ERROR",
}

EXPECTED_CONTRACT_FIELDS = ("accountNumber", "contractName", "priceList", "title", "description")


@dataclass(frozen=True, slots=True)
class ContractValidationResult:
    is_valid: bool
    errors: list[str]


def validate_response_contract() -> list[str]:
    errors: list[str] = []

    if set(RESPONSE_CLASSES) != set(ResponseType):
        errors.append("response_types_without_class")

    for tag, required in REQUIRED_RESPONSE_FIELDS.items():
        cls = RESPONSE_CLASSES.get(tag)
        if cls is None:
            continue
        current = {f.name for f in fields(cls)}
        missing = required.difference(current)
        if missing:
            errors.append(f"missing_response_fields:{tag.value}:{sorted(missing)}")
        unexpected = current.difference(required)
        if unexpected:
            errors.append(f"unexpected_response_fields:{tag.value}:{sorted(unexpected)}")
    return errors


def validate_contract_freeze() -> ContractValidationResult:
    errors: list[str] = []

    if set(CONTRACT_VERSIONS.keys()) != {
        "response_schema",
        "session_schema",
        "route_schema",
        "trace_schema",
    }:
        errors.append("contract_versions_missing_required_keys")

    current_session_fields = set(Session.__dataclass_fields__.keys())
    missing_session = REQUIRED_SESSION_FIELDS.difference(current_session_fields)
    if missing_session:
        errors.append(f"missing_session_fields:{sorted(missing_session)}")

    unexpected_session = current_session_fields.difference(REQUIRED_SESSION_FIELDS)
    if unexpected_session:
        errors.append(f"unexpected_session_fields:{sorted(unexpected_session)}")

    errors.extend(validate_response_contract())

    if EXPECTED_SESSION_STATES != {s.value for s in SessionState}:
        errors.append("session_states_changed")

    if EXPECTED_TARGET_DOMAINS != {d.value for d in TargetDomain}:
        errors.append("target_domains_changed")

    if EXPECTED_ERROR_CODES != {c.value for c in ErrorCode}:
        errors.append("error_codes_changed")

    if REQUIRED_CONTRACT_FIELDS != EXPECTED_CONTRACT_FIELDS:
        errors.append("contract_field_order_changed")

    return ContractValidationResult(is_valid=not errors, errors=errors)
