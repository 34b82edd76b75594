"""Business-rule checks for contract fields. Pure functions, no session access."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .fields import ACCOUNT_NUMBER, FieldSpec, get_field_spec

# simulated customer master
KNOWN_ACCOUNT_PREFIXES = frozenset({"123", "147", "234", "345", "456", "567", "678", "789", "890", "901"})

ACCOUNT_MIN_VALUE = 100_000
ACCOUNT_MAX_VALUE = 999_999_999

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
DATE_CANDIDATE_PATTERN = re.compile(r"\b\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}\b")

DATE_FORMAT_ERROR = "Invalid date format. Use YYYY-MM-DD"
DATE_ORDER_ERROR = "Effective date cannot be after expiration date"
DATE_MISSING_ERROR = "Both effective and expiration dates are required (YYYY-MM-DD, YYYY-MM-DD)"


class AccountRule:
    VALID = "valid"
    NOT_NUMERIC = "not_numeric"
    LENGTH = "length"
    RANGE = "out_of_range"
    DEACTIVATED = "deactivated"
    BLOCKED = "blocked"
    UNKNOWN_PREFIX = "unknown_prefix"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    error_message: str | None = None
    rule: str = AccountRule.VALID

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, rule: str, message: str) -> "ValidationResult":
        return cls(valid=False, error_message=message, rule=rule)


def validate_account_number(
    value: str,
    known_prefixes: frozenset[str] = KNOWN_ACCOUNT_PREFIXES,
) -> ValidationResult:
    """Check an account number against the customer-master rules.

    The first failing rule decides the outcome, so every input maps to
    exactly one result. Status suffixes are checked before the prefix
    lookup: a blocked or deactivated account is reported as such even when
    its prefix is unknown.
    """
    account = str(value).strip()
    if not account.isdigit():
        return ValidationResult.fail(AccountRule.NOT_NUMERIC, "Account number must contain only digits")
    if not 6 <= len(account) <= 12:
        return ValidationResult.fail(AccountRule.LENGTH, "Account number must be 6-12 digits")
    if not ACCOUNT_MIN_VALUE <= int(account) <= ACCOUNT_MAX_VALUE:
        return ValidationResult.fail(AccountRule.RANGE, "Account number out of valid range")
    if account.endswith("000"):
        return ValidationResult.fail(AccountRule.DEACTIVATED, "Account is deactivated")
    if account.endswith("999"):
        return ValidationResult.fail(AccountRule.BLOCKED, "Account is blocked for contract creation")
    if account[:3] not in known_prefixes:
        return ValidationResult.fail(AccountRule.UNKNOWN_PREFIX, "Account number not found in customer master")
    return ValidationResult.ok()


def validate_text_field(spec: FieldSpec, value: str) -> ValidationResult:
    text = str(value).strip()
    if spec.min_length <= len(text) <= spec.max_length:
        return ValidationResult.ok()
    return ValidationResult.fail(
        "length",
        f"{spec.label} must be {spec.min_length}-{spec.max_length} characters",
    )


def validate_field(name: str, value: str) -> ValidationResult:
    spec = get_field_spec(name)
    if spec.name == ACCOUNT_NUMBER:
        return validate_account_number(value)
    return validate_text_field(spec, value)


def parse_iso_date(value: str) -> date | None:
    if not ISO_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def extract_date_candidates(text: str) -> list[str]:
    return DATE_CANDIDATE_PATTERN.findall(text)


def validate_date_pair(effective: str | None, expiration: str | None) -> ValidationResult:
    if not effective or not expiration:
        return ValidationResult.fail("missing", DATE_MISSING_ERROR)

    effective_date = parse_iso_date(effective)
    expiration_date = parse_iso_date(expiration)
    if effective_date is None or expiration_date is None:
        return ValidationResult.fail("format", DATE_FORMAT_ERROR)
    if effective_date > expiration_date:
        return ValidationResult.fail("order", DATE_ORDER_ERROR)
    return ValidationResult.ok()
