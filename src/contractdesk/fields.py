from __future__ import annotations

import re
from dataclasses import dataclass

ACCOUNT_NUMBER = "accountNumber"
CONTRACT_NAME = "contractName"
PRICE_LIST = "priceList"
TITLE = "title"
DESCRIPTION = "description"

EFFECTIVE_DATE = "effectiveDate"
EXPIRATION_DATE = "expirationDate"

ACCOUNT_CONTEXT_PATTERN = re.compile(
    r"\b(?:account|acct)s?(?:\s*(?:number|num|no\.?|#))?\s*[:#]?\s*(\d{6,12})\b",
    re.IGNORECASE,
)
ACCOUNT_NUMBER_PATTERN = re.compile(r"\b(\d{6,12})\b")
# standalone digit run of any length
DIGIT_RUN_PATTERN = re.compile(r"(?<![\w-])(\d+)(?![\w-])")


@dataclass(frozen=True, slots=True)
class FieldSpec:
    name: str
    label: str
    min_length: int
    max_length: int
    prompt: str
    extractors: tuple[re.Pattern[str], ...] = ()

    def extract(self, text: str) -> str | None:
        """Pull a structured value out of free text; ``None`` when absent.

        Extractors are tried in order and the first match wins.
        """
        for extractor in self.extractors:
            match = extractor.search(text)
            if match:
                return match.group(1)
        return None


FIELD_REGISTRY: tuple[FieldSpec, ...] = (
    FieldSpec(
        name=ACCOUNT_NUMBER,
        label="Account number",
        min_length=6,
        max_length=12,
        prompt="Please provide the account number (6-12 digits):",
        extractors=(ACCOUNT_CONTEXT_PATTERN, ACCOUNT_NUMBER_PATTERN),
    ),
    FieldSpec(
        name=CONTRACT_NAME,
        label="Contract name",
        min_length=3,
        max_length=100,
        prompt="Enter the contract name (3-100 characters):",
    ),
    FieldSpec(
        name=PRICE_LIST,
        label="Price list",
        min_length=2,
        max_length=50,
        prompt="Enter the price list identifier (2-50 characters):",
    ),
    FieldSpec(
        name=TITLE,
        label="Title",
        min_length=3,
        max_length=200,
        prompt="Enter the contract title (3-200 characters):",
    ),
    FieldSpec(
        name=DESCRIPTION,
        label="Description",
        min_length=5,
        max_length=500,
        prompt="Enter the contract description (5-500 characters):",
    ),
)

REQUIRED_CONTRACT_FIELDS = tuple(spec.name for spec in FIELD_REGISTRY)

FIELDS_BY_NAME = {spec.name: spec for spec in FIELD_REGISTRY}

DATE_FIELDS = (EFFECTIVE_DATE, EXPIRATION_DATE)


def get_field_spec(name: str) -> FieldSpec:
    try:
        return FIELDS_BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown contract field '{name}'. Expected one of {REQUIRED_CONTRACT_FIELDS}") from None


def missing_fields(collected: dict[str, str]) -> list[str]:
    return [name for name in REQUIRED_CONTRACT_FIELDS if name not in collected]
