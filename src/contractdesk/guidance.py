from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class HelpTopic:
    message: str
    steps: tuple[str, ...]
    alternative_action: str = ""


AUTOMATED_CREATION_HINT = "You can also say 'create contract for account [number]' for automated creation"

HELP_TOPICS = {
    "CONTRACT_CREATION_HELP": HelpTopic(
        message="Here's how to create a contract manually:",
        steps=(
            "1. Login to Contract Tools with your credentials",
            "2. Navigate to the Opportunity Screen and click 'Contract Link'",
            "3. On the Dashboard, select 'CONTRACT IMPLS CHART'",
            "4. Click 'Create Contract', fill in the required data and save",
            "5. Complete Data Management (effective/expiration dates)",
            "6. Submit for approval via the Data Management workflow",
        ),
        alternative_action=AUTOMATED_CREATION_HINT,
    ),
    "HELP_REQUEST": HelpTopic(
        message="Contract creation help provided",
        steps=(
            "1. Gather customer information",
            "2. Define contract terms",
            "3. Set pricing and dates",
            "4. Review and validate",
            "5. Submit for approval",
        ),
        alternative_action=AUTOMATED_CREATION_HINT,
    ),
}

PARTS_CONFLICT_MESSAGE = (
    "Parts creation is not supported. Parts are loaded from Excel files and "
    "cannot be created through this system"
)

PARTS_CONFLICT_ALTERNATIVES = (
    "View existing parts: say 'show parts for contract 123456'",
    "Search parts: say 'list all parts'",
    "Parts count: say 'how many parts for contract 123456'",
)

UNKNOWN_INTENT_MESSAGE = (
    "Unable to understand the request. Try 'how to create contract' or "
    "'create contract for account [number]'"
)

UNKNOWN_INTENT_SUGGESTIONS = (
    "how to create contract",
    "create contract for account [number]",
    "show contract 123456",
    "list parts for contract 123456",
)

DATE_CONFIRMATION_MESSAGE = "Do you want to set data management dates? (effective/expiration)"
DATE_CONFIRMATION_OPTIONS = ("Yes", "No", "Skip")
DATE_PROMPT = "Please provide dates in YYYY-MM-DD format (effective date, expiration date):"
DATE_ANSWER_HINT = "Please respond with 'yes', 'no', or provide dates in YYYY-MM-DD format"

AFFIRMATIVE_ANSWERS = frozenset({"yes", "y", "yeah", "yep", "sure", "ok", "okay"})
NEGATIVE_ANSWERS = frozenset({"no", "n", "nope", "skip", "none"})


def help_topic(sub_intent: str) -> HelpTopic:
    return HELP_TOPICS.get(sub_intent, HELP_TOPICS["HELP_REQUEST"])
