from __future__ import annotations

import logging
import random
import re
from datetime import date
from typing import Callable

from .fields import (
    ACCOUNT_NUMBER,
    DATE_FIELDS,
    DIGIT_RUN_PATTERN,
    EFFECTIVE_DATE,
    EXPIRATION_DATE,
    get_field_spec,
)
from .guidance import (
    AFFIRMATIVE_ANSWERS,
    DATE_ANSWER_HINT,
    DATE_CONFIRMATION_MESSAGE,
    DATE_CONFIRMATION_OPTIONS,
    DATE_PROMPT,
    NEGATIVE_ANSWERS,
)
from .responses import ErrorCode, Response, ResponseBuilder
from .session import Session, SessionState
from .validators import (
    KNOWN_ACCOUNT_PREFIXES,
    extract_date_candidates,
    validate_account_number,
    validate_date_pair,
    validate_text_field,
)

logger = logging.getLogger(__name__)

_ANSWER_RE = re.compile(r"[a-z]+")


class SlotFillingEngine:
    """State machine that collects contract-creation fields one turn at a time.

    INITIAL -> COLLECTING_ACCOUNT -> COLLECTING_CONTRACT_DATA -> COLLECTING_DATES
    -> COMPLETED, where COMPLETED immediately resets the session. Failed
    validation never mutates the session.
    """

    def __init__(
        self,
        builder: ResponseBuilder | None = None,
        known_prefixes: frozenset[str] = KNOWN_ACCOUNT_PREFIXES,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.builder = builder or ResponseBuilder()
        self.known_prefixes = known_prefixes
        self.rng = rng or random.Random()
        self.today = today
        self._handlers: dict[SessionState, Callable[[Session, str], Response]] = {
            SessionState.INITIAL: self._start,
            SessionState.COLLECTING_ACCOUNT: self._collect_account,
            SessionState.COLLECTING_CONTRACT_DATA: self._collect_contract_data,
            SessionState.COLLECTING_DATES: self._collect_dates,
            SessionState.COMPLETED: self._restart,
        }

    def handle(self, session: Session, raw_text: str) -> Response:
        handler = self._handlers[session.state]
        return handler(session, raw_text.strip())

    # ------------------------------------------------------------------
    # Account number
    # ------------------------------------------------------------------

    def _start(self, session: Session, text: str) -> Response:
        candidate = self._account_candidate(text)
        if candidate is None:
            session.transition(SessionState.COLLECTING_ACCOUNT, "account_number_absent")
            return self._prompt_next(session)
        return self._accept_account(session, candidate)

    def _collect_account(self, session: Session, text: str) -> Response:
        return self._accept_account(session, self._account_candidate(text) or text)

    @staticmethod
    def _account_candidate(text: str) -> str | None:
        """Account-shaped number if present, else any standalone digit run."""
        account = get_field_spec(ACCOUNT_NUMBER).extract(text)
        if account is not None:
            return account
        match = DIGIT_RUN_PATTERN.search(text)
        return match.group(1) if match else None

    def _accept_account(self, session: Session, candidate: str) -> Response:
        result = validate_account_number(candidate, self.known_prefixes)
        if not result.valid:
            logger.info("Session %s: account %s rejected (%s)", session.session_id, candidate, result.rule)
            return self.builder.validation_failed(
                message=f"Account number {candidate} is invalid",
                reason=result.error_message,
                next_action="Please provide a valid account number",
                current_state=session.state,
            )

        session.set_field(ACCOUNT_NUMBER, candidate, "account_validated")
        session.transition(SessionState.COLLECTING_CONTRACT_DATA, "account_validated")
        return self._prompt_next(session)

    # ------------------------------------------------------------------
    # Free-text contract fields, strictly in registry order
    # ------------------------------------------------------------------

    def _collect_contract_data(self, session: Session, text: str) -> Response:
        missing = session.missing_fields
        if not missing:
            return self._ask_for_dates(session)

        spec = get_field_spec(missing[0])
        if spec.name == ACCOUNT_NUMBER:
            return self._collect_account(session, text)

        result = validate_text_field(spec, text)
        if not result.valid:
            return self.builder.error(f"{result.error_message}. {spec.prompt}", ErrorCode.INVALID_DATA)

        session.set_field(spec.name, text, "slot_filled")
        if session.missing_fields:
            return self._prompt_next(session)
        return self._ask_for_dates(session)

    def _prompt_next(self, session: Session) -> Response:
        missing = session.missing_fields
        return self.builder.data_collection(
            next_question=get_field_spec(missing[0]).prompt,
            missing_fields=missing,
            validated_data_so_far=session.fields,
            current_state=session.state,
        )

    def _ask_for_dates(self, session: Session) -> Response:
        session.transition(SessionState.COLLECTING_DATES, "required_fields_complete")
        return self.builder.confirmation(
            message=DATE_CONFIRMATION_MESSAGE,
            options=DATE_CONFIRMATION_OPTIONS,
            current_data=session.fields,
        )

    # ------------------------------------------------------------------
    # Effective / expiration dates
    # ------------------------------------------------------------------

    def _collect_dates(self, session: Session, text: str) -> Response:
        candidates = extract_date_candidates(text)
        if candidates:
            effective = candidates[0]
            expiration = candidates[1] if len(candidates) > 1 else None
            result = validate_date_pair(effective, expiration)
            if not result.valid:
                return self.builder.validation_failed(
                    message="Invalid dates provided",
                    reason=result.error_message,
                    next_action="Please provide valid dates in YYYY-MM-DD format",
                    current_state=session.state,
                )
            session.set_dates(effective, expiration, "dates_validated")
            return self._complete(session)

        answers = set(_ANSWER_RE.findall(text.lower()))
        if answers & AFFIRMATIVE_ANSWERS:
            return self.builder.data_collection(
                next_question=DATE_PROMPT,
                missing_fields=DATE_FIELDS,
                validated_data_so_far=session.fields,
                current_state=session.state,
            )
        if answers & NEGATIVE_ANSWERS:
            return self._complete(session)

        return self.builder.error(DATE_ANSWER_HINT, ErrorCode.INVALID_DATA)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _complete(self, session: Session) -> Response:
        session.transition(SessionState.COMPLETED, "contract_created")
        today = self.today()
        contract_id = f"CN-{today.year}-{self.rng.randint(0, 999_999):06d}"

        generated: dict[str, str] = {}
        if session.date_fields:
            generated[EFFECTIVE_DATE] = session.date_fields[EFFECTIVE_DATE]
            generated[EXPIRATION_DATE] = session.date_fields[EXPIRATION_DATE]
        generated["status"] = "DRAFT"
        generated["createdDate"] = today.isoformat()

        response = self.builder.success(
            contract_id=contract_id,
            generated_fields=generated,
            collected_data=session.fields,
        )
        logger.info("Session %s: contract %s created", session.session_id, contract_id)
        session.reset("contract_created")
        return response

    def _restart(self, session: Session, text: str) -> Response:
        session.reset("completed_session_reused")
        return self._start(session, text)
