import random
import unittest
from concurrent.futures import ThreadPoolExecutor

from src.contractdesk.config import AssistantConfig
from src.contractdesk.graph import DOMAIN_NODES, ContractAssistant
from src.contractdesk.lexicon import Lexicon
from src.contractdesk.responses import (
    ConfirmationResponse,
    DataCollectionResponse,
    ErrorCode,
    ErrorResponse,
    HelpResponse,
    QueryResultResponse,
    SuccessResponse,
    UnknownResponse,
    ValidationFailedResponse,
)
from src.contractdesk.routing import TargetDomain
from src.contractdesk.slot_filling import SlotFillingEngine

FULL_CREATION = [
    "Create contract for account 147852369",
    "Enterprise Solutions Contract",
    "STANDARD",
    "Annual Service Agreement",
    "This is a comprehensive service agreement...",
    "yes",
    "2024-04-01, 2025-04-01",
]


class RecordingProcessor:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def process_query(self, normalized_text, entities):
        self.calls.append((normalized_text, dict(entities)))
        if self.error is not None:
            raise self.error
        return self.payload


class FakeClassifier:
    def __init__(self, verdict):
        self.verdict = verdict

    def classify(self, tokens):
        return self.verdict


def _assistant(**kwargs) -> ContractAssistant:
    kwargs.setdefault("slot_engine", SlotFillingEngine(rng=random.Random(1)))
    return ContractAssistant(**kwargs)


class TestAssistantScenarios(unittest.TestCase):
    def setUp(self):
        self.assistant = _assistant()

    def test_creation_request_with_valid_account(self):
        out = self.assistant.handle_turn("s1", "create contract for account 147852369")
        self.assertIsInstance(out, DataCollectionResponse)
        self.assertTrue(out.next_question.startswith("Enter the contract name"))
        self.assertEqual(out.missing_fields, ("contractName", "priceList", "title", "description"))
        self.assertEqual(self.assistant.session_snapshot("s1")["fields"], {"accountNumber": "147852369"})

    def test_creation_request_with_blocked_account(self):
        out = self.assistant.handle_turn("s2", "Create contract for account 999999999")
        self.assertIsInstance(out, ValidationFailedResponse)
        self.assertEqual(out.reason, "Account is blocked for contract creation")
        self.assertEqual(self.assistant.session_snapshot("s2")["state"], "INITIAL")

    def test_full_creation_dialogue(self):
        responses = [self.assistant.handle_turn("s3", text) for text in FULL_CREATION]

        self.assertIsInstance(responses[4], ConfirmationResponse)
        self.assertIsInstance(responses[5], DataCollectionResponse)
        final = responses[-1]
        self.assertIsInstance(final, SuccessResponse)
        self.assertRegex(final.contract_id, r"^CN-\d{4}-\d{6}$")
        self.assertEqual(final.generated_fields["effectiveDate"], "2024-04-01")
        self.assertEqual(final.generated_fields["expirationDate"], "2025-04-01")
        self.assertEqual(final.collected_data["contractName"], "Enterprise Solutions Contract")
        self.assertEqual(self.assistant.session_snapshot("s3")["state"], "INITIAL")

    def test_misspelled_creation_request_routes_to_help(self):
        out = self.assistant.run_turn("s4", "creat contrct")
        self.assertEqual(out.trace["normalized_text"], "create contract")
        self.assertIsInstance(out.response, HelpResponse)
        self.assertEqual(out.response.sub_intent, "CONTRACT_CREATION_HELP")
        self.assertEqual(len(out.response.steps), 6)

    def test_misspelled_text_mid_dialogue_is_slot_data(self):
        self.assistant.handle_turn("s4b", "create contract for account 147852369")
        out = self.assistant.handle_turn("s4b", "creat contrct")
        self.assertIsInstance(out, DataCollectionResponse)
        self.assertEqual(self.assistant.session_snapshot("s4b")["fields"]["contractName"], "creat contrct")

    def test_empty_input(self):
        out = self.assistant.handle_turn("s5", "")
        self.assertIsInstance(out, ErrorResponse)
        self.assertEqual(out.error_code, ErrorCode.EMPTY_INPUT)
        self.assertIsNone(self.assistant.session_snapshot("s5"))

    def test_blank_input_leaves_dialogue_untouched(self):
        self.assistant.handle_turn("s5b", "create contract for account 147852369")
        before = self.assistant.session_snapshot("s5b")
        out = self.assistant.handle_turn("s5b", "   \t ")
        self.assertEqual(out.error_code, ErrorCode.EMPTY_INPUT)
        self.assertEqual(self.assistant.session_snapshot("s5b"), before)

    def test_reversed_dates_keep_collecting(self):
        for text in FULL_CREATION[:5]:
            self.assistant.handle_turn("s6", text)
        out = self.assistant.handle_turn("s6", "2025-04-01, 2024-04-01")
        self.assertIsInstance(out, ValidationFailedResponse)
        self.assertEqual(out.reason, "Effective date cannot be after expiration date")
        self.assertEqual(self.assistant.session_snapshot("s6")["state"], "COLLECTING_DATES")


class TestAssistantDomains(unittest.TestCase):
    def test_every_target_domain_has_a_node(self):
        self.assertEqual(set(DOMAIN_NODES), set(TargetDomain))

    def test_parts_creation_conflict(self):
        out = _assistant().handle_turn("c1", "create new parts")
        self.assertIsInstance(out, ErrorResponse)
        self.assertEqual(out.error_code, ErrorCode.CREATION_CONFLICT)
        self.assertEqual(len(out.alternatives), 3)

    def test_contract_query_uses_default_processor(self):
        out = _assistant().handle_turn("q1", "show contract 123456")
        self.assertIsInstance(out, QueryResultResponse)
        self.assertEqual(out.target_domain, "ContractQuery")
        self.assertEqual(out.sub_intent, "CONTRACT_QUERY_EXPLICIT")
        self.assertEqual(out.entities["contractId"], "123456")
        self.assertEqual(out.payload["status"], "NOT_CONNECTED")

    def test_parts_query_uses_injected_processor(self):
        parts = RecordingProcessor(payload={"parts": ["P-1", "P-2"]})
        assistant = _assistant(query_processors={TargetDomain.PARTS_QUERY: parts})
        out = assistant.handle_turn("q2", "list parts fro contract 123456")
        self.assertEqual(out.payload, {"parts": ["P-1", "P-2"]})
        self.assertEqual(parts.calls[0][0], "list parts for contract 123456")
        self.assertEqual(parts.calls[0][1]["contractId"], "123456")

    def test_low_classifier_confidence_is_unknown(self):
        assistant = _assistant(classifier=FakeClassifier(("unknown", 0.2)))
        out = assistant.handle_turn("u1", "show contract details")
        self.assertIsInstance(out, UnknownResponse)
        self.assertEqual(out.error_code, ErrorCode.UNKNOWN_INTENT)
        self.assertTrue(out.suggestions)

    def test_processing_error_does_not_leak_details(self):
        broken = RecordingProcessor(error=RuntimeError("db password is hunter2"))
        assistant = _assistant(query_processors={TargetDomain.CONTRACT_QUERY: broken})
        with self.assertLogs("src.contractdesk.graph", level="ERROR"):
            out = assistant.handle_turn("e1", "show contract 123456")
        self.assertIsInstance(out, ErrorResponse)
        self.assertEqual(out.error_code, ErrorCode.PROCESSING_ERROR)
        self.assertNotIn("hunter2", out.message)

        # the session is still usable afterwards
        self.assertIsInstance(assistant.handle_turn("e1", "how to create contract"), HelpResponse)


class TestAssistantSessionsAndConfig(unittest.TestCase):
    def test_sessions_are_isolated(self):
        assistant = _assistant()
        assistant.handle_turn("a", "create contract for account 147852369")
        out = assistant.handle_turn("b", "how to create contract")
        self.assertIsInstance(out, HelpResponse)
        self.assertEqual(assistant.session_snapshot("a")["state"], "COLLECTING_CONTRACT_DATA")
        self.assertEqual(assistant.session_snapshot("b")["state"], "INITIAL")

    def test_concurrent_dialogues_complete_independently(self):
        assistant = _assistant()

        def run(session_id):
            return [assistant.handle_turn(session_id, text) for text in FULL_CREATION][-1]

        with ThreadPoolExecutor(max_workers=6) as pool:
            finals = list(pool.map(run, [f"t{i}" for i in range(12)]))

        self.assertTrue(all(isinstance(f, SuccessResponse) for f in finals))
        self.assertTrue(all(f.collected_data["accountNumber"] == "147852369" for f in finals))

    def test_reset_session(self):
        assistant = _assistant()
        assistant.handle_turn("r1", "create contract for account 147852369")
        assistant.reset_session("r1")
        assistant.reset_session("r1")
        snap = assistant.session_snapshot("r1")
        self.assertEqual(snap["state"], "INITIAL")
        self.assertEqual(snap["fields"], {})

    def test_discard_session_frees_the_record(self):
        assistant = _assistant()
        assistant.handle_turn("d1", "create contract for account 147852369")
        assistant.handle_turn("d2", "how to create contract")
        self.assertEqual(len(assistant.store), 2)

        self.assertTrue(assistant.discard_session("d1"))
        self.assertIsNone(assistant.session_snapshot("d1"))
        self.assertEqual(len(assistant.store), 1)
        self.assertFalse(assistant.discard_session("d1"))

        assistant.handle_turn("d1", "how to create contract")
        self.assertEqual(assistant.session_snapshot("d1")["fields"], {})

    def test_added_correction_applies_to_next_turn(self):
        assistant = _assistant()
        before = assistant.handle_turn("l1", "how to creat contrakt")
        self.assertEqual(before.sub_intent, "HELP_REQUEST")

        assistant.add_correction("contrakt", "contract")
        after = assistant.handle_turn("l1", "how to creat contrakt")
        self.assertEqual(after.sub_intent, "CONTRACT_CREATION_HELP")

    def test_lexicon_swap(self):
        assistant = _assistant()
        assistant.update_lexicon(Lexicon.build(keywords={"parts": {"widget", "widgets"}}))
        out = assistant.handle_turn("l2", "show widgets")
        self.assertEqual(out.target_domain, "PartsQuery")
        self.assertIn("widget", assistant.lexicon.keywords_for("parts"))

    def test_added_keyword_applies_to_next_turn(self):
        assistant = _assistant()
        self.assertEqual(assistant.handle_turn("l3", "show sprockets").sub_intent, "DEFAULT_ROUTING")
        assistant.add_keyword("parts", "sprockets")
        self.assertEqual(assistant.handle_turn("l3", "show sprockets").target_domain, "PartsQuery")

    def test_fuzzy_config_enables_fuzzy_correction(self):
        assistant = _assistant(config=AssistantConfig(fuzzy_correction=True))
        out = assistant.run_turn("f1", "how to create contrakt")
        self.assertEqual(out.trace["normalized_text"], "how to create contract")
        self.assertEqual(out.response.sub_intent, "CONTRACT_CREATION_HELP")

    def test_trace_records_route_and_states(self):
        out = _assistant().run_turn("tr", "create contract for account 147852369")
        self.assertEqual(out.trace["routing_decision"]["target_domain"], "ContractCreation")
        self.assertEqual(out.trace["routing_decision"]["entities"], {"accountNumber": "147852369"})
        self.assertEqual(out.trace["state_before"], "INITIAL")
        self.assertEqual(out.trace["state_after"], "COLLECTING_CONTRACT_DATA")
        self.assertEqual(out.trace["response_type"], "DATA_COLLECTION")

    def test_run_scenario(self):
        run = _assistant().run_scenario("sc", FULL_CREATION)
        self.assertEqual(len(run.records), len(FULL_CREATION))
        self.assertIsInstance(run.final_response, SuccessResponse)
        self.assertEqual(run.records[0].target_domain, "ContractCreation")
        self.assertEqual(run.records[-1].state_after, "INITIAL")
        self.assertGreaterEqual(run.average_latency_ms, 0.0)


if __name__ == "__main__":
    unittest.main()
