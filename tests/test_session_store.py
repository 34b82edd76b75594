import threading
import time
import unittest

from src.contractdesk.fields import ACCOUNT_NUMBER, CONTRACT_NAME, REQUIRED_CONTRACT_FIELDS
from src.contractdesk.session import Session, SessionState, SessionStore


class TestSession(unittest.TestCase):
    def test_new_session_starts_initial_with_all_fields_missing(self):
        session = Session(session_id="s1")
        self.assertEqual(session.state, SessionState.INITIAL)
        self.assertEqual(session.missing_fields, list(REQUIRED_CONTRACT_FIELDS))

    def test_set_field_logs_update(self):
        session = Session(session_id="s1")
        session.set_field(ACCOUNT_NUMBER, "147852369", "account_validated")
        self.assertEqual(session.fields, {ACCOUNT_NUMBER: "147852369"})
        self.assertEqual(
            session.value_updates[-1],
            {
                "variable": ACCOUNT_NUMBER,
                "old_value": None,
                "new_value": "147852369",
                "reason": "account_validated",
            },
        )

    def test_fields_and_missing_fields_partition_the_registry(self):
        session = Session(session_id="s1")
        session.set_field(ACCOUNT_NUMBER, "147852369", "test")
        session.set_field(CONTRACT_NAME, "Enterprise", "test")
        self.assertEqual(set(session.fields) | set(session.missing_fields), set(REQUIRED_CONTRACT_FIELDS))
        self.assertFalse(set(session.fields) & set(session.missing_fields))

    def test_set_field_rejects_unregistered_names(self):
        session = Session(session_id="s1")
        with self.assertRaises(KeyError):
            session.set_field("discount", "10", "test")
        self.assertEqual(session.fields, {})

    def test_transition_and_reset(self):
        session = Session(session_id="s1")
        session.transition(SessionState.COLLECTING_ACCOUNT, "account_number_absent")
        session.set_dates("2024-04-01", "2025-04-01", "test")
        self.assertEqual(session.state, SessionState.COLLECTING_ACCOUNT)
        self.assertEqual(session.value_updates[0]["new_value"], "COLLECTING_ACCOUNT")

        session.reset("test")
        self.assertEqual(session.state, SessionState.INITIAL)
        self.assertEqual(session.fields, {})
        self.assertEqual(session.date_fields, {})
        self.assertEqual(session.value_updates, [])


class TestSessionStore(unittest.TestCase):
    def test_sessions_are_isolated(self):
        store = SessionStore()
        with store.acquire("a") as a:
            a.set_field(ACCOUNT_NUMBER, "147852369", "test")
            a.transition(SessionState.COLLECTING_CONTRACT_DATA, "test")
        with store.acquire("b") as b:
            self.assertEqual(b.state, SessionState.INITIAL)
            self.assertEqual(b.fields, {})
        self.assertEqual(len(store), 2)

    def test_snapshot_of_unknown_session_is_none(self):
        store = SessionStore()
        self.assertIsNone(store.snapshot("missing"))
        self.assertNotIn("missing", store)

    def test_snapshot_is_a_copy(self):
        store = SessionStore()
        with store.acquire("a") as a:
            a.set_field(ACCOUNT_NUMBER, "147852369", "test")
        snap = store.snapshot("a")
        snap["fields"]["title"] = "tampered"
        with store.acquire("a") as a:
            self.assertNotIn("title", a.fields)

    def test_reset_is_idempotent(self):
        store = SessionStore()
        with store.acquire("a") as a:
            a.transition(SessionState.COLLECTING_DATES, "test")
        store.reset("a")
        store.reset("a")
        self.assertEqual(store.snapshot("a")["state"], "INITIAL")

    def test_discard_forgets_the_session(self):
        store = SessionStore()
        with store.acquire("a") as a:
            a.set_field(ACCOUNT_NUMBER, "147852369", "test")
        with store.acquire("b"):
            pass

        self.assertTrue(store.discard("a"))
        self.assertNotIn("a", store)
        self.assertEqual(len(store), 1)
        self.assertIsNone(store.snapshot("a"))
        self.assertFalse(store.discard("a"))

        with store.acquire("a") as fresh:
            self.assertEqual(fresh.fields, {})
            self.assertEqual(fresh.state, SessionState.INITIAL)

    def test_discard_waits_for_the_turn_in_flight(self):
        store = SessionStore()
        entered = threading.Event()
        release = threading.Event()

        def hold():
            with store.acquire("busy") as session:
                entered.set()
                release.wait(timeout=5)
                session.last_input = "finished"

        holder = threading.Thread(target=hold)
        holder.start()
        entered.wait(timeout=5)

        discarder = threading.Thread(target=store.discard, args=("busy",))
        discarder.start()
        time.sleep(0.05)
        self.assertIn("busy", store)

        release.set()
        holder.join()
        discarder.join()
        self.assertNotIn("busy", store)

    def test_turns_on_one_session_are_serialized(self):
        store = SessionStore()

        def bump():
            for _ in range(25):
                with store.acquire("shared") as session:
                    current = int(session.last_input or 0)
                    time.sleep(0.0005)
                    session.last_input = str(current + 1)

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(store.snapshot("shared")["last_input"], "200")


if __name__ == "__main__":
    unittest.main()
