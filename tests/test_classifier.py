"""Tests for the intent classifier (no API calls needed)."""
import os
import unittest
from types import SimpleNamespace
from unittest import mock

import httpx
from anthropic import APIError

from src.contractdesk.classifier import AnthropicIntentClassifier


def _reply(text: str):
    return SimpleNamespace(content=[SimpleNamespace(text=text)])


class TestVerdictParsing(unittest.TestCase):
    """Test the verdict parser without making actual API calls."""

    def _parse(self, raw: str):
        classifier = object.__new__(AnthropicIntentClassifier)
        return classifier._parse_verdict(raw)

    def test_parses_valid_json(self):
        self.assertEqual(self._parse('{"label": "help", "confidence": 0.82}'), ("help", 0.82))

    def test_parses_json_with_markdown_fences(self):
        raw = '```json\n{"label": "contract_query", "confidence": 0.7}\n```'
        self.assertEqual(self._parse(raw), ("contract_query", 0.7))

    def test_normalizes_label_format(self):
        self.assertEqual(self._parse('{"label": "Contract-Creation", "confidence": 1}'), ("contract_creation", 1.0))

    def test_unrecognized_label_becomes_unknown(self):
        self.assertEqual(self._parse('{"label": "weather", "confidence": 0.9}'), ("unknown", 0.9))

    def test_clamps_confidence(self):
        self.assertEqual(self._parse('{"label": "help", "confidence": 1.7}'), ("help", 1.0))
        self.assertEqual(self._parse('{"label": "help", "confidence": -2}'), ("help", 0.0))

    def test_handles_invalid_output_gracefully(self):
        self.assertIsNone(self._parse("This is not JSON at all"))
        self.assertIsNone(self._parse('["help", 0.9]'))
        self.assertIsNone(self._parse('{"label": "help", "confidence": "high"}'))
        self.assertIsNone(self._parse('{"label": "help"}'))


class TestClassifierCalls(unittest.TestCase):
    def test_classify_sends_utterance_to_messages_api(self):
        client = mock.MagicMock()
        client.messages.create.return_value = _reply('{"label": "parts_query", "confidence": 0.9}')
        classifier = AnthropicIntentClassifier(client=client, model="test-model")

        verdict = classifier.classify(["show", "parts", "for", "123456"])

        self.assertEqual(verdict, ("parts_query", 0.9))
        kwargs = client.messages.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertIn("show parts for 123456", kwargs["messages"][0]["content"])

    def test_empty_tokens_skip_the_api(self):
        client = mock.MagicMock()
        classifier = AnthropicIntentClassifier(client=client)
        self.assertIsNone(classifier.classify([]))
        client.messages.create.assert_not_called()

    def test_api_errors_yield_no_verdict(self):
        client = mock.MagicMock()
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.messages.create.side_effect = APIError("overloaded", request, body=None)
        classifier = AnthropicIntentClassifier(client=client)

        with self.assertLogs("src.contractdesk.classifier", level="WARNING"):
            self.assertIsNone(classifier.classify(["create", "contract"]))

    def test_missing_api_key_raises(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                AnthropicIntentClassifier()


if __name__ == "__main__":
    unittest.main()
