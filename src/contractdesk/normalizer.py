from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .lexicon import Lexicon, lookup_key

logger = logging.getLogger(__name__)

_EDGE_RE = re.compile(r"^([^0-9A-Za-z]*)(.*?)([^0-9A-Za-z]*)$", re.DOTALL)

MIN_FUZZY_LENGTH = 3


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost))
        prev = cur
    return prev[-1]


def similarity(a: str, b: str) -> float:
    """1 - editDistance / max(len(a), len(b)); identical strings score 1.0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


@dataclass(frozen=True, slots=True)
class SpellNormalizer:
    """Token-level spell correction over a static lexicon.

    Exact dictionary hits always win. The fuzzy fallback only considers
    purely alphabetic tokens that are not already vocabulary words, so a
    corrected word is never corrected again and ``normalize`` is idempotent.
    Tokens carrying digits (contract ids, part numbers, accounts, dates) are
    passed through untouched.
    """

    lexicon: Lexicon
    fuzzy: bool = False
    similarity_threshold: float = 0.7

    def normalize(self, text: str) -> str:
        tokens = str(text).split()
        corrected = [self.correct_token(token) for token in tokens]
        result = " ".join(corrected)
        if result != " ".join(tokens):
            logger.debug("Normalized %r -> %r", text, result)
        return result

    def correct_token(self, token: str) -> str:
        match = _EDGE_RE.match(token)
        lead, core, trail = match.groups()
        key = lookup_key(core)
        if not key or any(ch.isdigit() for ch in key):
            return token

        replacement = self.lexicon.corrections.get(key)
        if replacement is None and self.fuzzy:
            replacement = self.nearest_word(key)
        if replacement is None:
            return token
        return f"{lead}{replacement}{trail}"

    def nearest_word(self, key: str) -> str | None:
        if len(key) < MIN_FUZZY_LENGTH or not key.isalpha() or key in self.lexicon.vocabulary:
            return None

        best: str | None = None
        best_score = 0.0
        for word in self.lexicon.vocabulary:
            score = similarity(key, word)
            if score > best_score:
                best, best_score = word, score
        if best is not None and best_score >= self.similarity_threshold:
            return best
        return None
