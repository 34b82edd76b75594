"""Immutable correction dictionary, fuzzy vocabulary and routing keyword sets."""
from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

PARTS = "parts"
CREATE = "create"
CONTRACT = "contract"
DATE = "date"
PRICING = "pricing"
HELP = "help"
ACCOUNT = "account"

KEYWORD_CATEGORIES = (PARTS, CREATE, CONTRACT, DATE, PRICING, HELP, ACCOUNT)

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")


def lookup_key(word: str) -> str:
    """Dictionary lookup form of a token: lower-case, alphanumerics only."""
    return _NON_ALNUM_RE.sub("", str(word).lower())


DEFAULT_CORRECTIONS = {
    "contrct": "contract",
    "contarct": "contract",
    "contrcts": "contracts",
    "creat": "create",
    "creats": "create",
    "acount": "account",
    "accnt": "account",
    "custmer": "customer",
    "cusotmer": "customer",
    "instrctions": "instructions",
    "instrcutions": "instructions",
    "hw": "how",
    "mke": "make",
    "yu": "you",
    "teh": "the",
    "fro": "for",
    "nad": "and",
    "shwo": "show",
    "detials": "details",
    "effectuve": "effective",
    "effectiv": "effective",
    "exipraion": "expiration",
    "expiraton": "expiration",
    "pric": "price",
    "agrement": "agreement",
    "polcy": "policy",
}

DEFAULT_KEYWORDS = {
    PARTS: {
        "parts", "part", "lines", "line", "specifications", "specs",
        "components", "component", "inventory", "stock", "items", "materials",
    },
    CREATE: {
        "create", "creating", "make", "making", "new", "add", "adding",
        "generate", "generating", "build", "building", "establish", "setup",
    },
    CONTRACT: {
        "contract", "contracts", "agreement", "agreements", "policy", "policies",
        "deal", "deals", "arrangement", "arrangements", "terms", "conditions",
    },
    DATE: {
        "date", "dates", "expiration", "effective", "expire", "expires",
        "when", "until", "renewal", "renew", "start", "end", "beginning",
    },
    PRICING: {
        "price", "pricing", "cost", "costs", "amount", "fee", "fees",
        "charge", "charges", "payment", "payments", "money", "value",
    },
    HELP: {
        "how", "steps", "step", "instructions", "instruction", "guide",
        "help", "explain", "process", "procedure",
    },
    ACCOUNT: {"account", "accounts", "acct"},
}

DEFAULT_VOCABULARY = (
    "customer", "show", "details", "display", "list", "find", "search",
    "information", "status", "for", "the", "and", "you", "what", "which",
)


@dataclass(frozen=True, slots=True)
class Lexicon:
    """Read-only language resources shared by the normalizer and the router.

    Updates never mutate an instance; ``with_correction`` and ``with_keyword``
    return a new lexicon that callers swap in whole.
    """

    corrections: Mapping[str, str]
    keywords: Mapping[str, frozenset[str]]
    vocabulary: tuple[str, ...]

    def __post_init__(self) -> None:
        corrections = {lookup_key(k): str(v).strip() for k, v in dict(self.corrections).items() if lookup_key(k)}
        keywords = {
            category: frozenset(lookup_key(w) for w in dict(self.keywords).get(category, ()) if lookup_key(w))
            for category in KEYWORD_CATEGORIES
        }

        for typo, target in corrections.items():
            if not target or re.search(r"\s", target):
                raise ValueError(f"Correction for '{typo}' must be a single word, got {target!r}")
            if lookup_key(target) in corrections:
                raise ValueError(f"Correction target '{target}' for '{typo}' is itself a correction key")

        # correction targets and keywords must be stable under fuzzy matching
        vocab: list[str] = []
        seen: set[str] = set()
        sources = list(self.vocabulary) + [lookup_key(t) for t in corrections.values()]
        for category in KEYWORD_CATEGORIES:
            sources.extend(sorted(keywords[category]))
        for word in sources:
            key = lookup_key(word)
            if key and key not in seen:
                seen.add(key)
                vocab.append(key)

        clashes = sorted(seen.intersection(corrections))
        if clashes:
            raise ValueError(f"Vocabulary words cannot also be correction keys: {clashes}")

        object.__setattr__(self, "corrections", MappingProxyType(corrections))
        object.__setattr__(self, "keywords", MappingProxyType(keywords))
        object.__setattr__(self, "vocabulary", tuple(vocab))

    @classmethod
    def build(
        cls,
        corrections: Mapping[str, str] | None = None,
        keywords: Mapping[str, Iterable[str]] | None = None,
        vocabulary: Iterable[str] = (),
    ) -> "Lexicon":
        merged_keywords = {c: set(DEFAULT_KEYWORDS[c]) for c in KEYWORD_CATEGORIES}
        for category, words in (keywords or {}).items():
            if category not in KEYWORD_CATEGORIES:
                raise ValueError(f"Unknown keyword category '{category}'. Expected one of {KEYWORD_CATEGORIES}")
            merged_keywords[category] = set(words)
        return cls(
            corrections=dict(DEFAULT_CORRECTIONS if corrections is None else corrections),
            keywords=merged_keywords,
            vocabulary=tuple(vocabulary) or DEFAULT_VOCABULARY,
        )

    def keywords_for(self, category: str) -> frozenset[str]:
        return self.keywords[category]

    def with_correction(self, typo: str, correction: str) -> "Lexicon":
        corrections = dict(self.corrections)
        corrections[typo] = correction
        return Lexicon(corrections=corrections, keywords=dict(self.keywords), vocabulary=self.vocabulary)

    def with_keyword(self, category: str, keyword: str) -> "Lexicon":
        if category not in KEYWORD_CATEGORIES:
            raise ValueError(f"Unknown keyword category '{category}'")
        keywords = dict(self.keywords)
        keywords[category] = keywords[category].union({keyword})
        return Lexicon(corrections=dict(self.corrections), keywords=keywords, vocabulary=self.vocabulary)


def default_lexicon() -> Lexicon:
    return Lexicon.build()
