from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from .lexicon import KEYWORD_CATEGORIES, Lexicon

CORRECTIONS_SHEET = "Corrections"
KEYWORDS_SHEET = "Keywords"
VOCABULARY_SHEET = "Vocabulary"


def _norm(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _header_index(headers: list[str], candidates: tuple[str, ...]) -> int:
    normalized = [_norm(h) for h in headers]
    for i, h in enumerate(normalized):
        for c in candidates:
            if c in h:
                return i
    raise ValueError(f"Could not find header candidates {candidates}. Found: {headers}")


def _sheet_rows(ws) -> tuple[list[str], list[list[str]]]:
    rows = ws.iter_rows(min_row=1, values_only=True)
    try:
        header_row = next(rows)
    except StopIteration:
        return [], []
    headers = ["" if h is None else str(h).strip() for h in header_row]
    body = [["" if v is None else str(v).strip() for v in row] for row in rows]
    return headers, body


def _cell(values: list[str], index: int) -> str:
    return values[index] if index < len(values) else ""


def load_corrections(ws) -> dict[str, str]:
    headers, body = _sheet_rows(ws)
    if not headers:
        return {}
    typo_i = _header_index(headers, ("typo", "misspelling", "wrong"))
    fix_i = _header_index(headers, ("correction", "correct", "replacement"))

    corrections: dict[str, str] = {}
    for values in body:
        typo = _norm(_cell(values, typo_i))
        fix = _norm(_cell(values, fix_i))
        if typo and fix:
            corrections[typo] = fix
    return corrections


def load_keywords(ws) -> dict[str, set[str]]:
    headers, body = _sheet_rows(ws)
    if not headers:
        return {}
    category_i = _header_index(headers, ("category", "group"))
    keyword_i = _header_index(headers, ("keyword", "word", "term"))

    keywords: dict[str, set[str]] = {}
    for values in body:
        category = _norm(_cell(values, category_i))
        keyword = _norm(_cell(values, keyword_i))
        if not category or not keyword:
            continue
        if category not in KEYWORD_CATEGORIES:
            raise ValueError(f"Unknown keyword category '{category}' in {KEYWORDS_SHEET} sheet")
        keywords.setdefault(category, set()).add(keyword)
    return keywords


def load_vocabulary(ws) -> list[str]:
    headers, body = _sheet_rows(ws)
    if not headers:
        return []
    word_i = _header_index(headers, ("word", "vocabulary", "term"))
    return [w for w in (_norm(_cell(values, word_i)) for values in body) if w]


def load_lexicon_workbook(workbook_path: Path | str) -> Lexicon:
    """Build a lexicon from an .xlsx workbook.

    ``Corrections`` (typo, correction) replaces the built-in dictionary when
    present. ``Keywords`` (category, keyword) replaces only the categories it
    lists. ``Vocabulary`` (word) is optional.
    """
    wb = load_workbook(workbook_path, read_only=True, data_only=True)
    try:
        corrections = load_corrections(wb[CORRECTIONS_SHEET]) if CORRECTIONS_SHEET in wb.sheetnames else None
        keywords = load_keywords(wb[KEYWORDS_SHEET]) if KEYWORDS_SHEET in wb.sheetnames else {}
        vocabulary = load_vocabulary(wb[VOCABULARY_SHEET]) if VOCABULARY_SHEET in wb.sheetnames else []
    finally:
        wb.close()

    if not corrections and not keywords and not vocabulary:
        raise ValueError(
            f"No lexicon entries were parsed from workbook. Expected sheets: "
            f"{CORRECTIONS_SHEET}, {KEYWORDS_SHEET}, {VOCABULARY_SHEET}"
        )
    return Lexicon.build(corrections=corrections or None, keywords=keywords, vocabulary=vocabulary)
