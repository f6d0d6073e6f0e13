from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Question

MIN_CONTAINMENT_LENGTH = 4
_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def normalize(text: object) -> str:
    """Lowercase, strip accents and collapse whitespace."""
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower().strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.split())


def levenshtein(a: str, b: str, transpositions: bool = False) -> int:
    """Edit distance; with ``transpositions`` an adjacent swap counts as one edit."""
    m, n = len(a), len(b)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        table[i][0] = i
    for j in range(n + 1):
        table[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            table[i][j] = min(
                table[i - 1][j] + 1,
                table[i][j - 1] + 1,
                table[i - 1][j - 1] + cost,
            )
            if transpositions and i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                table[i][j] = min(table[i][j], table[i - 2][j - 2] + 1)
    return table[m][n]


def allowed_distance(length: int) -> int:
    if length <= 4:
        return 1
    if length <= 8:
        return 2
    return 3


def _close_enough(submitted: str, reference: str) -> bool:
    return levenshtein(submitted, reference, transpositions=True) <= allowed_distance(len(reference))


def _parse_number(text: object) -> Optional[float]:
    cleaned = _NON_NUMERIC.sub("", "" if text is None else str(text))
    try:
        return float(cleaned)
    except ValueError:
        return None


def check_answer(submitted: object, question: "Question") -> bool:
    """Decide whether a free-text submission matches the question's answer.

    Multiple-choice answers must match exactly after normalisation and
    numbers must fall within the question's tolerance. Every other type is
    matched fuzzily: exact, then edit distance, then the accepted alternates,
    then substring containment for submissions of at least four characters.
    """
    if question.type == "multiple-choice":
        return normalize(submitted) == normalize(question.answer)

    if question.type == "number":
        given = _parse_number(submitted)
        expected = _parse_number(question.answer)
        if given is None or expected is None:
            return False
        return abs(given - expected) <= (question.tolerance or 0)

    guess = normalize(submitted)
    correct = normalize(question.answer)
    if not correct:
        return False

    if guess == correct:
        return True
    if _close_enough(guess, correct):
        return True

    long_enough = len(guess) >= MIN_CONTAINMENT_LENGTH
    for alternate in question.accepted_answers or []:
        alt = normalize(alternate)
        if not alt:
            continue
        if guess == alt or _close_enough(guess, alt):
            return True
        if long_enough and guess in alt:
            return True

    return long_enough and (guess in correct or correct in guess)
