"""Coding evaluation normalizer.

Turns the heterogeneous coding-review payload (numeric sub-scores plus free-text
assessments) into a single 0-10 score and a qualitative complexity rating, and
aggregates many submissions into per-language and recurring-issue summaries.
"""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from engines.types import Answer, CodingEvaluation, TheoreticalEvaluation

LOGIC_WEIGHT = 0.5
READABILITY_WEIGHT = 0.3
EDGE_CASE_WEIGHT = 0.2
DEFAULT_EDGE_CASE_SCORE = 5

SUPPORTED_LANGUAGES = ("javascript", "python", "java", "cpp", "c", "go", "rust")

# Checked in order; the first matching group wins.
_EDGE_CASE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("comprehensive", "excellent"), 9),
    (("good", "handles major"), 7),
    (("partial", "some"), 5),
    (("minimal", "few"), 3),
    (("none", "missing"), 1),
)

ComplexityBand = Literal[
    "constant",
    "logarithmic",
    "linear",
    "linearithmic",
    "quadratic",
    "exponential",
    "unknown",
]


class ComplexityRating(BaseModel):
    band: ComplexityBand
    rating: str
    feedback: str
    expression: Optional[str] = None


class LanguageStats(BaseModel):
    attempts: int = 0
    avg_score: float = 0.0
    scores: List[float] = Field(default_factory=list)


class IssueFrequency(BaseModel):
    issue: str
    frequency: int


class CodingPerformance(BaseModel):
    avg_logic_score: float = 0.0
    avg_readability_score: float = 0.0
    avg_overall_score: float = 0.0
    language_breakdown: Dict[str, LanguageStats] = Field(default_factory=dict)
    common_issues: List[IssueFrequency] = Field(default_factory=list)


def _round2(value: float) -> float:
    return float(f"{value:.2f}")


def score_edge_case_handling(edge_case_text: Optional[str]) -> int:
    """Map a qualitative edge-case assessment onto a 1-9 score (5 when unrecognized)."""

    if not edge_case_text:
        return DEFAULT_EDGE_CASE_SCORE
    text = edge_case_text.lower()
    for keywords, score in _EDGE_CASE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return score
    return DEFAULT_EDGE_CASE_SCORE


def calculate_overall_coding_score(
    logic_score: Optional[float],
    readability_score: Optional[float],
    edge_case_text: Optional[str],
) -> float:
    """Weighted 0.5/0.3/0.2 blend of logic, readability and edge-case handling."""

    if logic_score is None and readability_score is None and edge_case_text is None:
        return 0.0
    logic = float(logic_score or 0.0)
    readability = float(readability_score or 0.0)
    edge_case = score_edge_case_handling(edge_case_text)
    return _round2(
        logic * LOGIC_WEIGHT + readability * READABILITY_WEIGHT + edge_case * EDGE_CASE_WEIGHT
    )


def answer_score(answer: Answer) -> float:
    """Scalar 0-10 score for any answer, resolving the evaluation variant."""

    evaluation = answer.evaluation
    if isinstance(evaluation, TheoreticalEvaluation):
        return float(evaluation.score)
    if isinstance(evaluation, CodingEvaluation):
        return calculate_overall_coding_score(
            evaluation.logic_score,
            evaluation.readability_score,
            evaluation.edge_case_handling,
        )
    raise TypeError(f"Unsupported evaluation type: {type(evaluation).__name__}")


# ---------------------------------------------------------------------------
# Big-O parsing
# ---------------------------------------------------------------------------

class ComplexityParseError(ValueError):
    pass


@dataclass(frozen=True)
class _Growth:
    """Asymptotic growth of an expression.

    ``kind`` orders growth families: 0 polynomial-logarithmic, 1 exponential,
    2 factorial. ``value`` is set only for numeric constants and is capped.
    """

    kind: int = 0
    degree: float = 0.0
    log_power: float = 0.0
    value: Optional[float] = None

    @property
    def is_constant(self) -> bool:
        return self.kind == 0 and self.degree == 0 and self.log_power == 0

    def rank(self) -> Tuple[int, float, float]:
        return (self.kind, self.degree, self.log_power)


_CONSTANT_CAP = 1e9
_CONSTANT = _Growth()
_LOG_WORDS = ("log", "lg", "ln")
_SUPERSCRIPTS = str.maketrans({"²": "^2", "³": "^3", "⁴": "^4", "×": "*", "·": "*", "∗": "*", "−": "-"})
_BIG_O = re.compile(r"(?<![a-zA-Z])[OoΘθΩ]\s*\(")
_TOKEN = re.compile(r"(\d*\.?\d+)|([a-z]+)|([-+*/^!()_])|(\S)")


def _constant(value: float) -> _Growth:
    return _Growth(value=min(value, _CONSTANT_CAP))


def _tokenize(expr: str) -> List[str]:
    """Split ``expr`` into numbers, operators, ``log`` and single-letter variables.

    "nlogn" reads as n, log, n; any other letter run longer than two (sqrt, len)
    is not a growth term this parser understands.
    """

    text = expr.translate(_SUPERSCRIPTS).replace("**", "^").lower()
    tokens: List[str] = []
    for match in _TOKEN.finditer(text):
        number, word, symbol, other = match.groups()
        if other:
            raise ComplexityParseError(f"unexpected character {other!r}")
        if not word:
            tokens.append(number or symbol)
            continue
        for part in re.split(r"(log|lg|ln)", word):
            if part in _LOG_WORDS:
                tokens.append("log")
            elif len(part) > 2:
                raise ComplexityParseError(f"unsupported term {part!r}")
            else:
                tokens.extend(part)
    return tokens


class _GrowthParser:
    """Recursive-descent parser over the tokens inside ``O(...)``.

    expr    := term (('+' | '-') term)*
    term    := factor (('*' | '/' | <implicit>) factor)*
    factor  := primary '!'* ('^' factor)?
    primary := NUMBER | VAR | 'log' ['_'] [NUMBER] factor | '(' expr ')'
    """

    def __init__(self, tokens: List[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> _Growth:
        if not self.tokens:
            raise ComplexityParseError("empty expression")
        growth = self._expr()
        if self.pos != len(self.tokens):
            raise ComplexityParseError(f"unexpected token {self.tokens[self.pos]!r}")
        return growth

    def _peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ComplexityParseError("unexpected end of expression")
        self.pos += 1
        return token

    @staticmethod
    def _starts_primary(token: Optional[str]) -> bool:
        return token is not None and (token == "(" or token[0].isalnum() or token[0] == ".")

    def _expr(self) -> _Growth:
        growth = self._term()
        while self._peek() in ("+", "-"):
            self._take()
            other = self._term()
            growth = growth if growth.rank() >= other.rank() else other
            if growth.value is not None:
                growth = _CONSTANT
        return growth

    def _term(self) -> _Growth:
        growth = self._factor()
        while True:
            token = self._peek()
            if token == "/":
                self._take()
                divisor = self._factor()
                if not divisor.is_constant:
                    raise ComplexityParseError("division by a growing term")
            elif token == "*" or self._starts_primary(token):
                if token == "*":
                    self._take()
                growth = _multiply(growth, self._factor())
            else:
                return growth

    def _factor(self) -> _Growth:
        growth = self._primary()
        while self._peek() == "!":
            self._take()
            growth = _CONSTANT if growth.value is not None else _Growth(kind=2)
        if self._peek() == "^":
            self._take()
            return _raise(growth, self._factor())
        return growth

    def _primary(self) -> _Growth:
        token = self._take()
        if token == "(":
            growth = self._expr()
            if self._take() != ")":
                raise ComplexityParseError("unbalanced parentheses")
            return growth
        if token == "log":
            if self._peek() == "_":
                self._take()
            base = self._peek()
            if base is not None and base[0].isdigit() and self._starts_primary(self._peek(1)):
                self._take()
            return _logarithm(self._factor())
        if token[0].isdigit() or token[0] == ".":
            return _constant(float(token))
        if token.isalpha():
            return _Growth(degree=1.0)
        raise ComplexityParseError(f"unexpected token {token!r}")


def _multiply(left: _Growth, right: _Growth) -> _Growth:
    if left.value is not None and right.value is not None:
        return _constant(left.value * right.value)
    return _Growth(
        kind=max(left.kind, right.kind),
        degree=left.degree + right.degree,
        log_power=left.log_power + right.log_power,
    )


def _raise(base: _Growth, exponent: _Growth) -> _Growth:
    if exponent.is_constant:
        if exponent.value is None:
            return base
        if base.value is not None:
            try:
                return _constant(base.value ** exponent.value)
            except OverflowError:
                return _constant(_CONSTANT_CAP)
        if base.kind > 0:
            return base
        return _Growth(degree=base.degree * exponent.value, log_power=base.log_power * exponent.value)
    if base.value is not None and base.value <= 1:
        return _CONSTANT
    return _Growth(kind=max(1, base.kind))


def _logarithm(argument: _Growth) -> _Growth:
    if argument.is_constant:
        return _CONSTANT
    if argument.kind > 0:
        return _Growth(degree=1.0, log_power=1.0 if argument.kind == 2 else 0.0)
    return _Growth(log_power=1.0)


def _extract_big_o(text: str) -> Optional[str]:
    match = _BIG_O.search(text)
    if match is None:
        return None
    start = match.end()
    depth = 1
    for index in range(start, len(text)):
        if text[index] == "(":
            depth += 1
        elif text[index] == ")":
            depth -= 1
            if depth == 0:
                return text[start:index]
    return None


_BAND_VERDICTS: Dict[str, Tuple[str, str]] = {
    "constant": ("Excellent", "Constant time - optimal for this scenario"),
    "logarithmic": ("Very Good", "Logarithmic time complexity"),
    "linear": ("Good", "Linear time complexity"),
    "linearithmic": ("Good", "Linearithmic time complexity"),
    "quadratic": ("Fair", "Quadratic - consider optimization opportunities"),
    "exponential": ("Poor", "Exponential/factorial complexity - significant room for improvement"),
}

# Plain-word fallbacks when no O(...) expression is present; order matters.
_BAND_WORDS: Tuple[Tuple[str, str], ...] = (
    ("linearithmic", "linearithmic"),
    ("factorial", "exponential"),
    ("exponential", "exponential"),
    ("quadratic", "quadratic"),
    ("logarithmic", "logarithmic"),
    ("constant", "constant"),
    ("linear", "linear"),
)


def _unknown(feedback: str, expression: Optional[str] = None) -> ComplexityRating:
    return ComplexityRating(band="unknown", rating="Unknown", feedback=feedback, expression=expression)


def _band_for(growth: _Growth) -> Optional[str]:
    if growth.kind > 0:
        return "exponential"
    if growth.degree != int(growth.degree):
        return None
    if growth.degree == 0:
        return "constant" if growth.log_power == 0 else "logarithmic"
    if growth.degree == 1:
        return "linear" if growth.log_power == 0 else "linearithmic"
    return "quadratic"


def _rating(band: str, expression: Optional[str], growth: Optional[_Growth] = None) -> ComplexityRating:
    rating, feedback = _BAND_VERDICTS[band]
    if band == "quadratic" and growth is not None and (growth.degree > 2 or growth.log_power > 0):
        feedback = f"Polynomial (degree {int(growth.degree)}) - consider optimization opportunities"
    return ComplexityRating(band=band, rating=rating, feedback=feedback, expression=expression)


def rate_complexity(complexity_text: Optional[str]) -> ComplexityRating:
    """Bucket a free-text Big-O description into a growth band with a verdict."""

    if not complexity_text or not complexity_text.strip():
        return _unknown("No complexity analysis provided")

    inner = _extract_big_o(complexity_text)
    if inner is None:
        lowered = complexity_text.lower()
        for word, band in _BAND_WORDS:
            if word in lowered:
                return _rating(band, None)
        return _unknown("Complexity ratings unclear from analysis")

    expression = f"O({inner.strip()})"
    try:
        growth = _GrowthParser(_tokenize(inner)).parse()
    except (ComplexityParseError, RecursionError):
        return _unknown("Complexity ratings unclear from analysis", expression)
    band = _band_for(growth)
    if band is None:
        return _unknown("Complexity ratings unclear from analysis", expression)
    return _rating(band, expression, growth)


# ---------------------------------------------------------------------------
# Cross-submission aggregation
# ---------------------------------------------------------------------------

def _coding_answers(answers: Sequence[Answer]) -> List[Tuple[Answer, CodingEvaluation]]:
    return [(answer, answer.evaluation) for answer in answers if isinstance(answer.evaluation, CodingEvaluation)]


def aggregate_coding_performance(answers: Sequence[Answer]) -> CodingPerformance:
    """Average sub-scores, per-language stats and the five most frequent suggestions."""

    coding = _coding_answers(answers)
    if not coding:
        return CodingPerformance()

    logic_scores: List[float] = []
    readability_scores: List[float] = []
    overall_scores: List[float] = []
    languages: Dict[str, LanguageStats] = {}
    issues: Counter[str] = Counter()

    for answer, evaluation in coding:
        logic_scores.append(evaluation.logic_score)
        readability_scores.append(evaluation.readability_score)
        overall = answer_score(answer)
        overall_scores.append(overall)

        stats = languages.setdefault(answer.language or "unknown", LanguageStats())
        stats.attempts += 1
        stats.scores.append(overall)

        issues.update(suggestion for suggestion in evaluation.improvement_suggestions if suggestion)

    for stats in languages.values():
        stats.avg_score = _round2(sum(stats.scores) / len(stats.scores))

    return CodingPerformance(
        avg_logic_score=_round2(sum(logic_scores) / len(logic_scores)),
        avg_readability_score=_round2(sum(readability_scores) / len(readability_scores)),
        avg_overall_score=_round2(sum(overall_scores) / len(overall_scores)),
        language_breakdown=languages,
        common_issues=[IssueFrequency(issue=issue, frequency=count) for issue, count in issues.most_common(5)],
    )


def get_preferred_language(answers: Sequence[Answer]) -> Optional[str]:
    coding = _coding_answers(answers)
    if not coding:
        return None
    counts = Counter(answer.language or "unknown" for answer, _ in coding)
    return counts.most_common(1)[0][0]


def validate_code_submission(code: Optional[str], language: Optional[str]) -> bool:
    return bool(code and code.strip()) and bool(language) and language.lower() in SUPPORTED_LANGUAGES


__all__ = [
    "CodingPerformance",
    "ComplexityRating",
    "IssueFrequency",
    "LanguageStats",
    "aggregate_coding_performance",
    "answer_score",
    "calculate_overall_coding_score",
    "get_preferred_language",
    "rate_complexity",
    "score_edge_case_handling",
    "validate_code_submission",
]
