"""
Grading Engine - scores one quiz submission.

Algorithm:
1. Walk the quiz's questions in stored order; a question's 0-based position
   (its ordinal) is the key its answer is submitted under.
2. Look the answer up under each candidate key shape in priority order:
   ordinal as int, ordinal as string, "question-<ordinal>".
3. Unanswered questions score 0. Answered questions score their full marks
   when the normalized answer is one of the question's accepted forms.
4. percentage = min(100, score / total_marks * 100), 2dp, 0 when
   total_marks is missing or not positive.

A failure while grading one question scores that question 0 and grading
moves on to the next one.
"""

import time
from dataclasses import dataclass, field, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from deptquiz.services.normalizer import normalize, is_empty, EMPTY
from deptquiz.services.option_resolver import resolve_accepted_forms, decode_answers
from deptquiz.logging_config import get_logger, log_with_context

logger = get_logger("grading")

# Candidate answer keys for a question ordinal, tried in this order
ANSWER_KEY_CANDIDATES: Tuple[Callable[[int], Any], ...] = (
    lambda ordinal: ordinal,
    lambda ordinal: str(ordinal),
    lambda ordinal: "question-{}".format(ordinal),
)

_ZERO = Decimal("0.00")
_HUNDRED = Decimal("100")
_TWO_PLACES = Decimal("0.01")


@dataclass
class QuestionCredit:
    question_id: Optional[int]
    ordinal: int
    marks: int
    awarded: int
    answered: bool


@dataclass
class GradeResult:
    score: int
    percentage: Decimal
    credits: List[QuestionCredit] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for c in self.credits if c.answered and c.awarded > 0)

    def to_explanation(self) -> dict:
        return {
            "score": self.score,
            "percentage": float(self.percentage),
            "questions": [asdict(c) for c in self.credits],
        }


def compute_percentage(numerator, denominator) -> Decimal:
    """
    numerator / denominator * 100 clamped to [0, 100], rounded half-up to
    two places. A missing or non-positive denominator gives 0.00.
    """
    if not denominator or denominator <= 0:
        return _ZERO
    value = Decimal(numerator) * _HUNDRED / Decimal(denominator)
    value = max(Decimal(0), min(_HUNDRED, value))
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def lookup_answer(answers: Mapping, ordinal: int) -> Tuple[Any, Optional[str]]:
    """
    Find the submitted answer for a question ordinal.

    Returns (raw_value, normalized_value). The first candidate key holding
    something other than None or "" wins, even if it normalizes to EMPTY
    (a whitespace-only answer is kept and scores 0). (None, EMPTY) when
    nothing was submitted.
    """
    for make_key in ANSWER_KEY_CANDIDATES:
        key = make_key(ordinal)
        if key not in answers:
            continue
        raw = answers[key]
        if raw is None or raw == "":
            continue
        return raw, normalize(raw)
    return None, EMPTY


def is_correct(question, normalized_answer: Optional[str]) -> bool:
    if is_empty(normalized_answer):
        return False
    return normalized_answer in resolve_accepted_forms(question)


def grade_answers(questions: Sequence, answers, total_marks) -> GradeResult:
    """
    Grade a submission against a quiz's ordered questions.

    Args:
        questions: Question records in stored (id ascending) order
        answers: Submitted answers keyed by ordinal (mapping, list or JSON text)
        total_marks: The quiz's declared total

    Returns:
        GradeResult with score, percentage and a per-question breakdown
    """
    start_time = time.time()

    decoded = decode_answers(answers)
    if decoded is None:
        decoded = {}

    score = 0
    credits: List[QuestionCredit] = []

    for ordinal, question in enumerate(questions):
        question_id = getattr(question, "id", None)
        marks = 0
        awarded = 0
        answered = False
        try:
            marks = int(question.marks or 0)
            _, normalized = lookup_answer(decoded, ordinal)
            answered = not is_empty(normalized)
            if is_correct(question, normalized):
                awarded = marks
        except Exception as e:
            awarded = 0
            log_with_context(logger, "WARNING",
                "Failed to grade question {}: {}".format(ordinal + 1, e),
                context={"question_id": question_id},
                extra_data={"ordinal": ordinal})

        score += awarded
        credits.append(QuestionCredit(
            question_id=question_id,
            ordinal=ordinal,
            marks=marks,
            awarded=awarded,
            answered=answered,
        ))

    percentage = compute_percentage(score, total_marks)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "DEBUG",
        "Graded {} questions: score={} percentage={}".format(len(credits), score, percentage),
        extra_data={"duration_ms": round(duration_ms, 2), "total_marks": total_marks})

    return GradeResult(score=score, percentage=percentage, credits=credits)
