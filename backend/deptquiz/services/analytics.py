"""
Question analytics - per-question accuracy across all submitted attempts.

Uses the same answer lookup, normalization and accepted-form resolution as
grading, but tallies a plain correct/incorrect per attempt. Attempts whose
stored answers cannot be decoded still count towards total_attempts and
are counted as incorrect.
"""

import time
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Iterable, List, Sequence

from deptquiz.errors import NotFound
from deptquiz.repository import QuizRepository
from deptquiz.services.grading import compute_percentage, lookup_answer, is_correct
from deptquiz.services.option_resolver import decode_answers
from deptquiz.logging_config import get_logger, log_with_context

logger = get_logger("analytics")


@dataclass
class QuestionAnalysis:
    question_id: int
    correct_count: int
    total_attempts: int
    accuracy_percentage: Decimal

    def to_dict(self) -> dict:
        data = asdict(self)
        data["accuracy_percentage"] = float(self.accuracy_percentage)
        return data


def analyze_question(question, ordinal: int, attempt_answers: Sequence) -> QuestionAnalysis:
    """
    Count how many submitted attempts answered one question correctly.

    Args:
        question: The question record
        ordinal: Its 0-based position in the quiz
        attempt_answers: Stored answers of every submitted attempt (JSON
            text or already-decoded mappings)
    """
    correct_count = 0
    total_attempts = len(attempt_answers)
    context = {"question_id": question.id}

    for raw in attempt_answers:
        try:
            answers = decode_answers(raw, context=context)
            if answers is None:
                continue
            _, normalized = lookup_answer(answers, ordinal)
            if is_correct(question, normalized):
                correct_count += 1
        except Exception as e:
            log_with_context(logger, "WARNING",
                "Skipping attempt while analysing question {}: {}".format(ordinal + 1, e),
                context=context)

    return QuestionAnalysis(
        question_id=question.id,
        correct_count=correct_count,
        total_attempts=total_attempts,
        accuracy_percentage=compute_percentage(correct_count, total_attempts)
    )


def analyze_quiz(questions: Sequence, attempt_answers: Iterable) -> List[QuestionAnalysis]:
    """Analyse every question of a quiz, in stored order."""
    attempt_answers = list(attempt_answers)
    return [
        analyze_question(question, ordinal, attempt_answers)
        for ordinal, question in enumerate(questions)
    ]


def analyze_question_by_id(repo: QuizRepository, question_id: int) -> QuestionAnalysis:
    """
    Analyse a single question by id.

    Raises:
        NotFound: the question does not exist
    """
    start_time = time.time()

    question = repo.get_question(question_id)
    if question is None:
        raise NotFound("Question not found")

    questions = repo.list_questions(question.quiz_id)
    ordinal = next(i for i, q in enumerate(questions) if q.id == question.id)
    attempts = repo.list_submitted_attempts(question.quiz_id)

    analysis = analyze_question(question, ordinal, [a.answers for a in attempts])

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Question analysed: {}/{} correct ({}%)".format(
            analysis.correct_count, analysis.total_attempts, analysis.accuracy_percentage),
        context={"question_id": question_id, "quiz_id": question.quiz_id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return analysis


def analyze_quiz_by_id(repo: QuizRepository, quiz_id: int) -> List[QuestionAnalysis]:
    """
    Analyse every question of a quiz by id.

    Raises:
        NotFound: the quiz does not exist
    """
    start_time = time.time()

    if repo.get_quiz(quiz_id) is None:
        raise NotFound("Quiz not found")

    questions = repo.list_questions(quiz_id)
    attempts = repo.list_submitted_attempts(quiz_id)
    results = analyze_quiz(questions, [a.answers for a in attempts])

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Quiz analysed: {} questions over {} attempts".format(len(questions), len(attempts)),
        context={"quiz_id": quiz_id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return results
