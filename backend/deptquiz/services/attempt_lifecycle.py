"""
Attempt lifecycle - the state machine for one (quiz, student) pair.

    NOT_STARTED --start/open--> IN_PROGRESS --submit--> SUBMITTED

- NOT_STARTED has no row; the first start or detail view creates one.
- Starting again while IN_PROGRESS returns the same attempt, unchanged.
- Submitting grades the answers and commits them once. SUBMITTED is
  terminal: every later start or submit raises AlreadySubmitted.

Enrollment, the active flag and the quiz window are checked again on every
call. The repository is passed in explicitly by the caller.
"""

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from deptquiz.errors import ValidationError, AccessDenied, AlreadySubmitted, NotFound
from deptquiz.models.attempt import QuizAttempt
from deptquiz.models.quiz import Quiz
from deptquiz.repository import QuizRepository
from deptquiz.services.grading import grade_answers
from deptquiz.services.option_resolver import decode_options
from deptquiz.logging_config import get_logger, log_with_context

logger = get_logger("attempts")


class AttemptState(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


def attempt_state(attempt: Optional[QuizAttempt]) -> AttemptState:
    if attempt is None:
        return AttemptState.NOT_STARTED
    if attempt.submitted_at is None:
        return AttemptState.IN_PROGRESS
    return AttemptState.SUBMITTED


def utcnow() -> datetime:
    """Current time as naive UTC, the form quiz windows are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class QuizSession:
    """What a student sees when opening a quiz: no correct answers."""
    quiz: Quiz
    attempt: QuizAttempt
    questions: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class SubmissionResult:
    attempt_id: int
    score: int
    percentage: Decimal
    total_marks: int
    explanation: Dict[str, Any] = field(default_factory=dict)


def _load_quiz(repo: QuizRepository, quiz_id: int) -> Quiz:
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    return quiz


def ensure_quiz_open(repo: QuizRepository, quiz: Quiz, student_id: int, now: datetime):
    """Raise AccessDenied unless the student may act on the quiz right now."""
    if not repo.is_enrolled(student_id, quiz.subject_id):
        raise AccessDenied("You are not enrolled in this subject")
    if not quiz.is_active:
        raise AccessDenied("This quiz is not active")
    if quiz.start_date is not None and quiz.start_date > now:
        raise AccessDenied("This quiz has not started yet")
    if quiz.end_date is not None and quiz.end_date < now:
        raise AccessDenied("This quiz has ended")


def _get_or_create_attempt(repo: QuizRepository, quiz_id: int, student_id: int,
                           now: datetime):
    """Return (attempt, created). Raises AlreadySubmitted for a terminal attempt."""
    attempt = repo.get_attempt(quiz_id, student_id)
    created = attempt is None
    if created:
        attempt = repo.create_attempt(quiz_id, student_id, started_at=now)
    if attempt_state(attempt) is AttemptState.SUBMITTED:
        raise AlreadySubmitted("You have already submitted this quiz")
    return attempt, created


def _start(repo: QuizRepository, quiz: Quiz, student_id: int, now: datetime) -> QuizAttempt:
    ensure_quiz_open(repo, quiz, student_id, now)
    attempt, created = _get_or_create_attempt(repo, quiz.id, student_id, now)
    log_with_context(logger, "INFO",
        "Attempt {} for quiz {}".format("started" if created else "resumed", quiz.id),
        context={"quiz_id": quiz.id, "student_id": student_id, "attempt_id": attempt.id})
    return attempt


def start_attempt(repo: QuizRepository, quiz_id: int, student_id: int,
                  now: datetime = None) -> QuizAttempt:
    """
    Move (quiz, student) from NOT_STARTED to IN_PROGRESS, or resume it.

    Raises:
        NotFound: the quiz does not exist
        AccessDenied: not enrolled, quiz inactive or outside its window
        AlreadySubmitted: the attempt is already submitted
    """
    now = now or utcnow()
    quiz = _load_quiz(repo, quiz_id)
    return _start(repo, quiz, student_id, now)


def _require_questions(repo: QuizRepository, quiz_id: int) -> list:
    # Checked before any attempt row is written
    questions = repo.list_questions(quiz_id)
    if not questions:
        raise ValidationError("No questions found for this quiz")
    return questions


def student_view_question(question) -> Dict[str, Any]:
    """Question as shown to a student: decoded options, no correct answer."""
    return {
        "id": question.id,
        "question_text": question.question_text,
        "question_type": question.question_type,
        "marks": question.marks,
        "options": decode_options(question.options, context={"question_id": question.id}),
    }


def open_quiz(repo: QuizRepository, quiz_id: int, student_id: int,
              now: datetime = None) -> QuizSession:
    """
    Detail view of a quiz for a student. Starts the attempt lazily.

    Raises the same errors as start_attempt, plus ValidationError when the
    quiz has no questions.
    """
    now = now or utcnow()
    quiz = _load_quiz(repo, quiz_id)
    ensure_quiz_open(repo, quiz, student_id, now)
    questions = _require_questions(repo, quiz_id)
    attempt = _start(repo, quiz, student_id, now)
    return QuizSession(
        quiz=quiz,
        attempt=attempt,
        questions=[student_view_question(q) for q in questions]
    )


def _validate_answers(answers) -> None:
    """
    Reject payloads that are not an object, or whose keys would not survive
    being stored as JSON: answers are graded now and re-read from the stored
    text by analytics, so both must see the same value for every ordinal.
    """
    if answers is None or isinstance(answers, (str, bytes)) or \
            not isinstance(answers, (Mapping, Sequence)):
        raise ValidationError("Answers are required and must be an object")
    if not isinstance(answers, Mapping):
        return
    for key in answers:
        if isinstance(key, bool) or not isinstance(key, (int, str)):
            raise ValidationError("Answer keys must be strings or integers")
        if isinstance(key, int) and str(key) in answers:
            raise ValidationError("Answer for question {} is given twice".format(key + 1))


def submit_attempt(repo: QuizRepository, quiz_id: int, student_id: int, answers,
                   now: datetime = None) -> SubmissionResult:
    """
    Grade and commit a student's answers: IN_PROGRESS -> SUBMITTED.

    A missing attempt is created first so a submit that raced ahead of its
    start still goes through. The commit is conditional on the attempt
    still being unsubmitted.

    Raises:
        ValidationError: answers missing or not an object, quiz has no questions
        NotFound: the quiz does not exist
        AccessDenied: not enrolled, quiz inactive or outside its window
        AlreadySubmitted: the attempt was already submitted
    """
    start_time = time.time()
    _validate_answers(answers)

    now = now or utcnow()
    quiz = _load_quiz(repo, quiz_id)
    ensure_quiz_open(repo, quiz, student_id, now)
    questions = _require_questions(repo, quiz_id)

    attempt, _ = _get_or_create_attempt(repo, quiz_id, student_id, now)
    attempt_id = attempt.id

    result = grade_answers(questions, answers, quiz.total_marks)

    committed = repo.record_submission(
        attempt_id,
        answers=answers,
        score=result.score,
        percentage=result.percentage,
        submitted_at=now
    )
    if not committed:
        log_with_context(logger, "WARNING",
            "Submission rejected: attempt {} was submitted concurrently".format(attempt_id),
            context={"quiz_id": quiz_id, "student_id": student_id, "attempt_id": attempt_id})
        raise AlreadySubmitted("Quiz already submitted")

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Quiz submitted: score {}/{} ({}%), {} of {} correct".format(
            result.score, quiz.total_marks, result.percentage,
            result.correct_count, len(questions)),
        context={"quiz_id": quiz_id, "student_id": student_id, "attempt_id": attempt_id},
        extra_data={"duration_ms": round(duration_ms, 2), "score": result.score,
                    "percentage": float(result.percentage)})

    return SubmissionResult(
        attempt_id=attempt_id,
        score=result.score,
        percentage=result.percentage,
        total_marks=quiz.total_marks,
        explanation=result.to_explanation()
    )
