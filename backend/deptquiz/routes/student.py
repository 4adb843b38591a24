"""
Student API routes - taking quizzes and reading back scores.

Provides endpoints for:
- Opening a quiz (starts the attempt lazily, hides correct answers)
- Starting or resuming an attempt
- Submitting answers for grading
- Listing the student's submitted scores
"""

from typing import Any
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from deptquiz.auth import is_student
from deptquiz.errors import parse_id
from deptquiz.models.user import User
from deptquiz.repository import QuizRepository, get_repository
from deptquiz.services.attempt_lifecycle import (
    open_quiz, start_attempt, submit_attempt, attempt_state
)

router = APIRouter(prefix="/api/student")


# ── Pydantic schemas ─────────────────────────────────────────

class SubmitRequest(BaseModel):
    """Answers keyed by question ordinal: 0, "0" or "question-0"."""
    answers: Any = Field(None, description="Answers map: ordinal -> answer text or option")


class SubmitResponse(BaseModel):
    message: str
    attempt_id: int
    score: int
    total_marks: int
    percentage: float


def serialize_attempt(attempt) -> dict:
    return {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "student_id": attempt.student_id,
        "state": attempt_state(attempt).value,
        "started_at": attempt.started_at.isoformat() if attempt.started_at else None,
        "submitted_at": attempt.submitted_at.isoformat() if attempt.submitted_at else None,
        "score": attempt.score,
        "percentage": float(attempt.percentage or 0),
    }


def serialize_quiz(quiz) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "subject_id": quiz.subject_id,
        "subject_name": quiz.subject.name if quiz.subject else None,
        "experiment_id": quiz.experiment_id,
        "experiment_number": quiz.experiment.experiment_number if quiz.experiment else None,
        "experiment_title": quiz.experiment.title if quiz.experiment else None,
        "total_marks": quiz.total_marks,
        "duration_minutes": quiz.duration_minutes,
        "start_date": quiz.start_date.isoformat() if quiz.start_date else None,
        "end_date": quiz.end_date.isoformat() if quiz.end_date else None,
        "is_active": bool(quiz.is_active),
    }


@router.get("/quizzes/details/{quiz_id}")
def get_quiz_details(
    quiz_id: str,
    current_user: User = Depends(is_student),
    repo: QuizRepository = Depends(get_repository)
):
    """Quiz with its questions, stripped of correct answers."""
    session = open_quiz(repo, parse_id(quiz_id), current_user.id)
    quiz = serialize_quiz(session.quiz)
    quiz["current_attempt"] = serialize_attempt(session.attempt)
    return {"quiz": quiz, "questions": session.questions}


@router.post("/quizzes/{quiz_id}/start")
def start_quiz(
    quiz_id: str,
    current_user: User = Depends(is_student),
    repo: QuizRepository = Depends(get_repository)
):
    """Start a quiz attempt, or resume the one already in progress."""
    attempt = start_attempt(repo, parse_id(quiz_id), current_user.id)
    return {"message": "Quiz attempt started", "attempt": serialize_attempt(attempt)}


@router.post("/quizzes/{quiz_id}/submit", response_model=SubmitResponse)
def submit_quiz(
    quiz_id: str,
    request: SubmitRequest,
    current_user: User = Depends(is_student),
    repo: QuizRepository = Depends(get_repository)
):
    """Grade and record the student's answers. Only one submission is accepted."""
    result = submit_attempt(repo, parse_id(quiz_id), current_user.id, request.answers)
    return SubmitResponse(
        message="Quiz submitted successfully",
        attempt_id=result.attempt_id,
        score=result.score,
        total_marks=result.total_marks,
        percentage=float(result.percentage)
    )


@router.get("/scores")
def get_scores(
    current_user: User = Depends(is_student),
    repo: QuizRepository = Depends(get_repository)
):
    """The student's submitted attempts, newest first."""
    return [
        {
            "quiz_id": attempt.quiz_id,
            "quiz_title": attempt.quiz.title,
            "subject_name": attempt.quiz.subject.name if attempt.quiz.subject else None,
            "experiment_number": attempt.quiz.experiment.experiment_number if attempt.quiz.experiment else None,
            "score": attempt.score,
            "percentage": float(attempt.percentage or 0),
            "total_marks": attempt.quiz.total_marks,
            "submitted_at": attempt.submitted_at.isoformat() if attempt.submitted_at else None,
        }
        for attempt in repo.list_student_scores(current_user.id)
    ]
