"""
Teacher API routes - quiz authoring and analysis.

Provides endpoints for:
- Creating a quiz with its questions
- Activating / deactivating a quiz
- Listing attempts for a quiz
- Per-question accuracy for a quiz or a single question

Every endpoint checks that the teacher is assigned to the quiz's subject.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from deptquiz.auth import is_teacher
from deptquiz.errors import AccessDenied, NotFound, parse_id
from deptquiz.models.quiz import QuestionType
from deptquiz.models.user import User
from deptquiz.repository import QuizRepository, get_repository
from deptquiz.services.analytics import analyze_question_by_id, analyze_quiz_by_id
from deptquiz.services.attempt_lifecycle import attempt_state
from deptquiz.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/teacher")
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class QuestionIn(BaseModel):
    question_text: str
    question_type: QuestionType = QuestionType.MCQ
    marks: int = Field(..., ge=0)
    options: Optional[List[str]] = Field(None, description="Option texts (mcq only)")
    correct_answer: Optional[str] = Field(None, description="Option text or 0-based option index")


class QuizCreateRequest(BaseModel):
    experiment_id: int
    subject_id: int
    title: str
    total_marks: int
    duration_minutes: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    questions: List[QuestionIn] = Field(default_factory=list)


class ActivateRequest(BaseModel):
    is_active: bool


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Quiz windows are stored as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _load_owned_quiz(repo: QuizRepository, quiz_id: int, teacher: User):
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    if not repo.has_subject_access(teacher.id, quiz.subject_id):
        raise AccessDenied("You do not have access to this quiz")
    return quiz


@router.post("/quizzes")
def create_quiz(
    request: QuizCreateRequest,
    current_user: User = Depends(is_teacher),
    repo: QuizRepository = Depends(get_repository)
):
    """Create a quiz and its questions. New quizzes start inactive."""
    if not repo.has_subject_access(current_user.id, request.subject_id):
        raise AccessDenied("You do not have access to this subject")

    quiz = repo.create_quiz(
        created_by=current_user.id,
        experiment_id=request.experiment_id,
        subject_id=request.subject_id,
        title=request.title,
        total_marks=request.total_marks,
        duration_minutes=request.duration_minutes,
        start_date=to_naive_utc(request.start_date),
        end_date=to_naive_utc(request.end_date),
        questions=[
            {**q.model_dump(), "question_type": q.question_type.value}
            for q in request.questions
        ]
    )
    return {"message": "Quiz created successfully", "id": quiz.id}


@router.put("/quizzes/{quiz_id}/activate")
def activate_quiz(
    quiz_id: str,
    request: ActivateRequest,
    current_user: User = Depends(is_teacher),
    repo: QuizRepository = Depends(get_repository)
):
    quiz = _load_owned_quiz(repo, parse_id(quiz_id), current_user)
    repo.set_quiz_active(quiz, request.is_active)

    log_with_context(logger, "INFO",
        "Quiz {} {}".format(quiz.id, "activated" if request.is_active else "deactivated"),
        context={"quiz_id": quiz.id, "teacher_id": current_user.id})
    return {"message": "Quiz {} successfully".format("activated" if request.is_active else "deactivated")}


@router.get("/quizzes/{quiz_id}/attempts")
def list_quiz_attempts(
    quiz_id: str,
    current_user: User = Depends(is_teacher),
    repo: QuizRepository = Depends(get_repository)
):
    """All attempts for a quiz, highest score first."""
    quiz = _load_owned_quiz(repo, parse_id(quiz_id), current_user)
    return [
        {
            "id": attempt.id,
            "student_id": attempt.student_id,
            "user_id": attempt.student.user_id if attempt.student else None,
            "student_name": attempt.student.name if attempt.student else None,
            "state": attempt_state(attempt).value,
            "started_at": attempt.started_at.isoformat() if attempt.started_at else None,
            "submitted_at": attempt.submitted_at.isoformat() if attempt.submitted_at else None,
            "score": attempt.score,
            "percentage": float(attempt.percentage or 0),
        }
        for attempt in repo.list_quiz_attempts(quiz.id)
    ]


@router.get("/analysis/quiz/{quiz_id}/questions")
def quiz_question_analysis(
    quiz_id: str,
    current_user: User = Depends(is_teacher),
    repo: QuizRepository = Depends(get_repository)
):
    """Accuracy of every question in a quiz over its submitted attempts."""
    start_time = time.time()
    quiz = _load_owned_quiz(repo, parse_id(quiz_id), current_user)

    questions = {q.id: q for q in repo.list_questions(quiz.id)}
    results = []
    for analysis in analyze_quiz_by_id(repo, quiz.id):
        question = questions[analysis.question_id]
        results.append({
            **analysis.to_dict(),
            "question_text": question.question_text,
            "marks": question.marks,
        })

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Question analysis served for quiz {}".format(quiz.id),
        context={"quiz_id": quiz.id, "teacher_id": current_user.id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return results


@router.get("/analysis/questions/{question_id}")
def question_analysis(
    question_id: str,
    current_user: User = Depends(is_teacher),
    repo: QuizRepository = Depends(get_repository)
):
    """Accuracy of a single question over its quiz's submitted attempts."""
    question = repo.get_question(parse_id(question_id, label="question"))
    if question is None:
        raise NotFound("Question not found")
    _load_owned_quiz(repo, question.quiz_id, current_user)

    analysis = analyze_question_by_id(repo, question.id)
    return {
        **analysis.to_dict(),
        "question_text": question.question_text,
        "marks": question.marks,
    }
