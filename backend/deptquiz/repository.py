"""
Data access for the quiz services.

QuizRepository wraps one SQLAlchemy session and is handed to every service
call explicitly; nothing in the services reaches for a global session.
"""

import json
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from fastapi import Depends

from deptquiz.database import get_db
from deptquiz.models.user import User
from deptquiz.models.subject import StudentSubject, TeacherSubject
from deptquiz.models.quiz import Quiz, Question, QuestionType
from deptquiz.models.attempt import QuizAttempt
from deptquiz.logging_config import get_logger, log_with_context

db_logger = get_logger("db")


class QuizRepository:

    def __init__(self, db: Session):
        self.db = db

    # ── Lookups ──────────────────────────────────────────────

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        return self.db.query(Quiz).options(
            joinedload(Quiz.experiment),
            joinedload(Quiz.subject)
        ).filter(Quiz.id == quiz_id).first()

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.db.get(Question, question_id)

    def list_questions(self, quiz_id: int) -> List[Question]:
        """Questions of a quiz in authoring (id ascending) order."""
        return self.db.query(Question).filter(
            Question.quiz_id == quiz_id
        ).order_by(Question.id).all()

    def is_enrolled(self, student_id: int, subject_id: int) -> bool:
        return self.db.query(StudentSubject.id).filter(
            StudentSubject.student_id == student_id,
            StudentSubject.subject_id == subject_id
        ).first() is not None

    def has_subject_access(self, teacher_id: int, subject_id: int) -> bool:
        return self.db.query(TeacherSubject.id).filter(
            TeacherSubject.teacher_id == teacher_id,
            TeacherSubject.subject_id == subject_id
        ).first() is not None

    # ── Attempts ─────────────────────────────────────────────

    def get_attempt(self, quiz_id: int, student_id: int) -> Optional[QuizAttempt]:
        return self.db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.student_id == student_id
        ).first()

    def create_attempt(self, quiz_id: int, student_id: int, started_at: datetime) -> QuizAttempt:
        """
        Insert the attempt for (quiz, student).

        If a concurrent request inserted it first, the unique constraint
        rejects this insert and the existing row is returned instead.
        """
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            student_id=student_id,
            started_at=started_at,
            score=0,
            percentage=0
        )
        self.db.add(attempt)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_attempt(quiz_id, student_id)
            if existing is None:
                raise
            log_with_context(db_logger, "INFO",
                "Attempt already created by a concurrent request",
                context={"quiz_id": quiz_id, "student_id": student_id,
                         "attempt_id": existing.id})
            return existing

        self.db.refresh(attempt)
        log_with_context(db_logger, "INFO", "Created attempt {}".format(attempt.id),
                         context={"quiz_id": quiz_id, "student_id": student_id,
                                  "attempt_id": attempt.id})
        return attempt

    def record_submission(self, attempt_id: int, answers, score: int, percentage,
                          submitted_at: datetime) -> bool:
        """
        Commit the graded submission.

        The UPDATE only matches while submitted_at is still NULL, so a
        submission that lost a race writes nothing. Returns whether this
        call was the one that committed.
        """
        result = self.db.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt_id, QuizAttempt.submitted_at.is_(None))
            .values(
                answers=json.dumps(answers, default=str),
                score=score,
                percentage=percentage,
                submitted_at=submitted_at
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def list_submitted_attempts(self, quiz_id: int) -> List[QuizAttempt]:
        return self.db.query(QuizAttempt).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.submitted_at.isnot(None)
        ).order_by(QuizAttempt.id).all()

    def list_quiz_attempts(self, quiz_id: int) -> List[QuizAttempt]:
        return self.db.query(QuizAttempt).options(
            joinedload(QuizAttempt.student)
        ).filter(
            QuizAttempt.quiz_id == quiz_id
        ).order_by(QuizAttempt.score.desc(), QuizAttempt.id).all()

    def list_student_scores(self, student_id: int) -> List[QuizAttempt]:
        return self.db.query(QuizAttempt).options(
            joinedload(QuizAttempt.quiz).joinedload(Quiz.subject),
            joinedload(QuizAttempt.quiz).joinedload(Quiz.experiment)
        ).filter(
            QuizAttempt.student_id == student_id,
            QuizAttempt.submitted_at.isnot(None)
        ).order_by(QuizAttempt.submitted_at.desc()).all()

    # ── Authoring ────────────────────────────────────────────

    def create_quiz(self, created_by: int, experiment_id: int, subject_id: int, title: str,
                    total_marks: int, questions: list, duration_minutes: int = None,
                    start_date: datetime = None, end_date: datetime = None) -> Quiz:
        """Create a quiz and its questions in one transaction."""
        quiz = Quiz(
            experiment_id=experiment_id,
            subject_id=subject_id,
            title=title,
            total_marks=total_marks,
            duration_minutes=duration_minutes,
            start_date=start_date,
            end_date=end_date,
            is_active=False,
            created_by=created_by
        )
        self.db.add(quiz)
        try:
            self.db.flush()
            for q in questions:
                self.db.add(Question(
                    quiz_id=quiz.id,
                    question_text=q["question_text"],
                    question_type=q.get("question_type") or QuestionType.MCQ.value,
                    marks=q["marks"],
                    options=json.dumps(q["options"]) if q.get("options") is not None else None,
                    correct_answer=q.get("correct_answer")
                ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quiz)
        log_with_context(db_logger, "INFO", "Created quiz: {}".format(title),
                         context={"quiz_id": quiz.id, "subject_id": subject_id},
                         extra_data={"questions": len(questions)})
        return quiz

    def set_quiz_active(self, quiz: Quiz, is_active: bool) -> Quiz:
        quiz.is_active = is_active
        self.db.commit()
        self.db.refresh(quiz)
        return quiz


def get_repository(db: Session = Depends(get_db)) -> QuizRepository:
    """FastAPI dependency that builds a repository on the request's session."""
    return QuizRepository(db)
