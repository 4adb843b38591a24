"""
QuizAttempt model - one student's record for one quiz.

An attempt is created when the student first opens or starts the quiz and
is written exactly once more, at submission, when the answers, score,
percentage and submitted_at are committed together. After that the row
is never modified.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Numeric, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from deptquiz.database import Base


class QuizAttempt(Base):
    """
    SQLAlchemy model for the quiz_attempts table.

    The (quiz_id, student_id) unique constraint is what keeps concurrent
    start requests from producing two attempts.
    """
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False,
                     doc="Quiz being attempted")
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
                        doc="Student who owns this attempt")
    started_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        doc="When the attempt was created")
    submitted_at = Column(DateTime, nullable=True,
                          doc="When the answers were submitted (NULL while in progress)")
    score = Column(Integer, nullable=False, default=0,
                   doc="Sum of marks for correctly answered questions")
    percentage = Column(Numeric(5, 2), nullable=False, default=0,
                        doc="score / total_marks * 100, clamped to 0..100")
    answers = Column(Text, nullable=True,
                     doc="Submitted answers as JSON, stored verbatim")

    quiz = relationship("Quiz", back_populates="attempts")
    student = relationship("User", back_populates="attempts")

    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", name="unique_attempt"),
        Index("ix_quiz_attempts_student_id", "student_id"),
    )

    def __repr__(self):
        return f"<QuizAttempt(id={self.id}, quiz={self.quiz_id}, student={self.student_id}, submitted={self.submitted_at is not None})>"
