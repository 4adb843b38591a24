"""
Experiment, Quiz and Question models.

A teacher authors numbered experiments per subject; each quiz belongs to
one experiment. Questions are ordered by id, which is authoring order, and
that order defines the ordinal keys students answer against.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey,
    UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from deptquiz.database import Base


class QuestionType(str, enum.Enum):
    MCQ = "mcq"
    SHORT_ANSWER = "short_answer"
    LONG_ANSWER = "long_answer"


class Experiment(Base):
    __tablename__ = "experiments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    experiment_number = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    quizzes = relationship("Quiz", back_populates="experiment")

    __table_args__ = (
        UniqueConstraint("subject_id", "experiment_number", name="unique_experiment"),
    )

    def __repr__(self):
        return f"<Experiment(id={self.id}, number={self.experiment_number}, title='{self.title}')>"


class Quiz(Base):
    """
    SQLAlchemy model for the quizzes table.

    A quiz is open to students only while is_active is set and the current
    time lies inside the optional [start_date, end_date] window. Both
    bounds are stored as naive UTC datetimes.
    """
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    experiment_id = Column(Integer, ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    total_marks = Column(Integer, nullable=False,
                         doc="Declared maximum score; percentages are computed against it")
    duration_minutes = Column(Integer, nullable=True)
    start_date = Column(DateTime, nullable=True,
                        doc="Quiz opens at this time (naive UTC), NULL means no lower bound")
    end_date = Column(DateTime, nullable=True,
                      doc="Quiz closes at this time (naive UTC), NULL means no upper bound")
    is_active = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    experiment = relationship("Experiment", back_populates="quizzes")
    subject = relationship("Subject", back_populates="quizzes")
    questions = relationship("Question", back_populates="quiz", order_by="Question.id")
    attempts = relationship("QuizAttempt", back_populates="quiz")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}', total_marks={self.total_marks})>"


class Question(Base):
    """
    SQLAlchemy model for the questions table.

    options holds a JSON-encoded list of option strings for mcq questions.
    correct_answer is free text; for mcq it is either the option text or
    the 0-based option index written as a string.
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False, default=QuestionType.MCQ.value,
                           doc="mcq | short_answer | long_answer")
    marks = Column(Integer, nullable=False, default=0)
    options = Column(Text, nullable=True,
                     doc="JSON list of option strings (mcq only)")
    correct_answer = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    quiz = relationship("Quiz", back_populates="questions")

    __table_args__ = (
        Index("ix_questions_quiz_id", "quiz_id"),
    )

    def __repr__(self):
        return f"<Question(id={self.id}, quiz={self.quiz_id}, type='{self.question_type}', marks={self.marks})>"
