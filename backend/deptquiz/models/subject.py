"""
Class and subject models plus the two assignment tables.

- SchoolClass: a year group (SE, TE, BE)
- Subject: taught within one class
- TeacherSubject: which teachers may author quizzes for a subject
- StudentSubject: which students are enrolled in a subject
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from deptquiz.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False,
                  doc="Class name, e.g. SE, TE, BE")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    subjects = relationship("Subject", back_populates="school_class")
    students = relationship("User", back_populates="school_class")

    def __repr__(self):
        return f"<SchoolClass(id={self.id}, name='{self.name}')>"


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    school_class = relationship("SchoolClass", back_populates="subjects")
    quizzes = relationship("Quiz", back_populates="subject")

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}', class_id={self.class_id})>"


class TeacherSubject(Base):
    __tablename__ = "teacher_subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", name="unique_teacher_subject"),
    )


class StudentSubject(Base):
    __tablename__ = "student_subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", name="unique_student_subject"),
    )
