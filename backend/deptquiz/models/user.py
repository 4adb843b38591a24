"""
User model - administrators, teachers and students share one table.

The role column decides which API surface a user may call. Students
belong to a class and are enrolled per subject; teachers are assigned
per subject.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from deptquiz.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base):
    """SQLAlchemy model for the users table."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Internal user identifier")
    user_id = Column(String(50), unique=True, nullable=False,
                     doc="Login identifier issued by the department (e.g. ADMIN001)")
    name = Column(String(100), nullable=False,
                  doc="Display name")
    email = Column(String(100), unique=True, nullable=True,
                   doc="Contact email")
    role = Column(String(20), nullable=False,
                  doc="admin | teacher | student")
    qualification = Column(String(100), nullable=True,
                           doc="Teacher qualification")
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True,
                      doc="Class a student belongs to")
    roll_number = Column(String(50), nullable=True,
                         doc="Student roll number within the class")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when the user was created")

    school_class = relationship("SchoolClass", back_populates="students")
    attempts = relationship("QuizAttempt", back_populates="student")

    def __repr__(self):
        return f"<User(id={self.id}, user_id='{self.user_id}', role='{self.role}')>"
