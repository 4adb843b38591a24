import json
import logging
import os

# Keep the app module from creating a deptquiz.db file on import
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from deptquiz.database import Base, build_engine, create_tables, get_db
from deptquiz.logging_config import CHANNELS, get_logger
from deptquiz.main import app
from deptquiz.models import (
    User, SchoolClass, Subject, TeacherSubject, StudentSubject,
    Experiment, Quiz, Question
)
from deptquiz.repository import QuizRepository


@pytest.fixture(autouse=True)
def quiet_logs():
    """Expected 4xx paths and fail-soft decoding log warnings; keep test output clean."""
    loggers = [get_logger(channel) for channel in CHANNELS]
    old = [logger.level for logger in loggers]
    for logger in loggers:
        logger.setLevel(logging.ERROR)
    try:
        yield
    finally:
        for logger, level in zip(loggers, old):
            logger.setLevel(level)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_tables(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return QuizRepository(db)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def school(db):
    """One class, one subject, a teacher assigned to it and an enrolled student."""
    se = SchoolClass(name="SE")
    db.add(se)
    db.flush()

    subject = Subject(name="Data Structures", class_id=se.id)
    teacher = User(user_id="T001", name="Teacher One", role="teacher")
    student = User(user_id="S001", name="Student One", role="student", class_id=se.id)
    outsider = User(user_id="S002", name="Student Two", role="student", class_id=se.id)
    db.add_all([subject, teacher, student, outsider])
    db.flush()

    db.add_all([
        TeacherSubject(teacher_id=teacher.id, subject_id=subject.id),
        StudentSubject(student_id=student.id, subject_id=subject.id),
    ])
    experiment = Experiment(subject_id=subject.id, experiment_number=1,
                            title="Linked Lists", created_by=teacher.id)
    db.add(experiment)
    db.commit()

    class School:
        pass

    s = School()
    s.school_class = se
    s.subject = subject
    s.teacher = teacher
    s.student = student
    s.outsider = outsider
    s.experiment = experiment
    return s


@pytest.fixture
def make_quiz(db, school):
    """Factory creating a quiz with questions given as dicts."""

    def factory(questions, total_marks=10, is_active=True, start_date=None, end_date=None):
        quiz = Quiz(
            experiment_id=school.experiment.id,
            subject_id=school.subject.id,
            title="Quiz",
            total_marks=total_marks,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
            created_by=school.teacher.id,
        )
        db.add(quiz)
        db.flush()
        for q in questions:
            options = q.get("options")
            if options is not None and not isinstance(options, str):
                options = json.dumps(options)
            db.add(Question(
                quiz_id=quiz.id,
                question_text=q.get("question_text", "Q"),
                question_type=q.get("question_type", "mcq"),
                marks=q.get("marks", 1),
                options=options,
                correct_answer=q.get("correct_answer"),
            ))
        db.commit()
        return quiz

    return factory


@pytest.fixture
def as_user():
    """Headers identifying the caller the way the gateway does."""

    def headers(user):
        return {"X-User-Id": str(user.id)}

    return headers
