import json
from decimal import Decimal
from types import SimpleNamespace

import pytest

from deptquiz.errors import NotFound
from deptquiz.models import QuizAttempt, User, StudentSubject
from deptquiz.services.analytics import (
    analyze_question, analyze_quiz, analyze_question_by_id, analyze_quiz_by_id
)
from deptquiz.services.attempt_lifecycle import utcnow

MCQ = SimpleNamespace(id=1, question_type="mcq", marks=10,
                      options=json.dumps(["Paris", "London", "Berlin"]), correct_answer="0")


def test_three_of_four_correct():
    answers = [{"0": "Paris"}, {"0": "paris "}, {"question-0": "0"}, {"0": "Berlin"}]
    analysis = analyze_question(MCQ, 0, answers)
    assert analysis.correct_count == 3
    assert analysis.total_attempts == 4
    assert analysis.accuracy_percentage == Decimal("75.00")


def test_no_attempts_means_zero_accuracy():
    analysis = analyze_question(MCQ, 0, [])
    assert (analysis.correct_count, analysis.total_attempts) == (0, 0)
    assert analysis.accuracy_percentage == Decimal("0.00")


def test_malformed_answers_count_as_incorrect():
    answers = ['{"0": "Paris"}', "{broken", None, 17]
    analysis = analyze_question(MCQ, 0, answers)
    assert analysis.correct_count == 1
    assert analysis.total_attempts == 4
    assert analysis.accuracy_percentage == Decimal("25.00")


def test_analyze_quiz_uses_each_questions_ordinal():
    second = SimpleNamespace(id=2, question_type="short_answer", marks=5,
                             options=None, correct_answer="O(n)")
    answers = [{"0": "Paris", "1": "o(n)"}, {"0": "London", "1": "O(n)"}]
    results = analyze_quiz([MCQ, second], answers)
    assert [(r.question_id, r.correct_count) for r in results] == [(1, 1), (2, 2)]
    assert results[1].to_dict()["accuracy_percentage"] == 100.0


@pytest.fixture
def submitted_quiz(db, school, make_quiz):
    """Quiz of two questions with four submitted attempts and one in progress."""
    quiz = make_quiz([
        {"marks": 5, "options": ["Paris", "London"], "correct_answer": "0"},
        {"question_type": "short_answer", "marks": 5, "correct_answer": "heap"},
    ])
    payloads = [
        {"0": "Paris", "1": "heap"},
        {"0": "paris", "1": "stack"},
        {"0": "London", "1": "Heap"},
        {"0": "PARIS"},
    ]
    for i, payload in enumerate(payloads):
        student = User(user_id="A{}".format(i), name="Student {}".format(i), role="student")
        db.add(student)
        db.flush()
        db.add(StudentSubject(student_id=student.id, subject_id=school.subject.id))
        db.add(QuizAttempt(quiz_id=quiz.id, student_id=student.id, started_at=utcnow(),
                           submitted_at=utcnow(), answers=json.dumps(payload)))
    db.add(QuizAttempt(quiz_id=quiz.id, student_id=school.student.id, started_at=utcnow()))
    db.commit()
    return quiz


def test_analyze_question_by_id_ignores_unsubmitted_attempts(repo, submitted_quiz):
    first, second = repo.list_questions(submitted_quiz.id)

    analysis = analyze_question_by_id(repo, first.id)
    assert (analysis.correct_count, analysis.total_attempts) == (3, 4)
    assert analysis.accuracy_percentage == Decimal("75.00")

    analysis = analyze_question_by_id(repo, second.id)
    assert (analysis.correct_count, analysis.total_attempts) == (2, 4)
    assert analysis.accuracy_percentage == Decimal("50.00")


def test_analyze_quiz_by_id(repo, submitted_quiz):
    results = analyze_quiz_by_id(repo, submitted_quiz.id)
    assert [r.correct_count for r in results] == [3, 2]


def test_analyze_unknown_ids(repo, school):
    with pytest.raises(NotFound):
        analyze_question_by_id(repo, 12345)
    with pytest.raises(NotFound):
        analyze_quiz_by_id(repo, 12345)
