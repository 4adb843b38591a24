from datetime import datetime

CAPITALS_MCQ = {"marks": 10, "options": ["Paris", "London", "Berlin"], "correct_answer": "0"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.headers["X-Request-ID"]


def test_requests_without_identity_are_rejected(client, school, make_quiz):
    quiz = make_quiz([CAPITALS_MCQ])
    assert client.post(f"/api/student/quizzes/{quiz.id}/start").status_code == 401
    assert client.post(f"/api/student/quizzes/{quiz.id}/start",
                       headers={"X-User-Id": "9999"}).status_code == 401


def test_teacher_cannot_use_student_routes(client, school, make_quiz, as_user):
    quiz = make_quiz([CAPITALS_MCQ])
    r = client.post(f"/api/student/quizzes/{quiz.id}/start", headers=as_user(school.teacher))
    assert r.status_code == 403


def test_student_flow_details_submit_scores(client, school, make_quiz, as_user):
    quiz = make_quiz([CAPITALS_MCQ])
    headers = as_user(school.student)

    r = client.get(f"/api/student/quizzes/details/{quiz.id}", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["quiz"]["current_attempt"]["state"] == "in_progress"
    assert body["questions"][0]["options"] == ["Paris", "London", "Berlin"]
    assert "correct_answer" not in body["questions"][0]

    r = client.post(f"/api/student/quizzes/{quiz.id}/submit", headers=headers,
                    json={"answers": {"0": "paris"}})
    assert r.status_code == 200
    assert r.json()["score"] == 10
    assert r.json()["percentage"] == 100.0
    assert r.json()["total_marks"] == 10

    r = client.post(f"/api/student/quizzes/{quiz.id}/submit", headers=headers,
                    json={"answers": {"0": "London"}})
    assert r.status_code == 403
    assert "already submitted" in r.json()["detail"]

    r = client.get(f"/api/student/quizzes/details/{quiz.id}", headers=headers)
    assert r.status_code == 403

    r = client.get("/api/student/scores", headers=headers)
    assert r.status_code == 200
    assert [(s["quiz_id"], s["score"], s["percentage"]) for s in r.json()] == [(quiz.id, 10, 100.0)]


def test_submit_without_answers_is_a_validation_error(client, school, make_quiz, as_user):
    quiz = make_quiz([CAPITALS_MCQ])
    r = client.post(f"/api/student/quizzes/{quiz.id}/submit", headers=as_user(school.student),
                    json={})
    assert r.status_code == 400


def test_malformed_quiz_id(client, school, as_user):
    r = client.post("/api/student/quizzes/abc/start", headers=as_user(school.student))
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid quiz ID"


def test_lenient_quiz_id_and_missing_quiz(client, school, make_quiz, as_user):
    quiz = make_quiz([CAPITALS_MCQ])
    headers = as_user(school.student)
    assert client.post(f"/api/student/quizzes/{quiz.id}:1/start", headers=headers).status_code == 200
    assert client.post("/api/student/quizzes/4040/start", headers=headers).status_code == 404


def test_not_enrolled_student(client, school, make_quiz, as_user):
    quiz = make_quiz([CAPITALS_MCQ])
    r = client.get(f"/api/student/quizzes/details/{quiz.id}", headers=as_user(school.outsider))
    assert r.status_code == 403
    assert r.json()["detail"] == "You are not enrolled in this subject"


def test_teacher_creates_activates_and_analyses_quiz(client, school, as_user):
    teacher = as_user(school.teacher)
    student = as_user(school.student)

    r = client.post("/api/teacher/quizzes", headers=teacher, json={
        "experiment_id": school.experiment.id,
        "subject_id": school.subject.id,
        "title": "Lists",
        "total_marks": 10,
        "end_date": "2999-01-01T00:00:00Z",
        "questions": [
            {"question_text": "Capital of France?", "marks": 5,
             "options": ["Paris", "London"], "correct_answer": "0"},
            {"question_text": "LIFO structure?", "question_type": "short_answer",
             "marks": 5, "correct_answer": "Stack"},
        ],
    })
    assert r.status_code == 200
    quiz_id = r.json()["id"]

    # New quizzes are inactive
    assert client.post(f"/api/student/quizzes/{quiz_id}/start", headers=student).status_code == 403

    r = client.put(f"/api/teacher/quizzes/{quiz_id}/activate", headers=teacher,
                   json={"is_active": True})
    assert r.status_code == 200

    r = client.post(f"/api/student/quizzes/{quiz_id}/submit", headers=student,
                    json={"answers": {"0": "Paris", "1": "queue"}})
    assert r.status_code == 200
    assert r.json()["score"] == 5
    assert r.json()["percentage"] == 50.0

    r = client.get(f"/api/teacher/quizzes/{quiz_id}/attempts", headers=teacher)
    assert r.status_code == 200
    assert [(a["student_name"], a["score"], a["state"]) for a in r.json()] == [
        ("Student One", 5, "submitted")
    ]

    r = client.get(f"/api/teacher/analysis/quiz/{quiz_id}/questions", headers=teacher)
    assert r.status_code == 200
    analysis = r.json()
    assert [(q["correct_count"], q["total_attempts"], q["accuracy_percentage"]) for q in analysis] == [
        (1, 1, 100.0), (0, 1, 0.0)
    ]

    r = client.get(f"/api/teacher/analysis/questions/{analysis[1]['question_id']}", headers=teacher)
    assert r.status_code == 200
    assert r.json()["question_text"] == "LIFO structure?"
    assert r.json()["accuracy_percentage"] == 0.0


def test_teacher_without_subject_access(client, db, school, make_quiz, as_user):
    from deptquiz.models import User

    stranger = User(user_id="T002", name="Teacher Two", role="teacher")
    db.add(stranger)
    db.commit()
    quiz = make_quiz([CAPITALS_MCQ])

    r = client.get(f"/api/teacher/analysis/quiz/{quiz.id}/questions", headers=as_user(stranger))
    assert r.status_code == 403
    r = client.post("/api/teacher/quizzes", headers=as_user(stranger), json={
        "experiment_id": school.experiment.id, "subject_id": school.subject.id,
        "title": "Nope", "total_marks": 1, "questions": [],
    })
    assert r.status_code == 403


def test_timezone_aware_window_is_stored_as_naive_utc(client, db, school, as_user):
    from deptquiz.models import Quiz

    r = client.post("/api/teacher/quizzes", headers=as_user(school.teacher), json={
        "experiment_id": school.experiment.id, "subject_id": school.subject.id,
        "title": "TZ", "total_marks": 1,
        "start_date": "2030-06-01T10:00:00+02:00",
    })
    quiz = db.get(Quiz, r.json()["id"])
    assert quiz.start_date == datetime(2030, 6, 1, 8, 0)
