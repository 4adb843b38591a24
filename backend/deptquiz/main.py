"""
FastAPI entry point for the department quiz backend.

Wires logging, the database, the request-id middleware and the error
handler around the student and teacher routers. Run with:

    uvicorn deptquiz.main:app --app-dir backend
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deptquiz.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from deptquiz.errors import QuizError
from deptquiz.routes import student, teacher
from deptquiz.database import DATABASE_URL, create_tables

VERSION = "1.0.0"

# Advertised on GET / so clients can discover the main operations
ENDPOINTS = {
    "quiz_details": "GET /api/student/quizzes/details/{quiz_id}",
    "start": "POST /api/student/quizzes/{quiz_id}/start",
    "submit": "POST /api/student/quizzes/{quiz_id}/submit",
    "scores": "GET /api/student/scores",
    "create_quiz": "POST /api/teacher/quizzes",
    "activate_quiz": "PUT /api/teacher/quizzes/{quiz_id}/activate",
    "quiz_attempts": "GET /api/teacher/quizzes/{quiz_id}/attempts",
    "quiz_analysis": "GET /api/teacher/analysis/quiz/{quiz_id}/questions",
    "question_analysis": "GET /api/teacher/analysis/questions/{question_id}",
}

setup_logging()
logger = get_logger("http")

# No alembic run for local SQLite files
if DATABASE_URL.startswith("sqlite"):
    log_with_context(logger, "INFO", "SQLite database, creating tables",
                     extra_data={"database_url": DATABASE_URL})
    create_tables()

app = FastAPI(
    title="Department Quiz Platform",
    description=(
        "Teachers author experiment quizzes, students attempt each quiz once, "
        "submissions are graded on arrival and teachers get per-question accuracy."
    ),
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


def _request_summary(request: Request) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "client": request.client.host if request.client else None,
        "user_id": request.headers.get("x-user-id"),
    }


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request with an X-Request-ID and log its latency."""
    req_id = generate_request_id()
    request_id_var.set(req_id)
    summary = _request_summary(request)
    log_with_context(logger, "DEBUG", "{method} {path}".format(**summary),
                     extra_data=summary)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    response.headers["X-Request-ID"] = req_id
    level = "WARNING" if response.status_code >= 500 else "INFO"
    log_with_context(logger, level,
                     f"{request.method} {request.url.path} -> {response.status_code}",
                     extra_data={"status_code": response.status_code,
                                 "duration_ms": elapsed_ms})
    return response


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    log_with_context(logger, "WARNING",
        f"{type(exc).__name__}: {exc.message}",
        extra_data={"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(student.router, tags=["Student"])
app.include_router(teacher.router, tags=["Teacher"])


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "service": "deptquiz-backend", "version": VERSION}


@app.get("/", tags=["Root"])
def root():
    return {
        "service": "Department Quiz Platform",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": ENDPOINTS,
    }
