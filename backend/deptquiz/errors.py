"""
Domain errors raised by the attempt lifecycle and analytics services.

Each error carries the HTTP status the API layer answers with. Data
corruption in stored options/answers is not represented here: it is
recovered where it is found and only logged.
"""


class QuizError(Exception):
    """Base class for errors surfaced to the caller."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizError):
    """Malformed request: missing answers payload, bad quiz id, quiz without questions."""
    status_code = 400


class AccessDenied(QuizError):
    """Caller may not act on this quiz (not enrolled, inactive, outside its window)."""
    status_code = 403


class AlreadySubmitted(QuizError):
    """The attempt for this (quiz, student) pair is already in its terminal state."""
    status_code = 403


class NotFound(QuizError):
    status_code = 404


def parse_id(raw, label: str = "quiz") -> int:
    """
    Parse a quiz or question id from a path parameter.

    Accepts plain integers and the lenient "12:suffix" form some clients
    send; anything else is a ValidationError.
    """
    try:
        return int(str(raw).split(":")[0].strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label} ID")
