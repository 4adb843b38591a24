from deptquiz.models.user import User, UserRole
from deptquiz.models.subject import SchoolClass, Subject, TeacherSubject, StudentSubject
from deptquiz.models.quiz import Experiment, Quiz, Question, QuestionType
from deptquiz.models.attempt import QuizAttempt

__all__ = [
    "User", "UserRole", "SchoolClass", "Subject", "TeacherSubject", "StudentSubject",
    "Experiment", "Quiz", "Question", "QuestionType", "QuizAttempt",
]
