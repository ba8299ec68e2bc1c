from typing import Any, Dict, Optional


class ExamError(Exception):
    """Base class for exam engine failures that are not tied to one request."""

    status_code = 500
    code = "EXAM_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class QuestionBankConfigurationError(ExamError):
    """The bundled default pool could not be loaded; no exam can start."""

    code = "QUESTION_BANK_UNAVAILABLE"


class InsufficientQuestionPoolError(ExamError):
    code = "INSUFFICIENT_QUESTION_POOL"

    def __init__(self, question_type: str, requested: int, available: int):
        super().__init__(
            f"Question pool for type '{question_type}' holds {available} questions, "
            f"{requested} requested",
            details={"question_type": question_type, "requested": requested, "available": available},
        )
        self.question_type = question_type
        self.requested = requested
        self.available = available


class UnknownExamProfileError(ExamError):
    status_code = 400
    code = "UNKNOWN_EXAM_PROFILE"

    def __init__(self, name: str):
        super().__init__(f"Unknown exam profile '{name}'", details={"profile": name})
        self.name = name
