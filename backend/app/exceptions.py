"""
Eclairum Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, repositories and middleware; caught by global handlers.

Exception Hierarchy:
    EclairumError (base)
    ├── ValidationError               → 400 Bad Request
    │   ├── RequiredTextContentError
    │   ├── InvalidQuestionError
    │   └── InvalidAnswerError
    ├── NotFoundError                 → 404 Not Found
    │   ├── UserNotFoundError
    │   ├── TaskNotFoundError
    │   ├── QuestionNotFoundError
    │   └── AnswerNotFoundError
    ├── UnauthorizedTaskAccessError   → 404 Not Found (never leak ownership)
    ├── UserAlreadyExistsError        → 409 Conflict
    ├── LLMServiceError               → 503 Service Unavailable
    ├── CircuitBreakerOpenError       → 503 Service Unavailable
    ├── NoQuestionsGeneratedError     (background generation only)
    ├── QuizStorageError              (background generation only)
    ├── DatabaseError                 → 500 Internal Server Error
    └── RateLimitExceededError        → 429 Too Many Requests

Note:
    The UnitOfWork never raises or wraps any of these. Errors from the
    database driver pass through it untouched; translating them is a
    service-layer decision.
"""

from typing import Any, Dict, Optional


class EclairumError(Exception):
    """
    Base exception for all Eclairum application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler chooses)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(EclairumError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems are still FastAPI's 422.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class RequiredTextContentError(ValidationError):
    """The text to generate a quiz from is missing or blank."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Text content is required to generate a quiz",
            field="text",
            context=context,
        )


class InvalidQuestionError(ValidationError):
    """A user-authored question breaks one of the question rules."""


class InvalidAnswerError(ValidationError):
    """An edited or submitted answer is blank or does not fit its question."""


class NotFoundError(EclairumError):
    """
    Raised when a requested resource does not exist (or is soft-deleted).

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Optional[str] = None):
        super().__init__(resource="user", resource_id=user_id)


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: Optional[str] = None):
        super().__init__(resource="quiz generation task", resource_id=task_id)


class QuestionNotFoundError(NotFoundError):
    def __init__(self, question_id: Optional[str] = None):
        super().__init__(resource="question", resource_id=question_id)


class AnswerNotFoundError(NotFoundError):
    def __init__(self, answer_id: Optional[str] = None):
        super().__init__(resource="answer", resource_id=answer_id)


class UnauthorizedTaskAccessError(EclairumError):
    """
    Raised when a user touches a task owned by somebody else.

    HTTP: 404 Not Found — the response is identical to a missing task so
    task IDs of other users cannot be probed.
    """

    def __init__(self, task_id: str, user_id: str):
        super().__init__(
            message=f"Quiz generation task with ID '{task_id}' was not found",
            context={"task_id": task_id, "user_id": user_id},
        )
        self.task_id = task_id


class UserAlreadyExistsError(EclairumError):
    """HTTP: 409 Conflict"""

    def __init__(self, email: str):
        super().__init__(
            message=f"A user with email '{email}' already exists",
            context={"email": email},
        )


class LLMServiceError(EclairumError):
    """
    Raised when the LLM (Gemini) fails after all retries.

    HTTP: 503 Service Unavailable, with a retry_after hint when known.
    """

    def __init__(
        self,
        message: str = "AI quiz generation service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(EclairumError):
    """
    Raised when the circuit breaker is in OPEN state.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for recovery_time seconds)
        → After recovery_time → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class NoQuestionsGeneratedError(EclairumError):
    """The LLM replied, but with no usable questions."""

    def __init__(self, text: str):
        preview = text[:50]
        super().__init__(
            message=f'No questions were generated from the provided text: "{preview}..."',
            context={"text_preview": preview},
        )


class QuizStorageError(EclairumError):
    """Persisting a generated quiz failed; the original error is chained."""

    def __init__(
        self,
        message: str = "Failed to save the generated quiz",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(EclairumError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500. The message returned to the client is always generic; the
    details in `context` are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(EclairumError):
    """HTTP: 429 Too Many Requests"""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
