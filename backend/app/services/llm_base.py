"""
Eclairum Backend — Abstract Quiz Generator Interface
======================================================

What:  Abstract base class for AI services that turn text into a quiz.
How:   Concrete implementations inherit from LLMService and implement
       generate_quiz() and health_check().
Who:   Called by QuizGenerationTaskService.process_task in the background.
When:  After the task row is committed as IN_PROGRESS.

Implementations:
    - GeminiQuizGenerator: Google Gemini (default)
    - Tests use AsyncMock stand-ins with the same interface
"""

from abc import ABC, abstractmethod

from app.schemas.quiz import GeneratedQuiz


class LLMService(ABC):
    """
    Contract:
        - generate_quiz() returns a validated GeneratedQuiz, never None
        - Implementations handle their own retry logic and error translation
        - Provider-specific errors are wrapped in LLMServiceError
    """

    @abstractmethod
    async def generate_quiz(self, text: str) -> GeneratedQuiz:
        """
        Generate a titled multiple-choice quiz from `text`.

        Raises:
            LLMServiceError: provider failed after all retries, or replied
                with something that is not a quiz
            CircuitBreakerOpenError: too many recent consecutive failures
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight connectivity check; must not consume generation quota."""
        ...
