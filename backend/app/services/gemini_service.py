"""
Eclairum Backend — Google Gemini Quiz Generator
=================================================

What:  Concrete LLM service that asks Google Gemini to write a multiple-choice
       quiz about a piece of text.
How:   Sends the text plus a JSON-only prompt to Gemini, validates the reply
       against GeneratedQuiz, with retry logic, a circuit breaker and timing logs.
Who:   Instantiated once at import; called by QuizGenerationTaskService.process_task.
When:  In the background, after a task has been committed as IN_PROGRESS.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
       (malformed JSON counts as transient: the model may answer correctly next time)
    2. Circuit breaker to stop hammering Gemini while it is down
    3. Response timeout passed to the SDK on every call
"""

import json
import logging
import time
import uuid
from typing import Optional

import google.generativeai as genai
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
    RetryError,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, LLMServiceError
from app.schemas.quiz import GeneratedQuiz
from app.services.llm_base import LLMService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Implements the circuit breaker pattern to prevent cascade failures.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Thread Safety:
        Plain counters; uvicorn async workers share a single process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Check if a request is allowed through the circuit breaker.

        Raises:
            CircuitBreakerOpenError if circuit is OPEN and recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        """Record a failed call. May trigger CLOSED → OPEN transition."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Quiz Generator
# ══════════════════════════════════════════════════════════════════════════

class GeminiQuizGenerator(LLMService):
    """
    Google Gemini implementation of quiz generation.

    Error Handling Chain:
        API call or JSON validation fails → tenacity retries (backoff + jitter)
        → All retries fail → record circuit breaker failure → LLMServiceError
        → Threshold reached → future calls rejected instantly
        → Recovery timeout → one test call (HALF_OPEN)
    """

    QUIZ_PROMPT = """You are an experienced teacher writing a multiple-choice quiz.
Read the text below and write exactly {question_count} questions about it.

Rules:
1. Every question has exactly {answer_count} answers
2. Exactly one answer per question is correct
3. Questions must be answerable from the text alone
4. Give the quiz a short, descriptive title

Reply with JSON only, in this shape:
{{"title": "...", "questions": [{{"question": "...", "answers": [{{"text": "...", "is_correct": true}}]}}]}}

Text:
{text}"""

    def __init__(self):
        if settings.gemini_api_key and settings.gemini_api_key != "your_gemini_api_key_here":
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(
            settings.gemini_model,
            generation_config={"response_mime_type": "application/json"},
        )

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiQuizGenerator initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    def build_prompt(self, text: str) -> str:
        return self.QUIZ_PROMPT.format(
            question_count=settings.quiz_question_count,
            answer_count=settings.quiz_answer_count,
            text=text,
        )

    async def generate_quiz(self, text: str) -> GeneratedQuiz:
        """
        Generate a quiz from `text`.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call Gemini with retry logic
            3. Record success/failure in circuit breaker
        """
        call_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Starting Gemini quiz generation for %d chars", call_id, len(text))

        try:
            quiz = await self._call_gemini_with_retry(text, call_id)
            self.circuit_breaker.record_success()
            return quiz

        except CircuitBreakerOpenError:
            raise
        except RetryError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] All Gemini retries exhausted: %s",
                call_id,
                str(e.last_attempt.exception()) if e.last_attempt else "Unknown error",
            )
            raise LLMServiceError(
                message="AI quiz generation failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"call_id": call_id, "attempts": settings.retry_max_attempts},
            )
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini quiz generation failed: %s", call_id, str(e), exc_info=True)
            raise LLMServiceError(
                message="An unexpected error occurred during quiz generation.",
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

    @retry(
        retry=retry_if_exception_type((
            ConnectionError,
            TimeoutError,
            PydanticValidationError,
            json.JSONDecodeError,
            Exception,  # Gemini SDK raises generic exceptions for API errors
        )),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(self, text: str, call_id: str) -> GeneratedQuiz:
        """
        Makes the actual Gemini call; the circuit breaker check stays outside
        the retry loop.
        """
        start_time = time.time()

        try:
            response = await self.model.generate_content_async(
                self.build_prompt(text),
                request_options={"timeout": settings.llm_timeout_seconds},
            )
            quiz = parse_quiz_reply(response.text or "")

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "[%s] Gemini quiz generated in %.0fms: %d questions",
                call_id,
                duration_ms,
                len(quiz.questions),
            )
            return quiz

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] Gemini call failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise

    async def health_check(self) -> bool:
        """True if the API answers an authenticated list_models call."""
        try:
            model_names = [m.name for m in genai.list_models()]
            target = f"models/{settings.gemini_model}"
            if target not in model_names:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


def parse_quiz_reply(raw: str) -> GeneratedQuiz:
    """
    Validate a model reply as a GeneratedQuiz.

    Tolerates a ```json fenced block around the payload, which some models
    add even in JSON mode.
    """
    payload = raw.strip()
    if payload.startswith("```"):
        payload = payload.strip("`")
        if payload.lower().startswith("json"):
            payload = payload[4:]
    return GeneratedQuiz.model_validate_json(payload.strip())


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker state, which must be shared across all tasks
quiz_generator = GeminiQuizGenerator()
