"""
Eclairum Backend — Quiz Pydantic Schemas
==========================================

What:  API contract for quiz generation tasks, questions, answers and submitted
       answers, plus the shape the LLM must reply with.
How:   FastAPI validates request bodies and serializes responses with these;
       GeminiQuizGenerator validates the model's JSON with GeneratedQuiz.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import PaginationMeta


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateQuizGenerationTaskRequest(BaseModel):
    """Body of POST /api/users/{user_id}/quiz-generation-tasks."""
    text: str = Field(
        max_length=50_000,
        description="Source text to generate quiz questions from",
    )


class AnswerInput(BaseModel):
    content: str = Field(max_length=2_000, description="Answer text")
    is_correct: bool = Field(description="Whether this answer is correct")


class AddQuestionRequest(BaseModel):
    """
    Body of POST .../quiz-generation-tasks/{task_id}/questions.

    Business rules (at least two answers, one correct, none blank) are
    checked by QuestionService so they surface as 400, not 422.
    """
    content: str = Field(max_length=2_000, description="Question text")
    answers: List[AnswerInput] = Field(description="Possible answers")


class EditQuestionRequest(BaseModel):
    content: str = Field(max_length=2_000, description="New question text")


class EditAnswerRequest(BaseModel):
    content: str = Field(max_length=2_000, description="New answer text")
    is_correct: bool = Field(description="Whether this answer is correct")


class SubmitAnswerRequest(BaseModel):
    """Body of POST /api/users/{user_id}/user-answers."""
    question_id: uuid.UUID = Field(description="Question being answered")
    answer_id: uuid.UUID = Field(description="Answer the user picked")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AnswerResponse(BaseModel):
    id: uuid.UUID
    content: str
    is_correct: bool

    model_config = {"from_attributes": True}


class QuestionResponse(BaseModel):
    id: uuid.UUID
    content: str
    answers: List[AnswerResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """
    What:  Compact task representation for list views and creation responses.
    """
    id: uuid.UUID = Field(description="Task identifier")
    user_id: uuid.UUID = Field(description="Owner of the task")
    title: Optional[str] = Field(default=None, description="Quiz title (set once generated)")
    status: str = Field(description="PENDING, IN_PROGRESS, COMPLETED, FAILED")
    created_at: datetime
    updated_at: datetime
    generated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskDetailResponse(TaskResponse):
    """
    What:  Full task with its source text and every live question and answer.
    Who:   Returned by GET /api/users/{user_id}/quiz-generation-tasks/{task_id}.
    """
    text_content: str = Field(description="Source text")
    error_message: Optional[str] = Field(default=None, description="Why generation failed")
    questions: List[QuestionResponse] = Field(default_factory=list)


class PaginatedTasksResponse(BaseModel):
    data: List[TaskResponse] = Field(description="Tasks on this page, newest first")
    meta: PaginationMeta


class DeleteTaskResponse(BaseModel):
    success: bool = True


class UserAnswerResponse(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    answer_id: uuid.UUID
    is_correct: bool = Field(description="Whether the picked answer was the right one")
    created_at: datetime


# ══════════════════════════════════════════════════════════════════════════
# LLM Reply Models: what Gemini must return
# ══════════════════════════════════════════════════════════════════════════


class GeneratedAnswer(BaseModel):
    text: str = Field(min_length=1)
    is_correct: bool


class GeneratedQuestion(BaseModel):
    question: str = Field(min_length=1)
    answers: List[GeneratedAnswer]

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, v: List[GeneratedAnswer]) -> List[GeneratedAnswer]:
        if len(v) < 2:
            raise ValueError("A generated question needs at least two answers")
        if not any(answer.is_correct for answer in v):
            raise ValueError("A generated question needs a correct answer")
        return v


class GeneratedQuiz(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    questions: List[GeneratedQuestion]
