"""
Eclairum Backend — Question Route Handlers
============================================

What:  Add a question to a task, edit an existing question, and pick
       questions for a practice round (least-answered first).
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.config import settings
from app.database import get_unit_of_work
from app.schemas.common import ErrorResponse
from app.schemas.quiz import AddQuestionRequest, EditQuestionRequest, QuestionResponse
from app.services.question_service import question_service
from app.unit_of_work import UnitOfWork

router = APIRouter(prefix="/api/users/{user_id}", tags=["Questions"])


@router.post(
    "/quiz-generation-tasks/{task_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Question breaks a rule", "model": ErrorResponse},
        404: {"description": "Task not found", "model": ErrorResponse},
    },
    summary="Add a question to a quiz",
)
async def add_question(
    user_id: UUID,
    task_id: UUID,
    body: AddQuestionRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> QuestionResponse:
    return await question_service.add_question(
        uow, user_id, task_id, content=body.content, answers=body.answers
    )


@router.patch(
    "/questions/{question_id}",
    response_model=QuestionResponse,
    responses={
        400: {"description": "Empty content", "model": ErrorResponse},
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Edit a question's text",
)
async def edit_question(
    user_id: UUID,
    question_id: UUID,
    body: EditQuestionRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> QuestionResponse:
    return await question_service.edit_question(uow, user_id, question_id, body.content)


@router.get(
    "/questions",
    response_model=List[QuestionResponse],
    responses={
        404: {"description": "User or task not found", "model": ErrorResponse},
    },
    summary="Pick questions to practise",
)
async def get_questions_for_user(
    user_id: UUID,
    limit: int = Query(
        default=3, ge=0, le=settings.max_page_size, description="How many questions to return"
    ),
    task_id: Optional[UUID] = Query(default=None, description="Only draw from this task"),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> List[QuestionResponse]:
    return await question_service.select_questions_for_user(
        uow, user_id, limit=limit, task_id=task_id
    )
