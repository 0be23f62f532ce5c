"""
Eclairum Backend — Answer Route Handlers
==========================================

What:  Edit an answer on one of the user's quizzes.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.database import get_unit_of_work
from app.schemas.common import ErrorResponse
from app.schemas.quiz import AnswerResponse, EditAnswerRequest
from app.services.answer_service import answer_service
from app.unit_of_work import UnitOfWork

router = APIRouter(prefix="/api/users/{user_id}", tags=["Answers"])


@router.put(
    "/answers/{answer_id}",
    response_model=AnswerResponse,
    responses={
        400: {"description": "Empty content or no correct answer left", "model": ErrorResponse},
        404: {"description": "Answer not found", "model": ErrorResponse},
    },
    summary="Edit an answer",
)
async def edit_answer(
    user_id: UUID,
    answer_id: UUID,
    body: EditAnswerRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> AnswerResponse:
    return await answer_service.edit_answer(
        uow, user_id, answer_id, content=body.content, is_correct=body.is_correct
    )
