"""
Eclairum Backend — User Answer Route Handlers
===============================================

What:  Record which answer a user picked while practising.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.database import get_unit_of_work
from app.schemas.common import ErrorResponse
from app.schemas.quiz import SubmitAnswerRequest, UserAnswerResponse
from app.services.user_answer_service import user_answer_service
from app.unit_of_work import UnitOfWork

router = APIRouter(prefix="/api/users/{user_id}", tags=["Practice"])


@router.post(
    "/user-answers",
    response_model=UserAnswerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Answer does not belong to the question", "model": ErrorResponse},
        404: {"description": "User or question not found", "model": ErrorResponse},
    },
    summary="Answer a question",
)
async def submit_answer(
    user_id: UUID,
    body: SubmitAnswerRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> UserAnswerResponse:
    return await user_answer_service.submit_answer(
        uow, user_id, question_id=body.question_id, answer_id=body.answer_id
    )
