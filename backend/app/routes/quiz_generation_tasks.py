"""
Eclairum Backend — Quiz Generation Task Route Handlers
========================================================

What:  Create, list, fetch and delete a user's quiz generation tasks.
How:   Extracts path/query/body data, delegates to QuizGenerationTaskService,
       returns JSON. Creation schedules generation with BackgroundTasks, so
       the client gets 201 + IN_PROGRESS immediately and polls the task.
Who:   Called by the frontend dashboard and quiz pages.

Routes:
    POST   /api/users/{user_id}/quiz-generation-tasks
    GET    /api/users/{user_id}/quiz-generation-tasks?page=&limit=
    GET    /api/users/{user_id}/quiz-generation-tasks/ongoing
    GET    /api/users/{user_id}/quiz-generation-tasks/{task_id}
    DELETE /api/users/{user_id}/quiz-generation-tasks/{task_id}
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from app.config import settings
from app.database import get_unit_of_work
from app.schemas.common import ErrorResponse
from app.schemas.quiz import (
    CreateQuizGenerationTaskRequest,
    DeleteTaskResponse,
    PaginatedTasksResponse,
    TaskDetailResponse,
    TaskResponse,
)
from app.services.quiz_generation_task_service import quiz_generation_task_service
from app.unit_of_work import UnitOfWork

router = APIRouter(prefix="/api/users/{user_id}", tags=["Quiz Generation Tasks"])


@router.post(
    "/quiz-generation-tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Text is empty", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Start generating a quiz from text",
)
async def create_quiz_generation_task(
    user_id: UUID,
    body: CreateQuizGenerationTaskRequest,
    background_tasks: BackgroundTasks,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> TaskResponse:
    """
    Persist the task as IN_PROGRESS and generate the quiz after the response
    is sent. The task row is committed before the background job starts.
    """
    task = await quiz_generation_task_service.create_task(uow, user_id, body.text)
    background_tasks.add_task(quiz_generation_task_service.process_task, task.id)
    return task


@router.get(
    "/quiz-generation-tasks",
    response_model=PaginatedTasksResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="List a user's quiz generation tasks",
)
async def list_quiz_generation_tasks(
    user_id: UUID,
    response: Response,
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Items per page",
    ),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> PaginatedTasksResponse:
    result = await quiz_generation_task_service.list_tasks(uow, user_id, page=page, limit=limit)

    # "Showing 1-10 of 57" style UIs read the total from the header
    response.headers["X-Total-Count"] = str(result.meta.total_items)
    return result


@router.get(
    "/quiz-generation-tasks/ongoing",
    response_model=List[TaskResponse],
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="List tasks still being generated",
)
async def list_ongoing_quiz_generation_tasks(
    user_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> List[TaskResponse]:
    # Registered before /{task_id} so "ongoing" is not parsed as a task id
    return await quiz_generation_task_service.list_ongoing_tasks(uow, user_id)


@router.get(
    "/quiz-generation-tasks/{task_id}",
    response_model=TaskDetailResponse,
    responses={
        404: {"description": "Task not found", "model": ErrorResponse},
    },
    summary="Get a task with its questions and answers",
)
async def get_quiz_generation_task(
    user_id: UUID,
    task_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> TaskDetailResponse:
    return await quiz_generation_task_service.get_task(uow, user_id, task_id)


@router.delete(
    "/quiz-generation-tasks/{task_id}",
    response_model=DeleteTaskResponse,
    responses={
        404: {"description": "Task not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a task with its questions and answers",
)
async def delete_quiz_generation_task(
    user_id: UUID,
    task_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> DeleteTaskResponse:
    await quiz_generation_task_service.delete_task(uow, user_id, task_id)
    return DeleteTaskResponse(success=True)
