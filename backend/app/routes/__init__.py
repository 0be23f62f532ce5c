# Routes package init
"""
Eclairum Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - users.py:                  POST /api/users, GET /api/users/{id}
    - quiz_generation_tasks.py:  /api/users/{user_id}/quiz-generation-tasks[/{task_id}]
                                 GET /api/users/{user_id}/quiz-generation-tasks/ongoing
    - questions.py:              POST .../quiz-generation-tasks/{task_id}/questions
                                 PATCH /api/users/{user_id}/questions/{question_id}
                                 GET  /api/users/{user_id}/questions?limit=&task_id=
    - answers.py:                PUT  /api/users/{user_id}/answers/{answer_id}
    - user_answers.py:           POST /api/users/{user_id}/user-answers
    - health.py:                 GET  /health

Design Principle:
    Routes are THIN: they receive the request's UnitOfWork through
    Depends(get_unit_of_work), call one service method, and shape the
    HTTP response. Transactions are opened by services, never here.
"""
