# Services package init
"""
Eclairum Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and repositories (persistence).
How:   Services receive the request's UnitOfWork, apply business rules, decide
       which steps must be atomic (`uow.transaction()`), and return pydantic
       response models.

Service Inventory:
    - LLMService (abstract): Interface for AI quiz generators
    - GeminiQuizGenerator: Concrete implementation using Google Gemini
    - UserService: Registration and lookup
    - QuizGenerationTaskService: Create → generate (background) → read → delete
    - QuestionService: User-authored questions, edits and practice selection
    - AnswerService: Answer edits
    - UserAnswerService: Recording practice answers
"""
