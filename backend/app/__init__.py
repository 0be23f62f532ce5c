"""
Eclairum Backend — Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered, and every layer below the routes reaches the
    database through the request's UnitOfWork:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Use Cases)           │  ← Business rules, transactions
    ├─────────────────────────────────────┤
    │      Repositories                   │  ← Ask the UoW for the current handle
    ├─────────────────────────────────────┤
    │  UnitOfWork + Database (Persistence)│  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
