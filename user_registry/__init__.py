"""
User Registry — Application Package Initializer
================================================

What: Marks the `user_registry` directory as a Python package.
Why:  Enables module imports like `from user_registry.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is split into thin layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         UserService (Use Cases)     │  ← Uniqueness + existence rules
    ├─────────────────────────────────────┤
    │         UserStore (Record Store)    │  ← Abstract persistence interface
    ├─────────────────────────────────────┤
    │  Models & Schemas / Async Database  │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    The service only talks to the UserStore interface, so it can be tested
    with a mocked store or a throwaway SQLite database.
"""

__version__ = "1.0.0"
