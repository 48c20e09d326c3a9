"""
Notekeeper Backend — Application Package
=========================================

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │   Middleware (Admission Gate, IDs)  │  ← runs before routing
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, CRUD rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes handle status codes and bodies but delegate logic to services.
    Services contain business rules and can be tested without HTTP.
"""

__version__ = "1.0.0"
