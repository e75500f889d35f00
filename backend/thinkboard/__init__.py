"""
Think Board Backend - Application Package
==========================================

What:  REST API for personal notes with username/password authentication.
How:   Layered the same way in every module:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, request gate
    ├─────────────────────────────────────┤
    │     Services (Auth, Notes)          │  ← Validation, ownership rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Security primitives (password hashing, JWT) live in `thinkboard.security`
    and are pure functions over explicitly passed configuration.
"""

__version__ = "1.0.0"
