# Services package init
"""
Think Board Backend - Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the database (persistence).
How:   Services take an AsyncSession plus plain values, apply the rules and
       return response schemas. They raise ThinkBoardError subclasses and
       never build HTTP responses themselves.

Service Inventory:
    - AuthService: registration (bcrypt) and login (JWT issuance)
    - NoteService: owner-scoped note CRUD

Services hold no per-request state; each module exposes one shared instance
(`auth_service`, `note_service`) that the routes import.
"""
