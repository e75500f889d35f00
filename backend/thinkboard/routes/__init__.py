# Routes package init
"""
Think Board Backend - API Routes Package
=========================================

Route Inventory:
    - auth.py:    POST   /api/auth/register     (public)
                  POST   /api/auth/login        (public)
    - notes.py:   GET    /api/notes             (bearer token)
                  GET    /api/notes/{id}
                  POST   /api/notes
                  PUT    /api/notes/{id}
                  DELETE /api/notes/{id}
    - health.py:  GET    /health                (public, not rate limited)

Routes stay thin: extract input, call a service, return its result.
"""
