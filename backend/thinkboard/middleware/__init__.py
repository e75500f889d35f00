# Middleware package init
"""
Think Board Backend - Middleware Package
=========================================

Middleware Chain (request direction):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → [GZip] → Route

    1. CORS outermost: answers preflights itself (they never use up the rate
       budget) and adds Access-Control-* headers to every response, 429s
       included, so a browser client can read them
    2. Request ID: correlation id for every later log line and error body
    3. Logging: sees the final status (429s too) and total duration
    4. Rate Limit: over-limit requests are rejected before routing

Authentication is not middleware: the request gate is a FastAPI dependency
(`thinkboard.dependencies.get_current_user`) attached to the notes router,
so public routes never pay for token parsing.
"""
