"""
API Layer - FastAPI routes and middleware.

Routers live in ``dionysus.api.routes``; exception types and handlers in
``dionysus.api.middleware``.
"""
