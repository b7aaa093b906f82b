"""
Dionysus
========

Links GitHub repositories to projects, keeps AI summaries of their commits
and answers questions about a repository from those summaries.

Components:
- services: GitHub and AI adapters, commit sync, billing, users
- db: SQLAlchemy models and session handling
- api: FastAPI endpoints
- models: Pydantic request/response models
- core: Configuration and dependencies
"""

__version__ = "1.0.0"
