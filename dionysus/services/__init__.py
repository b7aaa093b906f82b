"""
Services Layer for Dionysus
===========================

Services hold the business logic and the external integrations:

- GitHubService: Commit listing and diffs via the GitHub REST API
- AIService: Commit summaries and Repo AI answers via Gemini
- CommitService: Sync pipeline (poll, summarise, store)
- IdentityService / NotificationService: Identity provider and auth e-mails
- BillingService: Simulated checkout; usage and invoices live beside it

DEPENDENCY FLOW:
----------------
    GitHubService ──┐
                    ├──► CommitService ──► projects API
    AIService ──────┘
         │
         └──► Repo AI (project_service.ask_repo_ai)
"""

from dionysus.services.github_service import GitHubService
from dionysus.services.ai_service import AIService
from dionysus.services.commit_service import CommitService
from dionysus.services.identity_service import IdentityService
from dionysus.services.notification_service import NotificationService
from dionysus.services.billing_service import BillingService

__all__ = [
    "GitHubService",
    "AIService",
    "CommitService",
    "IdentityService",
    "NotificationService",
    "BillingService",
]
