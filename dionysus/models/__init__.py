"""
Data Models for Dionysus
========================

Organized into three categories:
- schemas: Shapes of stored entities as returned by the API
- requests: API request validation models
- responses: API response models
"""

from dionysus.models.schemas import (
    UserInfo,
    Project,
    CommitBrief,
    Commit,
    Meeting,
    Question,
    ProjectCounts,
    ChecklistItem,
    PaymentSummary,
    Invoice,
    InvoiceWithPayment,
    Plan,
    PaymentMethod,
    UsageMeter,
)

from dionysus.models.requests import (
    CreateProjectRequest,
    AskQuestionRequest,
    CheckoutRequest,
)

from dionysus.models.responses import (
    HealthResponse,
    ProjectDetailsResponse,
    SyncResponse,
    AskResponse,
    InsightsResponse,
    BillingOverviewResponse,
    CheckoutResponse,
    PlansResponse,
    UsageResponse,
    SyncUserResponse,
    DeleteResponse,
    ErrorResponse,
)

__all__ = [
    # Schemas
    "UserInfo",
    "Project",
    "CommitBrief",
    "Commit",
    "Meeting",
    "Question",
    "ProjectCounts",
    "ChecklistItem",
    "PaymentSummary",
    "Invoice",
    "InvoiceWithPayment",
    "Plan",
    "PaymentMethod",
    "UsageMeter",
    # Requests
    "CreateProjectRequest",
    "AskQuestionRequest",
    "CheckoutRequest",
    # Responses
    "HealthResponse",
    "ProjectDetailsResponse",
    "SyncResponse",
    "AskResponse",
    "InsightsResponse",
    "BillingOverviewResponse",
    "CheckoutResponse",
    "PlansResponse",
    "UsageResponse",
    "SyncUserResponse",
    "DeleteResponse",
    "ErrorResponse",
]
