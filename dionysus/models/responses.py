"""
API Response Models - Pydantic models for API responses.
"""

from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from dionysus.models.schemas import (
    ChecklistItem,
    CommitBrief,
    Invoice,
    InvoiceWithPayment,
    Meeting,
    PaymentMethod,
    Plan,
    Project,
    ProjectCounts,
    UsageMeter,
    UserInfo,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=_now)


class ProjectDetailsResponse(Project):
    """
    Project overview.

    Example:
        {
            "id": "2f6c...",
            "name": "GenAI Stack",
            "github_url": "https://github.com/docker/genai-stack",
            "users": [{"id": "user_1", "name": "Ada Lovelace"}],
            "commits": [...],
            "meetings": [],
            "counts": {"commits": 15, "meetings": 0, "questions": 2, "users": 1}
        }
    """
    users: List[UserInfo] = Field(default_factory=list)
    commits: List[CommitBrief] = Field(default_factory=list)
    meetings: List[Meeting] = Field(default_factory=list)
    counts: ProjectCounts


class SyncResponse(BaseModel):
    """Result of a commit sync."""
    inserted: int


class AskResponse(BaseModel):
    answer: str
    question_id: Optional[str] = None


class InsightsResponse(BaseModel):
    """Dashboard health score and onboarding checklist."""
    project_id: str
    health_score: int = Field(..., ge=0, le=100)
    latest_commit_date: Optional[datetime] = None
    counts: ProjectCounts
    checklist: List[ChecklistItem]


class BillingOverviewResponse(BaseModel):
    has_successful_payment: bool
    total_spend_in_paise: int
    invoices: List[InvoiceWithPayment] = Field(default_factory=list)


class CheckoutResponse(BaseModel):
    """
    Result of the simulated checkout.

    Example:
        {"status": "SUCCESS", "payment_id": "9b1d...", "invoice": {...}}
        {"status": "FAILED", "payment_id": "9b1d...", "message": "Payment failed. ..."}
    """
    status: Literal["SUCCESS", "FAILED"]
    payment_id: str
    invoice: Optional[Invoice] = None
    message: Optional[str] = None


class PlansResponse(BaseModel):
    currency: str
    plans: List[Plan]
    payment_methods: List[PaymentMethod]


class UsageResponse(BaseModel):
    project_id: Optional[str] = None
    is_trial: bool
    meters: List[UsageMeter]


class SyncUserResponse(BaseModel):
    """Result of mirroring the signed-in user."""
    user: UserInfo
    event_type: Literal["login", "signup"]
    notified: bool = False


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """
    Standard error response.

    Example:
        {
            "success": false,
            "error": "Project not found or access denied",
            "error_code": "PROJECT_NOT_FOUND"
        }
    """
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_now)
