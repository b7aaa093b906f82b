"""
Core Domain Schemas - Shared data models used across the application.

Most of these are read straight off ORM rows (``from_attributes``).
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserInfo(ORMModel):
    """Project member."""
    id: str
    name: str


class Project(ORMModel):
    """A tracked GitHub repository."""
    id: str
    name: str
    github_url: str
    created_at: datetime


class CommitBrief(ORMModel):
    """Commit as listed on the project overview."""
    id: str
    commit_message: str
    commit_date: datetime
    commit_hash: str


class Commit(CommitBrief):
    """Stored commit with its AI summary."""
    commit_author_name: str
    commit_author_avatar: str
    summary: str


class Meeting(ORMModel):
    id: str
    name: str
    url: str
    created_at: datetime


class Question(ORMModel):
    """A Repo AI exchange."""
    id: str
    question: str
    answer: str
    user_id: str
    created_at: datetime


class ProjectCounts(ORMModel):
    commits: int = 0
    meetings: int = 0
    questions: int = 0
    users: int = 0


class ChecklistItem(BaseModel):
    id: str
    title: str
    done: bool
    hint: str


class PaymentSummary(ORMModel):
    id: str
    plan_name: str
    status: str
    provider_ref: str


class Invoice(ORMModel):
    id: str
    invoice_number: str
    amount_in_paise: int
    currency: str
    issued_at: datetime


class InvoiceWithPayment(Invoice):
    status: str
    payment: PaymentSummary


class Plan(ORMModel):
    key: str
    name: str
    amount_in_paise: Optional[int] = None
    highlights: List[str] = Field(default_factory=list)
    purchasable: bool = True


class PaymentMethod(ORMModel):
    id: str
    brand: str
    label: str
    meta: str
    simulate_failure: bool = False


class UsageMeter(BaseModel):
    key: str
    label: str
    used: int
    limit: int
    percent: int
