"""
API Request Models - Pydantic models for request validation.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from dionysus.services.github_service import parse_github_url


class CreateProjectRequest(BaseModel):
    """
    Request to create a project for a GitHub repository.

    Example:
        {
            "repo_url": "https://github.com/docker/genai-stack",
            "project_name": "GenAI Stack"
        }
    """
    repo_url: str = Field(
        ...,
        description="GitHub repository URL (https, SSH or owner/repo)",
        examples=["https://github.com/owner/repo"]
    )
    project_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name of the project"
    )
    github_token: Optional[str] = Field(
        default=None,
        description="Token used instead of the server default when syncing this repository"
    )

    @field_validator("repo_url")
    @classmethod
    def validate_github_url(cls, v: str) -> str:
        """Validate and normalize the repository URL."""
        return parse_github_url(v).normalized_url

    @field_validator("project_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name must not be blank")
        return v


class AskQuestionRequest(BaseModel):
    """
    Question for the Repo AI.

    Example:
        {"question": "What changed in the authentication flow recently?"}
    """
    question: str = Field(
        ...,
        min_length=3,
        max_length=2000,
        description="Free-text question about the repository"
    )


class CheckoutRequest(BaseModel):
    """
    Request to buy a plan through the simulated checkout.

    Example:
        {
            "project_id": null,
            "plan_key": "pro",
            "payment_method_id": "upi_primary"
        }
    """
    project_id: Optional[str] = Field(
        default=None,
        description="Bill against this project; null for workspace-level billing"
    )
    plan_key: Literal["starter", "pro"]
    payment_method_id: str = Field(..., min_length=2)
    simulate_failure: bool = Field(
        default=False,
        description="Force the payment to fail"
    )
