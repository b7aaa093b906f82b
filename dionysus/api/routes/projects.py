"""
Project Endpoints - Projects, commit sync and Repo AI.

Every endpoint acts on behalf of the signed-in user and only sees projects
that user is a member of.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dionysus.core.config import Settings, get_settings
from dionysus.core.dependencies import (
    get_ai_service,
    get_commit_service,
    get_current_user_id,
    get_identity_service,
)
from dionysus.db.database import get_db
from dionysus.models.requests import AskQuestionRequest, CreateProjectRequest
from dionysus.models.responses import (
    AskResponse,
    DeleteResponse,
    ErrorResponse,
    InsightsResponse,
    ProjectDetailsResponse,
    SyncResponse,
)
from dionysus.models.schemas import (
    ChecklistItem,
    Commit,
    CommitBrief,
    Meeting,
    Project,
    ProjectCounts,
    Question,
    UserInfo,
)
from dionysus.services import project_service
from dionysus.services.ai_service import AIService
from dionysus.services.commit_service import CommitService
from dionysus.services.identity_service import IdentityService
from dionysus.services.user_service import display_name

router = APIRouter(prefix="/projects", tags=["Projects"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Project not found or access denied"}}


@router.post(
    "",
    response_model=Project,
    status_code=201,
    summary="Create Project",
    description="Link a GitHub repository to a new project"
)
async def create_project(
    request: CreateProjectRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service)
) -> Project:
    """
    Create a project owned by the caller.

    The caller's local user row is refreshed from the identity provider
    first, so the project always has a named member.
    """
    profile = await identity.find_user(user_id)
    project = project_service.create_project(
        db,
        user_id=user_id,
        user_name=display_name(profile) if profile else None,
        name=request.project_name,
        github_url=request.repo_url,
        github_token=request.github_token,
    )
    return Project.model_validate(project)


@router.get(
    "",
    response_model=List[Project],
    summary="List Projects",
    description="Projects of the signed-in user, newest first"
)
def list_projects(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> List[Project]:
    return [Project.model_validate(p) for p in project_service.list_projects(db, user_id)]


@router.get(
    "/{project_id}",
    response_model=ProjectDetailsResponse,
    summary="Project Details",
    responses=NOT_FOUND
)
def get_project_details(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> ProjectDetailsResponse:
    """Members, latest commits and meetings, and usage counts of a project."""
    details = project_service.get_project_details(db, project_id, user_id)
    return ProjectDetailsResponse(
        **Project.model_validate(details.project).model_dump(),
        users=[UserInfo.model_validate(u) for u in details.users],
        commits=[CommitBrief.model_validate(c) for c in details.commits],
        meetings=[Meeting.model_validate(m) for m in details.meetings],
        counts=ProjectCounts(**vars(details.counts)),
    )


@router.delete(
    "/{project_id}",
    response_model=DeleteResponse,
    summary="Archive Project",
    responses=NOT_FOUND
)
def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> DeleteResponse:
    project_service.delete_project(db, project_id, user_id)
    return DeleteResponse(message=f"Project {project_id} archived")


@router.get(
    "/{project_id}/commits",
    response_model=List[Commit],
    summary="List Commits",
    description="Latest summarised commits; empty for unknown projects"
)
def list_commits(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> List[Commit]:
    commits = project_service.list_commits(db, project_id, user_id, limit=settings.commit_page_size)
    return [Commit.model_validate(c) for c in commits]


@router.post(
    "/{project_id}/sync",
    response_model=SyncResponse,
    summary="Sync Commits",
    description="Fetch new commits from GitHub, summarise and store them",
    responses=NOT_FOUND
)
async def sync_commits(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    commit_service: CommitService = Depends(get_commit_service)
) -> SyncResponse:
    result = await commit_service.sync_commits(db, user_id, project_id)
    return SyncResponse(**result)


@router.post(
    "/{project_id}/ask",
    response_model=AskResponse,
    summary="Ask Repo AI",
    description="Answer a question using the project's recent commit summaries",
    responses=NOT_FOUND
)
async def ask_repo_ai(
    project_id: str,
    request: AskQuestionRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    ai_service: AIService = Depends(get_ai_service)
) -> AskResponse:
    record = await project_service.ask_repo_ai(
        db, ai_service, project_id, user_id, request.question
    )
    return AskResponse(answer=record.answer, question_id=record.id)


@router.get(
    "/{project_id}/questions",
    response_model=List[Question],
    summary="Question History",
    responses=NOT_FOUND
)
def list_questions(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> List[Question]:
    return [Question.model_validate(q) for q in project_service.list_questions(db, project_id, user_id)]


@router.get(
    "/{project_id}/insights",
    response_model=InsightsResponse,
    summary="Project Insights",
    description="Health score and onboarding checklist",
    responses=NOT_FOUND
)
def get_insights(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> InsightsResponse:
    insights = project_service.project_insights(db, project_id, user_id)
    return InsightsResponse(
        project_id=insights["project_id"],
        health_score=insights["health_score"],
        latest_commit_date=insights["latest_commit_date"],
        counts=ProjectCounts(**vars(insights["counts"])),
        checklist=[ChecklistItem(**item) for item in insights["checklist"]],
    )
