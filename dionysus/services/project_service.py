"""
Project Service - Project membership, queries, Repo AI and dashboard insights.

Every read and write is scoped to the projects the calling user belongs to;
a project the user is not a member of is indistinguishable from a missing one.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from dionysus.api.middleware.error_handler import ProjectNotFoundError
from dionysus.db.models import Commit, Meeting, Project, Question, User, project_users
from dionysus.services.ai_service import AIService, CommitContext
from dionysus.services.user_service import upsert_user

logger = logging.getLogger(__name__)

DETAIL_COMMITS = 5
DETAIL_MEETINGS = 5


@dataclass
class ProjectCounts:
    commits: int = 0
    meetings: int = 0
    questions: int = 0
    users: int = 0


@dataclass
class ProjectDetails:
    project: Project
    users: List[User] = field(default_factory=list)
    commits: List[Commit] = field(default_factory=list)
    meetings: List[Meeting] = field(default_factory=list)
    counts: ProjectCounts = field(default_factory=ProjectCounts)


def _member_filter(user_id: str):
    return Project.users.any(User.id == user_id)


def find_project_for_user(db: Session, project_id: Optional[str], user_id: str) -> Optional[Project]:
    """Return the project if ``user_id`` is a member, else None."""
    if not project_id:
        return None
    return db.scalars(
        select(Project).where(
            Project.id == project_id,
            Project.deleted_at.is_(None),
            _member_filter(user_id),
        )
    ).first()


def ensure_project_access(db: Session, project_id: str, user_id: str) -> Project:
    """Return the project or raise ``ProjectNotFoundError``."""
    project = find_project_for_user(db, project_id, user_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def create_project(
    db: Session,
    user_id: str,
    user_name: Optional[str],
    name: str,
    github_url: str,
    github_token: Optional[str] = None,
) -> Project:
    """Create a project owned by ``user_id``, mirroring the user row first."""
    user = upsert_user(db, user_id, user_name)
    project = Project(name=name, github_url=github_url, github_token=github_token)
    project.users.append(user)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"Created project {project.id} ({github_url}) for user {user_id}")
    return project


def list_projects(db: Session, user_id: str) -> List[Project]:
    return list(db.scalars(
        select(Project)
        .where(_member_filter(user_id), Project.deleted_at.is_(None))
        .order_by(Project.created_at.desc())
    ).all())


def count_project(db: Session, project_id: str) -> ProjectCounts:
    def _count(model) -> int:
        return db.scalar(select(func.count()).select_from(model).where(model.project_id == project_id)) or 0

    users = db.scalar(
        select(func.count()).select_from(project_users).where(project_users.c.project_id == project_id)
    ) or 0
    return ProjectCounts(
        commits=_count(Commit),
        meetings=_count(Meeting),
        questions=_count(Question),
        users=users,
    )


def get_project_details(db: Session, project_id: str, user_id: str) -> ProjectDetails:
    """Project with its members, latest commits and meetings, and usage counts."""
    project = ensure_project_access(db, project_id, user_id)

    commits = db.scalars(
        select(Commit)
        .where(Commit.project_id == project_id)
        .order_by(Commit.commit_date.desc())
        .limit(DETAIL_COMMITS)
    ).all()
    meetings = db.scalars(
        select(Meeting)
        .where(Meeting.project_id == project_id)
        .order_by(Meeting.created_at.desc())
        .limit(DETAIL_MEETINGS)
    ).all()

    return ProjectDetails(
        project=project,
        users=list(project.users),
        commits=list(commits),
        meetings=list(meetings),
        counts=count_project(db, project_id),
    )


def list_commits(db: Session, project_id: Optional[str], user_id: str, limit: int = 50) -> List[Commit]:
    """Latest commits of a project; empty when no project or no access."""
    if find_project_for_user(db, project_id, user_id) is None:
        return []
    return list(db.scalars(
        select(Commit)
        .where(Commit.project_id == project_id)
        .order_by(Commit.commit_date.desc())
        .limit(limit)
    ).all())


def delete_project(db: Session, project_id: str, user_id: str) -> Project:
    project = ensure_project_access(db, project_id, user_id)
    project.deleted_at = datetime.now(timezone.utc)
    db.commit()
    logger.info(f"Archived project {project_id}")
    return project


async def ask_repo_ai(
    db: Session,
    ai_service: AIService,
    project_id: str,
    user_id: str,
    question: str,
) -> Question:
    """Answer a question from the project's latest commit summaries and keep it."""
    project = ensure_project_access(db, project_id, user_id)

    commits = db.scalars(
        select(Commit)
        .where(Commit.project_id == project_id)
        .order_by(Commit.commit_date.desc())
        .limit(ai_service.config.context_commits)
    ).all()

    answer = await ai_service.ask_repo_question(
        project_name=project.name,
        github_url=project.github_url,
        question=question,
        commits=[
            CommitContext(
                commit_hash=c.commit_hash,
                commit_message=c.commit_message,
                commit_date=c.commit_date,
                summary=c.summary,
            )
            for c in commits
        ],
    )

    record = Question(project_id=project_id, user_id=user_id, question=question, answer=answer)
    db.add(record)
    db.commit()
    return record


def list_questions(db: Session, project_id: str, user_id: str, limit: int = 50) -> List[Question]:
    ensure_project_access(db, project_id, user_id)
    return list(db.scalars(
        select(Question)
        .where(Question.project_id == project_id)
        .order_by(Question.created_at.desc())
        .limit(limit)
    ).all())


# =============================================================================
# DASHBOARD INSIGHTS
# =============================================================================


def _scaled(value: int, target: int, weight: int) -> int:
    return min(weight, math.floor(value / target * weight + 0.5))


def freshness_score(latest_commit_date: Optional[datetime], now: Optional[datetime] = None) -> int:
    if latest_commit_date is None:
        return 0
    now = now or datetime.now(timezone.utc)
    if latest_commit_date.tzinfo is None:
        latest_commit_date = latest_commit_date.replace(tzinfo=timezone.utc)
    days_old = (now - latest_commit_date).days
    if days_old <= 3:
        return 5
    if days_old <= 10:
        return 3
    return 1


def health_score(
    counts: ProjectCounts,
    latest_commit_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> int:
    """0-100 score weighting commits, Q&A, collaborators, meetings and freshness."""
    score = (
        _scaled(counts.commits, 30, 40)
        + _scaled(counts.questions, 20, 30)
        + _scaled(counts.users, 5, 15)
        + _scaled(counts.meetings, 5, 10)
        + freshness_score(latest_commit_date, now)
    )
    return max(0, min(100, score))


def onboarding_checklist(project: Project, counts: ProjectCounts) -> List[Dict[str, object]]:
    return [
        {
            "id": "repo",
            "title": "Connect repository",
            "done": bool(project.github_url),
            "hint": "Link a GitHub URL during project setup.",
        },
        {
            "id": "sync",
            "title": "Sync commit summaries",
            "done": counts.commits > 0,
            "hint": "Use Sync & Summarize to pull latest commits.",
        },
        {
            "id": "qa",
            "title": "Ask first AI question",
            "done": counts.questions > 0,
            "hint": "Use the repo chat panel to create initial context.",
        },
        {
            "id": "team",
            "title": "Add at least one collaborator",
            "done": counts.users > 1,
            "hint": "Invite a teammate so project context is shared.",
        },
    ]


def project_insights(db: Session, project_id: str, user_id: str) -> Dict[str, object]:
    project = ensure_project_access(db, project_id, user_id)
    counts = count_project(db, project_id)
    latest_commit_date = db.scalar(
        select(func.max(Commit.commit_date)).where(Commit.project_id == project_id)
    )
    return {
        "project_id": project_id,
        "health_score": health_score(counts, latest_commit_date),
        "latest_commit_date": latest_commit_date,
        "counts": counts,
        "checklist": onboarding_checklist(project, counts),
    }
