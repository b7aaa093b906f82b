"""
Commit Service - Pulls new commits, summarises them and stores the result.

FLOW:
1. List recent commits of the project's repository
2. Drop commits whose hash is already stored for the project
3. Fetch each new commit's diff and summarise it (concurrently)
4. Insert the summarised commits

A failed diff fetch or summary does not abort the sync: that commit is
stored with a "Summary unavailable" note instead.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from dionysus.db.models import Commit, Project
from dionysus.services.ai_service import AIService
from dionysus.services.github_service import CommitInfo, CommitWithSummary, GitHubService
from dionysus.services.project_service import ensure_project_access

logger = logging.getLogger(__name__)


def parse_commit_date(value: str) -> datetime:
    """Parse GitHub's ISO-8601 commit date, falling back to now."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def stored_commit_hashes(db: Session, project_id: str, hashes: Optional[Iterable[str]] = None) -> Set[str]:
    """Hashes already stored for a project, optionally restricted to ``hashes``."""
    query = select(Commit.commit_hash).where(Commit.project_id == project_id)
    if hashes is not None:
        query = query.where(Commit.commit_hash.in_(list(hashes)))
    return set(db.scalars(query).all())


def filter_unprocessed_commits(db: Session, project_id: str, commits: List[CommitInfo]) -> List[CommitInfo]:
    """Keep commits not yet stored, dropping repeated hashes."""
    processed = stored_commit_hashes(db, project_id)
    unprocessed: Dict[str, CommitInfo] = {}
    for commit in commits:
        if commit.commit_hash in processed or commit.commit_hash in unprocessed:
            continue
        unprocessed[commit.commit_hash] = commit
    return list(unprocessed.values())


class CommitService:
    """Coordinates GitHub and the AI model for commit syncing."""

    def __init__(self, github_service: GitHubService, ai_service: AIService):
        self.github = github_service
        self.ai = ai_service

    async def summarise_github_commit(self, github_url: str, commit_hash: str, token: Optional[str] = None) -> str:
        diff = await self.github.get_commit_diff(github_url, commit_hash, token=token)
        return await self.ai.summarise_commit(diff, repo_url=github_url)

    async def _with_summary(self, project: Project, commit: CommitInfo) -> CommitWithSummary:
        try:
            summary = await self.summarise_github_commit(
                project.github_url, commit.commit_hash, token=project.github_token
            )
        except Exception as e:
            reason = getattr(e, "message", None) or str(e) or "unknown error"
            logger.warning(f"Summary failed for {commit.commit_hash[:7]} in project {project.id}: {reason}")
            summary = f"Summary unavailable: {reason}"
        return CommitWithSummary(**vars(commit), summary=summary)

    async def poll_commits(self, db: Session, project_id: str) -> List[CommitWithSummary]:
        """
        Return the project's new commits with summaries, without storing them.

        Projects without a GitHub URL yield an empty list.
        """
        project = db.get(Project, project_id)
        if project is None or not project.github_url:
            return []

        commits = await self.github.get_commit_hashes(project.github_url, token=project.github_token)
        unprocessed = filter_unprocessed_commits(db, project_id, commits)
        logger.info(
            f"Project {project_id}: {len(commits)} commits listed, {len(unprocessed)} new"
        )

        return list(await asyncio.gather(
            *(self._with_summary(project, commit) for commit in unprocessed)
        ))

    async def sync_commits(self, db: Session, user_id: str, project_id: str) -> Dict[str, int]:
        """
        Sync and persist new commits of a project the user belongs to.

        Returns:
            ``{"inserted": n}`` with the number of commits stored.
        """
        ensure_project_access(db, project_id, user_id)

        commits_with_summary = await self.poll_commits(db, project_id)
        if not commits_with_summary:
            return {"inserted": 0}

        # Another sync may have stored some of these while we were summarising
        existing = stored_commit_hashes(
            db, project_id, (c.commit_hash for c in commits_with_summary)
        )
        to_insert = [c for c in commits_with_summary if c.commit_hash not in existing]

        if to_insert:
            db.add_all([
                Commit(
                    project_id=project_id,
                    commit_hash=c.commit_hash,
                    commit_message=c.commit_message,
                    commit_author_name=c.commit_author_name,
                    commit_author_avatar=c.commit_author_avatar,
                    commit_date=parse_commit_date(c.commit_date),
                    summary=c.summary,
                )
                for c in to_insert
            ])
            db.commit()

        logger.info(f"Project {project_id}: inserted {len(to_insert)} commits")
        return {"inserted": len(to_insert)}
