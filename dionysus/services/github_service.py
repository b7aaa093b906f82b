"""
GitHub Service - Lists commits and fetches commit diffs.

Handles:
- Parsing the GitHub URL forms users paste into a project
- Listing the most recent commits of a repository
- Fetching a single commit as unified diff text
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from githubkit import GitHub
from githubkit.exception import GitHubException, RequestFailed
from githubkit.retry import RetryChainDecision, RetryRateLimit, RetryServerError

from dionysus.api.middleware.error_handler import (
    GitHubRequestError,
    InvalidRepositoryURLError,
    RepositoryNotFoundError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR = 404
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


@dataclass
class RepoRef:
    """Parsed repository reference."""
    owner: str
    repo: str
    normalized_url: str


@dataclass
class CommitInfo:
    """Commit metadata as listed by GitHub."""
    commit_hash: str
    commit_message: str
    commit_author_name: str
    commit_author_avatar: str
    commit_date: str


@dataclass
class CommitWithSummary(CommitInfo):
    summary: str = ""


@dataclass
class GitHubServiceConfig:
    """Configuration for the GitHub service."""
    token: Optional[str] = None
    max_commits: int = 15


_SSH_PREFIX = "git@github.com:"
_GITHUB_HOST = re.compile(r"(^|\.)github\.com$", re.IGNORECASE)


def _split_owner_repo(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def parse_github_url(url: str) -> RepoRef:
    """
    Parse a GitHub repository reference into owner and repo.

    Accepts https/http URLs (extra path segments ignored), ``git@github.com:``
    SSH remotes, ``github.com/owner/repo`` and bare ``owner/repo``.

    Raises:
        ValueError: If the input is not a github.com repository reference.
    """
    value = (url or "").strip().rstrip("/")
    if value.endswith(".git"):
        value = value[: -len(".git")]

    if not value:
        raise ValueError("Invalid github url")

    if value.startswith(_SSH_PREFIX):
        parts = _split_owner_repo(value[len(_SSH_PREFIX):])
        if len(parts) < 2:
            raise ValueError("Invalid github url")
        owner, repo = parts[0], parts[1]
        return RepoRef(owner=owner, repo=repo, normalized_url=f"https://github.com/{owner}/{repo}")

    if value.lower().startswith("github.com/"):
        return parse_github_url(f"https://{value}")

    if not value.startswith(("http://", "https://")):
        parts = _split_owner_repo(value)
        if len(parts) < 2:
            raise ValueError("Invalid github url")
        owner, repo = parts[0], parts[1]
        return RepoRef(owner=owner, repo=repo, normalized_url=f"https://github.com/{owner}/{repo}")

    parsed = urlparse(value)
    if not _GITHUB_HOST.search(parsed.hostname or ""):
        raise ValueError("Only github.com repositories are supported")

    parts = _split_owner_repo(parsed.path)
    if len(parts) < 2:
        raise ValueError("Invalid github url")
    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    return RepoRef(
        owner=owner,
        repo=repo,
        normalized_url=f"{parsed.scheme}://{parsed.netloc}/{owner}/{repo}",
    )


def _commit_from_payload(item: Dict[str, Any]) -> CommitInfo:
    commit = item.get("commit") or {}
    git_author = commit.get("author") or {}
    account = item.get("author") or {}
    return CommitInfo(
        commit_hash=item.get("sha", ""),
        commit_message=commit.get("message") or "",
        commit_author_name=git_author.get("name") or "",
        commit_author_avatar=account.get("avatar_url") or "",
        commit_date=git_author.get("date") or "",
    )


class GitHubService:
    """
    Thin adapter over the GitHub REST API.

    A client is built per token; projects that carry their own token get
    their own client, everything else shares the default one.
    """

    def __init__(self, config: Optional[GitHubServiceConfig] = None):
        self.config = config or GitHubServiceConfig()
        self._clients: Dict[Optional[str], GitHub] = {}

    def _client(self, token: Optional[str] = None) -> GitHub:
        key = token or self.config.token
        if key not in self._clients:
            retry_chain = RetryChainDecision(RetryServerError(), RetryRateLimit(max_retry=3))
            self._clients[key] = GitHub(key, auto_retry=retry_chain) if key else GitHub(auto_retry=retry_chain)
        return self._clients[key]

    def _parse(self, github_url: str) -> RepoRef:
        try:
            return parse_github_url(github_url)
        except ValueError as e:
            raise InvalidRepositoryURLError(str(e), repo_url=github_url) from e

    async def get_commit_hashes(
        self,
        github_url: str,
        limit: Optional[int] = None,
        token: Optional[str] = None,
    ) -> List[CommitInfo]:
        """
        List the most recent commits of a repository.

        Args:
            github_url: Any URL form accepted by ``parse_github_url``.
            limit: Maximum commits to return (defaults to ``max_commits``).
            token: Optional token overriding the configured one.

        Returns:
            Commits newest first, at most ``limit`` of them.
        """
        limit = limit or self.config.max_commits
        ref = self._parse(github_url)
        logger.debug(f"Listing {limit} commits for {ref.owner}/{ref.repo}")

        try:
            response = await self._client(token).rest.repos.async_list_commits(
                ref.owner, ref.repo, per_page=limit
            )
        except RequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                raise RepositoryNotFoundError(ref.normalized_url) from e
            raise GitHubRequestError(f"Failed to list commits: {e}", repo_url=ref.normalized_url) from e
        except GitHubException as e:
            raise GitHubRequestError(f"Failed to list commits: {e}", repo_url=ref.normalized_url) from e

        return [_commit_from_payload(item) for item in response.json()[:limit]]

    async def get_commit_diff(
        self,
        github_url: str,
        commit_hash: str,
        token: Optional[str] = None,
    ) -> str:
        """Fetch a single commit as unified diff text."""
        ref = self._parse(github_url)

        try:
            response = await self._client(token).arequest(
                "GET",
                f"/repos/{ref.owner}/{ref.repo}/commits/{commit_hash}",
                headers={"Accept": DIFF_MEDIA_TYPE},
            )
        except RequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                raise RepositoryNotFoundError(f"{ref.normalized_url}@{commit_hash}") from e
            raise GitHubRequestError(
                f"Unable to fetch git diff for commit {commit_hash}", repo_url=ref.normalized_url
            ) from e
        except GitHubException as e:
            raise GitHubRequestError(
                f"Unable to fetch git diff for commit {commit_hash}", repo_url=ref.normalized_url
            ) from e

        diff = response.text or ""
        if not diff.strip().startswith("diff --git"):
            raise GitHubRequestError(
                f"Unable to fetch git diff for commit {commit_hash}", repo_url=ref.normalized_url
            )
        return diff
