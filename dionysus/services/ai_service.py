"""
AI Service - Commit summaries and repository Q&A on Google Gemini.

RESPONSIBILITY:
Wraps the Google Gen AI client behind two calls:
- summarise_commit: bullet-point summary of one commit diff
- ask_repo_question: answer a free-text question from recent commit summaries

The summariser accepts raw diff text, a commit URL, a ``.diff`` URL or a bare
commit hash (resolved against a repository URL); anything that is not already
a diff is downloaded first.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence, Union
from urllib.parse import urlparse

import httpx
from google import genai
from google.genai import types

from dionysus.api.middleware.error_handler import AIConfigurationError, AIServiceError

logger = logging.getLogger(__name__)

COMMIT_HASH_PATTERN = re.compile(r"^[0-9a-f]{7,40}$", re.IGNORECASE)
COMMIT_PATH_PATTERN = re.compile(r"/commit/[0-9a-f]{7,40}$", re.IGNORECASE)
OWNER_REPO_PATTERN = re.compile(r"^[^/]+/[^/]+$")

SUMMARY_SYSTEM_PROMPT = """You are an expert programmer summarizing a git diff.
Return concise bullet points focused on behavior changes and important refactors.
Mention notable risks, migrations, test changes, and API changes when present."""

QUESTION_SYSTEM_PROMPT = """You are a senior engineering assistant for a GitHub repository.
Answer based on repository context and commit summaries.
If context is insufficient, explicitly say what is missing."""


@dataclass
class CommitContext:
    """A stored commit as handed to the Q&A prompt."""
    commit_hash: str
    commit_message: str
    commit_date: Union[datetime, str]
    summary: str


@dataclass
class AIServiceConfig:
    """Configuration for the AI service."""
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    context_commits: int = 20
    http_timeout_seconds: float = 30.0


def looks_like_diff(text: str) -> bool:
    """Check whether text is already unified diff output."""
    value = text.lstrip()
    return (
        value.startswith("diff --git ")
        or "\n@@ " in value
        or "\n+++ " in value
        or "\n--- " in value
    )


def normalize_repo_url(repo_url: str) -> str:
    """Normalize the accepted repository URL forms to ``https://github.com/o/r``."""
    value = repo_url.strip().rstrip("/")
    if value.endswith(".git"):
        value = value[: -len(".git")]

    if value.startswith("git@github.com:"):
        return f"https://github.com/{value[len('git@github.com:'):]}"
    if value.startswith("github.com/"):
        return f"https://{value}"
    if OWNER_REPO_PATTERN.match(value):
        return f"https://github.com/{value}"
    if value.startswith(("https://github.com/", "http://github.com/")):
        return value

    raise ValueError(f"Unsupported repo URL format: {repo_url}")


def to_diff_url(value: str, repo_url: Optional[str] = None) -> str:
    """
    Turn a commit reference into the URL of its ``.diff`` view.

    Raises:
        ValueError: If the reference cannot be resolved.
    """
    value = value.strip()

    if value.startswith(("http://", "https://")):
        parsed = urlparse(value)
        if not re.search(r"(^|\.)github\.com$", parsed.hostname or "", re.IGNORECASE):
            raise ValueError("Only github.com commit URLs are supported")

        origin = f"{parsed.scheme}://{parsed.netloc}"
        if parsed.path.endswith(".diff"):
            return f"{origin}{parsed.path}"
        if COMMIT_PATH_PATTERN.search(parsed.path):
            return f"{origin}{parsed.path}.diff"
        raise ValueError(f"Unsupported GitHub URL format: {value}")

    if COMMIT_HASH_PATTERN.match(value):
        if not repo_url:
            raise ValueError("Commit hash input requires a repository URL")
        return f"{normalize_repo_url(repo_url)}/commit/{value}.diff"

    raise ValueError("Input must be raw diff text, a commit URL, a .diff URL, or a commit hash")


def format_commit_context(commits: Sequence[CommitContext], limit: int) -> str:
    """Render commits as the numbered context block of the Q&A prompt."""
    blocks = []
    for index, commit in enumerate(commits[:limit], start=1):
        commit_date = commit.commit_date
        if isinstance(commit_date, datetime):
            # SQLite hands back naive values; stored dates are UTC
            if commit_date.tzinfo is None:
                commit_date = commit_date.replace(tzinfo=timezone.utc)
            commit_date = commit_date.isoformat()
        blocks.append(
            "\n".join([
                f"Commit {index}",
                f"Hash: {commit.commit_hash}",
                f"Date: {commit_date}",
                f"Message: {commit.commit_message}",
                f"Summary: {commit.summary}",
            ])
        )
    return "\n\n".join(blocks)


class AIService:
    """
    Generative-model adapter.

    The Gemini client is created on first use so the API can start without
    a key; calls made without one fail with ``AIConfigurationError``.
    """

    def __init__(self, config: Optional[AIServiceConfig] = None, client: Optional[genai.Client] = None):
        self.config = config or AIServiceConfig()
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self.config.api_key:
                raise AIConfigurationError("Missing GEMINI_API_KEY")
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    async def _generate(self, prompt: str, system_prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=system_prompt),
            )
        except AIConfigurationError:
            raise
        except Exception as e:
            logger.exception(f"Gemini request failed: {e}")
            raise AIServiceError(f"Gemini request failed: {e}") from e

        return (response.text or "").strip()

    async def resolve_diff(self, value: str, repo_url: Optional[str] = None) -> str:
        """Return ``value`` if it is a diff, otherwise download the diff it names."""
        if looks_like_diff(value):
            return value

        try:
            diff_url = to_diff_url(value, repo_url)
        except ValueError as e:
            raise AIServiceError(str(e)) from e

        async with httpx.AsyncClient(
            timeout=self.config.http_timeout_seconds, follow_redirects=True
        ) as http:
            response = await http.get(
                diff_url,
                headers={"Accept": "text/plain", "User-Agent": "dionysus"},
            )

        if response.is_error:
            raise AIServiceError(
                f"Failed to fetch diff ({response.status_code} {response.reason_phrase}) from {diff_url}"
            )

        diff = response.text
        if not looks_like_diff(diff):
            raise AIServiceError("Fetched content is not a git diff")
        return diff

    async def summarise_commit(self, value: str, repo_url: Optional[str] = None) -> str:
        """
        Summarise a commit as bullet points.

        Args:
            value: Diff text, commit URL, ``.diff`` URL or commit hash.
            repo_url: Repository used to resolve a bare commit hash.

        Returns:
            The model's bullet-point summary.
        """
        diff = await self.resolve_diff(value, repo_url)
        summary = await self._generate(
            f"Please summarize this git diff:\n\n{diff}",
            SUMMARY_SYSTEM_PROMPT,
        )
        if not summary:
            raise AIServiceError("Gemini returned an empty summary")
        return summary

    async def ask_repo_question(
        self,
        project_name: str,
        question: str,
        commits: Sequence[CommitContext],
        github_url: Optional[str] = None,
    ) -> str:
        """Answer a question about a project from its recent commit summaries."""
        commits_context = format_commit_context(commits, self.config.context_commits)
        prompt = "\n".join([
            f"Project: {project_name}",
            f"Repository URL: {github_url or 'not provided'}",
            "",
            "Recent commit context:",
            commits_context or "No commits available yet.",
            "",
            f"Question: {question}",
        ])

        answer = await self._generate(prompt, QUESTION_SYSTEM_PROMPT)
        if not answer:
            raise AIServiceError("Gemini returned an empty answer")
        return answer
