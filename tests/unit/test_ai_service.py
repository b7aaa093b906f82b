"""Tests for dionysus.services.ai_service - diff resolution, prompts and Gemini calls."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import SAMPLE_DIFF
from dionysus.api.middleware.error_handler import AIConfigurationError, AIServiceError
from dionysus.services.ai_service import (
    QUESTION_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    AIService,
    AIServiceConfig,
    CommitContext,
    format_commit_context,
    looks_like_diff,
    normalize_repo_url,
    to_diff_url,
)


def fake_client(text="- Added greeting"):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=text))
    return client


# ── looks_like_diff ──────────────────────────────────────────────────────────


class TestLooksLikeDiff:
    def test_git_diff(self):
        assert looks_like_diff(SAMPLE_DIFF) is True

    def test_hunk_only(self):
        assert looks_like_diff("some header\n@@ -1 +1 @@\n-a\n+b") is True

    def test_plain_text(self):
        assert looks_like_diff("just a sentence") is False


# ── URL helpers ──────────────────────────────────────────────────────────────


class TestNormalizeRepoUrl:
    def test_ssh(self):
        assert normalize_repo_url("git@github.com:octo/demo.git") == "https://github.com/octo/demo"

    def test_shorthand(self):
        assert normalize_repo_url("octo/demo") == "https://github.com/octo/demo"

    def test_unsupported(self):
        with pytest.raises(ValueError):
            normalize_repo_url("ftp://example.com/octo/demo")


class TestToDiffUrl:
    def test_commit_url(self):
        url = to_diff_url("https://github.com/octo/demo/commit/abc1234")
        assert url == "https://github.com/octo/demo/commit/abc1234.diff"

    def test_diff_url_kept(self):
        url = "https://github.com/octo/demo/commit/abc1234.diff"
        assert to_diff_url(url) == url

    def test_hash_with_repo(self):
        url = to_diff_url("abc1234", "octo/demo")
        assert url == "https://github.com/octo/demo/commit/abc1234.diff"

    def test_hash_without_repo(self):
        with pytest.raises(ValueError, match="requires a repository URL"):
            to_diff_url("abc1234")

    def test_non_github_host(self):
        with pytest.raises(ValueError, match="Only github.com"):
            to_diff_url("https://gitlab.com/octo/demo/commit/abc1234")

    def test_garbage(self):
        with pytest.raises(ValueError):
            to_diff_url("hello world")


# ── format_commit_context ────────────────────────────────────────────────────


class TestFormatCommitContext:
    def test_numbered_blocks(self):
        commits = [
            CommitContext("aaa", "First", datetime(2026, 10, 1, tzinfo=timezone.utc), "- one"),
            CommitContext("bbb", "Second", "2026-10-02T00:00:00Z", "- two"),
        ]
        text = format_commit_context(commits, limit=20)
        assert text.startswith("Commit 1\nHash: aaa\nDate: 2026-10-01T00:00:00+00:00")
        assert "\n\nCommit 2\nHash: bbb" in text
        assert "Summary: - two" in text

    def test_naive_datetime_rendered_as_utc(self):
        commits = [CommitContext("aaa", "First", datetime(2026, 10, 1, 8, 0), "- one")]
        text = format_commit_context(commits, limit=20)
        assert "Date: 2026-10-01T08:00:00+00:00" in text

    def test_respects_limit(self):
        commits = [CommitContext(f"h{i}", "m", "d", "s") for i in range(5)]
        text = format_commit_context(commits, limit=2)
        assert "Commit 2" in text
        assert "Commit 3" not in text


# ── diff download ────────────────────────────────────────────────────────────


class TestResolveDiff:
    @pytest.fixture
    def service(self):
        return AIService(AIServiceConfig(api_key="k"), client=fake_client())

    @pytest.mark.asyncio
    async def test_hash_resolved_against_ssh_remote(self, service, mock_http):
        seen = mock_http(lambda request: httpx.Response(200, text=SAMPLE_DIFF))

        diff = await service.resolve_diff("abc1234", "git@github.com:octo/demo.git")

        assert diff == SAMPLE_DIFF
        assert str(seen[0].url) == "https://github.com/octo/demo/commit/abc1234.diff"
        assert seen[0].headers["User-Agent"] == "dionysus"

    @pytest.mark.asyncio
    async def test_http_error(self, service, mock_http):
        mock_http(lambda request: httpx.Response(404))
        with pytest.raises(AIServiceError, match="404"):
            await service.resolve_diff("https://github.com/octo/demo/commit/abc1234")

    @pytest.mark.asyncio
    async def test_html_body_rejected(self, service, mock_http):
        mock_http(lambda request: httpx.Response(200, text="<html><body>Sign in</body></html>"))
        with pytest.raises(AIServiceError, match="not a git diff"):
            await service.resolve_diff("https://github.com/octo/demo/commit/abc1234")

    @pytest.mark.asyncio
    async def test_raw_diff_not_downloaded(self, service, mock_http):
        seen = mock_http(lambda request: httpx.Response(500))
        assert await service.resolve_diff(SAMPLE_DIFF) == SAMPLE_DIFF
        assert seen == []


# ── AIService ────────────────────────────────────────────────────────────────


class TestAIService:
    def test_missing_key(self):
        service = AIService(AIServiceConfig(api_key=None))
        with pytest.raises(AIConfigurationError):
            service.client

    @pytest.mark.asyncio
    async def test_summarise_raw_diff(self):
        client = fake_client("  - Greets with hello  ")
        service = AIService(AIServiceConfig(api_key="k", model="gemini-test"), client=client)

        summary = await service.summarise_commit(SAMPLE_DIFF)

        assert summary == "- Greets with hello"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert SAMPLE_DIFF in kwargs["contents"]
        assert kwargs["config"].system_instruction == SUMMARY_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_empty_summary(self):
        service = AIService(AIServiceConfig(api_key="k"), client=fake_client("   "))
        with pytest.raises(AIServiceError, match="empty summary"):
            await service.summarise_commit(SAMPLE_DIFF)

    @pytest.mark.asyncio
    async def test_model_error_wrapped(self):
        client = fake_client()
        client.aio.models.generate_content.side_effect = RuntimeError("quota exceeded")
        service = AIService(AIServiceConfig(api_key="k"), client=client)
        with pytest.raises(AIServiceError, match="quota exceeded"):
            await service.summarise_commit(SAMPLE_DIFF)

    @pytest.mark.asyncio
    async def test_unresolvable_input(self):
        service = AIService(AIServiceConfig(api_key="k"), client=fake_client())
        with pytest.raises(AIServiceError):
            await service.summarise_commit("not a diff or a url")

    @pytest.mark.asyncio
    async def test_question_without_commits(self):
        client = fake_client("Nothing synced yet.")
        service = AIService(AIServiceConfig(api_key="k"), client=client)

        answer = await service.ask_repo_question("Demo", "What changed?", commits=[])

        assert answer == "Nothing synced yet."
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert "Repository URL: not provided" in kwargs["contents"]
        assert "No commits available yet." in kwargs["contents"]
        assert kwargs["contents"].endswith("Question: What changed?")
        assert kwargs["config"].system_instruction == QUESTION_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        service = AIService(AIServiceConfig(api_key="k"), client=fake_client(None))
        with pytest.raises(AIServiceError, match="empty answer"):
            await service.ask_repo_question("Demo", "What changed?", commits=[])
