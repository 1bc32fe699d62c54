"""
Application Entry Point Test Suite.

Covers cleanup of the REST client when a workflow fails.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from pydantic import SecretStr

import app
from miners.errors import QueryError


@pytest.fixture
def app_settings(tmp_path):
    return Mock(
        github_token=SecretStr("test-token"),
        github_api_url="https://api.github.com",
        github_login="octocat",
        health_repository=None,
        monitor_repositories=[],
        report_output_dir=str(tmp_path),
    )


@pytest.mark.asyncio
async def test_main_closes_rest_client_when_workflow_fails(app_settings):
    """Test that the REST client is closed even if a workflow raises."""
    github = Mock()
    failing = AsyncMock(side_effect=QueryError([{"message": "Something went wrong"}]))

    with patch("app.settings", app_settings), patch(
        "app.Github", return_value=github
    ), patch("app.run_activity", failing):
        with pytest.raises(QueryError):
            await app.main()

    failing.assert_awaited_once()
    github.close.assert_called_once()


@pytest.mark.asyncio
async def test_main_closes_rest_client_after_success(app_settings):
    github = Mock()
    app_settings.github_login = None

    with patch("app.settings", app_settings), patch("app.Github", return_value=github):
        await app.main()

    github.close.assert_called_once()
