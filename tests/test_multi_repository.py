import pytest
from unittest.mock import Mock, AsyncMock
from datetime import datetime, timezone

from analyzers.multi_repository import MultiRepositoryMonitor
from miners.errors import NotFoundError
from miners.models import OpenPullRequest


def open_pr(number, repo="test/repo1"):
    return OpenPullRequest(
        number=number,
        title=f"PR {number}",
        created_at=datetime.now(timezone.utc),
        state="OPEN",
        url=f"https://github.com/{repo}/pull/{number}",
    )


@pytest.fixture
def mock_miner():
    """Mock repository miner."""
    miner = Mock()
    miner.fetch_open_pull_requests = AsyncMock()
    miner.fetch_open_pull_requests.return_value = [open_pr(1), open_pr(2)]
    return miner


@pytest.mark.asyncio
async def test_monitor_repositories_success(mock_miner):
    """Test monitoring of multiple repositories."""
    monitor = MultiRepositoryMonitor(
        miner=mock_miner, repositories=["test/repo1", "test/repo2"]
    )

    results = await monitor.monitor_repositories()

    assert list(results) == ["test/repo1", "test/repo2"]
    assert all(len(prs) == 2 for prs in results.values())
    assert mock_miner.fetch_open_pull_requests.call_count == 2
    mock_miner.fetch_open_pull_requests.assert_any_call("test", "repo2")


@pytest.mark.asyncio
async def test_monitor_repositories_error_handling(mock_miner):
    """Test that a failing repository is skipped and the rest continue."""
    mock_miner.fetch_open_pull_requests.side_effect = [
        NotFoundError("data.repository not found or access denied"),
        [open_pr(5, "test/repo2")],
    ]
    monitor = MultiRepositoryMonitor(
        miner=mock_miner, repositories=["test/repo1", "test/repo2"]
    )

    results = await monitor.monitor_repositories()

    # Verify only one repository was successfully monitored
    assert len(results) == 1
    assert [pr.number for pr in results["test/repo2"]] == [5]
    assert mock_miner.fetch_open_pull_requests.call_count == 2


@pytest.mark.asyncio
async def test_monitor_repositories_propagates_unexpected_errors(mock_miner):
    mock_miner.fetch_open_pull_requests.side_effect = KeyError("pageInfo")
    monitor = MultiRepositoryMonitor(miner=mock_miner, repositories=["test/repo1"])

    with pytest.raises(KeyError):
        await monitor.monitor_repositories()


def test_monitor_rejects_malformed_repository(mock_miner):
    with pytest.raises(ValueError):
        MultiRepositoryMonitor(miner=mock_miner, repositories=["https://github.com/test"])
