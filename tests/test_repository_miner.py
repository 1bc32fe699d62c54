"""
Repository Miner Test Suite.

Covers maintainer lookup through PyGithub, the newest-first pull request
listing with early exit, and the open pull request listing.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from github import GithubException, UnknownObjectException

from miners.errors import NotFoundError, TransportError
from miners.models import DateWindow, TimelineEventType
from miners.queries import HEALTH_PULL_REQUESTS_QUERY, OPEN_PULL_REQUESTS_QUERY
from miners.repository_miner import RepositoryMiner

PATH = ("repository", "pullRequests")
START = datetime(2024, 4, 1, tzinfo=timezone.utc)
END = datetime(2024, 5, 1, tzinfo=timezone.utc)


def health_node(number, created_at, is_draft=False):
    return {
        "number": number,
        "title": f"PR {number}",
        "createdAt": created_at,
        "author": {"login": "carol"},
        "isDraft": is_draft,
        "comments": {"nodes": [{"author": {"login": "alice"}, "createdAt": created_at}]},
        "reviews": {
            "nodes": [{"author": None, "createdAt": created_at, "state": "COMMENTED"}]
        },
        "timelineItems": {
            "nodes": [
                {"__typename": "MergedEvent", "actor": {"login": "alice"}, "createdAt": created_at}
            ]
        },
    }


def member(login):
    m = Mock()
    m.login = login
    return m


@pytest.fixture
def mock_github():
    github = Mock()
    team = github.get_organization.return_value.get_team_by_slug.return_value
    team.get_members.return_value = [member("alice"), member("bob")]
    return github


@pytest.fixture
def window():
    return DateWindow(start=START, end=END)


@pytest.mark.asyncio
async def test_fetch_maintainers(mock_github, scripted_source):
    miner = RepositoryMiner(scripted_source(lambda q, v: {}), mock_github)

    maintainers = await miner.fetch_maintainers("acme", "maintainers")

    assert maintainers == frozenset({"alice", "bob"})
    mock_github.get_organization.assert_called_once_with("acme")
    mock_github.get_organization.return_value.get_team_by_slug.assert_called_once_with(
        "maintainers"
    )


@pytest.mark.asyncio
async def test_fetch_maintainers_unknown_team(mock_github, scripted_source):
    """Test that a missing team is reported as NotFoundError."""
    mock_github.get_organization.return_value.get_team_by_slug.side_effect = (
        UnknownObjectException(404, {"message": "Not Found"}, None)
    )
    miner = RepositoryMiner(scripted_source(lambda q, v: {}), mock_github)

    with pytest.raises(NotFoundError):
        await miner.fetch_maintainers("acme", "nobody")


@pytest.mark.asyncio
async def test_fetch_maintainers_api_failure(mock_github, scripted_source):
    mock_github.get_organization.side_effect = GithubException(
        500, {"message": "Server Error"}, None
    )
    miner = RepositoryMiner(scripted_source(lambda q, v: {}), mock_github)

    with pytest.raises(TransportError) as exc_info:
        await miner.fetch_maintainers("acme", "maintainers")

    assert exc_info.value.status == 500


@pytest.mark.asyncio
async def test_fetch_pull_requests_stops_after_window_start(
    mock_github, window, scripted_source, page
):
    """Test early exit and the creation-time window filter."""
    pages = {
        None: page(
            PATH,
            [
                health_node(10, "2024-05-03T00:00:00Z"),  # after window end
                health_node(9, "2024-04-20T00:00:00Z"),
                health_node(8, "2024-04-15T00:00:00Z", is_draft=True),
            ],
            has_next=True,
            cursor="c1",
        ),
        "c1": page(
            PATH,
            [health_node(7, "2024-04-02T00:00:00Z"), health_node(6, "2024-03-25T00:00:00Z")],
            has_next=True,
            cursor="c2",
        ),
    }

    def handler(query, variables):
        assert query is HEALTH_PULL_REQUESTS_QUERY
        return pages[variables["cursor"]]

    source = scripted_source(handler)
    miner = RepositoryMiner(source, mock_github)

    prs = await miner.fetch_pull_requests("acme", "widgets", window)

    assert len(source.calls) == 2
    assert [pr.number for pr in prs] == [9, 7]
    assert all(START <= pr.created_at <= END for pr in prs)

    pr = prs[0]
    assert pr.author == "carol"
    assert [e.kind for e in pr.comments] == [TimelineEventType.COMMENT]
    assert [e.kind for e in pr.reviews] == [TimelineEventType.REVIEW]
    assert pr.reviews[0].actor is None
    assert [e.kind for e in pr.timeline_items] == [TimelineEventType.MERGED]


@pytest.mark.asyncio
async def test_fetch_pull_requests_missing_repository(mock_github, window, scripted_source):
    source = scripted_source(lambda q, v: {"data": {"repository": None}})
    miner = RepositoryMiner(source, mock_github)

    with pytest.raises(NotFoundError):
        await miner.fetch_pull_requests("acme", "secret", window)


@pytest.mark.asyncio
async def test_fetch_open_pull_requests_skips_drafts(mock_github, scripted_source, page):
    """Test that all pages are read and drafts dropped."""
    pages = {
        None: page(
            PATH,
            [
                {
                    "number": 3,
                    "title": "Draft",
                    "createdAt": "2024-05-03T00:00:00Z",
                    "state": "OPEN",
                    "isDraft": True,
                    "url": "https://github.com/acme/widgets/pull/3",
                }
            ],
            has_next=True,
            cursor="c1",
        ),
        "c1": page(
            PATH,
            [
                {
                    "number": 1,
                    "title": "Ready",
                    "createdAt": "2020-01-01T00:00:00Z",
                    "state": "OPEN",
                    "isDraft": False,
                    "url": "https://github.com/acme/widgets/pull/1",
                }
            ],
        ),
    }

    def handler(query, variables):
        assert query is OPEN_PULL_REQUESTS_QUERY
        assert (variables["owner"], variables["name"]) == ("acme", "widgets")
        return pages[variables["cursor"]]

    miner = RepositoryMiner(scripted_source(handler), mock_github)

    prs = await miner.fetch_open_pull_requests("acme", "widgets")

    assert [pr.number for pr in prs] == [1]
    assert prs[0].url == "https://github.com/acme/widgets/pull/1"
