"""
GitHub Repository Mining Module.

Fetches repository-level data: the maintainer team, pull requests with the
events needed for response-time analysis, and currently open pull requests.
Team membership comes from the REST API through PyGithub; pull requests come
from GraphQL.
"""

import asyncio
from typing import Any, Dict, FrozenSet, List

from github import Github, GithubException, UnknownObjectException

from config import logger
from miners.base import GraphQLSource
from miners.enrichment import to_timeline_event
from miners.errors import NotFoundError, TransportError
from miners.models import (
    DateWindow,
    HealthPullRequest,
    OpenPullRequest,
    TimelineEvent,
    TimelineEventType,
)
from miners.pagination import PaginatedCollector, connection_at, login_of
from miners.queries import HEALTH_PULL_REQUESTS_QUERY, OPEN_PULL_REQUESTS_QUERY

PULL_REQUESTS_PATH = ("data", "repository", "pullRequests")


class RepositoryMiner:
    """
    RepositoryMiner is responsible for mining pull request data of one repository.
    It transforms GraphQL nodes into Pydantic models.
    """

    def __init__(self, source: GraphQLSource, github: Github):
        """Initialize the repository miner.

        Args:
            source (GraphQLSource): Source executing GraphQL queries.
            github (Github): Authenticated PyGithub client for REST calls.
        """
        self.collector = PaginatedCollector(source)
        self.github = github

    def _list_team_members(self, org: str, team_slug: str) -> List[str]:
        team = self.github.get_organization(org).get_team_by_slug(team_slug)
        return [member.login for member in team.get_members()]

    async def fetch_maintainers(self, org: str, team_slug: str) -> FrozenSet[str]:
        """
        Fetch the logins of a team's members.

        Args:
            org (str): Organization login
            team_slug (str): Team slug within the organization

        Returns:
            FrozenSet[str]: Maintainer logins

        Raises:
            NotFoundError: If the organization or team is not visible
            TransportError: If the REST request fails
        """
        try:
            members = await asyncio.to_thread(self._list_team_members, org, team_slug)
        except UnknownObjectException as e:
            raise NotFoundError(f"Team {org}/{team_slug} not found or access denied") from e
        except GithubException as e:
            raise TransportError(
                f"Failed to fetch maintainers of {org}/{team_slug}: {e.data}",
                status=e.status,
            ) from e

        logger.info(
            {
                "message": "Fetched maintainers",
                "team": f"{org}/{team_slug}",
                "maintainers": len(members),
            }
        )
        return frozenset(members)

    def _to_event(self, node: Dict[str, Any], kind: TimelineEventType) -> TimelineEvent:
        return TimelineEvent(kind=kind, actor=login_of(node), created_at=node["createdAt"])

    def _to_health_pull_request(self, node: Dict[str, Any]) -> HealthPullRequest:
        return HealthPullRequest(
            number=node["number"],
            title=node["title"],
            created_at=node["createdAt"],
            author=login_of(node),
            is_draft=node["isDraft"],
            comments=[
                self._to_event(c, TimelineEventType.COMMENT)
                for c in node["comments"]["nodes"]
            ],
            reviews=[
                self._to_event(r, TimelineEventType.REVIEW)
                for r in node["reviews"]["nodes"]
            ],
            timeline_items=[
                to_timeline_event(t) for t in node["timelineItems"]["nodes"]
            ],
        )

    async def fetch_pull_requests(
        self, owner: str, name: str, window: DateWindow
    ) -> List[HealthPullRequest]:
        """
        Fetch non-draft pull requests created within the window.

        Pull requests arrive newest first, so paging stops once a page ends
        with a pull request created before the window.

        Args:
            owner (str): Repository owner
            name (str): Repository name
            window (DateWindow): Creation-time window

        Returns:
            List[HealthPullRequest]: Pull requests, newest first
        """
        repo_name = f"{owner}/{name}"
        logger.info({"message": "Starting pull request mining", "repository": repo_name})

        def reached_window_start(nodes: List[Dict[str, Any]]) -> bool:
            if not nodes:
                return False
            return self._to_health_pull_request(nodes[-1]).created_at < window.start

        try:
            nodes = await self.collector.collect_all(
                HEALTH_PULL_REQUESTS_QUERY,
                {"owner": owner, "name": name},
                connection_at(*PULL_REQUESTS_PATH),
                stop_when=reached_window_start,
            )
        except Exception as e:
            logger.error(
                {
                    "message": "Pull request mining failed",
                    "repository": repo_name,
                    "error": str(e),
                }
            )
            raise

        pull_requests = [self._to_health_pull_request(node) for node in nodes]
        return [
            pr
            for pr in pull_requests
            if not pr.is_draft and window.start <= pr.created_at <= window.end
        ]

    async def fetch_open_pull_requests(self, owner: str, name: str) -> List[OpenPullRequest]:
        """
        Fetch all open, non-draft pull requests of a repository.

        Args:
            owner (str): Repository owner
            name (str): Repository name

        Returns:
            List[OpenPullRequest]: Open pull requests, newest first
        """
        nodes = await self.collector.collect_all(
            OPEN_PULL_REQUESTS_QUERY,
            {"owner": owner, "name": name},
            connection_at(*PULL_REQUESTS_PATH),
        )
        return [
            OpenPullRequest(
                number=node["number"],
                title=node["title"],
                created_at=node["createdAt"],
                state=node["state"],
                url=node["url"],
            )
            for node in nodes
            if not node["isDraft"]
        ]
