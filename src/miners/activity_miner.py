"""
GitHub User Activity Mining Module.

Collects a user's pull requests, reviews, issues and per-repository commit
counts for a date window.

The contribution queries are issued one calendar month earlier than the
window start and filtered on ``updated_at`` afterwards, so that old items
with recent activity (an old PR commented on yesterday) are not missed.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Tuple

import pandas as pd

from config import logger
from miners.base import GraphQLSource
from miners.models import (
    ActivityBundle,
    CommitBucket,
    DateWindow,
    IssueContribution,
    PullRequestContribution,
    ReviewContribution,
)
from miners.pagination import PaginatedCollector, connection_at, dig, login_of
from miners.queries import (
    USER_COMMIT_BUCKETS_QUERY,
    USER_ISSUES_QUERY,
    USER_PULL_REQUESTS_QUERY,
    USER_REVIEWS_QUERY,
)

CONTRIBUTIONS_PATH = ("data", "user", "contributionsCollection")

# contributionsCollection rejects a from/to range longer than one year
MAX_SPAN = timedelta(days=365)


def lookback_start(start: datetime, months: int = 1) -> datetime:
    """
    Move ``start`` back by calendar months, clamping to the end of month.

    Args:
        start (datetime): Window start
        months (int): Number of months to go back

    Returns:
        datetime: Widened start
    """
    return (pd.Timestamp(start) - pd.DateOffset(months=months)).to_pydatetime()


def year_spans(start: datetime, end: datetime) -> List[Tuple[datetime, datetime]]:
    """
    Split ``[start, end]`` into contiguous spans no longer than MAX_SPAN.

    Args:
        start (datetime): Range start
        end (datetime): Range end

    Returns:
        List[Tuple[datetime, datetime]]: Spans in chronological order
    """
    spans = []
    cursor = start
    while True:
        stop = min(cursor + MAX_SPAN, end)
        spans.append((cursor, stop))
        if stop >= end:
            return spans
        cursor = stop


class ActivityMiner:
    """
    ActivityMiner collects the contributions of one GitHub user.
    Pages are fetched to exhaustion for each contribution type; any failure
    aborts the whole collection.
    """

    def __init__(self, source: GraphQLSource, lookback_months: int = 1):
        """Initialize the activity miner.

        Args:
            source (GraphQLSource): Source executing GraphQL queries.
            lookback_months (int): How far before the window start to query.
        """
        self.collector = PaginatedCollector(source)
        self.lookback_months = lookback_months

    def _to_pull_request(self, node: Dict[str, Any]) -> PullRequestContribution:
        return PullRequestContribution(
            repository=node["repository"]["nameWithOwner"],
            number=node["number"],
            title=node["title"],
            body=node.get("body"),
            state=node["state"],
            is_draft=node["isDraft"],
            created_at=node["createdAt"],
            updated_at=node["updatedAt"],
            merged_at=node.get("mergedAt"),
            closed_at=node.get("closedAt"),
            additions=node["additions"],
            deletions=node["deletions"],
            comments_count=node["comments"]["totalCount"],
            reviews_count=node["reviews"]["totalCount"],
        )

    def _to_review(self, node: Dict[str, Any]) -> ReviewContribution:
        return ReviewContribution(
            repository=node["repository"]["nameWithOwner"],
            pr_number=node["pullRequest"]["number"],
            pr_title=node["pullRequest"]["title"],
            pr_author=login_of(node["pullRequest"]),
            state=node["state"],
            created_at=node["createdAt"],
            updated_at=node["updatedAt"],
            comments_count=node["comments"]["totalCount"],
        )

    def _to_issue(self, node: Dict[str, Any]) -> IssueContribution:
        return IssueContribution(
            repository=node["repository"]["nameWithOwner"],
            number=node["number"],
            title=node["title"],
            body=node.get("body"),
            state=node["state"],
            created_at=node["createdAt"],
            updated_at=node["updatedAt"],
            closed_at=node.get("closedAt"),
            comments_count=node["comments"]["totalCount"],
        )

    async def _collect(
        self,
        query: str,
        connection: str,
        wrapper: str,
        login: str,
        spans: List[Tuple[datetime, datetime]],
    ) -> List[Dict[str, Any]]:
        nodes = []
        for since, until in spans:
            nodes += await self.collector.collect_all(
                query,
                {"login": login, "since": since.isoformat(), "until": until.isoformat()},
                connection_at(*CONTRIBUTIONS_PATH, connection),
            )
        # Contribution nodes wrap the item, and the item is null when it is no
        # longer visible to the token.
        return [node[wrapper] for node in nodes if node.get(wrapper)]

    async def fetch_commit_buckets(
        self, login: str, window: DateWindow
    ) -> List[CommitBucket]:
        """
        Fetch per-repository commit counts, first page only.

        Windows longer than a year are queried span by span and the counts
        of a repository are summed, in first-seen order.

        Args:
            login (str): GitHub login
            window (DateWindow): Requested window, not widened

        Returns:
            List[CommitBucket]: One bucket per repository, at most 100 per span
        """
        totals: Dict[str, int] = {}
        for since, until in year_spans(window.start, window.end):
            buckets = await self.collector.fetch_one(
                USER_COMMIT_BUCKETS_QUERY,
                {"login": login, "since": since.isoformat(), "until": until.isoformat()},
                lambda body: dig(
                    body, *CONTRIBUTIONS_PATH, "commitContributionsByRepository"
                ),
            )
            for bucket in buckets:
                repository = bucket["repository"]["nameWithOwner"]
                totals[repository] = (
                    totals.get(repository, 0) + bucket["contributions"]["totalCount"]
                )
        return [
            CommitBucket(repository=repository, total_count=total)
            for repository, total in totals.items()
        ]

    async def mine_activity(self, login: str, window: DateWindow) -> ActivityBundle:
        """
        Collect and filter all contributions of a user.

        Args:
            login (str): GitHub login
            window (DateWindow): Requested window

        Returns:
            ActivityBundle: Contributions updated within the window, and commit buckets

        Raises:
            GitHubMinerError: If any query fails; no partial result is returned.
        """
        since = lookback_start(window.start, self.lookback_months)
        spans = year_spans(since, window.end)
        logger.info(
            {
                "message": "Starting activity mining",
                "login": login,
                "window_start": window.start.isoformat(),
                "window_end": window.end.isoformat(),
                "lookback_start": since.isoformat(),
                "spans": len(spans),
            }
        )

        try:
            pr_nodes = await self._collect(
                USER_PULL_REQUESTS_QUERY,
                "pullRequestContributions",
                "pullRequest",
                login,
                spans,
            )
            review_nodes = await self._collect(
                USER_REVIEWS_QUERY,
                "pullRequestReviewContributions",
                "pullRequestReview",
                login,
                spans,
            )
            issue_nodes = await self._collect(
                USER_ISSUES_QUERY, "issueContributions", "issue", login, spans
            )
            commit_buckets = await self.fetch_commit_buckets(login, window)
        except Exception as e:
            logger.error(
                {
                    "message": "Activity mining failed",
                    "login": login,
                    "error": str(e),
                }
            )
            raise

        pull_requests = [self._to_pull_request(node) for node in pr_nodes]
        reviews = [self._to_review(node) for node in review_nodes]
        issues = [self._to_issue(node) for node in issue_nodes]

        bundle = ActivityBundle(
            login=login,
            window=window,
            pull_requests=[pr for pr in pull_requests if pr.updated_at >= window.start],
            reviews=[r for r in reviews if r.updated_at >= window.start],
            issues=[i for i in issues if i.updated_at >= window.start],
            commit_buckets=commit_buckets,
        )

        logger.info(
            {
                "message": "Activity mining completed",
                "login": login,
                "pull_requests": f"{len(bundle.pull_requests)}/{len(pull_requests)}",
                "reviews": f"{len(bundle.reviews)}/{len(reviews)}",
                "issues": f"{len(bundle.issues)}/{len(issues)}",
                "commit_repositories": len(commit_buckets),
            }
        )
        return bundle
