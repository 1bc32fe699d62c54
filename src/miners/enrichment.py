"""
Activity Enrichment Module.

Attaches per-item detail to a collected ActivityBundle:
- pull requests get comments, reviews, changed files and timeline events
- commit buckets get the user's commits and repository metadata

All items of a batch are enriched concurrently, bounded by a semaphore.
A GitHub failure for one item leaves that item un-enriched and is reported
back to the caller; the other items keep their results.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from config import logger
from miners.base import GraphQLSource
from miners.errors import GitHubMinerError
from miners.models import (
    ActivityBundle,
    ChangedFile,
    CommentDetail,
    CommitBucket,
    CommitDetail,
    DateWindow,
    PullRequestContribution,
    ReviewDetail,
    TimelineEvent,
    TimelineEventType,
)
from miners.pagination import PaginatedCollector, connection_at, dig, login_of
from miners.queries import (
    COMMIT_HISTORY_QUERY,
    PR_COMMENTS_QUERY,
    PR_FILES_QUERY,
    PR_REVIEWS_QUERY,
    PR_TIMELINE_QUERY,
    REPOSITORY_METADATA_QUERY,
    USER_ID_QUERY,
)

T = TypeVar("T")

PULL_REQUEST_PATH = ("data", "repository", "pullRequest")


class EnrichmentFailure(BaseModel):
    """An item whose enrichment failed."""

    kind: str
    key: str
    error: str


class EnrichmentResult(BaseModel):
    """Enriched bundle plus the items that could not be enriched."""

    bundle: ActivityBundle
    failures: List[EnrichmentFailure]


def collapse_reactions(groups: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, int]]:
    """
    Map reaction groups to ``{content: count}`` for nonzero counts.

    Args:
        groups (Optional[List[Dict[str, Any]]]): GraphQL ``reactionGroups``

    Returns:
        Optional[Dict[str, int]]: Counts per reaction, None when there are none
    """
    counts = {
        group["content"]: group["reactors"]["totalCount"]
        for group in groups or []
        if group["reactors"]["totalCount"] > 0
    }
    return counts or None


def to_timeline_event(node: Dict[str, Any]) -> TimelineEvent:
    reviewer = node.get("requestedReviewer") or {}
    return TimelineEvent(
        kind=TimelineEventType(node["__typename"]),
        actor=login_of(node, "actor"),
        created_at=node["createdAt"],
        requested_reviewer=reviewer.get("login") or reviewer.get("name"),
    )


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Await all awaitables; if one fails, cancel the rest before re-raising.

    Unlike a plain ``asyncio.gather``, no sibling request is left running
    once the caller has moved on.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def split_repository(full_name: str) -> Tuple[str, str]:
    owner, name = full_name.split("/", 1)
    return owner, name


class EnrichmentOrchestrator:
    """
    Runs the secondary detail queries for every item of an ActivityBundle.
    """

    def __init__(self, source: GraphQLSource, max_concurrency: int = 8):
        """Initialize the orchestrator.

        Args:
            source (GraphQLSource): Source executing GraphQL queries.
            max_concurrency (int): Maximum number of items enriched at once.
        """
        self.collector = PaginatedCollector(source)
        self.max_concurrency = max_concurrency

    async def _fetch_comments(
        self, variables: Dict[str, Any], window: DateWindow
    ) -> List[CommentDetail]:
        nodes = await self.collector.collect_all(
            PR_COMMENTS_QUERY, variables, connection_at(*PULL_REQUEST_PATH, "comments")
        )
        comments = [
            CommentDetail(
                author=login_of(node),
                body=node["body"],
                created_at=node["createdAt"],
                updated_at=node["updatedAt"],
                url=node["url"],
                reactions=collapse_reactions(node.get("reactionGroups")),
            )
            for node in nodes
        ]
        return [c for c in comments if c.created_at >= window.start]

    async def _fetch_reviews(
        self, variables: Dict[str, Any], window: DateWindow
    ) -> List[ReviewDetail]:
        nodes = await self.collector.collect_all(
            PR_REVIEWS_QUERY, variables, connection_at(*PULL_REQUEST_PATH, "reviews")
        )
        reviews = [
            ReviewDetail(
                author=login_of(node),
                state=node["state"],
                body=node["body"],
                created_at=node["createdAt"],
                comments_count=node["comments"]["totalCount"],
                url=node["url"],
            )
            for node in nodes
        ]
        return [r for r in reviews if r.created_at >= window.start]

    async def _fetch_changed_files(self, variables: Dict[str, Any]) -> List[ChangedFile]:
        page = await self.collector.fetch_one(
            PR_FILES_QUERY, variables, connection_at(*PULL_REQUEST_PATH, "files")
        )
        return [
            ChangedFile(
                path=node["path"],
                additions=node["additions"],
                deletions=node["deletions"],
                change_type=node["changeType"],
            )
            for node in page.get("nodes") or []
        ]

    async def _fetch_timeline(self, variables: Dict[str, Any]) -> List[TimelineEvent]:
        page = await self.collector.fetch_one(
            PR_TIMELINE_QUERY, variables, connection_at(*PULL_REQUEST_PATH, "timelineItems")
        )
        return [to_timeline_event(node) for node in page.get("nodes") or []]

    async def enrich_pull_request(
        self, pr: PullRequestContribution, window: DateWindow
    ) -> PullRequestContribution:
        """
        Fetch the details of one pull request.

        Args:
            pr (PullRequestContribution): Pull request to enrich
            window (DateWindow): Window used to filter comments and reviews

        Returns:
            PullRequestContribution: New record with detail fields set
        """
        owner, name = split_repository(pr.repository)
        variables = {"owner": owner, "name": name, "number": pr.number}
        comments, reviews, files, timeline = await gather_or_cancel(
            self._fetch_comments(variables, window),
            self._fetch_reviews(variables, window),
            self._fetch_changed_files(variables),
            self._fetch_timeline(variables),
        )
        return pr.model_copy(
            update={
                "comment_details": comments,
                "review_details": reviews,
                "changed_files": files,
                "timeline_items": timeline,
            }
        )

    async def resolve_user_id(self, login: str) -> str:
        """Resolve a login to its GraphQL node id."""
        return await self.collector.fetch_one(
            USER_ID_QUERY, {"login": login}, lambda body: dig(body, "data", "user", "id")
        )

    async def enrich_commit_bucket(
        self, bucket: CommitBucket, author_id: str, window: DateWindow
    ) -> CommitBucket:
        """
        Fetch the user's commits and the metadata of one repository.

        Args:
            bucket (CommitBucket): Bucket to enrich
            author_id (str): GraphQL node id of the user
            window (DateWindow): Window bounding the commit history

        Returns:
            CommitBucket: New bucket with commits, description and topics
        """
        owner, name = split_repository(bucket.repository)
        history, repository = await gather_or_cancel(
            self.collector.collect_all(
                COMMIT_HISTORY_QUERY,
                {
                    "owner": owner,
                    "name": name,
                    "authorId": author_id,
                    "since": window.start.isoformat(),
                    "until": window.end.isoformat(),
                },
                connection_at(
                    "data", "repository", "defaultBranchRef", "target", "history"
                ),
            ),
            self.collector.fetch_one(
                REPOSITORY_METADATA_QUERY,
                {"owner": owner, "name": name},
                lambda body: dig(body, "data", "repository"),
            ),
        )
        topics = (repository.get("repositoryTopics") or {}).get("nodes") or []
        return bucket.model_copy(
            update={
                "commits": [
                    CommitDetail(
                        oid=node["oid"],
                        headline=node["messageHeadline"],
                        body=node["messageBody"],
                        committed_at=node["committedDate"],
                        url=node["url"],
                    )
                    for node in history
                ],
                "description": repository.get("description"),
                "topics": [topic["topic"]["name"] for topic in topics],
            }
        )

    async def _run_isolated(
        self,
        kind: str,
        items: List[T],
        key: Callable[[T], str],
        work: Callable[[T], Awaitable[T]],
    ) -> Tuple[List[T], List[EnrichmentFailure]]:
        """
        Run ``work`` for every item with bounded concurrency.

        Items whose work fails with a GitHubMinerError are returned unchanged
        and recorded as failures. Order of items is preserved.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(item: T) -> Tuple[T, Optional[EnrichmentFailure]]:
            async with semaphore:
                try:
                    return await work(item), None
                except GitHubMinerError as e:
                    logger.error(
                        {
                            "message": "Enrichment failed",
                            "kind": kind,
                            "item": key(item),
                            "error": str(e),
                        }
                    )
                    return item, EnrichmentFailure(kind=kind, key=key(item), error=str(e))

        outcomes = await asyncio.gather(*(run(item) for item in items))
        enriched = [item for item, _ in outcomes]
        failures = [failure for _, failure in outcomes if failure is not None]
        return enriched, failures

    async def enrich(
        self, bundle: ActivityBundle, window: DateWindow, login: str
    ) -> EnrichmentResult:
        """
        Enrich every pull request and commit bucket of a bundle.

        The input bundle is left unchanged.

        Args:
            bundle (ActivityBundle): Collected activity
            window (DateWindow): Window used to filter details
            login (str): Login whose commits are listed

        Returns:
            EnrichmentResult: New bundle and the failed items

        Raises:
            GitHubMinerError: If the user id cannot be resolved
        """
        logger.info(
            {
                "message": "Starting enrichment",
                "login": login,
                "pull_requests": len(bundle.pull_requests),
                "commit_repositories": len(bundle.commit_buckets),
                "max_concurrency": self.max_concurrency,
            }
        )

        pull_requests, pr_failures = await self._run_isolated(
            "pull_request",
            bundle.pull_requests,
            lambda pr: f"{pr.repository}#{pr.number}",
            lambda pr: self.enrich_pull_request(pr, window),
        )

        commit_buckets, bucket_failures = bundle.commit_buckets, []
        if bundle.commit_buckets:
            author_id = await self.resolve_user_id(login)
            commit_buckets, bucket_failures = await self._run_isolated(
                "commit_bucket",
                bundle.commit_buckets,
                lambda bucket: bucket.repository,
                lambda bucket: self.enrich_commit_bucket(bucket, author_id, window),
            )

        failures = pr_failures + bucket_failures
        logger.info(
            {
                "message": "Enrichment completed",
                "login": login,
                "failed_items": len(failures),
            }
        )
        return EnrichmentResult(
            bundle=bundle.model_copy(
                update={"pull_requests": pull_requests, "commit_buckets": commit_buckets}
            ),
            failures=failures,
        )
