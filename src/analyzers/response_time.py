"""
Pull Request Response Time Analysis Module.

Turns the comments, reviews and timeline events of each pull request into
latency metrics against a set of maintainers:
- time to the first official response (maintainer, close or merge)
- time to the first response by anyone but the author
- time to resolution (close or merge)

Events are scanned in the order they were fetched (comments, then reviews,
then timeline items), not in chronological order.
"""

import math
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set

import pandas as pd

from config import logger
from analyzers.models import HealthSummary, ResponseTimeRecord
from miners.models import DateWindow, HealthPullRequest, TimelineEvent, TimelineEventType

RESOLVING_EVENTS = {TimelineEventType.CLOSED, TimelineEventType.MERGED}


def rounded_hours(later: datetime, earlier: datetime) -> int:
    """Hours between two instants, rounded half up to an integer."""
    milliseconds = (later - earlier).total_seconds() * 1000
    return math.floor(milliseconds / 3_600_000 + 0.5)


def _first(
    events: List[TimelineEvent], predicate: Callable[[TimelineEvent], bool]
) -> Optional[TimelineEvent]:
    return next((event for event in events if predicate(event)), None)


class ResponseTimeAnalyzer:
    """
    Computes ResponseTimeRecords. Stateless; ``analyze`` does no I/O.
    """

    def analyze_pull_request(
        self, pr: HealthPullRequest, maintainers: Set[str]
    ) -> ResponseTimeRecord:
        """
        Classify the events of one pull request.

        Args:
            pr (HealthPullRequest): Pull request with its events
            maintainers (Set[str]): Maintainer logins

        Returns:
            ResponseTimeRecord: Latency metrics, None where no event qualifies
        """
        creator = pr.author
        events = [*pr.comments, *pr.reviews, *pr.timeline_items]

        ready_for_review = _first(
            events, lambda e: e.kind == TimelineEventType.READY_FOR_REVIEW
        )
        effective_created_at = (
            ready_for_review.created_at if ready_for_review else pr.created_at
        )

        official = _first(
            events,
            lambda e: (e.actor in maintainers and e.actor != creator)
            or e.kind in RESOLVING_EVENTS,
        )
        non_author = _first(events, lambda e: e.actor != creator)
        resolved = _first(events, lambda e: e.kind in RESOLVING_EVENTS)

        # Response times count from creation, resolution from ready-for-review.
        return ResponseTimeRecord(
            number=pr.number,
            created_at=pr.created_at,
            resolved_at=resolved.created_at if resolved else None,
            resolution_time_hours=(
                rounded_hours(resolved.created_at, effective_created_at)
                if resolved
                else None
            ),
            is_maintainer_authored=creator in maintainers,
            creator=creator,
            official_response_hours=(
                rounded_hours(official.created_at, pr.created_at) if official else None
            ),
            non_author_response_hours=(
                rounded_hours(non_author.created_at, pr.created_at)
                if non_author
                else None
            ),
        )

    def analyze(
        self, pull_requests: Iterable[HealthPullRequest], maintainers: Set[str]
    ) -> List[ResponseTimeRecord]:
        """
        Compute response times for every pull request.

        Args:
            pull_requests (Iterable[HealthPullRequest]): Pull requests to analyze
            maintainers (Set[str]): Maintainer logins

        Returns:
            List[ResponseTimeRecord]: One record per pull request, in input order
        """
        return [self.analyze_pull_request(pr, maintainers) for pr in pull_requests]


def summarize_response_times(
    repository: str, window: DateWindow, records: List[ResponseTimeRecord]
) -> HealthSummary:
    """
    Summarize response time records.

    Averages are taken over the records that have a value and rounded to one
    decimal; they are None when no record has one.

    Args:
        repository (str): Repository full name
        window (DateWindow): Analyzed window
        records (List[ResponseTimeRecord]): Records from ResponseTimeAnalyzer

    Returns:
        HealthSummary: Records, unanswered pull requests and averages
    """
    unanswered = [r for r in records if r.official_response_hours is None]

    df = pd.DataFrame(
        [r.model_dump() for r in records],
        columns=list(ResponseTimeRecord.model_fields),
    )

    def average(column: str) -> Optional[float]:
        values = df[column].dropna()
        if values.empty:
            return None
        return math.floor(float(values.astype(float).mean()) * 10 + 0.5) / 10

    summary = HealthSummary(
        repository=repository,
        window=window,
        records=records,
        unanswered=unanswered,
        average_official_response_hours=average("official_response_hours"),
        average_resolution_hours=average("resolution_time_hours"),
    )

    for record in unanswered:
        logger.info(
            {
                "message": "Pull request has had no official response",
                "url": f"https://github.com/{repository}/pull/{record.number}",
                "creator": record.creator,
                "created_at": record.created_at.isoformat(),
            }
        )
    logger.info(
        {
            "message": "Response time summary",
            "repository": repository,
            "pull_requests": len(records),
            "average_official_response_hours": summary.average_official_response_hours,
            "average_resolution_hours": summary.average_resolution_hours,
        }
    )
    return summary
