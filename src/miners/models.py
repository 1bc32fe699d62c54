"""
Activity Mining Data Models.

Defines the data models produced by the GitHub miners.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AwareDatetime, BaseModel, Field, model_validator


class DateWindow(BaseModel):
    """Inclusive time range over which activity is reported."""

    start: AwareDatetime
    end: AwareDatetime

    @model_validator(mode="after")
    def check_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError("window start must not be after window end")
        return self


class TimelineEventType(Enum):
    """
    Kinds of pull request events.

    The first four are GitHub timeline item types. COMMENT and REVIEW mark
    comments and reviews when they are mixed into one event stream.
    """

    READY_FOR_REVIEW = "ReadyForReviewEvent"
    REVIEW_REQUESTED = "ReviewRequestedEvent"
    MERGED = "MergedEvent"
    CLOSED = "ClosedEvent"
    COMMENT = "IssueComment"
    REVIEW = "PullRequestReview"


class TimelineEvent(BaseModel):
    """One pull request event with the login that caused it."""

    kind: TimelineEventType
    actor: Optional[str]
    created_at: datetime
    requested_reviewer: Optional[str] = None


class CommentDetail(BaseModel):
    """Pull request conversation comment."""

    author: Optional[str]
    body: str
    created_at: datetime
    updated_at: datetime
    url: str
    reactions: Optional[Dict[str, int]] = None


class ReviewDetail(BaseModel):
    """Pull request review."""

    author: Optional[str]
    state: str
    body: str
    created_at: datetime
    comments_count: int
    url: str


class ChangedFile(BaseModel):
    path: str
    additions: int
    deletions: int
    change_type: str


class PullRequestContribution(BaseModel):
    """Pull request authored by the user, plus optional enrichment details."""

    repository: str
    number: int
    title: str
    body: Optional[str]
    state: str
    is_draft: bool
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime]
    closed_at: Optional[datetime]
    additions: int
    deletions: int
    comments_count: int
    reviews_count: int
    comment_details: Optional[List[CommentDetail]] = None
    review_details: Optional[List[ReviewDetail]] = None
    changed_files: Optional[List[ChangedFile]] = None
    timeline_items: Optional[List[TimelineEvent]] = None


class ReviewContribution(BaseModel):
    """Review submitted by the user on a pull request."""

    repository: str
    pr_number: int
    pr_title: str
    pr_author: Optional[str]
    state: str
    created_at: datetime
    updated_at: datetime
    comments_count: int


class IssueContribution(BaseModel):
    """Issue opened by the user."""

    repository: str
    number: int
    title: str
    body: Optional[str]
    state: str
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime]
    comments_count: int


class CommitDetail(BaseModel):
    oid: str
    headline: str
    body: str
    committed_at: datetime
    url: str


class CommitBucket(BaseModel):
    """Commits by the user to one repository."""

    repository: str
    total_count: int
    commits: Optional[List[CommitDetail]] = None
    description: Optional[str] = None
    topics: Optional[List[str]] = None


class ActivityBundle(BaseModel):
    """Container for all collected user activity."""

    login: str
    window: DateWindow
    collection_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    pull_requests: List[PullRequestContribution]
    reviews: List[ReviewContribution]
    issues: List[IssueContribution]
    commit_buckets: List[CommitBucket]


class HealthPullRequest(BaseModel):
    """Repository pull request with the events needed for response times."""

    number: int
    title: str
    created_at: datetime
    author: Optional[str]
    is_draft: bool
    comments: List[TimelineEvent]
    reviews: List[TimelineEvent]
    timeline_items: List[TimelineEvent]


class OpenPullRequest(BaseModel):
    """Open pull request reported by the monitor."""

    number: int
    title: str
    created_at: datetime
    state: str
    url: str
