"""
Response Time Analysis Data Models.

Defines the records produced by the repository health analysis.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from miners.models import DateWindow


class ResponseTimeRecord(BaseModel):
    """
    Responsiveness metrics for one pull request.

    Attributes:
        resolution_time_hours: Hours from ready-for-review (or creation) to close/merge
        official_response_hours: Hours from creation to the first maintainer
            response, close or merge
        non_author_response_hours: Hours from creation to the first event by
            anyone other than the author
    """

    model_config = ConfigDict(frozen=True)

    number: int
    created_at: datetime
    resolved_at: Optional[datetime]
    resolution_time_hours: Optional[int]
    is_maintainer_authored: bool
    creator: Optional[str]
    official_response_hours: Optional[int]
    non_author_response_hours: Optional[int]


class HealthSummary(BaseModel):
    """Response times of a repository over a window."""

    repository: str
    window: DateWindow
    analysis_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    records: List[ResponseTimeRecord]
    unanswered: List[ResponseTimeRecord]
    average_official_response_hours: Optional[float]
    average_resolution_hours: Optional[float]
