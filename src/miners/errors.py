"""
Mining Error Types.

Every failure raised while talking to GitHub derives from GitHubMinerError,
so orchestration code can isolate API failures without also catching
programming errors.
"""

from typing import Any, Dict, List, Optional


class GitHubMinerError(Exception):
    """Base class for GitHub mining failures."""


class TransportError(GitHubMinerError):
    """
    The HTTP exchange itself failed.

    Attributes:
        status (Optional[int]): HTTP status code, None when no response arrived
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class QueryError(GitHubMinerError):
    """
    GraphQL reported errors for the query.

    The exception message is the first reported error message.

    Attributes:
        errors (List[Dict[str, Any]]): Full error list from the response body
    """

    def __init__(self, errors: List[Dict[str, Any]]):
        first = errors[0] if errors else {}
        super().__init__(first.get("message", "GraphQL query failed"))
        self.errors = errors


class NotFoundError(GitHubMinerError):
    """An expected object is missing from the response, e.g. access denied."""
