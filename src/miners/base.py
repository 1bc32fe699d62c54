"""
Abstract Base Class for GraphQL Sources.

Defines the interface for anything that can execute one paged GraphQL query.
The GitHub HTTP client implements it; tests substitute scripted sources.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class GraphQLSource(ABC):
    """
    Abstract base class for GraphQL sources.

    Implementations should handle:
    - Authentication with the API
    - Transport failures (raise TransportError)
    - GraphQL-level errors (raise QueryError)
    """

    @abstractmethod
    async def fetch(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute one query and return the decoded response body.

        Args:
            query (str): GraphQL query document
            variables (Dict[str, Any]): Query variables, including ``cursor`` for paged queries

        Returns:
            Dict[str, Any]: Decoded response body with a ``data`` key

        Raises:
            TransportError: If the HTTP exchange fails
            QueryError: If the response carries GraphQL errors
        """
        pass
