"""
GitHub GraphQL Client Module.

Executes GraphQL queries against the GitHub API over a shared async HTTP
connection pool. Failures are raised immediately; there is no retry and no
rate-limit back-off, only rate-limit logging.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from config import logger
from miners.base import GraphQLSource
from miners.errors import QueryError, TransportError


class GitHubGraphQLClient(GraphQLSource):
    """
    GraphQL source backed by ``POST {api_url}/graphql``.

    The client owns one ``httpx.AsyncClient``; use it as an async context
    manager or call ``aclose`` when done.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        user_agent: str = "ghpulse",
        api_version: str = "2022-11-28",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            token (str): GitHub API token.
            api_url (str): API base URL.
            user_agent (str): User-Agent header value.
            api_version (str): Value of the X-GitHub-Api-Version header.
            timeout (float): Request timeout in seconds.
            transport (Optional[httpx.AsyncBaseTransport]): Custom transport, used by tests.
        """
        self.endpoint = f"{api_url.rstrip('/')}/graphql"
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": api_version,
                "User-Agent": user_agent,
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubGraphQLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _log_rate_limit(self, response: httpx.Response) -> None:
        """
        Log the GraphQL rate limit status reported in response headers.

        Args:
            response (httpx.Response): Response carrying X-RateLimit-* headers
        """
        try:
            remaining = int(response.headers["X-RateLimit-Remaining"])
            limit = int(response.headers["X-RateLimit-Limit"])
            reset_time = datetime.fromtimestamp(
                int(response.headers["X-RateLimit-Reset"]), tz=timezone.utc
            )
        except (KeyError, ValueError):
            return

        logger.debug(
            {
                "message": "GraphQL API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
            }
        )
        if remaining < limit * 0.1:
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

    async def fetch(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute one GraphQL query.

        Args:
            query (str): GraphQL query document
            variables (Dict[str, Any]): Query variables

        Returns:
            Dict[str, Any]: Decoded response body

        Raises:
            TransportError: On a connection failure or a non-200 status
            QueryError: If the body contains a non-empty ``errors`` list
        """
        try:
            response = await self._http.post(
                self.endpoint, json={"query": query, "variables": variables}
            )
        except httpx.RequestError as e:
            raise TransportError(f"GraphQL request failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(
                f"GraphQL request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        self._log_rate_limit(response)

        body = response.json()
        if body.get("errors"):
            logger.error(
                {"message": "GraphQL errors in response", "errors": body["errors"]}
            )
            raise QueryError(body["errors"])
        return body
