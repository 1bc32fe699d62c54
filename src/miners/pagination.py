"""
Cursor Pagination Module.

Drives a GraphQL source through every page of one connection. Pages are
requested strictly one after another because each cursor comes from the
previous response.
"""

from typing import Any, Callable, Dict, List, Optional

from config import logger
from miners.base import GraphQLSource
from miners.errors import NotFoundError

PageExtractor = Callable[[Dict[str, Any]], Dict[str, Any]]


def dig(body: Dict[str, Any], *path: str) -> Any:
    """
    Walk ``path`` through a response body.

    Args:
        body (Dict[str, Any]): Decoded response body
        *path (str): Keys to follow

    Returns:
        Any: The value at the end of the path

    Raises:
        NotFoundError: If any step along the path is missing or null
    """
    node: Any = body
    for i, key in enumerate(path):
        node = node.get(key) if isinstance(node, dict) else None
        if node is None:
            raise NotFoundError(f"{'.'.join(path[: i + 1])} not found or access denied")
    return node


def login_of(node: Dict[str, Any], key: str = "author") -> Optional[str]:
    """Login of a node's author/actor, None for deleted accounts."""
    return (node.get(key) or {}).get("login")


def connection_at(*path: str) -> PageExtractor:
    """
    Build an extractor returning the connection at ``path``.

    Args:
        *path (str): Keys leading to a ``{nodes, pageInfo}`` connection

    Returns:
        PageExtractor: Function mapping a response body to the connection
    """

    def extract(body: Dict[str, Any]) -> Dict[str, Any]:
        return dig(body, *path)

    return extract


class PaginatedCollector:
    """Collects every node of a paginated GraphQL connection."""

    def __init__(self, source: GraphQLSource):
        self.source = source

    async def collect_all(
        self,
        query: str,
        variables: Dict[str, Any],
        extract_page: PageExtractor,
        stop_when: Optional[Callable[[List[Dict[str, Any]]], bool]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch pages until the connection reports no next page.

        Nodes are concatenated in arrival order with no reordering or
        deduplication.

        Args:
            query (str): Paged GraphQL query taking a ``$cursor`` variable
            variables (Dict[str, Any]): Variables other than the cursor
            extract_page (PageExtractor): Pulls ``{nodes, pageInfo}`` out of a body
            stop_when (Optional[Callable]): Called with each page's nodes; returning
                True ends pagination early. Only valid for ordered connections.

        Returns:
            List[Dict[str, Any]]: All collected nodes
        """
        items: List[Dict[str, Any]] = []
        cursor = None
        pages = 0
        while True:
            body = await self.source.fetch(query, {**variables, "cursor": cursor})
            page = extract_page(body)
            nodes = page.get("nodes") or []
            items.extend(nodes)
            pages += 1

            page_info = page["pageInfo"]
            cursor = page_info["endCursor"]
            if not page_info["hasNextPage"]:
                break
            if stop_when is not None and stop_when(nodes):
                logger.debug({"message": "Pagination stopped early", "pages": pages})
                break

        logger.debug({"message": "Pagination finished", "pages": pages, "items": len(items)})
        return items

    async def fetch_one(
        self, query: str, variables: Dict[str, Any], extract: PageExtractor
    ) -> Any:
        """
        Execute a single-page or point query.

        Args:
            query (str): GraphQL query
            variables (Dict[str, Any]): Query variables
            extract (PageExtractor): Pulls the wanted object out of the body

        Returns:
            Any: Extracted object
        """
        body = await self.source.fetch(query, dict(variables))
        return extract(body)
