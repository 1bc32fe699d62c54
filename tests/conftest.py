"""
Shared test setup.

Environment defaults are set before any application module imports
``config``, which builds its settings at import time.
"""

import os
import tempfile

os.environ.setdefault("GITHUB_TOKEN", "test-token")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ghpulse-logs-"))

import asyncio  # noqa: E402
from typing import Any, Callable, Dict, List, Tuple  # noqa: E402

import pytest  # noqa: E402

from miners.base import GraphQLSource  # noqa: E402


class ScriptedSource(GraphQLSource):
    """GraphQL source answering from a handler and recording every call."""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], Dict[str, Any]]):
        self.handler = handler
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = 0.0

    async def fetch(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((query, variables))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delay(query, variables) if callable(self.delay) else self.delay
            await asyncio.sleep(delay)
            return self.handler(query, variables)
        finally:
            self.in_flight -= 1


def nest(path, value):
    """Build ``{"data": {path[0]: {path[1]: ... value}}}``."""
    for key in reversed(path):
        value = {key: value}
    return {"data": value}


def connection(nodes, has_next=False, cursor=None):
    return {"nodes": nodes, "pageInfo": {"hasNextPage": has_next, "endCursor": cursor}}


@pytest.fixture
def scripted_source():
    """Factory for ScriptedSource instances."""
    return ScriptedSource


@pytest.fixture
def page():
    """Factory building a response body holding one connection page."""

    def build(path, nodes, has_next=False, cursor=None):
        return nest(path, connection(nodes, has_next, cursor))

    return build
