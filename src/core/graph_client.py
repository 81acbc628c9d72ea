"""
MS Graph client setup with lazy initialization.

Graph is optional for settling: it backs the calendar meeting oracle and the
notification emails, both of which are skipped when credentials are absent.

The client's HTTP pool belongs to the event loop it was first used on, and
settle drives each Graph call with its own asyncio.run, so one client is kept
per running loop.
"""

import asyncio

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from core.config import GRAPH_APP_ID, GRAPH_CLIENT_SECRET, GRAPH_TENANT_ID

_graph_client: GraphServiceClient | None = None
_graph_loop: asyncio.AbstractEventLoop | None = None


def is_graph_configured() -> bool:
    return bool(GRAPH_TENANT_ID and GRAPH_APP_ID and GRAPH_CLIENT_SECRET)


def get_graph_client() -> GraphServiceClient:
    """
    Get or create the MS Graph client for the running event loop.

    Raises:
        RuntimeError: When called outside a running event loop
    """
    global _graph_client, _graph_loop
    loop = asyncio.get_running_loop()
    if _graph_client is None or _graph_loop is not loop:
        credential = ClientSecretCredential(
            tenant_id=GRAPH_TENANT_ID,
            client_id=GRAPH_APP_ID,
            client_secret=GRAPH_CLIENT_SECRET,
        )
        _graph_client = GraphServiceClient(credentials=credential)
        _graph_loop = loop
    return _graph_client
