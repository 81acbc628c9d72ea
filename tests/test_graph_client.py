"""Tests for the lazily created MS Graph client."""

import asyncio

import core.graph_client
from core.graph_client import get_graph_client


class FakeGraphServiceClient:
    def __init__(self, credentials):
        self.credentials = credentials


def test_one_client_per_event_loop(monkeypatch):
    monkeypatch.setattr(core.graph_client, "ClientSecretCredential", lambda **kwargs: kwargs)
    monkeypatch.setattr(core.graph_client, "GraphServiceClient", FakeGraphServiceClient)
    monkeypatch.setattr(core.graph_client, "_graph_client", None)
    monkeypatch.setattr(core.graph_client, "_graph_loop", None)

    async def two_lookups():
        return get_graph_client(), get_graph_client()

    first, again = asyncio.run(two_lookups())
    second, _ = asyncio.run(two_lookups())

    assert first is again
    assert second is not first
    assert isinstance(second, FakeGraphServiceClient)
