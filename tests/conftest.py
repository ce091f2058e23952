"""Pytest configuration and fixtures"""
import json
import os
import pytest
import httpx
from unittest.mock import AsyncMock

# Keep the tests off any real backend
os.environ.setdefault("GRAPHQL_URL", "https://api.test/graphql")
os.environ.setdefault("ANALYTICS_URL", "")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "")

from cartsession.analytics import Analytics
from cartsession.auth.session import SessionProvider
from cartsession.cart.service import CartManager
from cartsession.context import UserContext
from cartsession.errors import StorageError
from cartsession.graphql import GraphQLClient
from cartsession.location import LocationProvider
from cartsession.profile import ProfileFetcher
from cartsession.storage import MemoryStore

GRAPHQL_URL = "https://api.test/graphql"


@pytest.fixture
def sample_profile():
    """Profile as returned by the backend"""
    return {
        "_id": "user-123",
        "name": "Test User",
        "email": "test@example.com",
        "phone": "+15550001111",
        "isActive": True,
        "favourite": [],
        "__typename": "User",
    }


@pytest.fixture
def sample_food():
    """Add-to-cart payload for a menu item"""
    return {
        "_id": "pizza1",
        "quantity": 1,
        "variation": {"_id": "var-1", "title": "Large", "price": 12.5},
        "addons": [],
        "specialInstructions": "",
    }


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def failing_store():
    """Store whose writes always fail"""
    store = MemoryStore()
    store.set = AsyncMock(side_effect=StorageError("set", "cartItems", RuntimeError("offline")))
    store.delete = AsyncMock(side_effect=StorageError("delete", "cartItems", RuntimeError("offline")))
    return store


@pytest.fixture
def cart_manager(memory_store):
    return CartManager(memory_store)


class GraphQLBackend:
    """Scripted GraphQL endpoint for httpx.MockTransport"""

    def __init__(self, profile):
        self.profile = profile
        self.requests = []
        self.status_code = 200
        self.errors = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "error"})
        if self.errors:
            return httpx.Response(200, json={"data": None, "errors": self.errors})
        return httpx.Response(200, json={"data": {"profile": self.profile}})

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def backend(sample_profile):
    return GraphQLBackend(sample_profile)


@pytest.fixture
def session(memory_store):
    return SessionProvider(memory_store)


@pytest.fixture
def graphql_client(backend, session):
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
    return GraphQLClient(GRAPHQL_URL, session.get_token, http=http)


@pytest.fixture
def profile_fetcher(graphql_client, session):
    return ProfileFetcher(graphql_client, session)


@pytest.fixture
def mock_analytics():
    analytics = Analytics(url="")
    analytics.identify = AsyncMock()
    analytics.track = AsyncMock()
    analytics.aclose = AsyncMock()
    return analytics


@pytest.fixture
def user_context(memory_store, session, graphql_client, profile_fetcher, mock_analytics):
    return UserContext(
        session=session,
        cart=CartManager(memory_store),
        profile_fetcher=profile_fetcher,
        client=graphql_client,
        location=LocationProvider(),
        analytics=mock_analytics,
    )
