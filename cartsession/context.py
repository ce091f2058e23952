"""
User context: session, profile and cart composed for one app lifetime.

``create_user_context()`` is the composition root; everything else takes
its collaborators as arguments.
"""

import inspect
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from cartsession import config
from cartsession.analytics import Analytics, AnalyticsObserver
from cartsession.auth.session import SessionProvider
from cartsession.cart.models import CartItem, ItemCheck
from cartsession.cart.service import CartManager
from cartsession.errors import CartSessionError
from cartsession.graphql import GraphQLClient
from cartsession.location import LocationProvider
from cartsession.logging import get_logger
from cartsession.profile import Profile, ProfileFetcher
from cartsession.scope import TaskScope
from cartsession.storage import KeyValueStore, get_store

logger = get_logger(__name__)


class UserContext:
    """
    Session orchestrator.

    Watches the session token and drives the profile fetch, reports the
    derived login state and cart count, and implements logout.

    Usage:
        async with create_user_context() as ctx:
            await ctx.ready()
            await ctx.add_item({"_id": "pizza1", "quantity": 1}, restaurant_id="r1")
            ...
            await ctx.logout()
    """

    def __init__(
        self,
        session: SessionProvider,
        cart: CartManager,
        profile_fetcher: ProfileFetcher,
        client: GraphQLClient,
        location: LocationProvider,
        analytics: Optional[Analytics] = None,
    ):
        self.session = session
        self.cart = cart
        self.profile_fetcher = profile_fetcher
        self.client = client
        self.location = location
        self.analytics = analytics
        self.scope = TaskScope("user-context")
        self.load_error: Optional[CartSessionError] = None

        self._subscriptions = [session.token_changed.subscribe(self._on_token_changed)]
        if analytics is not None:
            self._subscriptions.append(AnalyticsObserver(analytics).attach(profile_fetcher))

    async def start(self) -> None:
        """Begin restoring the cart and the persisted session."""
        self.scope.spawn(self._load_cart(), name="cart-load")
        self.scope.spawn(self.session.load(), name="session-load")

    async def ready(self) -> None:
        """
        Wait for startup loads and profile fetches in flight.

        Raises:
            MalformedCartError: the persisted cart could not be decoded
        """
        await self.scope.wait()
        if self.load_error is not None:
            raise self.load_error

    async def _load_cart(self) -> None:
        try:
            await self.cart.load()
        except CartSessionError as e:
            self.load_error = e
            raise

    def _on_token_changed(self, token: Optional[str]) -> None:
        # The previous token's profile never describes the new session
        self.profile_fetcher.reset()
        if token:
            if not self.scope.closed:
                self.scope.spawn(self.profile_fetcher.fetch(), name="profile-fetch")

    @property
    def token(self) -> Optional[str]:
        return self.session.token

    @property
    def is_logged_in(self) -> bool:
        return bool(self.session.token) and self.profile_fetcher.data is not None

    @property
    def loading_profile(self) -> bool:
        return self.profile_fetcher.loading and self.profile_fetcher.called

    @property
    def error_profile(self):
        return self.profile_fetcher.error

    @property
    def profile(self) -> Optional[Profile]:
        return self.profile_fetcher.data

    @property
    def restaurant(self) -> Optional[str]:
        return self.cart.restaurant_id

    @property
    def cart_count(self) -> int:
        return self.cart.cart_count()

    @property
    def cart_items(self) -> List[CartItem]:
        return self.cart.items

    async def add_item(
        self,
        food: Mapping[str, Any],
        clear_flag: bool = False,
        restaurant_id: Optional[str] = None,
    ) -> CartItem:
        return await self.cart.add_item(food, clear_flag=clear_flag, restaurant_id=restaurant_id)

    async def add_quantity(self, key: str, amount: int = 1) -> CartItem:
        return await self.cart.add_quantity(key, amount)

    async def remove_quantity(self, key: str) -> None:
        await self.cart.remove_quantity(key)

    async def delete_item(self, key: str) -> bool:
        return await self.cart.delete_item(key)

    def check_item(self, catalog_item_id: str) -> ItemCheck:
        return self.cart.check_item(catalog_item_id)

    async def replace_cart(self, items: Iterable[Union[CartItem, Mapping[str, Any]]]) -> None:
        await self.cart.replace_cart(items)

    async def set_restaurant(self, restaurant_id: Optional[str]) -> None:
        await self.cart.set_restaurant(restaurant_id)

    async def clear_cart(self) -> None:
        await self.cart.clear_cart()

    async def refetch_profile(self) -> Optional[Profile]:
        return await self.profile_fetcher.refetch()

    async def logout(self) -> None:
        """
        End the session. Best-effort: a failing step is logged and the
        remaining steps still run; never raises.
        """
        profile = self.profile_fetcher.data

        await self._step("remove persisted token", self.session.remove_persisted_token)
        await self._step("clear token", lambda: self.session.set_token(None))
        await self._step("reset location", self._detach_saved_location)
        if profile is not None:
            await self._step("evict profile", lambda: self.client.evict(profile.typename, profile.id))
        await self._step("reset store", self.client.reset_store)
        logger.info("User logged out")

    def _detach_saved_location(self) -> None:
        location = self.location.get_location()
        if location is not None and location.is_saved:
            self.location.set_location(location.unsaved())

    async def _step(self, name: str, action: Callable[[], Any]) -> None:
        try:
            result = action()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error on logout ({name}): {e}", exc_info=True)

    async def aclose(self) -> None:
        """Cancel in-flight work and release HTTP clients."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        self.profile_fetcher.close()
        await self.scope.aclose()
        await self.client.aclose()
        if self.analytics is not None:
            await self.analytics.aclose()

    async def __aenter__(self) -> "UserContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def create_user_context(
    store: Optional[KeyValueStore] = None,
    graphql_url: Optional[str] = None,
    analytics: Optional[Analytics] = None,
    location: Optional[LocationProvider] = None,
) -> UserContext:
    """Wire a UserContext from explicit collaborators or configuration."""
    store = store or get_store()
    session = SessionProvider(store)
    client = GraphQLClient(graphql_url or config.GRAPHQL_URL, session.get_token)
    return UserContext(
        session=session,
        cart=CartManager(store),
        profile_fetcher=ProfileFetcher(client, session),
        client=client,
        location=location or LocationProvider(),
        analytics=analytics if analytics is not None else Analytics(),
    )
