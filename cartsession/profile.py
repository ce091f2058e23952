"""Profile query and the fetcher that keeps it current."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cartsession.auth.session import SessionProvider
from cartsession.errors import AuthError, RemoteError
from cartsession.events import EventEmitter
from cartsession.graphql import GraphQLClient
from cartsession.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

PROFILE_QUERY = """
query Profile {
  profile {
    _id
    name
    phone
    phoneIsVerified
    email
    emailIsVerified
    notificationToken
    isActive
    isOrderNotification
    isOfferNotification
    favourite
    __typename
  }
}
"""


class Profile(BaseModel):
    """Logged-in user's profile."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(alias="_id")
    typename: str = Field(default="User", alias="__typename")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")
    favourite: list[str] = []


class ProfileFetcher:
    """
    Network-only profile query, skipped while there is no token.

    State mirrors a UI query hook: ``called``, ``loading``, ``error`` and
    ``data``. A failed fetch is recorded, never retried, and does not
    touch the token. ``profile_loaded`` fires with the Profile after each
    successful fetch.
    """

    def __init__(self, client: GraphQLClient, session: SessionProvider):
        self.client = client
        self.session = session
        self.called = False
        self.loading = False
        self.error: Optional[RemoteError] = None
        self.data: Optional[Profile] = None
        self.profile_loaded = EventEmitter("profile_loaded")
        self._unsubscribe = client.store_reset.subscribe(self._on_store_reset)

    async def fetch(self) -> Optional[Profile]:
        """Fetch if a token is present. Errors end up in ``error``."""
        if not self.session.token:
            self.reset()
            return None
        try:
            return await self._run()
        except RemoteError:
            return None

    async def refetch(self) -> Optional[Profile]:
        """
        Fetch again on demand.

        Raises:
            AuthError: no token, or the backend rejected it
            RemoteError: network or GraphQL failure
        """
        if not self.session.token:
            raise AuthError("No session token")
        return await self._run()

    def reset(self) -> None:
        """Forget the previous result (token cleared)."""
        self.called = False
        self.loading = False
        self.error = None
        self.data = None

    async def _run(self) -> Optional[Profile]:
        token = self.session.token
        self.called = True
        self.loading = True
        try:
            data = await self.client.query(PROFILE_QUERY)
            raw = data.get("profile")
            profile = Profile.model_validate(raw) if raw else None
        except ValidationError as e:
            error = RemoteError(f"Malformed profile response: {e.error_count()} errors")
            self._record_error(token, error)
            raise error from e
        except RemoteError as e:
            self._record_error(token, e)
            raise
        finally:
            if self.session.token == token:
                self.loading = False

        if self.session.token != token:
            # Session changed while the request was in flight
            logger.debug("Discarding profile fetched for a previous session")
            return profile

        self.data = profile
        self.error = None
        if profile is not None:
            logger.debug(f"Profile loaded for user {sanitize_id_for_logging(profile.id)}")
            await self.profile_loaded.emit(profile)
        return profile

    def _record_error(self, token: Optional[str], error: RemoteError) -> None:
        if self.session.token != token:
            logger.debug(f"Discarding profile error for a previous session: {error}")
            return
        self.error = error
        logger.warning(f"Error in user profile: {error}")

    async def _on_store_reset(self) -> None:
        await self.fetch()

    def close(self) -> None:
        self._unsubscribe()
