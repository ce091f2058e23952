"""
Analytics sink and the observer that reports session events to it.

Analytics is fire-and-forget: failures are logged and never reach the
caller.
"""

from typing import Callable, Optional

import httpx

from cartsession import config
from cartsession.logging import get_logger, sanitize_id_for_logging
from cartsession.profile import Profile, ProfileFetcher

logger = get_logger(__name__)


class AnalyticsEvents:
    """Tracked event names."""

    USER_RECONNECTED = "User Reconnected"


class Analytics:
    """HTTP analytics sink (``/identify`` and ``/track``).

    Disabled when no URL is configured.
    """

    events = AnalyticsEvents

    def __init__(
        self,
        url: str = config.ANALYTICS_URL,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.url = url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def identify(self, attributes: dict, user_id: str) -> None:
        await self._send("identify", {"userId": user_id, "traits": attributes})

    async def track(self, event_name: str, payload: Optional[dict] = None) -> None:
        await self._send("track", {"event": event_name, "properties": payload or {}})

    async def _send(self, path: str, body: dict) -> None:
        if not self.enabled:
            logger.debug(f"Analytics disabled, dropping {path}")
            return
        try:
            response = await self._http.post(f"{self.url}/{path}", json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Analytics {path} failed: {e}")

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


class AnalyticsObserver:
    """Identifies the user and tracks a reconnect on every profile load."""

    def __init__(self, analytics: Analytics):
        self.analytics = analytics

    def attach(self, fetcher: ProfileFetcher) -> Callable[[], None]:
        return fetcher.profile_loaded.subscribe(self.on_profile_loaded)

    async def on_profile_loaded(self, profile: Profile) -> None:
        try:
            await self.analytics.identify(
                {
                    "userId": profile.id,
                    "name": profile.name,
                    "email": profile.email,
                    "phone": profile.phone,
                },
                profile.id,
            )
            await self.analytics.track(
                self.analytics.events.USER_RECONNECTED,
                {"userId": profile.id},
            )
        except Exception as e:
            logger.warning(
                f"Analytics for user {sanitize_id_for_logging(profile.id)} failed: {e}",
                exc_info=True,
            )
