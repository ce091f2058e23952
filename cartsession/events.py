"""In-process event emitter for session side effects.

Handlers run in subscription order. A failing handler is logged and
skipped; emitting never raises into the component that emitted.
"""

import inspect
from typing import Any, Awaitable, Callable, Union

from cartsession.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[..., Union[None, Awaitable[None]]]


class EventEmitter:
    """Named event with a list of subscribers."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def emit(self, *args: Any) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Handler for {self.name} failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._handlers)
