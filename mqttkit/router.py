"""Topic routing of incoming messages to registered handlers.

Route filters follow the MQTT wildcard rules. ``+`` matches exactly one
level. ``#`` matches the remaining levels, including none at all. Shared
subscriptions (``$share/<group>/<filter>``) are matched on their filter
part alone.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class Message(Protocol):
    """What the router needs from an incoming message."""

    topic: str

    def ack(self) -> None:
        ...


MessageHandler = Callable[[Any, Any], None]


def match(route: Sequence[str], topic: Sequence[str]) -> bool:
    """Return True if the split route filter matches the split topic."""
    for position, level in enumerate(route):
        if level == "#":
            return True
        if position >= len(topic):
            return False
        if level != "+" and level != topic[position]:
            return False
    return len(route) == len(topic)


def route_split(route: str) -> list[str]:
    """Split a route on '/', dropping the ``$share/<group>`` prefix if present."""
    levels = route.split("/")
    if route.startswith("$share"):
        return levels[2:]
    return levels


def route_includes_topic(route: str, topic: str) -> bool:
    """Return True if the route filter matches the topic name."""
    return match(route_split(route), topic.split("/"))


@dataclass
class Route:
    """A topic filter and the handler called for messages that match it."""

    topic: str
    callback: MessageHandler

    def matches(self, topic: str) -> bool:
        """Return True if a message published to ``topic`` belongs to this route."""
        return self.topic == topic or route_includes_topic(self.topic, topic)


class Router:
    """Holds routes in insertion order and dispatches messages to them."""

    def __init__(self, goroutine_limit: int = 1000) -> None:
        if goroutine_limit < 1:
            raise ValueError("goroutine_limit must be at least 1")
        self._lock = threading.RLock()
        self._routes: list[Route] = []
        self._default_handler: Optional[MessageHandler] = None
        self.goroutine_limit = goroutine_limit

    @property
    def routes(self) -> list[Route]:
        """A snapshot of the current routes, in order."""
        with self._lock:
            return list(self._routes)

    def add_route(self, topic: str, callback: MessageHandler) -> None:
        """Add a route, or replace the callback of an existing one for ``topic``."""
        with self._lock:
            for route in self._routes:
                if route.topic == topic:
                    route.callback = callback
                    return
            self._routes.append(Route(topic, callback))

    def delete_route(self, topic: str) -> None:
        """Remove the route registered for ``topic``, if any."""
        with self._lock:
            for position, route in enumerate(self._routes):
                if route.topic == topic:
                    del self._routes[position]
                    return

    def set_default_handler(self, handler: Optional[MessageHandler]) -> None:
        """Set the handler used when no route matches a message."""
        with self._lock:
            self._default_handler = handler

    def handlers_for(self, topic: str) -> list[MessageHandler]:
        """Return the handlers a message on ``topic`` is delivered to."""
        with self._lock:
            handlers = [route.callback for route in self._routes if route.matches(topic)]
            if not handlers and self._default_handler is not None:
                handlers.append(self._default_handler)
            return handlers

    def match_and_dispatch(
        self,
        messages: Iterable[Message],
        order: bool = True,
        client: Any = None,
        auto_ack: bool = True,
    ) -> int:
        """Deliver every message to its handlers and return how many were handled.

        With ``order`` the handlers run one after another in the calling
        thread. Otherwise they run on a pool of at most ``goroutine_limit``
        threads, and the call returns once all of them have finished. After
        each handler returns, the message is acknowledged unless ``auto_ack``
        is false. A message with no handler is not acknowledged.
        """

        def deliver(handler: MessageHandler, message: Message) -> None:
            handler(client, message)
            if auto_ack:
                message.ack()

        handled = 0
        if order:
            for message in messages:
                handlers = self._handlers_or_log(message)
                for handler in handlers:
                    deliver(handler, message)
                handled += bool(handlers)
        else:
            with ThreadPoolExecutor(max_workers=self.goroutine_limit) as pool:
                for message in messages:
                    handlers = self._handlers_or_log(message)
                    for handler in handlers:
                        pool.submit(self._run_logged, deliver, handler, message)
                    handled += bool(handlers)
        logger.debug("match_and_dispatch exiting")
        return handled

    def _handlers_or_log(self, message: Message) -> list[MessageHandler]:
        handlers = self.handlers_for(message.topic)
        if not handlers:
            logger.debug(
                "received message and no handler was available; message will NOT be acknowledged"
            )
        return handlers

    @staticmethod
    def _run_logged(
        deliver: Callable[[MessageHandler, Message], None],
        handler: MessageHandler,
        message: Message,
    ) -> None:
        try:
            deliver(handler, message)
        except Exception:
            logger.exception("message handler raised")