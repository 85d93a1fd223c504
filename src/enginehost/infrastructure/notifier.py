"""Progress notifier: fire-and-forget traces for whoever is listening."""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from enginehost.infrastructure.logger import logger

AVAILABILITY_CHANNEL = "engine.availability"

Subscriber = Callable[[str, dict[str, Any]], None]


@runtime_checkable
class Notifier(Protocol):
    def transmit(self, channel: str, payload: dict[str, Any]) -> None: ...


class NullNotifier:
    """Drops every trace."""

    def transmit(self, channel: str, payload: dict[str, Any]) -> None:
        return None


class BroadcastNotifier:
    """Fans traces out to subscribers. A failing subscriber never reaches the publisher."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def transmit(self, channel: str, payload: dict[str, Any]) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(channel, payload)
            except Exception:
                logger.exception("Notifier subscriber failed", channel=channel)


def trace(notifier: Notifier, message: str, channel: str = AVAILABILITY_CHANNEL) -> None:
    """Publish a trace line; publishing problems are logged and swallowed."""
    try:
        notifier.transmit(channel, {"trace": message})
    except Exception:
        logger.exception("Unable to transmit trace", channel=channel, trace=message)
