"""
In-process change notifications.

Stores publish a ChangeEvent after every committed write; subscribers register a single callback
per subscription and get back a handle to unsubscribe with (e.g. on logout).
Delivery is synchronous, in subscription order, and at-least-once from the subscriber's point of view:
the same record can be announced several times, so callbacks must be idempotent.
"""

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Callable

from src.core.exceptions import GameError
from src.core.models import ChangeEvent

log = logging.getLogger(__name__)

ALL_RECORDS = "*"

OnChange = Callable[[ChangeEvent], None]


@dataclass
class SubscriptionHandle:
    """Returned by subscribe(). Calling unsubscribe() more than once is harmless."""

    collection: str
    pattern: str
    _feed: "ChangeFeed" = field(repr=False)
    _key: int = field(repr=False)

    @property
    def active(self) -> bool:
        return self._feed.is_subscribed(self)

    def unsubscribe(self) -> None:
        self._feed.unsubscribe(self)


class ChangeFeed:
    """Registry of subscriptions per collection."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, tuple[SubscriptionHandle, OnChange]] = {}
        self._keys = count()

    def subscribe(self, collection: str, pattern: str, on_change: OnChange) -> SubscriptionHandle:
        """Listen to changes in a collection. pattern is either '*' or the id of a single record."""
        handle = SubscriptionHandle(collection, pattern, self, next(self._keys))
        self._subscriptions[handle._key] = (handle, on_change)
        log.debug("Subscribed to %s/%s", collection, pattern)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        if self._subscriptions.pop(handle._key, None) is not None:
            log.debug("Unsubscribed from %s/%s", handle.collection, handle.pattern)

    def is_subscribed(self, handle: SubscriptionHandle) -> bool:
        return handle._key in self._subscriptions

    def publish(self, event: ChangeEvent) -> None:
        # Copy: callbacks may (un)subscribe while being notified
        for handle, on_change in list(self._subscriptions.values()):
            if not self.is_subscribed(handle):
                continue
            if not self._matches(handle, event):
                continue
            # runs after the commit: a failing subscriber is logged, the others still get the event
            try:
                on_change(event)
            except GameError:
                log.exception(
                    "Subscriber of %s/%s failed on %s of %s",
                    handle.collection,
                    handle.pattern,
                    event.action,
                    event.record_id,
                )

    @staticmethod
    def _matches(handle: SubscriptionHandle, event: ChangeEvent) -> bool:
        if handle.collection != event.collection:
            return False
        return handle.pattern in (ALL_RECORDS, str(event.record_id))
