"""
Event Bus - Topic-based synchronous notifications

Every mutation that affects rendered state is announced here; presentation
code re-renders in response to these notifications only.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Union

from catalog_dashboard.constants import Topic

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]
TopicName = Union[Topic, str]

_subscription_ids = itertools.count(1)


def _topic_name(topic: TopicName) -> str:
    return topic.value if isinstance(topic, Topic) else str(topic)


@dataclass(frozen=True)
class Subscription:
    """Handle returned by `EventBus.subscribe`; pass it back to unsubscribe."""
    topic: str
    handler: Handler = field(compare=False)
    subscription_id: int = field(default_factory=lambda: next(_subscription_ids))


class EventBus:
    """
    Minimal publish/subscribe channel.

    Delivery is synchronous and in registration order, to the subscribers
    present when `publish` is called. A failing handler is logged and does
    not prevent delivery to the ones after it.
    """

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def subscribe(self, topic: TopicName, handler: Handler) -> Subscription:
        if not callable(handler):
            raise ValueError(f"Handler must be callable: {handler!r}")
        subscription = Subscription(topic=_topic_name(topic), handler=handler)
        self._subscriptions.setdefault(subscription.topic, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        subscribers = self._subscriptions.get(subscription.topic, [])
        try:
            subscribers.remove(subscription)
        except ValueError:
            return False
        if not subscribers:
            self._subscriptions.pop(subscription.topic, None)
        return True

    def publish(self, topic: TopicName, payload: Any = None) -> int:
        """
        Deliver payload to every current subscriber of topic.

        Returns:
            Number of handlers that completed without raising
        """
        name = _topic_name(topic)
        # Snapshot: handlers that (un)subscribe during delivery affect the next publish only
        subscribers = list(self._subscriptions.get(name, ()))
        delivered = 0
        for subscription in subscribers:
            try:
                subscription.handler(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Handler for topic '{name}' failed (subscription {subscription.subscription_id})")
        return delivered

    def subscriber_count(self, topic: TopicName) -> int:
        return len(self._subscriptions.get(_topic_name(topic), ()))

    def clear(self) -> None:
        self._subscriptions.clear()
