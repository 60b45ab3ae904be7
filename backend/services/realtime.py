"""
In-process publish/subscribe channel used for presence and chat updates.

Each subscriber owns a queue. A subscription lives until it is cancelled,
either explicitly or by leaving its ``async with`` block.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]


class Subscription:
    def __init__(self, channel: "Channel", topic: str, callback: Optional[Callback] = None):
        self.channel = channel
        self.topic = topic
        self.callback = callback
        self._queue: asyncio.Queue = asyncio.Queue()
        self.cancelled = False

    async def deliver(self, payload: Any):
        if self.cancelled:
            return
        if self.callback is None:
            self._queue.put_nowait(payload)
            return
        try:
            result = self.callback(payload)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Subscriber callback failed on {self.topic}: {e}")

    async def get(self) -> Any:
        """Wait for the next payload"""
        return await self._queue.get()

    def cancel(self):
        if self.cancelled:
            return
        self.cancelled = True
        self.channel._remove(self)

    # Alias so the handle can be used like the unsubscribe function it replaces
    unsubscribe = cancel

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.cancelled:
            raise StopAsyncIteration
        return await self.get()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.cancel()


class Channel:
    def __init__(self):
        # Dicts keep insertion order, so delivery follows subscription order
        self._subscribers: Dict[str, Dict[Subscription, None]] = defaultdict(dict)

    def subscribe(self, topic: str, callback: Optional[Callback] = None) -> Subscription:
        subscription = Subscription(self, topic, callback)
        self._subscribers[topic][subscription] = None
        logger.debug(f"Subscribed to {topic} ({len(self._subscribers[topic])} listeners)")
        return subscription

    async def publish(self, topic: str, payload: Any) -> int:
        """Deliver payload to every live subscriber of topic, in subscription order"""
        subscribers = list(self._subscribers.get(topic, ()))
        for subscription in subscribers:
            await subscription.deliver(payload)
        return len(subscribers)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def _remove(self, subscription: Subscription):
        listeners = self._subscribers.get(subscription.topic)
        if not listeners:
            return
        listeners.pop(subscription, None)
        if not listeners:
            del self._subscribers[subscription.topic]


# Process-wide channel shared by the services
channel = Channel()


def get_channel() -> Channel:
    return channel
