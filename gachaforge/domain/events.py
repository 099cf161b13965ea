"""Domain event dispatch."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, Mapping

BATCH_COMPLETED = "gacha.batch.completed"
CARD_SAVED = "catalog.card.saved"
CARD_DELETED = "catalog.card.deleted"
PACK_SAVED = "catalog.pack.saved"
PACK_DELETED = "catalog.pack.deleted"
TEMPLATE_SAVED = "catalog.template.saved"
CURRENCY_GRANTED = "account.currency.granted"

EventPayload = Mapping[str, Any]
EventListener = Callable[[EventPayload], Awaitable[None]]


class EventBus:
    """Simple async pub-sub; listeners run in subscription order."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        self._listeners[event_name].append(listener)

    def unsubscribe(self, event_name: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    async def publish(self, event_name: str, payload: EventPayload) -> None:
        for listener in list(self._listeners.get(event_name, ())):
            await listener(payload)

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, event_name: str) -> Iterable[EventListener]:
        return tuple(self._listeners.get(event_name, ()))
