"""
Event-type keyed dispatch to application handlers.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from transvoucher.core.exceptions import ConfigurationError
from transvoucher.core.logging import get_logger
from transvoucher.webhooks.events import EventType, WebhookEvent

EventHandler = Callable[[WebhookEvent], Any]

logger = get_logger("webhooks.router")


class HandlerTable(Mapping[EventType, EventHandler]):
    """
    Immutable mapping from event type to handler.

    Built once at configuration time. Keys may be given as EventType members
    or their string values.
    """

    def __init__(self, handlers: Mapping[EventType | str, EventHandler] | None = None) -> None:
        table: dict[EventType, EventHandler] = {}
        for key, handler in (handlers or {}).items():
            try:
                event_type = EventType(key)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown webhook event type: {key!r}",
                    details={"supported": sorted(EventType.values())},
                ) from None
            if not callable(handler):
                raise ConfigurationError(f"Handler for {event_type.value} is not callable")
            table[event_type] = handler
        self._table = MappingProxyType(table)

    def __getitem__(self, key: EventType) -> EventHandler:
        return self._table[key]

    def __iter__(self) -> Iterator[EventType]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"HandlerTable({sorted(k.value for k in self._table)})"


class EventRouter:
    """
    Invokes the handler registered for an event's type.

    Handlers may be plain functions or coroutines. Their exceptions propagate
    to the caller unchanged and are never retried here.
    """

    def __init__(self, handlers: HandlerTable | Mapping[EventType | str, EventHandler] | None = None) -> None:
        self.handlers = handlers if isinstance(handlers, HandlerTable) else HandlerTable(handlers)

    async def dispatch(self, event: WebhookEvent) -> bool:
        """
        Dispatch a validated event.

        Returns:
            True if a handler ran, False if none is registered for the type
        """
        handler = self.handlers.get(event.event_type)
        if handler is None:
            logger.debug(f"No handler registered for {event.event_type.value}")
            return False

        logger.debug(
            f"Dispatching {event.event_type.value} for transaction {event.transaction.id}"
        )
        result = handler(event)
        if inspect.isawaitable(result):
            await result
        return True
