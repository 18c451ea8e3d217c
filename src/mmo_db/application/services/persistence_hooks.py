from collections import defaultdict
import logging
from typing import Callable, DefaultDict, List, Type


class PersistenceHooks:
    """Ordered extension callbacks for the persistence lifecycle events.

    Handlers run by ascending priority, then registration order. A failing
    handler is logged and its exception propagates to the publisher, so a
    failure inside a save hook rolls the save transaction back.
    """

    def __init__(self) -> None:
        self._subscribers: DefaultDict[Type[object], List[tuple[int, int, Callable[[object], None]]]] = defaultdict(list)
        self._next_order = 0
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event_type: Type[object], handler: Callable[[object], None], *, priority: int = 100) -> None:
        self._subscribers[event_type].append((int(priority), self._next_order, handler))
        self._next_order += 1
        self._subscribers[event_type].sort(key=lambda row: (row[0], row[1]))

    def unsubscribe(self, event_type: Type[object], handler: Callable[[object], None]) -> None:
        self._subscribers[event_type] = [row for row in self._subscribers[event_type] if row[2] is not handler]

    def handlers(self, event_type: Type[object]) -> List[Callable[[object], None]]:
        return [handler for _, _, handler in self._subscribers[event_type]]

    def publish(self, event: object) -> None:
        event_type = type(event)
        for priority, _, handler in list(self._subscribers[event_type]):
            try:
                handler(event)
            except Exception:
                handler_name = getattr(handler, "__qualname__", getattr(handler, "__name__", repr(handler)))
                self._logger.exception(
                    "Persistence hook failed",
                    extra={
                        "event_type": event_type.__name__,
                        "handler": handler_name,
                        "priority": priority,
                    },
                )
                raise
