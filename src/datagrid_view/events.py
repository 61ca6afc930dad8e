"""Outbound change notifications.

Every logical state change produces one :class:`ViewEvent` whose
``detail`` carries enough to render the change without querying back.
Detail keys are camelCase, matching what a browser-side surface expects.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

SORT_CHANGED = "sort-changed"
FILTER_CHANGED = "filter-changed"
PAGE_CHANGED = "page-changed"
PAGE_NORMALIZED = "page-normalized"
COLUMN_ORDER_CHANGED = "column-order-changed"
COLUMN_RESIZED = "column-resized"
ROW_SELECTED = "row-selected"
BULK_CLEARED = "bulk-cleared"
VIRTUAL_RANGE_CHANGED = "virtual-range-changed"


@dataclass(frozen=True)
class ViewEvent:
    name: str
    detail: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[ViewEvent], None]


class EventBus:
    """Synchronous listener registry.  Listeners run in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[tuple[str | None, Listener]] = []

    def subscribe(self, listener: Listener, name: str | None = None) -> Callable[[], None]:
        """Register *listener* for every event, or only events called *name*.

        Returns:
            A callable that removes the registration.
        """
        entry = (name, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def emit(self, name: str, detail: dict[str, Any]) -> ViewEvent:
        event = ViewEvent(name=name, detail=detail)
        for wanted, listener in list(self._listeners):
            if wanted is None or wanted == name:
                listener(event)
        return event
