"""Decorator API for listener registration.

Enables the ``@events.on_insert_after("articles")`` and
``@events.filter_select_after("articles")`` syntax on top of a Dispatcher.
"""

from typing import Any, Callable, Optional, TypeVar

from recordgate.core.events.dispatcher import Dispatcher
from recordgate.core.events.event_keys import EventAction, EventPhase, event_key

F = TypeVar("F", bound=Callable[..., Any])


class EventDecorator:
    """Provides decorator syntax for hook and filter registration.

    Passing a collection name binds the listener to the collection-qualified
    event; omitting it binds to the generic event fired for every collection.

    Example:
        events = EventDecorator(dispatcher)

        @events.on_insert_after("articles")
        def notify_on_article(event, data, context):
            send_notification(data["id"])

        @events.filter_update_before()
        def strip_strings(event, data, context):
            return {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    @property
    def dispatcher(self) -> Dispatcher:
        """Get the underlying dispatcher."""
        return self._dispatcher

    # =========================================================================
    # Hooks
    # =========================================================================

    def on_insert_before(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.INSERT, EventPhase.BEFORE, collection, **options)

    def on_insert_after(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.INSERT, EventPhase.AFTER, collection, **options)

    def on_update_before(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.UPDATE, EventPhase.BEFORE, collection, **options)

    def on_update_after(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.UPDATE, EventPhase.AFTER, collection, **options)

    def on_delete_before(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.DELETE, EventPhase.BEFORE, collection, **options)

    def on_delete_after(self, collection: Optional[str] = None, **options: Any) -> Callable[[F], F]:
        return self._hook(EventAction.DELETE, EventPhase.AFTER, collection, **options)

    def on_drop_after(self, **options: Any) -> Callable[[F], F]:
        """Register a hook for after a collection table is dropped."""
        return self._hook(EventAction.DROP, EventPhase.AFTER, None, **options)

    # =========================================================================
    # Filters
    # =========================================================================

    def filter_select_before(self, collection: Optional[str] = None, priority: int = 0) -> Callable[[F], F]:
        """Register a filter over the select state (only ``columns`` is read back)."""
        return self._filter(EventAction.SELECT, EventPhase.BEFORE, collection, priority)

    def filter_select_after(self, collection: Optional[str] = None, priority: int = 0) -> Callable[[F], F]:
        """Register a filter over the selected records (a list of dicts)."""
        return self._filter(EventAction.SELECT, EventPhase.AFTER, collection, priority)

    def filter_insert_before(self, collection: Optional[str] = None, priority: int = 0) -> Callable[[F], F]:
        return self._filter(EventAction.INSERT, EventPhase.BEFORE, collection, priority)

    def filter_update_before(self, collection: Optional[str] = None, priority: int = 0) -> Callable[[F], F]:
        return self._filter(EventAction.UPDATE, EventPhase.BEFORE, collection, priority)

    # =========================================================================
    # Generic Registration
    # =========================================================================

    def on(self, event: str, priority: int = 0, stop_on_error: bool = False) -> Callable[[F], F]:
        """Register a hook for an arbitrary event name."""

        def decorator(func: F) -> F:
            self._dispatcher.on(event, func, priority=priority, stop_on_error=stop_on_error)
            return func

        return decorator

    def filter(self, event: str, priority: int = 0) -> Callable[[F], F]:
        """Register a filter for an arbitrary event name."""

        def decorator(func: F) -> F:
            self._dispatcher.add_filter(event, func, priority=priority)
            return func

        return decorator

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _hook(
        self,
        action: EventAction,
        phase: EventPhase,
        collection: Optional[str],
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> Callable[[F], F]:
        return self.on(event_key(action, phase, collection), priority, stop_on_error)

    def _filter(
        self,
        action: EventAction,
        phase: EventPhase,
        collection: Optional[str],
        priority: int,
    ) -> Callable[[F], F]:
        return self.filter(event_key(action, phase, collection), priority)
