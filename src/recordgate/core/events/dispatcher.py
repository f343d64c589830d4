"""Dispatcher - Central listener registration and execution engine.

The Dispatcher runs the two kinds of listeners of the record pipeline:
- hooks: fire-and-forget notifications, output ignored
- filters: chained transforms, each receiving the previous listener's output

One Dispatcher is created at process start and passed to every gateway.
Registration is expected to happen at startup; dispatching is read-only.
"""

import inspect
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from recordgate.core.exceptions import AbortOperationError
from recordgate.core.logging import get_logger
from recordgate.domain.entities.event_context import EventContext, NotifyResult

logger = get_logger(__name__)

KIND_HOOK = "hook"
KIND_FILTER = "filter"


@dataclass
class RegisteredListener:
    """Internal representation of a registered listener.

    Attributes:
        id: Unique identifier for this registration.
        event: The event name this listener is bound to.
        callback: Callable accepting (event, data, context).
        kind: "hook" or "filter".
        priority: Execution priority (higher = earlier).
        stop_on_error: Whether a failing hook aborts the operation.
        is_builtin: Whether this listener can be removed.
        registration_order: Order in which this listener was registered.
    """

    id: str
    event: str
    callback: Callable
    kind: str = KIND_HOOK
    priority: int = 0
    stop_on_error: bool = False
    is_builtin: bool = False
    registration_order: int = 0


class Dispatcher:
    """Registers and runs hook and filter listeners by event name.

    Example:
        dispatcher = Dispatcher()

        def stamp(event, data, context):
            return {**data, "slug": slugify(data["title"])}

        dispatcher.add_filter("collection.insert.articles:before", stamp)
        data = dispatcher.apply_filter(
            "collection.insert.articles:before", {"title": "Hi"}, context
        )
    """

    def __init__(self) -> None:
        self._listeners: dict[str, dict[str, list[RegisteredListener]]] = {
            KIND_HOOK: {},
            KIND_FILTER: {},
        }
        self._listener_map: dict[str, RegisteredListener] = {}
        self._registration_counter: int = 0

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on(
        self,
        event: str,
        callback: Callable,
        priority: int = 0,
        stop_on_error: bool = False,
        is_builtin: bool = False,
    ) -> str:
        """Register a notification hook for an event.

        Args:
            event: Event name (e.g., "collection.insert.articles:after").
            callback: Callable accepting (event, data, context). Its return
                      value is ignored.
            priority: Higher priority hooks run first. Default is 0.
            stop_on_error: If True, an error in this hook propagates to the
                           caller instead of being logged.
            is_builtin: If True, this hook cannot be removed.

        Returns:
            Unique listener id for later removal.
        """
        return self._register(KIND_HOOK, event, callback, priority, stop_on_error, is_builtin)

    def add_filter(
        self,
        event: str,
        callback: Callable,
        priority: int = 0,
        is_builtin: bool = False,
    ) -> str:
        """Register a filter for an event.

        Filters receive (event, data, context) and return the new data.
        Returning None leaves the data unchanged. Errors always propagate.

        Returns:
            Unique listener id for later removal.
        """
        return self._register(KIND_FILTER, event, callback, priority, True, is_builtin)

    def _register(
        self,
        kind: str,
        event: str,
        callback: Callable,
        priority: int,
        stop_on_error: bool,
        is_builtin: bool,
    ) -> str:
        if not callable(callback):
            raise TypeError(f"Listener for '{event}' is not callable")
        if inspect.iscoroutinefunction(callback):
            raise TypeError(f"Listener for '{event}' must be synchronous")

        listener_id = f"{kind}_{uuid.uuid4().hex[:12]}"
        self._registration_counter += 1

        listener = RegisteredListener(
            id=listener_id,
            event=event,
            callback=callback,
            kind=kind,
            priority=priority,
            stop_on_error=stop_on_error,
            is_builtin=is_builtin,
            registration_order=self._registration_counter,
        )
        self._listeners[kind].setdefault(event, []).append(listener)
        self._listener_map[listener_id] = listener

        logger.debug(
            "Listener registered",
            listener_id=listener_id,
            listener_kind=kind,
            event_name=event,
            priority=priority,
        )
        return listener_id

    def off(self, listener_id: str) -> bool:
        """Remove a registered listener.

        Returns:
            True if removed, False if not found or built-in.
        """
        listener = self._listener_map.get(listener_id)
        if not listener:
            logger.warning("Listener not found for removal", listener_id=listener_id)
            return False

        if listener.is_builtin:
            logger.warning(
                "Cannot remove built-in listener",
                listener_id=listener_id,
                event_name=listener.event,
            )
            return False

        by_event = self._listeners[listener.kind]
        by_event[listener.event] = [
            item for item in by_event[listener.event] if item.id != listener_id
        ]
        if not by_event[listener.event]:
            del by_event[listener.event]

        del self._listener_map[listener_id]
        logger.debug("Listener removed", listener_id=listener_id, event_name=listener.event)
        return True

    # ------------------------------------------------------------------
    # Dispatching
    # ------------------------------------------------------------------

    def has_listeners(self, event: str) -> bool:
        """Check whether any hook is registered for an event."""
        return bool(self._listeners[KIND_HOOK].get(event))

    def has_filter_listeners(self, event: str) -> bool:
        """Check whether any filter is registered for an event."""
        return bool(self._listeners[KIND_FILTER].get(event))

    def notify(
        self,
        event: str,
        data: Any = None,
        context: Optional[EventContext] = None,
    ) -> NotifyResult:
        """Run every hook registered for an event.

        Hooks run in priority order (higher first), then registration order.
        A failing hook is logged and the remaining hooks still run, unless
        the hook was registered with ``stop_on_error``.

        Raises:
            AbortOperationError: If a hook aborts the operation.
        """
        result = NotifyResult()
        hooks = self._sorted(KIND_HOOK, event)
        if not hooks:
            return result

        logger.debug("Notifying hooks", event_name=event, hook_count=len(hooks))

        for hook in hooks:
            result.listener_count += 1
            try:
                hook.callback(event, data, context)
            except AbortOperationError:
                logger.info("Hook aborted operation", listener_id=hook.id, event_name=event)
                raise
            except Exception as e:
                logger.error(
                    "Hook execution failed",
                    listener_id=hook.id,
                    event_name=event,
                    error=str(e),
                    stop_on_error=hook.stop_on_error,
                )
                result.success = False
                result.errors.append(f"Hook {hook.id} failed: {e}")
                if hook.stop_on_error:
                    raise

        return result

    def apply_filter(
        self,
        event: str,
        data: Any = None,
        context: Optional[EventContext] = None,
    ) -> Any:
        """Pass data through the filter chain of an event.

        Without registered filters the data is returned untouched.
        """
        filters = self._sorted(KIND_FILTER, event)
        if not filters:
            return data

        logger.debug("Applying filters", event_name=event, filter_count=len(filters))

        current = data
        for listener in filters:
            output = listener.callback(event, current, context)
            if output is not None:
                current = output
        return current

    def apply_filters(
        self,
        events: list[str],
        data: Any = None,
        context: Optional[EventContext] = None,
    ) -> Any:
        """Apply the filter chains of several events, in order."""
        for event in events:
            data = self.apply_filter(event, data, context)
        return data

    def _sorted(self, kind: str, event: str) -> list[RegisteredListener]:
        listeners = self._listeners[kind].get(event, [])
        return sorted(listeners, key=lambda item: (-item.priority, item.registration_order))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_listeners_for_event(self, event: str) -> list[RegisteredListener]:
        """Get hooks and filters registered for an event."""
        return self._listeners[KIND_HOOK].get(event, []) + self._listeners[KIND_FILTER].get(
            event, []
        )

    def get_listener_by_id(self, listener_id: str) -> Optional[RegisteredListener]:
        return self._listener_map.get(listener_id)

    def clear(self, include_builtin: bool = False) -> int:
        """Remove all registered listeners.

        Args:
            include_builtin: If True, also remove built-in listeners.

        Returns:
            Number of listeners removed.
        """
        if include_builtin:
            count = len(self._listener_map)
            for by_event in self._listeners.values():
                by_event.clear()
            self._listener_map.clear()
        else:
            to_remove = [
                listener_id
                for listener_id, listener in self._listener_map.items()
                if not listener.is_builtin
            ]
            for listener_id in to_remove:
                self.off(listener_id)
            count = len(to_remove)

        logger.debug("Listeners cleared", count=count, include_builtin=include_builtin)
        return count
