"""Event pipeline core module.

Hooks are fire-and-forget notifications; filters transform data and feed
their output back into the operation in flight.

Example usage:
    from recordgate.core.events import Dispatcher, EventDecorator

    dispatcher = Dispatcher()
    events = EventDecorator(dispatcher)

    @events.on_insert_after("articles")
    def notify_on_article(event, data, context):
        send_notification(data)
"""

from recordgate.core.events.dispatcher import Dispatcher, RegisteredListener
from recordgate.core.events.event_decorator import EventDecorator
from recordgate.core.events.event_keys import (
    POST_INSERT,
    POST_UPDATE,
    EventAction,
    EventPhase,
    event_key,
    event_keys,
    get_all_events,
    is_after_event,
    is_before_event,
)

__all__ = [
    "Dispatcher",
    "RegisteredListener",
    "EventDecorator",
    "EventAction",
    "EventPhase",
    "POST_INSERT",
    "POST_UPDATE",
    "event_key",
    "event_keys",
    "get_all_events",
    "is_before_event",
    "is_after_event",
]
