"""Event name definitions for the record pipeline.

Event names are plain strings following the pattern
``{entity}.{action}[.{collection}][:before|:after]``. They should always be
built through :func:`event_key` so the full event surface stays enumerable.

IMPORTANT: Adding new actions is allowed (non-breaking), but renaming an
           action or phase changes the names listeners are bound to.
"""

from enum import Enum

ENTITY_COLLECTION = "collection"


class EventAction(str, Enum):
    """Operations that emit events."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DROP = "drop"


class EventPhase(str, Enum):
    """Phase suffix of an event name.

    ``DONE`` is the bare post-completion phase, fired before ``AFTER``.
    """

    BEFORE = "before"
    DONE = ""
    AFTER = "after"


# Notifications fired by the upsert path once the row is written
POST_INSERT = "postInsert"
POST_UPDATE = "postUpdate"


def event_key(
    action: EventAction | str,
    phase: EventPhase | str = EventPhase.DONE,
    collection: str | None = None,
    entity: str = ENTITY_COLLECTION,
) -> str:
    """Build an event name.

    Args:
        action: The operation (select, insert, update, delete, drop).
        phase: before, after or the bare completion phase.
        collection: Optional collection name for collection-qualified events.
        entity: Event entity prefix.

    Returns:
        The event name, e.g. ``collection.insert.articles:before``.

    Raises:
        ValueError: If the action, phase or collection name is invalid.

    Example:
        >>> event_key(EventAction.UPDATE, EventPhase.AFTER, "articles")
        'collection.update.articles:after'
    """
    action = EventAction(action)
    phase = EventPhase(phase)
    if collection is not None and (not collection or ":" in collection):
        raise ValueError(f"Invalid collection name for event key: {collection!r}")

    parts = [entity, action.value]
    if collection is not None:
        parts.append(collection)

    name = ".".join(parts)
    if phase is not EventPhase.DONE:
        name = f"{name}:{phase.value}"
    return name


def event_keys(
    action: EventAction | str,
    phase: EventPhase | str,
    collection: str,
) -> list[str]:
    """Get the generic and the collection-qualified event names, in firing order."""
    return [
        event_key(action, phase),
        event_key(action, phase, collection),
    ]


def get_all_events(collection: str | None = None) -> list[str]:
    """Get every event name the pipeline can emit.

    Args:
        collection: If given, collection-qualified names are included too.
    """
    events = []
    for action in EventAction:
        for phase in EventPhase:
            events.append(event_key(action, phase))
            if collection is not None:
                events.append(event_key(action, phase, collection))
    return events + [POST_INSERT, POST_UPDATE]


def is_before_event(event: str) -> bool:
    """Check if an event is a 'before' event (can modify data/abort)."""
    return event.endswith(":" + EventPhase.BEFORE.value)


def is_after_event(event: str) -> bool:
    """Check if an event is an 'after' event."""
    return event.endswith(":" + EventPhase.AFTER.value)
