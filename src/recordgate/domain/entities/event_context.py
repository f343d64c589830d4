"""Event context and results for the event pipeline.

Contains the data structures passed to and returned from listeners:
- EventContext: Context passed to all listeners
- NotifyResult: Result of a notification dispatch
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class EventContext:
    """Context passed to every hook and filter listener.

    Attributes:
        collection_name: The collection the operation targets.
        user_id: The acting user, or None when no access policy is attached.
        group_id: The acting user's group.
        attributes: Extra, event-specific values (e.g. the select state for
            select filters).
        request_id: Correlation ID for logging and tracing.

    Example:
        def my_hook(event: str, data: dict, context: EventContext) -> None:
            logger.info("Record written", collection=context.collection_name)
    """

    collection_name: Optional[str] = None
    user_id: Optional[Any] = None
    group_id: Optional[Any] = None
    attributes: dict[str, Any] = field(default_factory=dict)
    request_id: str = ""

    def __post_init__(self) -> None:
        if not self.request_id:
            self.request_id = f"ev_{uuid.uuid4().hex[:12]}"

    def get(self, key: str, default: Any = None) -> Any:
        """Get an event-specific attribute."""
        return self.attributes.get(key, default)


@dataclass
class NotifyResult:
    """Result of a notification dispatch.

    Attributes:
        success: Whether all listeners executed successfully.
        errors: Error messages from listeners that failed.
        listener_count: Number of listeners that were invoked.
    """

    success: bool = True
    errors: list[str] = field(default_factory=list)
    listener_count: int = 0
