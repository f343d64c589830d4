"""RecordGate - Access-controlled, event-driven record gateway.

Executes select/insert/update/delete on named collections over SQLAlchemy,
with collection, field, ownership and status-scoped access control, and a
hook/filter event pipeline around every operation.
"""

__version__ = "0.1.0"

from recordgate.core.container import ServiceRegistry
from recordgate.core.events import Dispatcher, EventDecorator
from recordgate.infrastructure.persistence.record_gateway import RecordGateway

__all__ = ["Dispatcher", "EventDecorator", "RecordGateway", "ServiceRegistry", "__version__"]
