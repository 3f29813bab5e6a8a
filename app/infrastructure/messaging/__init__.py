from app.infrastructure.messaging.connection import close_connection, get_connection
from app.infrastructure.messaging.publisher import publish_event

__all__ = ["publish_event", "get_connection", "close_connection"]
