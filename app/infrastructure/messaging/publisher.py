import json
from typing import Any

import aio_pika

from app.infrastructure.messaging.connection import get_connection


async def publish_event(
    queue_name: str, event: dict[str, Any], headers: dict[str, Any] | None = None
) -> None:
    """
    Publishes an event message to the specified durable queue.

    Args:
        queue_name (str): The name of the queue to publish the event to.
        event (dict[str, Any]): The event data to be published as a dictionary.
        headers (dict[str, Any] | None, optional): Additional message headers.

    Raises:
        Any exceptions raised by the underlying connection or publishing mechanisms.

    Note:
        The event is serialized to JSON and sent as a persistent message with
        content type 'application/json'. The channel is closed afterwards.
    """
    connection = await get_connection()
    channel = await connection.channel()
    try:
        await channel.declare_queue(queue_name, durable=True)

        message = aio_pika.Message(
            body=json.dumps(event).encode(),
            headers=headers or {},
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
        )

        await channel.default_exchange.publish(message, routing_key=queue_name)
    finally:
        await channel.close()
