"""
Test suite for the RabbitMQ connection helpers.

Run tests:
    pytest tests/infrastructure/messaging/test_connection.py -v
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.infrastructure.messaging import connection as connection_module
from app.infrastructure.messaging.connection import close_connection, get_connection


@pytest.fixture(autouse=True)
def reset_connection():
    connection_module._connection = None
    yield
    connection_module._connection = None


class TestGetConnection:

    async def test_creates_connection_once(self):
        mock_connection = MagicMock(is_closed=False)

        with patch(
            "app.infrastructure.messaging.connection.aio_pika.connect_robust",
            new_callable=AsyncMock,
            return_value=mock_connection,
        ) as mock_connect:
            first = await get_connection()
            second = await get_connection()

        assert first is second is mock_connection
        mock_connect.assert_awaited_once_with(connection_module.settings.RABBITMQ_URL)

    async def test_reconnects_when_closed(self):
        closed = MagicMock(is_closed=True)
        fresh = MagicMock(is_closed=False)
        connection_module._connection = closed

        with patch(
            "app.infrastructure.messaging.connection.aio_pika.connect_robust",
            new_callable=AsyncMock,
            return_value=fresh,
        ):
            assert await get_connection() is fresh


class TestCloseConnection:

    async def test_closes_open_connection(self):
        mock_connection = MagicMock(is_closed=False)
        mock_connection.close = AsyncMock()
        connection_module._connection = mock_connection

        await close_connection()

        mock_connection.close.assert_awaited_once()
        assert connection_module._connection is None

    async def test_noop_without_connection(self):
        await close_connection()

        assert connection_module._connection is None
