"""
RabbitMQ queue storage.

Publishes JSON messages with pika's BlockingConnection. All broker calls
run on one dedicated thread, separate from the default executor that
password hashing uses, so a hung broker only delays other publishes.
Every failure is reported as False and logged, never raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pika import BasicProperties, BlockingConnection, DeliveryMode, URLParameters
from pika import exceptions as pika_exceptions

from franchise_auth.storage.base import QueueStorage

logger = logging.getLogger(__name__)


class RabbitMQQueueStorage(QueueStorage):
    """Send-only RabbitMQ publisher. One lazily opened connection per process."""

    def __init__(
        self,
        url: str,
        connection_attempts: int = 1,
        socket_timeout: float = 2.0,
        blocked_connection_timeout: float = 5.0,
    ):
        self.url = url
        self.connection_attempts = connection_attempts
        self.socket_timeout = socket_timeout
        self.blocked_connection_timeout = blocked_connection_timeout
        self._connection: BlockingConnection | None = None
        self._channel = None
        self._declared: set[str] = set()
        # BlockingConnection is not thread-safe; one worker serializes every call
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rabbitmq-publisher")

    async def send_message(self, payload: dict[str, Any], queue_name: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._publish, payload, queue_name)

    async def close(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._close)
        self._executor.shutdown(wait=False)

    # -------------------------------------------------------------------------
    # Blocking helpers (publisher thread only)
    # -------------------------------------------------------------------------

    def _connect(self) -> None:
        if self._connection is not None and self._connection.is_open:
            if self._channel is not None and self._channel.is_open:
                return
            self._channel = self._connection.channel()
            self._channel.confirm_delivery()
            self._declared.clear()
            return

        parameters = URLParameters(self.url)
        parameters.connection_attempts = self.connection_attempts
        parameters.socket_timeout = self.socket_timeout
        parameters.blocked_connection_timeout = self.blocked_connection_timeout
        self._connection = BlockingConnection(parameters)
        self._channel = self._connection.channel()
        self._channel.confirm_delivery()
        self._declared.clear()
        logger.info("Connected to RabbitMQ")

    def _publish(self, payload: dict[str, Any], queue_name: str) -> bool:
        message_id = str(uuid.uuid4())
        try:
            self._connect()
            if queue_name not in self._declared:
                self._channel.queue_declare(queue=queue_name, durable=True)
                self._declared.add(queue_name)
            self._channel.basic_publish(
                exchange="",
                routing_key=queue_name,
                body=json.dumps(payload, default=str).encode("utf-8"),
                properties=BasicProperties(
                    content_type="application/json",
                    delivery_mode=DeliveryMode.Persistent,
                    message_id=message_id,
                ),
                mandatory=True,
            )
        except (pika_exceptions.AMQPError, OSError) as e:
            logger.warning(f"RabbitMQ publish to {queue_name} failed: {e}")
            self._reset()
            return False

        logger.debug(f"Published message {message_id} to {queue_name}")
        return True

    def _reset(self) -> None:
        connection = self._connection
        self._connection = None
        self._channel = None
        self._declared.clear()
        if connection is not None and connection.is_open:
            try:
                connection.close()
            except pika_exceptions.AMQPError as e:
                logger.debug(f"Ignoring error while closing RabbitMQ connection: {e}")

    def _close(self) -> None:
        self._reset()
        logger.info("Disconnected from RabbitMQ")
