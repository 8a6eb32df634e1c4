import json
import logging
import threading
import time

import pika

logger = logging.getLogger(__name__)


class LoggingProducer:
    """Writes order events to the log instead of a broker."""

    def publish(self, routing_key, message):
        logger.info("Event '%s': %s", routing_key, json.dumps(message, default=str))

    def close(self):
        pass


class RabbitMQProducer:
    """
    Publishes order events to a RabbitMQ topic exchange.

    The connection is opened lazily on the first publish and re-opened if it
    was dropped. Connecting is retried a bounded number of times so a missing
    broker cannot hang a request forever.

    One instance is shared by all request threads. pika connections are not
    thread-safe, so connecting, publishing and closing hold ``_lock``.
    """

    def __init__(self, host, exchange_name="events", exchange_type="topic",
                 connect_retries=5, retry_seconds=5.0):
        self.host = host
        self.exchange_name = exchange_name
        self.exchange_type = exchange_type
        self.connect_retries = connect_retries
        self.retry_seconds = retry_seconds
        self.connection = None
        self.channel = None
        self._lock = threading.Lock()

    def connect(self):
        """Establishes a connection to RabbitMQ with retry logic."""
        with self._lock:
            self._connect()

    def _connect(self):
        attempt = 0
        while True:
            attempt += 1
            try:
                parameters = pika.ConnectionParameters(
                    host=self.host,
                    heartbeat=600,
                    blocked_connection_timeout=300,
                )
                self.connection = pika.BlockingConnection(parameters)
                self.channel = self.connection.channel()

                # Durable so the exchange survives broker restarts.
                self.channel.exchange_declare(
                    exchange=self.exchange_name,
                    exchange_type=self.exchange_type,
                    durable=True,
                )
                logger.info("Connected to RabbitMQ exchange '%s' on %s", self.exchange_name, self.host)
                return
            except pika.exceptions.AMQPConnectionError:
                if attempt >= self.connect_retries:
                    raise
                logger.warning(
                    "RabbitMQ not ready (attempt %d/%d), retrying in %ss",
                    attempt, self.connect_retries, self.retry_seconds,
                )
                time.sleep(self.retry_seconds)

    def publish(self, routing_key, message):
        """
        Publishes a message to the exchange with a specific routing key.

        Args:
            routing_key (str): The topic key (e.g., 'order.placed').
            message (dict): The data payload to send.
        """
        body = json.dumps(message, default=str)
        with self._lock:
            if not self.connection or self.connection.is_closed:
                self._connect()

            self.channel.basic_publish(
                exchange=self.exchange_name,
                routing_key=routing_key,
                body=body,
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Persistent
                    content_type="application/json",
                ),
            )
        logger.debug("Sent event '%s': %s", routing_key, message)

    def close(self):
        """Closes the connection cleanly."""
        with self._lock:
            if self.connection and not self.connection.is_closed:
                self.connection.close()


def build_producer(settings):
    if settings.events_backend == "rabbitmq":
        return RabbitMQProducer(
            host=settings.rabbitmq_host,
            exchange_name=settings.rabbitmq_exchange,
            connect_retries=settings.rabbitmq_connect_retries,
            retry_seconds=settings.rabbitmq_retry_seconds,
        )
    if settings.events_backend != "log":
        raise ValueError(f"Unknown EVENTS_BACKEND: {settings.events_backend!r}")
    return LoggingProducer()
