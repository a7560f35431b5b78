"""Kafka consumer loop feeding alert inserts into the notification pipeline."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from confluent_kafka import Consumer, KafkaError, KafkaException, Message
from redis.exceptions import RedisError
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.config import Settings
from app.domain.entities import Alert
from app.domain.errors import (
    MalformedChangeEventError,
    OrphanedAlertError,
    TransientPipelineError,
)

from .envelope import parse_alert_event

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TransientPipelineError,
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    RedisError,
    TimeoutError,
    ConnectionError,
)


class AlertProcessor(Protocol):
    def process(self, alert: Alert, *, completed: set[str] | None = None) -> Any: ...


ConsumerFactory = Callable[[dict[str, Any]], Consumer]


def build_consumer_config(settings: Settings, *, client_suffix: str = "") -> dict[str, Any]:
    """Return the librdkafka configuration of an alert consumer."""

    return {
        "bootstrap.servers": settings.kafka_bootstrap_servers,
        "group.id": settings.kafka_group_id,
        "client.id": f"{settings.kafka_client_id}{client_suffix}",
        # Start from new events only; no backfill of alerts raised before the group existed.
        "auto.offset.reset": "latest",
        "enable.auto.commit": False,
        "enable.partition.eof": False,
    }


class ChangeEventConsumer:
    """Sequential loop over the partitions assigned to one group member.

    An event's offset is committed only after the processor finished with it,
    or gave up after ``max_attempts`` transient failures, so a crash in between
    redelivers the event (at-least-once).
    """

    def __init__(
        self,
        settings: Settings,
        processor: AlertProcessor,
        *,
        name: str = "alert-consumer",
        consumer_factory: ConsumerFactory = Consumer,
    ) -> None:
        self._settings = settings
        self._processor = processor
        self._consumer_factory = consumer_factory
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._consumer: Consumer | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> threading.Thread:
        """Run the loop on a dedicated daemon thread."""

        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def run(self) -> None:
        """Poll, process and commit until :meth:`stop` is called."""

        config = build_consumer_config(self._settings, client_suffix=f"-{self.name}")
        consumer = self._consumer_factory(config)
        self._consumer = consumer
        consumer.subscribe([self._settings.kafka_topic], on_assign=self._log_assignment)
        logger.info("%s subscribed to %s", self.name, self._settings.kafka_topic)
        try:
            while not self._stop_event.is_set():
                message = consumer.poll(self._settings.kafka_poll_timeout_seconds)
                if message is None:
                    continue
                error = message.error()
                if error is not None:
                    if error.code() == KafkaError._PARTITION_EOF:
                        continue
                    if error.fatal():
                        logger.critical("%s stopping on fatal broker error: %s", self.name, error)
                        break
                    logger.warning("%s broker error: %s", self.name, error)
                    continue
                if self.handle_message(message):
                    self._commit(consumer, message)
        finally:
            consumer.close()
            self._consumer = None
            logger.info("%s stopped", self.name)

    def handle_message(self, message: Message) -> bool:
        """Process one message; return ``True`` when its offset may be committed."""

        try:
            alert = parse_alert_event(message.value())
        except MalformedChangeEventError as exc:
            logger.warning(
                "Skipping malformed change event at %s[%s]@%s: %s",
                message.topic(),
                message.partition(),
                message.offset(),
                exc,
            )
            return True

        if alert is None:
            return True
        return self._process_with_retries(alert)

    def _process_with_retries(self, alert: Alert) -> bool:
        completed: set[str] = set()
        max_attempts = self._settings.consumer_max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                self._processor.process(alert, completed=completed)
                return True
            except OrphanedAlertError as exc:
                logger.warning("Dropping orphaned alert: %s", exc)
                return True
            except TRANSIENT_ERRORS as exc:
                if attempt == max_attempts:
                    logger.error(
                        "Dropping alert %s after %s attempts: %s",
                        alert.id,
                        attempt,
                        exc,
                    )
                    return True
                delay = self._backoff_delay(attempt)
                logger.warning(
                    "Attempt %s/%s for alert %s failed (%s); retrying in %.1fs",
                    attempt,
                    max_attempts,
                    alert.id,
                    exc,
                    delay,
                )
                if self._stop_event.wait(delay):
                    logger.info("Shutdown during retry; alert %s left uncommitted", alert.id)
                    return False
            except Exception:
                logger.exception("Unexpected error processing alert %s; skipping it", alert.id)
                return True
        return True

    def _backoff_delay(self, attempt: int) -> float:
        base = self._settings.consumer_retry_backoff_seconds
        cap = self._settings.consumer_retry_backoff_max_seconds
        return min(base * (2 ** (attempt - 1)), cap)

    def _commit(self, consumer: Consumer, message: Message) -> None:
        try:
            consumer.commit(message=message, asynchronous=False)
        except KafkaException as exc:
            logger.warning(
                "%s could not commit offset %s of partition %s: %s",
                self.name,
                message.offset(),
                message.partition(),
                exc,
            )

    def _log_assignment(self, consumer: Consumer, partitions: list[Any]) -> None:
        logger.info(
            "%s assigned partitions %s",
            self.name,
            sorted(partition.partition for partition in partitions),
        )


class ChangeFeedWorkers:
    """Start and stop the configured number of consumer loops."""

    def __init__(
        self,
        settings: Settings,
        processor: AlertProcessor,
        *,
        consumer_factory: ConsumerFactory = Consumer,
    ) -> None:
        self._consumers = [
            ChangeEventConsumer(
                settings,
                processor,
                name=f"alert-consumer-{index}",
                consumer_factory=consumer_factory,
            )
            for index in range(1, settings.consumer_workers + 1)
        ]

    def start(self) -> None:
        for consumer in self._consumers:
            consumer.start()

    def stop(self, timeout: float | None = 10.0) -> None:
        for consumer in self._consumers:
            consumer.stop(timeout)

    def running_count(self) -> int:
        return sum(1 for consumer in self._consumers if consumer.is_running)


__all__ = [
    "ChangeEventConsumer",
    "ChangeFeedWorkers",
    "TRANSIENT_ERRORS",
    "build_consumer_config",
]
