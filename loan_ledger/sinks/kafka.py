"""Kafka sink for publishing ledger events and reminders."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from confluent_kafka import KafkaException, Producer

from loan_ledger.config import KafkaConfig
from loan_ledger.exceptions import SinkError
from loan_ledger.serialization import to_dict

logger = logging.getLogger(__name__)

# Record attributes tried, in order, for the message key
KEY_ATTRIBUTES = ("loan_id", "subject")


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaSink:
    """Publish records as JSON messages keyed by loan id.

    Keying by loan id keeps every event of one loan on one partition, so
    consumers see them in the order they were produced.
    """

    def __init__(self, config: KafkaConfig | str) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def _get_key(self, record: Any) -> str | None:
        """Extract message key from a record."""
        for attribute in KEY_ATTRIBUTES:
            if isinstance(record, dict):
                value = record.get(attribute)
            else:
                value = getattr(record, attribute, None)
            if value:
                return str(value)
        return None

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Send a single record to a Kafka topic."""
        value = json.dumps(to_dict(record), ensure_ascii=False, default=str).encode("utf-8")

        if key is None:
            key = self._get_key(record)

        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8") if key else None,
                value=value,
                callback=self._delivery_callback,
            )
        except (BufferError, KafkaException) as e:
            raise SinkError(f"Cannot produce to {topic}: {e}") from e

        self.stats.sent += 1
        self.producer.poll(0)

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Write a batch of records to a Kafka topic."""
        logger.info("Writing batch to %s: %d records", topic, len(records))

        for record in records:
            self.send(topic, record)

        self.flush()
        logger.info("Batch complete: sent=%d, delivered=%d, failed=%d",
                    self.stats.sent, self.stats.delivered, self.stats.failed)

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("%d messages still queued after flush", remaining)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
