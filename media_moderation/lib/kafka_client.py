"""
Kafka transport for pipeline events.
Every message value is a JSON envelope {"data": <base64 JSON>}; keys are the
object file name so all events about one upload land on one partition.
"""
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from kafka import KafkaConsumer, KafkaProducer
from kafka.errors import KafkaError

from media_moderation.lib.errors import DecodeError, PipelineError
from media_moderation.models.enums import EntryPoint
from media_moderation.streaming.envelope import decode_event

logger = logging.getLogger(__name__)

# Payload fields naming the object an event is about, in lookup order
KEY_FIELDS = ('gcsFile', 'name', 'gcsUrl')


def _serialize_value(value: Dict[str, Any]) -> bytes:
    return json.dumps(value).encode('utf-8')


def _serialize_key(key: Optional[str]) -> Optional[bytes]:
    return key.encode('utf-8') if key else None


def _deserialize_value(raw: bytes) -> Union[Dict[str, Any], str]:
    # Non-JSON bodies reach the handler as text and fail decoding there
    text = raw.decode('utf-8', errors='replace')
    try:
        return json.loads(text)
    except ValueError:
        return text


def event_key(event: Dict[str, Any]) -> Optional[str]:
    """Partition key for an envelope: the file name it refers to, if any."""
    try:
        payload = decode_event(event)
    except DecodeError:
        return None
    for field in KEY_FIELDS:
        if payload.get(field):
            return str(payload[field])
    return None


class MessageBroker:
    """Publishes envelopes and drives one entry point per consumed topic"""

    def __init__(self, bootstrap_servers: str, dlq_topic: str = 'dlq-stream', send_timeout: float = 10.0):
        self.bootstrap_servers = bootstrap_servers
        self.dlq_topic = dlq_topic
        self.send_timeout = send_timeout
        self.consumers: Dict[str, KafkaConsumer] = {}
        self.producer = KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            value_serializer=_serialize_value,
            key_serializer=_serialize_key,
            acks='all',
            retries=3,
        )
        logger.info(f"Kafka producer connected to {bootstrap_servers}")

    def publish(self, topic: str, event: Dict[str, Any], key: Optional[str] = None) -> bool:
        """Send one envelope and wait for the broker ack. False on failure."""
        key = key or event_key(event)
        try:
            metadata = self.producer.send(topic, value=event, key=key).get(timeout=self.send_timeout)
        except KafkaError as e:
            logger.error(f"Publish to {topic} failed for key {key}: {e}")
            return False
        logger.debug(f"Published {key} to {topic}[{metadata.partition}]@{metadata.offset}")
        return True

    def publish_dlq(self, event: Any, entry_point: EntryPoint, error: Exception,
                    key: Optional[str] = None) -> bool:
        """Park an event that its entry point could not process."""
        return self.publish(self.dlq_topic, {
            'entryPoint': entry_point.value,
            'errorType': type(error).__name__,
            'error': str(error),
            'failedAt': time.time(),
            'event': event,
        }, key=key)

    def dispatch(self, message, entry_point: EntryPoint, handler: Callable[[Any], None]) -> bool:
        """
        Hand one consumed message to its entry point.
        A failing event goes to the dead letter queue and never stops the
        consumer loop.
        """
        try:
            handler(message.value)
            return True
        except PipelineError as e:
            logger.error(f"{entry_point.value} rejected message from {message.topic}: {e}")
            failure = e
        except Exception as e:
            logger.exception(f"{entry_point.value} crashed on message from {message.topic}")
            failure = e

        key = message.key.decode('utf-8') if message.key else None
        if not self.publish_dlq(message.value, entry_point, failure, key=key):
            logger.error(f"Message from {message.topic} lost: dead letter publish failed")
        return False

    def consume(self, topic: str, entry_point: EntryPoint, handler: Callable[[Any], None],
                auto_offset_reset: str = 'earliest'):
        """Block, feeding every message on topic to the entry point handler."""
        consumer = KafkaConsumer(
            topic,
            bootstrap_servers=self.bootstrap_servers,
            group_id=entry_point.value,
            value_deserializer=_deserialize_value,
            auto_offset_reset=auto_offset_reset,
            enable_auto_commit=True,
        )
        self.consumers[topic] = consumer
        logger.info(f"Consuming {topic} for {entry_point.value}")

        for message in consumer:
            self.dispatch(message, entry_point, handler)

    def close(self):
        self.producer.flush()
        self.producer.close()
        for consumer in self.consumers.values():
            consumer.close()
        logger.info("Kafka connections closed")
