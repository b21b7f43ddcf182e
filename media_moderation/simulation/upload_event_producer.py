"""Kafka upload event producer for demo runs.

Publishes object-created notifications to the topic consumed by the
ingest-and-route handler in [`Pipeline.start()`](../run_pipeline.py).
"""

from __future__ import annotations

import os
import random
import time
from typing import Dict, Optional
from uuid import uuid4

from media_moderation.lib.config import PipelineConfig
from media_moderation.lib.kafka_client import MessageBroker
from media_moderation.streaming.envelope import encode_event

UPLOAD_BUCKET = os.getenv("UPLOAD_BUCKET", "intelligentcontentupload")

SAMPLE_UPLOADS = [
    ("jpg", "image/jpeg"),
    ("png", "image/png"),
    ("mp4", "video/mp4"),
    ("mov", "video/quicktime"),
    ("txt", "text/plain"),  # rejected by validation, lands in the DLQ
]


def build_upload_notification(bucket: str = UPLOAD_BUCKET, rng: Optional[random.Random] = None) -> Dict[str, str]:
    """One synthetic object-created notification."""
    rng = rng or random
    extension, content_type = rng.choice(SAMPLE_UPLOADS)
    return {
        "bucket": bucket,
        "name": f"IMG_{uuid4().hex[:12]}.{extension}",
        "contentType": content_type,
    }


def run(config: Optional[PipelineConfig] = None):
    config = config or PipelineConfig.from_env()
    duration = int(os.getenv("SIMULATION_DURATION", "300"))
    upload_rate = float(os.getenv("UPLOAD_RATE_PER_SEC", "2"))

    try:
        broker = MessageBroker(config.kafka_bootstrap_servers, dlq_topic=config.dlq_topic)
    except Exception as e:
        print(f"[producer] ERROR: Failed to initialize Kafka broker at {config.kafka_bootstrap_servers}: {e}")
        print("[producer] Please start Kafka before running the producer.")
        return

    start = time.time()
    sent = 0
    print(f"[producer] starting for {duration}s (uploads={upload_rate}/s) -> {config.upload_topic}")

    while time.time() - start < duration:
        notification = build_upload_notification()
        if broker.publish(config.upload_topic, encode_event(notification)):
            sent += 1
        time.sleep(1.0 / max(0.1, upload_rate))

    broker.close()
    print(f"[producer] finished, {sent} notifications sent")


if __name__ == "__main__":
    run()
