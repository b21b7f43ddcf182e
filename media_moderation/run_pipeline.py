"""
Main pipeline orchestrator - wires everything together
"""
import asyncio
import logging
import threading
import time
from typing import Any, Callable

from media_moderation.lib.config import PipelineConfig
from media_moderation.lib.database import DatabaseConnection
from media_moderation.lib.kafka_client import MessageBroker
from media_moderation.lib.metrics import MetricsExporter
from media_moderation.lib.object_store import InMemoryObjectStore
from media_moderation.models.enums import EntryPoint
from media_moderation.services.annotation_service import SimulatedImageAnnotator, SimulatedVideoAnnotator
from media_moderation.services.moderation_service import ModerationService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class Pipeline:
    """End-to-end pipeline runtime: one Kafka consumer per inbound topic"""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.broker = MessageBroker(config.kafka_bootstrap_servers, dlq_topic=config.dlq_topic)
        self.db = DatabaseConnection(config.database_url, schema=config.dataset_id, table=config.table_name)
        self.service = ModerationService(
            config=config,
            publisher=self.broker,
            object_store=InMemoryObjectStore(assume_present=True),
            image_annotator=SimulatedImageAnnotator(),
            video_annotator=SimulatedVideoAnnotator(),
            record_store=self.db,
        )

        # Start metrics server
        MetricsExporter(port=config.metrics_port).start()
        logger.info("Pipeline initialized")

    def _handler(self, run: Callable) -> Callable[[Any], None]:
        """
        Run one event to completion. Failures propagate to MessageBroker.dispatch,
        which logs them and forwards the message to the dead letter queue.
        """
        def handle(event: Any) -> None:
            asyncio.run(run(event))
        return handle

    def start(self):
        """Start consuming from Kafka topics"""
        logger.info("Starting pipeline consumers...")

        routes = [
            (self.config.upload_topic, EntryPoint.INGEST_AND_ROUTE, self.service.ingest_and_route),
            (self.config.vision_topic, EntryPoint.IMAGE_MODERATE, self.service.moderate_image),
            (self.config.video_topic, EntryPoint.VIDEO_MODERATE, self.service.moderate_video),
            (self.config.record_topic, EntryPoint.PERSIST_RECORD, self.service.persist_record),
        ]
        for topic, entry_point, run in routes:
            thread = threading.Thread(
                target=self.broker.consume,
                args=(topic, entry_point, self._handler(run)),
                daemon=True
            )
            thread.start()

        logger.info("Pipeline consumers started")

        # Keep main thread alive
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutting down pipeline...")
            self.db.close()
            self.broker.close()


def main():
    pipeline = Pipeline(PipelineConfig.from_env())
    pipeline.start()


if __name__ == '__main__':
    main()
