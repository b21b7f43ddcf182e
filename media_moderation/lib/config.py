"""
Pipeline configuration.
Bucket names, topics and store settings, passed explicitly into services.
"""

import json
import os
import logging
from dataclasses import dataclass
from typing import Any, Dict

logger = logging.getLogger(__name__)


# Keys used by the legacy config.json deployment file
_FILE_KEYS = {
    'RESULT_BUCKET': 'result_bucket',
    'REJECTED_BUCKET': 'quarantine_bucket',
    'GCS_AUTH_BROWSER_URL_BASE': 'browser_url_base',
    'VISION_TOPIC': 'vision_topic',
    'VIDEOINTELLIGENCE_TOPIC': 'video_topic',
    'BIGQUERY_TOPIC': 'record_topic',
    'UPLOAD_TOPIC': 'upload_topic',
    'DLQ_TOPIC': 'dlq_topic',
    'DATASET_ID': 'dataset_id',
    'TABLE_NAME': 'table_name',
}


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for the moderation pipeline"""
    # Storage locations
    result_bucket: str = "intelligentcontent"
    quarantine_bucket: str = "intelligentcontentfiltered"
    browser_url_base: str = "https://storage.cloud.google.com/"

    # Topics
    upload_topic: str = "upload-notifications"
    vision_topic: str = "visionapiservice"
    video_topic: str = "videointelligenceservice"
    record_topic: str = "bqinsert"
    dlq_topic: str = "dlq-stream"

    # Analytical store
    dataset_id: str = "intelligentcontentfilter"
    table_name: str = "filtered_content"
    database_url: str = ""

    # Runtime
    kafka_bootstrap_servers: str = "localhost:9092"
    metrics_port: int = 8000

    def gcs_uri(self, bucket: str, name: str) -> str:
        return f"gs://{bucket}/{name}"

    def browser_url(self, bucket: str, name: str) -> str:
        return f"{self.browser_url_base}{bucket}/{name}"

    @property
    def qualified_table(self) -> str:
        return f"{self.dataset_id}.{self.table_name}"

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build configuration from environment variables."""
        defaults = cls()
        return cls(
            result_bucket=os.getenv('RESULT_BUCKET', defaults.result_bucket),
            quarantine_bucket=os.getenv('QUARANTINE_BUCKET', defaults.quarantine_bucket),
            browser_url_base=os.getenv('BROWSER_URL_BASE', defaults.browser_url_base),
            upload_topic=os.getenv('UPLOAD_TOPIC', defaults.upload_topic),
            vision_topic=os.getenv('VISION_TOPIC', defaults.vision_topic),
            video_topic=os.getenv('VIDEO_TOPIC', defaults.video_topic),
            record_topic=os.getenv('RECORD_TOPIC', defaults.record_topic),
            dlq_topic=os.getenv('DLQ_TOPIC', defaults.dlq_topic),
            dataset_id=os.getenv('DATASET_ID', defaults.dataset_id),
            table_name=os.getenv('TABLE_NAME', defaults.table_name),
            database_url=os.getenv('DATABASE_URL', defaults.database_url),
            kafka_bootstrap_servers=os.getenv('KAFKA_BOOTSTRAP_SERVERS', defaults.kafka_bootstrap_servers),
            metrics_port=int(os.getenv('METRICS_PORT', str(defaults.metrics_port))),
        )

    @classmethod
    def from_file(cls, path: str) -> "PipelineConfig":
        """Build configuration from a config.json deployment file."""
        with open(path, encoding='utf-8') as fh:
            raw: Dict[str, Any] = json.load(fh)

        values = {attr: raw[key] for key, attr in _FILE_KEYS.items() if raw.get(key)}
        unknown = set(raw) - set(_FILE_KEYS) - {'API_Constants'}
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        logger.info(f"Loaded pipeline config from {path}")
        return cls(**values)
