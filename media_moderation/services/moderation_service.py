"""
Core Moderation Orchestration Service.
Implements the four event-driven entry points: ingest-and-route,
image moderation, video moderation and record persistence.
Each event runs as one sequential pipeline; the only suspension points are
calls to external collaborators.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from media_moderation.lib.config import PipelineConfig
from media_moderation.lib.errors import DecodeError, PublishError, RelocationError, StoreError
from media_moderation.lib.metrics import MetricsExporter
from media_moderation.lib.object_store import ObjectStore
from media_moderation.models.annotations import (
    AnnotationSource, ImageAnnotation, ImageSource, VideoAnnotation, VideoSource
)
from media_moderation.models.content import ContentRecord
from media_moderation.models.enums import ContentKind, EntryPoint
from media_moderation.models.messages import ModerationRequest, RequestContext, UploadNotification
from media_moderation.services.aggregator import aggregate
from media_moderation.services.annotation_service import ImageAnnotator, VideoAnnotator
from media_moderation.services.disposition import DispositionOutcome, dispose
from media_moderation.services.normalizer import normalize
from media_moderation.services.validation import classify_content_type, validate
from media_moderation.streaming.envelope import Event, decode_event, encode_event

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(self, topic: str, message: Dict[str, Any]) -> bool: ...


class RecordStore(Protocol):
    def insert_content_record(self, record: ContentRecord) -> bool: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


Model = TypeVar("Model", bound=BaseModel)


def _parse(model: Type[Model], payload: Dict[str, Any]) -> Model:
    """Build a typed message; a field of the wrong type is a DecodeError."""
    try:
        return model.model_validate(payload)
    except SchemaError as e:
        raise DecodeError(f"Malformed {model.__name__}: {e}") from e


class ModerationService:
    """
    Central orchestration service for media moderation.
    Collaborators are injected; the service holds no per-event state.
    """

    def __init__(
        self,
        config: PipelineConfig,
        publisher: Publisher,
        object_store: ObjectStore,
        image_annotator: Optional[ImageAnnotator] = None,
        video_annotator: Optional[VideoAnnotator] = None,
        record_store: Optional[RecordStore] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.config = config
        self.publisher = publisher
        self.object_store = object_store
        self.image_annotator = image_annotator
        self.video_annotator = video_annotator
        self.record_store = record_store
        self.clock = clock

    # -- entry points -----------------------------------------------------

    @MetricsExporter.track_pipeline(EntryPoint.INGEST_AND_ROUTE.value)
    async def ingest_and_route(self, event: Event) -> ContentKind:
        """
        Move a new upload into the result bucket and route it to the image
        or video moderation topic.
        """
        payload = decode_event(event)
        validate(EntryPoint.INGEST_AND_ROUTE, payload)
        upload = _parse(UploadNotification, payload)
        logger.info(
            f"Received name: {upload.name} and bucket: {upload.bucket} "
            f"and contentType: {upload.content_type}"
        )

        moved = await asyncio.to_thread(
            self.object_store.move, upload.bucket, upload.name, self.config.result_bucket, upload.name
        )
        if not moved:
            raise RelocationError(
                f"Could not move gs://{upload.bucket}/{upload.name} to bucket {self.config.result_bucket}"
            )
        logger.info("Completed file move")

        kind = classify_content_type(upload.content_type)
        request = ModerationRequest(
            content_type=upload.content_type,
            gcs_url=self.config.gcs_uri(self.config.result_bucket, upload.name),
            gcs_bucket=self.config.result_bucket,
            gcs_file=upload.name,
        )
        topic = self.config.vision_topic if kind == ContentKind.IMAGE else self.config.video_topic
        logger.info(f"Sending {kind.value} moderation request to {topic}")
        await self._publish(topic, request.model_dump(by_alias=True))
        logger.info(f"File {upload.name} routed for {kind.value} moderation")
        return kind

    @MetricsExporter.track_pipeline(EntryPoint.IMAGE_MODERATE.value)
    async def moderate_image(self, event: Event) -> ContentRecord:
        """Annotate an image, decide its disposition and publish the record."""
        request, context = self._accept(EntryPoint.IMAGE_MODERATE, event)
        if self.image_annotator is None:
            raise RuntimeError("No image annotator configured")

        logger.info(f"Sending image annotation request for {request.gcs_url}")
        start_time = time.time()
        response = await self.image_annotator.annotate(request.gcs_url)
        MetricsExporter.record_annotation(ContentKind.IMAGE.value, time.time() - start_time)
        logger.debug(f"Received image annotation response {response}")

        source = ImageSource(annotation=ImageAnnotation.from_response(response))
        return await self._complete(source, context)

    @MetricsExporter.track_pipeline(EntryPoint.VIDEO_MODERATE.value)
    async def moderate_video(self, event: Event) -> ContentRecord:
        """
        Annotate a video, decide its disposition and publish the record.
        The long-running operation is awaited without a timeout; the
        annotator owns its own timeout and retry policy.
        """
        request, context = self._accept(EntryPoint.VIDEO_MODERATE, event)
        if self.video_annotator is None:
            raise RuntimeError("No video annotator configured")

        logger.info(f"Sending video annotation request for {request.gcs_url}")
        start_time = time.time()
        operation = await self.video_annotator.annotate(request.gcs_url)
        logger.info("Waiting for operation to complete... (this may take a few minutes)")
        response = await operation.result()
        MetricsExporter.record_annotation(ContentKind.VIDEO.value, time.time() - start_time)
        logger.debug(f"Received video annotation response {response}")

        source = VideoSource(annotation=VideoAnnotation.from_response(response))
        return await self._complete(source, context)

    @MetricsExporter.track_pipeline(EntryPoint.PERSIST_RECORD.value)
    async def persist_record(self, event: Event) -> ContentRecord:
        """Insert one published record into the analytical store."""
        payload = decode_event(event)
        validate(EntryPoint.PERSIST_RECORD, payload)
        if self.record_store is None:
            raise RuntimeError("No record store configured")

        record = _parse(ContentRecord, payload)

        logger.info(f"Sending insert request for {record.source_uri}")
        inserted = await asyncio.to_thread(self.record_store.insert_content_record, record)
        if not inserted:
            raise StoreError(f"Record for {record.source_uri} was not inserted")
        logger.info("Insert request complete")
        return record

    # -- stages -----------------------------------------------------------

    def _accept(self, entry_point: EntryPoint, event: Event) -> Tuple[ModerationRequest, RequestContext]:
        payload = decode_event(event)
        validate(entry_point, payload)
        request = _parse(ModerationRequest, payload)
        logger.info(
            f"Received name: {request.gcs_file} and bucket: {request.gcs_bucket} "
            f"and contentType: {request.content_type}"
        )
        return request, RequestContext.from_request(request, self.config, self.clock())

    async def _complete(self, source: AnnotationSource, context: RequestContext) -> ContentRecord:
        normalized = normalize(source, context)
        assessment = aggregate(normalized.observations, normalized.reported)
        record = normalized.record.with_safety(assessment.verdicts)

        outcome = dispose(record, assessment, context, self.config)
        await self._relocate(outcome)
        MetricsExporter.record_disposition(source.kind.value, outcome.disposition.value)

        logger.debug(f"Content record: {outcome.record.to_message()}")
        await self._publish(self.config.record_topic, outcome.record.to_message())
        logger.info(f"File {context.file} processed: {outcome.disposition.value}")
        return outcome.record

    async def _relocate(self, outcome: DispositionOutcome) -> None:
        order = outcome.relocation
        if order is None:
            return

        moved = await asyncio.to_thread(
            self.object_store.move, order.src_bucket, order.src_file, order.dest_bucket, order.dest_file
        )
        MetricsExporter.record_relocation(moved)
        if moved:
            logger.info(f"Quarantined content at {order.destination_uri}")
        else:
            logger.warning(
                f"Move of gs://{order.src_bucket}/{order.src_file} to {order.destination_uri} "
                f"did not complete; record still points at the quarantine location"
            )

    async def _publish(self, topic: str, payload: Dict[str, Any]) -> None:
        published = await asyncio.to_thread(self.publisher.publish, topic, encode_event(payload))
        if not published:
            raise PublishError(topic)
