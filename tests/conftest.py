# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import pytest

from media_moderation.lib.config import PipelineConfig
from media_moderation.lib.object_store import InMemoryObjectStore
from media_moderation.models.content import ContentRecord
from media_moderation.services.annotation_service import ImageAnnotator, VideoAnnotator, VideoOperation
from media_moderation.services.moderation_service import ModerationService
from media_moderation.streaming.envelope import decode_event, encode_event

FIXED_NOW = datetime(2017, 8, 15, 15, 32, 5, tzinfo=timezone.utc)


class FakePublisher:
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: List[Tuple[str, Dict[str, Any]]] = []

    def publish(self, topic: str, message: Dict[str, Any]) -> bool:
        self.sent.append((topic, decode_event(message)))
        return self.succeed


class FakeRecordStore:
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.rows: List[ContentRecord] = []

    def insert_content_record(self, record: ContentRecord) -> bool:
        self.rows.append(record)
        return self.succeed


class StaticImageAnnotator(ImageAnnotator):
    def __init__(self, response: Dict[str, Any]):
        self.response = response
        self.calls: List[str] = []

    async def annotate(self, uri: str) -> Dict[str, Any]:
        self.calls.append(uri)
        return self.response


class StaticVideoOperation(VideoOperation):
    def __init__(self, response: Dict[str, Any]):
        self.response = response

    async def result(self) -> Dict[str, Any]:
        return self.response


class StaticVideoAnnotator(VideoAnnotator):
    def __init__(self, response: Dict[str, Any]):
        self.response = response
        self.calls: List[str] = []

    async def annotate(self, uri: str) -> VideoOperation:
        self.calls.append(uri)
        return StaticVideoOperation(self.response)


def safe_search(adult="VERY_UNLIKELY", spoof="VERY_UNLIKELY", medical="VERY_UNLIKELY", violence="VERY_UNLIKELY"):
    return {"adult": adult, "spoof": spoof, "medical": medical, "violence": violence}


def vision_response(labels=("document",), logos=(), safe=None, error=None) -> Dict[str, Any]:
    return {
        "faceAnnotations": [],
        "landmarkAnnotations": [],
        "logoAnnotations": [{"description": d} for d in logos],
        "labelAnnotations": [{"description": d, "score": 0.9} for d in labels],
        "safeSearchAnnotation": safe or safe_search(),
        "error": error,
    }


def video_response(labels=("vehicle",), codes=(1,)) -> Dict[str, Any]:
    return {
        "annotationResults": [{
            "segmentLabelAnnotations": [{"entity": {"description": d}} for d in labels],
            "explicitAnnotation": {
                "frames": [{"timeOffset": {"seconds": i}, "pornographyLikelihood": c} for i, c in enumerate(codes)]
            },
        }]
    }


def make_event(payload: Dict[str, Any]) -> Dict[str, str]:
    return encode_event(payload)


@pytest.fixture()
def config() -> PipelineConfig:
    return PipelineConfig(
        result_bucket="b",
        quarantine_bucket="b-quarantine",
        vision_topic="vision",
        video_topic="video",
        record_topic="records",
    )


@pytest.fixture()
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture()
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore({"upload": ["f.jpg", "clip.mp4"], "b": ["f.jpg", "clip.mp4"]})


@pytest.fixture()
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture()
def make_service(config, publisher, object_store, record_store):
    def build(image=None, video=None) -> ModerationService:
        return ModerationService(
            config=config,
            publisher=publisher,
            object_store=object_store,
            image_annotator=StaticImageAnnotator(image or vision_response()),
            video_annotator=StaticVideoAnnotator(video or {"annotationResults": [{}]}),
            record_store=record_store,
            clock=lambda: FIXED_NOW,
        )
    return build
