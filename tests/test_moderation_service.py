"""End-to-end tests for the moderation entry points."""

import asyncio

import pytest

from conftest import (
    FakePublisher, FakeRecordStore, StaticImageAnnotator, make_event,
    safe_search, video_response, vision_response
)
from media_moderation.lib.errors import (
    DecodeError, PublishError, RelocationError, StoreError, UpstreamAnnotationError, ValidationError
)
from media_moderation.models.enums import ContentKind, LikelihoodLevel as L, SafetyCategory as C
from media_moderation.services.moderation_service import ModerationService

IMAGE_REQUEST = {"gcsUrl": "gs://b/f.jpg", "gcsBucket": "b", "gcsFile": "f.jpg", "contentType": "image/jpeg"}
VIDEO_REQUEST = {"gcsUrl": "gs://b/clip.mp4", "gcsBucket": "b", "gcsFile": "clip.mp4", "contentType": "video/mp4"}


def run(coro):
    return asyncio.run(coro)


# -- image ----------------------------------------------------------------

def test_clean_image_is_kept(make_service, publisher, object_store):
    service = make_service(image=vision_response(labels=["doc"]))
    record = run(service.moderate_image(make_event(IMAGE_REQUEST)))

    assert record.relocated is False
    assert record.label_names == ("doc",)
    assert len(record.safety) == 4
    assert all(v.level is L.VERY_UNLIKELY for v in record.safety)
    assert object_store.moves == []

    [(topic, payload)] = publisher.sent
    assert topic == "records"
    assert payload["gcsUrl"] == "gs://b/f.jpg"
    assert payload["contentUrl"] == "https://storage.cloud.google.com/b/f.jpg"
    assert payload["relocated"] is False


def test_flagged_image_is_quarantined(make_service, publisher, object_store):
    service = make_service(image=vision_response(labels=["doc"], safe=safe_search(adult="LIKELY")))
    record = run(service.moderate_image(make_event(IMAGE_REQUEST)))

    assert record.relocated is True
    assert record.source_uri == "gs://b-quarantine/f.jpg"
    assert record.display_url == "https://storage.cloud.google.com/b-quarantine/f.jpg"
    assert record.verdict_for(C.ADULT) is L.LIKELY
    assert object_store.moves == [("b", "f.jpg", "b-quarantine", "f.jpg")]
    assert object_store.exists("b-quarantine", "f.jpg")

    [(_, payload)] = publisher.sent
    assert payload["gcsUrl"] == "gs://b-quarantine/f.jpg"
    assert payload["relocated"] is True


def test_failed_move_does_not_change_record(make_service, publisher, object_store):
    object_store.buckets["b"].clear()
    service = make_service(image=vision_response(safe=safe_search(medical="POSSIBLE")))
    record = run(service.moderate_image(make_event(IMAGE_REQUEST)))

    assert record.relocated is True
    assert record.source_uri == "gs://b-quarantine/f.jpg"
    assert len(object_store.moves) == 1
    assert len(publisher.sent) == 1


def test_upstream_error_emits_nothing(make_service, publisher, object_store):
    service = make_service(image=vision_response(error={"code": 3, "message": "too large"}))
    with pytest.raises(UpstreamAnnotationError) as excinfo:
        run(service.moderate_image(make_event(IMAGE_REQUEST)))

    assert "code:3" in str(excinfo.value)
    assert "too large" in str(excinfo.value)
    assert publisher.sent == []
    assert object_store.moves == []


def test_invalid_request_never_reaches_annotator(make_service, publisher):
    service = make_service()
    with pytest.raises(ValidationError) as excinfo:
        run(service.moderate_image(make_event({**IMAGE_REQUEST, "gcsBucket": ""})))
    assert excinfo.value.field == "gcsBucket"
    assert service.image_annotator.calls == []
    assert publisher.sent == []


def test_undecodable_event_fails_before_validation(make_service):
    service = make_service()
    with pytest.raises(DecodeError):
        run(service.moderate_image({"data": "not base64!"}))


def test_already_decoded_payload_is_accepted(make_service, publisher):
    service = make_service()
    record = run(service.moderate_image(dict(IMAGE_REQUEST)))
    assert record.source_uri == "gs://b/f.jpg"
    assert len(publisher.sent) == 1


def test_wrongly_typed_request_field_is_a_decode_error(make_service, publisher):
    service = make_service()
    with pytest.raises(DecodeError):
        run(service.moderate_image(make_event({**IMAGE_REQUEST, "gcsBucket": 123})))
    assert service.image_annotator.calls == []
    assert publisher.sent == []


def test_publish_failure_is_fatal(config, object_store, record_store):
    service = ModerationService(
        config=config,
        publisher=FakePublisher(succeed=False),
        object_store=object_store,
        image_annotator=StaticImageAnnotator(vision_response()),
        record_store=record_store,
    )
    with pytest.raises(PublishError):
        run(service.moderate_image(make_event(IMAGE_REQUEST)))


# -- video ----------------------------------------------------------------

def test_video_frames_aggregate_to_max(make_service, publisher, object_store):
    service = make_service(video=video_response(labels=["car", "road"], codes=[2, 1, 4, 0]))
    record = run(service.moderate_video(make_event(VIDEO_REQUEST)))

    assert record.content_kind == ContentKind.VIDEO
    assert record.label_names == ("car", "road")
    assert [(v.category, v.level) for v in record.safety] == [(C.ADULT, L.LIKELY)]
    assert record.relocated is True
    assert object_store.moves == [("b", "clip.mp4", "b-quarantine", "clip.mp4")]
    assert publisher.sent[0][1]["safeSearch"] == [{"flaggedType": "adult", "likelihood": "LIKELY"}]


def test_clean_video_is_kept(make_service, object_store):
    service = make_service(video=video_response(codes=[1, 2, 2]))
    record = run(service.moderate_video(make_event(VIDEO_REQUEST)))
    assert record.relocated is False
    assert record.verdict_for(C.ADULT) is L.UNLIKELY
    assert object_store.moves == []


def test_video_without_explicit_annotation_is_kept(make_service, publisher):
    service = make_service(video={"annotationResults": [{"segmentLabelAnnotations": []}]})
    record = run(service.moderate_video(make_event(VIDEO_REQUEST)))
    assert record.safety == ()
    assert record.relocated is False
    assert len(publisher.sent) == 1


# -- ingest and persist ---------------------------------------------------

@pytest.mark.parametrize("content_type,topic,kind", [
    ("image/jpeg", "vision", ContentKind.IMAGE),
    ("video/mp4", "video", ContentKind.VIDEO),
])
def test_ingest_moves_and_routes(make_service, publisher, object_store, content_type, topic, kind):
    service = make_service()
    name = "f.jpg" if kind == ContentKind.IMAGE else "clip.mp4"
    routed = run(service.ingest_and_route(make_event({"bucket": "upload", "name": name, "contentType": content_type})))

    assert routed == kind
    assert object_store.moves == [("upload", name, "b", name)]
    assert publisher.sent == [(topic, {
        "contentType": content_type,
        "gcsUrl": f"gs://b/{name}",
        "gcsBucket": "b",
        "gcsFile": name,
    })]


def test_ingest_rejects_missing_bucket_first(make_service, object_store):
    service = make_service()
    with pytest.raises(ValidationError) as excinfo:
        run(service.ingest_and_route(make_event({"contentType": "image/png"})))
    assert excinfo.value.field == "bucket"
    assert object_store.moves == []


def test_ingest_wrongly_typed_field_is_a_decode_error(make_service, publisher, object_store):
    service = make_service()
    with pytest.raises(DecodeError):
        run(service.ingest_and_route(make_event({"bucket": 123, "name": "f.jpg", "contentType": "image/jpeg"})))
    assert object_store.moves == []
    assert publisher.sent == []


def test_ingest_fails_when_upload_cannot_be_moved(make_service, publisher):
    service = make_service()
    with pytest.raises(RelocationError):
        run(service.ingest_and_route(make_event({"bucket": "upload", "name": "missing.png", "contentType": "image/png"})))
    assert publisher.sent == []


def test_published_record_persists(make_service, publisher, record_store):
    service = make_service(image=vision_response(labels=["doc"], logos=["BrandX"]))
    run(service.moderate_image(make_event(IMAGE_REQUEST)))
    [(_, payload)] = publisher.sent

    stored = run(service.persist_record(make_event(payload)))
    assert record_store.rows == [stored]
    assert stored.label_names == ("doc", "BrandX")
    assert stored.to_message() == payload


def test_persist_validates_timestamp(make_service, record_store):
    service = make_service()
    payload = {"gcsUrl": "gs://b/f.jpg", "contentUrl": "https://x/b/f.jpg", "contentType": "image/jpeg"}
    with pytest.raises(ValidationError) as excinfo:
        run(service.persist_record(make_event(payload)))
    assert excinfo.value.field == "insertTimestamp"
    assert record_store.rows == []


def test_persist_rejects_malformed_record(make_service):
    service = make_service()
    payload = {
        "gcsUrl": "gs://b/f.jpg",
        "contentUrl": "https://x/b/f.jpg",
        "contentType": "image/jpeg",
        "insertTimestamp": "1502811472",
        "safeSearch": [{"flaggedType": "adult", "likelihood": "SORT_OF"}],
    }
    with pytest.raises(DecodeError):
        run(service.persist_record(make_event(payload)))


def test_store_failure_is_fatal(config, publisher, object_store):
    service = ModerationService(
        config=config, publisher=publisher, object_store=object_store, record_store=FakeRecordStore(succeed=False)
    )
    payload = {
        "gcsUrl": "gs://b/f.jpg",
        "contentUrl": "https://x/b/f.jpg",
        "contentType": "image/jpeg",
        "insertTimestamp": "1502811472",
    }
    with pytest.raises(StoreError):
        run(service.persist_record(make_event(payload)))
