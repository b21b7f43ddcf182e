"""
Validation Gate - precondition checks on inbound messages.
Checks run in a fixed order per entry point; the first violation wins.
"""

import json
import logging
import re
from typing import Any, Dict, List, Tuple

from media_moderation.lib.errors import ValidationError
from media_moderation.lib.metrics import MetricsExporter
from media_moderation.models.enums import ContentKind, EntryPoint

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r'image', re.IGNORECASE)
VIDEO_PATTERN = re.compile(r'video', re.IGNORECASE)

# Pseudo-field name for the image-or-video check
SUPPORTED_TYPE = "contentType:supported"

UNSUPPORTED_CONTENT_TYPE = (
    'Unsupported ContentType provided. Make sure you upload an image or video which '
    'includes a "contentType" property of image or video in your request'
)


def _missing(what: str, field: str) -> str:
    return f'{what} not provided. Make sure you have a "{field}" property in your request'


_CONTENT_TYPE = ("contentType", _missing("ContentType", "contentType"))
_SUPPORTED = (SUPPORTED_TYPE, UNSUPPORTED_CONTENT_TYPE)

_MODERATE_CHECKS = [
    ("gcsBucket", _missing("Bucket", "gcsBucket")),
    ("gcsFile", _missing("Filename", "gcsFile")),
    _CONTENT_TYPE,
    ("gcsUrl", _missing("GCS URL", "gcsUrl")),
    _SUPPORTED,
]

CHECKS: Dict[EntryPoint, List[Tuple[str, str]]] = {
    EntryPoint.INGEST_AND_ROUTE: [
        ("bucket", _missing("Bucket", "bucket")),
        ("name", _missing("Filename", "name")),
        _CONTENT_TYPE,
        _SUPPORTED,
    ],
    EntryPoint.IMAGE_MODERATE: _MODERATE_CHECKS,
    EntryPoint.VIDEO_MODERATE: _MODERATE_CHECKS,
    EntryPoint.PERSIST_RECORD: [
        ("gcsUrl", _missing("GCSUrl", "gcsUrl")),
        ("contentUrl", _missing("ContentUrl", "contentUrl")),
        _CONTENT_TYPE,
        _SUPPORTED,
        ("insertTimestamp", _missing("insertTimestamp", "insertTimestamp")),
    ],
}


def is_supported_content_type(content_type: str) -> bool:
    """Case-insensitive substring match for image or video."""
    return bool(IMAGE_PATTERN.search(content_type) or VIDEO_PATTERN.search(content_type))


def classify_content_type(content_type: str) -> ContentKind:
    """Image wins when both words appear, matching the routing order."""
    if IMAGE_PATTERN.search(content_type):
        return ContentKind.IMAGE
    if VIDEO_PATTERN.search(content_type):
        return ContentKind.VIDEO
    raise ValueError(f"Not an image or video content type: {content_type}")


def validate(entry_point: EntryPoint, payload: Dict[str, Any]) -> None:
    """Raise ValidationError for the first violated precondition."""
    for field, message in CHECKS[entry_point]:
        if field == SUPPORTED_TYPE:
            ok = is_supported_content_type(str(payload["contentType"]))
        else:
            ok = bool(payload.get(field))

        if not ok:
            logger.error(f"Input request: {json.dumps(payload, default=str)}")
            MetricsExporter.record_validation_failure(entry_point.value, field)
            raise ValidationError(entry_point.value, field, message)
