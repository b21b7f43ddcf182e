"""
Record Normalizer - turns an annotation response into a ContentRecord skeleton.
Image and video shapes are handled by one entry point dispatching on the
source variant's kind. Pure transform: no I/O.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from media_moderation.lib.errors import MalformedAnnotationShape, UpstreamAnnotationError
from media_moderation.models.annotations import (
    AnnotationSource, EntityAnnotation, ImageAnnotation, SafeSearchAnnotation, VideoAnnotation
)
from media_moderation.models.content import AnnotationObservation, ContentRecord
from media_moderation.models.enums import ContentKind, LikelihoodLevel, SafetyCategory
from media_moderation.models.messages import RequestContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedAnnotation:
    """
    Output of normalization.
    observations is lazy and must be consumed once, by the aggregator.
    """
    record: ContentRecord
    reported: Tuple[SafetyCategory, ...]
    observations: Iterator[AnnotationObservation]


def _warn_missing(section: str, context: RequestContext) -> None:
    logger.warning(
        f"{MalformedAnnotationShape.__name__}: no {section} included in response "
        f"for {context.source_uri}"
    )


def _skeleton(context: RequestContext, kind: ContentKind) -> ContentRecord:
    return ContentRecord(
        source_uri=context.source_uri,
        display_url=context.display_url,
        content_type=context.content_type,
        content_kind=kind,
        recorded_at=context.recorded_at,
    )


def _descriptions(entities: Optional[List[EntityAnnotation]]) -> List[str]:
    return [e.description for e in entities or []]


# -- image ----------------------------------------------------------------

def _image_observations(safe_search: Optional[SafeSearchAnnotation]) -> Iterator[AnnotationObservation]:
    safe_search = safe_search or SafeSearchAnnotation()
    for category in SafetyCategory:
        raw = getattr(safe_search, category.value)
        yield AnnotationObservation(category=category, level=LikelihoodLevel.parse(raw))


def normalize_image(annotation: ImageAnnotation, context: RequestContext) -> NormalizedAnnotation:
    """
    Labels first, then logos, in encounter order; one observation per
    safe-search category. An explicit error object aborts normalization.
    """
    if annotation.error is not None:
        error = annotation.error
        logger.error(
            f"Error from Vision API: code:{error.code}, message: {error.message} "
            f"processing file {context.source_uri}"
        )
        raise UpstreamAnnotationError(error.code, error.message, context.source_uri)

    if annotation.label_annotations is None:
        _warn_missing("labelAnnotations", context)
    if annotation.logo_annotations is None:
        _warn_missing("logoAnnotations", context)
    if annotation.safe_search_annotation is None:
        _warn_missing("safeSearchAnnotation", context)

    record = (
        _skeleton(context, ContentKind.IMAGE)
        .with_labels(_descriptions(annotation.label_annotations))
        .with_labels(_descriptions(annotation.logo_annotations))
    )
    return NormalizedAnnotation(
        record=record,
        reported=tuple(SafetyCategory),
        observations=_image_observations(annotation.safe_search_annotation),
    )


# -- video ----------------------------------------------------------------

def _video_observations(annotation: VideoAnnotation, context: RequestContext) -> Iterator[AnnotationObservation]:
    explicit = annotation.explicit_annotation
    if explicit is None:
        _warn_missing("explicitAnnotation", context)
        return
    if explicit.frames is None:
        _warn_missing("explicitAnnotation.frames", context)
        return

    for frame in explicit.frames:
        yield AnnotationObservation(
            category=SafetyCategory.ADULT,
            level=LikelihoodLevel.parse(frame.pornography_likelihood),
        )


def normalize_video(annotation: VideoAnnotation, context: RequestContext) -> NormalizedAnnotation:
    """
    One label per segment label entity; one ADULT observation per frame.
    Missing sections are logged and treated as empty.
    """
    segments = annotation.segment_label_annotations
    if segments is None:
        _warn_missing("segmentLabelAnnotations", context)
        segments = []

    names = [s.entity.description if s.entity else "" for s in segments]
    record = _skeleton(context, ContentKind.VIDEO).with_labels(names)
    return NormalizedAnnotation(
        record=record,
        reported=(),
        observations=_video_observations(annotation, context),
    )


_NORMALIZERS: Dict[ContentKind, Callable[..., NormalizedAnnotation]] = {
    ContentKind.IMAGE: normalize_image,
    ContentKind.VIDEO: normalize_video,
}


def normalize(source: AnnotationSource, context: RequestContext) -> NormalizedAnnotation:
    """Normalize either annotation shape into a record skeleton."""
    return _NORMALIZERS[source.kind](source.annotation, context)
