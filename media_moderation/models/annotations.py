"""
Raw annotation service response models.
Image (Vision-style) and video (Video Intelligence-style) shapes, wrapped
in a tagged AnnotationSource variant for the normalizer.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from media_moderation.lib.errors import MalformedAnnotationShape
from media_moderation.models.enums import ContentKind

logger = logging.getLogger(__name__)

RawLikelihood = Union[int, str, None]


class _AnnotationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EntityAnnotation(_AnnotationModel):
    """Label or logo detection."""
    description: str = ""
    mid: Optional[str] = None
    score: Optional[float] = None


class SafeSearchAnnotation(_AnnotationModel):
    """One likelihood per category; all four keys are always reported."""
    adult: RawLikelihood = None
    spoof: RawLikelihood = None
    medical: RawLikelihood = None
    violence: RawLikelihood = None


class AnnotationStatus(_AnnotationModel):
    """google.rpc.Status-shaped error object."""
    code: Optional[int] = None
    message: Optional[str] = None


class ImageAnnotation(_AnnotationModel):
    """Response of a single image annotation request."""
    label_annotations: Optional[List[EntityAnnotation]] = Field(default=None, alias="labelAnnotations")
    logo_annotations: Optional[List[EntityAnnotation]] = Field(default=None, alias="logoAnnotations")
    safe_search_annotation: Optional[SafeSearchAnnotation] = Field(default=None, alias="safeSearchAnnotation")
    error: Optional[AnnotationStatus] = None

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "ImageAnnotation":
        return cls.model_validate(response)


class Entity(_AnnotationModel):
    description: str = ""
    entity_id: Optional[str] = Field(default=None, alias="entityId")


class SegmentLabelAnnotation(_AnnotationModel):
    entity: Optional[Entity] = None


class ExplicitFrame(_AnnotationModel):
    """Per-frame explicit content reading; likelihood is a 0..5 code."""
    pornography_likelihood: Union[int, str] = Field(default=0, alias="pornographyLikelihood")
    time_offset: Optional[Dict[str, Any]] = Field(default=None, alias="timeOffset")


class ExplicitAnnotation(_AnnotationModel):
    frames: Optional[List[ExplicitFrame]] = None


class VideoAnnotation(_AnnotationModel):
    """One aggregated video annotation result."""
    segment_label_annotations: Optional[List[SegmentLabelAnnotation]] = Field(
        default=None, alias="segmentLabelAnnotations"
    )
    explicit_annotation: Optional[ExplicitAnnotation] = Field(default=None, alias="explicitAnnotation")

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "VideoAnnotation":
        """
        Accept either a bare annotation result or the operation response
        wrapping it in annotationResults; only the first result is used.
        """
        if "annotationResults" in response:
            results = response.get("annotationResults") or []
            if not results:
                logger.warning(
                    f"{MalformedAnnotationShape.__name__}: no annotationResults included in response: {response}"
                )
                return cls()
            response = results[0]
        return cls.model_validate(response)


@dataclass(frozen=True)
class ImageSource:
    annotation: ImageAnnotation
    kind: ContentKind = ContentKind.IMAGE


@dataclass(frozen=True)
class VideoSource:
    annotation: VideoAnnotation
    kind: ContentKind = ContentKind.VIDEO


AnnotationSource = Union[ImageSource, VideoSource]
