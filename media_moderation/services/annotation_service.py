"""
Annotation Service clients - image and video content annotation.
Defines the collaborator contracts the pipeline awaits, plus simulated
annotators for local runs.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from media_moderation.models.enums import LikelihoodLevel, SafetyCategory

IMAGE_FEATURES = ["LOGO_DETECTION", "LABEL_DETECTION", "LANDMARK_DETECTION", "SAFE_SEARCH_DETECTION"]
VIDEO_FEATURES = ["LABEL_DETECTION", "EXPLICIT_CONTENT_DETECTION"]


class ImageAnnotator(ABC):
    """Annotates one image per call."""

    @abstractmethod
    async def annotate(self, uri: str) -> Dict[str, Any]:
        """Return the raw annotation response for the image at uri."""


class VideoOperation(ABC):
    """Handle on a long-running video annotation."""

    @abstractmethod
    async def result(self) -> Dict[str, Any]:
        """Wait for completion and return the operation response."""


class VideoAnnotator(ABC):
    """Starts long-running video annotations."""

    @abstractmethod
    async def annotate(self, uri: str) -> VideoOperation:
        """Start annotating the video at uri."""


def _digest(uri: str) -> bytes:
    return hashlib.sha256(uri.encode('utf-8')).digest()


class SimulatedImageAnnotator(ImageAnnotator):
    """
    Deterministic image annotator.
    SIMULATED - Replace with the image annotation API call.
    Likelihoods are derived from a hash of the URI so reruns agree.
    """

    LABELS = ["document", "red", "light", "macro photography", "close up", "automotive lighting"]
    LOGOS = ["BrandX", "BrandY"]

    async def annotate(self, uri: str) -> Dict[str, Any]:
        digest = _digest(uri)
        labels = [{"description": self.LABELS[b % len(self.LABELS)]} for b in digest[:2]]
        logos = [{"description": self.LOGOS[digest[2] % len(self.LOGOS)]}] if digest[2] > 200 else []
        # Skew towards the unlikely end of the scale
        safe_search = {
            category.value: LikelihoodLevel(min(digest[3 + i] % 8, 5)).name
            for i, category in enumerate(SafetyCategory)
        }
        return {
            "labelAnnotations": labels,
            "logoAnnotations": logos,
            "safeSearchAnnotation": safe_search,
            "error": None,
        }


class SimulatedVideoOperation(VideoOperation):
    def __init__(self, response: Dict[str, Any], delay_seconds: float):
        self._response = response
        self._delay_seconds = delay_seconds

    async def result(self) -> Dict[str, Any]:
        await asyncio.sleep(self._delay_seconds)
        return self._response


class SimulatedVideoAnnotator(VideoAnnotator):
    """
    Deterministic video annotator.
    SIMULATED - Replace with the video annotation API call.
    """

    LABELS = ["vehicle", "road", "person", "animal", "sky"]

    def __init__(self, delay_seconds: float = 0.0, frame_count: int = 8):
        self.delay_seconds = delay_seconds
        self.frame_count = frame_count

    async def annotate(self, uri: str) -> VideoOperation:
        digest = _digest(uri)
        segments = [{"entity": {"description": self.LABELS[b % len(self.LABELS)]}} for b in digest[:3]]
        frames: List[Dict[str, Any]] = [
            {
                "timeOffset": {"seconds": i},
                "pornographyLikelihood": min(digest[4 + i % 16] % 7, 5),
            }
            for i in range(self.frame_count)
        ]
        response = {
            "annotationResults": [{
                "segmentLabelAnnotations": segments,
                "explicitAnnotation": {"frames": frames},
            }]
        }
        return SimulatedVideoOperation(response, self.delay_seconds)
