"""
Enumeration definitions for the media moderation pipeline.
Likelihood scale, safety categories, content kinds and entry points.
"""

from enum import Enum, IntEnum
from typing import Optional, Union

from media_moderation.lib.errors import InvalidLikelihoodCode


class ContentKind(str, Enum):
    """Kinds of uploaded media that flow through the moderation pipeline."""
    IMAGE = "image"
    VIDEO = "video"


class SafetyCategory(str, Enum):
    """
    Safe-search categories reported by the annotation services.
    Iteration order is the order verdicts appear in a ContentRecord.
    Video annotation only reports ADULT (pornography likelihood).
    """
    ADULT = "adult"
    SPOOF = "spoof"
    MEDICAL = "medical"
    VIOLENCE = "violence"


class LikelihoodLevel(IntEnum):
    """
    Ordered confidence scale shared by image and video annotations.
    The integer value is the video API code, so rank(level) == int(level).
    """
    UNKNOWN = 0
    VERY_UNLIKELY = 1
    UNLIKELY = 2
    POSSIBLE = 3       # Flag threshold
    LIKELY = 4
    VERY_LIKELY = 5

    @property
    def rank(self) -> int:
        return int(self)

    @property
    def is_flagged(self) -> bool:
        return self >= FLAG_THRESHOLD

    @classmethod
    def from_code(cls, code: int) -> "LikelihoodLevel":
        """Decode a numeric video likelihood code (0..5)."""
        if isinstance(code, bool) or not isinstance(code, int):
            raise InvalidLikelihoodCode(code)
        try:
            return cls(code)
        except ValueError:
            raise InvalidLikelihoodCode(code) from None

    @classmethod
    def from_name(cls, name: Optional[str]) -> "LikelihoodLevel":
        """Decode a symbolic image likelihood; an empty value is UNKNOWN."""
        if not name:
            return cls.UNKNOWN
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise InvalidLikelihoodCode(name) from None

    @classmethod
    def parse(cls, value: Union[None, int, str, "LikelihoodLevel"]) -> "LikelihoodLevel":
        """Accept either wire representation."""
        if isinstance(value, cls):
            return value
        if value is None or isinstance(value, str):
            return cls.from_name(value)
        return cls.from_code(value)


FLAG_THRESHOLD = LikelihoodLevel.POSSIBLE


def rank(level: LikelihoodLevel) -> int:
    return level.rank


def is_flagged(level: LikelihoodLevel) -> bool:
    """True iff the level is POSSIBLE or higher."""
    return level.is_flagged


class Disposition(str, Enum):
    """Keep-or-quarantine decision derived from aggregated likelihoods."""
    KEEP = "keep"
    QUARANTINE = "quarantine"


class EntryPoint(str, Enum):
    """Inbound event handlers, one per topic."""
    INGEST_AND_ROUTE = "ingest-and-route"
    IMAGE_MODERATE = "image-moderate"
    VIDEO_MODERATE = "video-moderate"
    PERSIST_RECORD = "persist-record"
