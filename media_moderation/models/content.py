"""
Content record data models.
The canonical record emitted for downstream persistence, plus the
per-reading observation type fed to the safety aggregator.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from media_moderation.models.enums import ContentKind, LikelihoodLevel, SafetyCategory


@dataclass(frozen=True)
class AnnotationObservation:
    """One raw likelihood reading for one category (one frame, for video)."""
    category: SafetyCategory
    level: LikelihoodLevel


class Label(BaseModel):
    """Detected label or logo name."""
    model_config = ConfigDict(frozen=True)

    name: str


class SafetyVerdict(BaseModel):
    """Aggregated likelihood for one safety category."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: SafetyCategory = Field(alias="flaggedType")
    level: LikelihoodLevel = Field(alias="likelihood")

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> LikelihoodLevel:
        return LikelihoodLevel.parse(value)

    @field_serializer("level")
    def _serialize_level(self, level: LikelihoodLevel) -> str:
        return level.name

    @property
    def is_flagged(self) -> bool:
        return self.level.is_flagged


class ContentRecord(BaseModel):
    """
    Canonical moderation record.
    Built fresh per event and rebuilt (never mutated) by each stage:
    normalizer -> aggregator -> disposition engine.
    Wire field names match the analytical store's columns.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_uri: str = Field(alias="gcsUrl")
    display_url: str = Field(alias="contentUrl")
    content_type: str = Field(alias="contentType")
    content_kind: ContentKind = Field(alias="contentKind")
    recorded_at: datetime = Field(alias="insertTimestamp")

    # Detection order, never deduplicated
    labels: Tuple[Label, ...] = ()
    # At most one verdict per category
    safety: Tuple[SafetyVerdict, ...] = Field(default=(), alias="safeSearch")

    relocated: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_kind(cls, data: Any) -> Any:
        # Records from older producers carry only the MIME type
        if isinstance(data, dict) and not data.get("contentKind") and not data.get("content_kind"):
            mime = str(data.get("contentType") or data.get("content_type") or "").lower()
            if "image" in mime:
                data = {**data, "contentKind": ContentKind.IMAGE}
            elif "video" in mime:
                data = {**data, "contentKind": ContentKind.VIDEO}
        return data

    @field_validator("safety")
    @classmethod
    def _one_verdict_per_category(cls, value: Tuple[SafetyVerdict, ...]) -> Tuple[SafetyVerdict, ...]:
        seen = [v.category for v in value]
        if len(seen) != len(set(seen)):
            raise ValueError("safety contains more than one verdict for a category")
        return value

    @field_serializer("recorded_at")
    def _serialize_recorded_at(self, recorded_at: datetime) -> str:
        if recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=timezone.utc)
        return str(round(recorded_at.timestamp()))

    # -- builder steps ----------------------------------------------------

    def with_labels(self, names: Iterable[str]) -> "ContentRecord":
        """Return a copy with names appended to labels, in order."""
        added = tuple(Label(name=n) for n in names)
        return self.model_copy(update={"labels": self.labels + added})

    def with_safety(self, verdicts: Iterable[SafetyVerdict]) -> "ContentRecord":
        return self.model_copy(update={"safety": tuple(verdicts)})

    def relocated_to(self, source_uri: str, display_url: str) -> "ContentRecord":
        return self.model_copy(update={
            "source_uri": source_uri,
            "display_url": display_url,
            "relocated": True,
        })

    # -- serialization ----------------------------------------------------

    @property
    def label_names(self) -> Tuple[str, ...]:
        return tuple(label.name for label in self.labels)

    def verdict_for(self, category: SafetyCategory) -> LikelihoodLevel:
        for verdict in self.safety:
            if verdict.category == category:
                return verdict.level
        raise KeyError(category)

    def to_message(self) -> Dict[str, Any]:
        """Self-describing JSON payload published for persistence."""
        return self.model_dump(mode="json", by_alias=True)
