"""
Inbound message models.
Parsed only after the validation gate has accepted the payload.
"""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from media_moderation.lib.config import PipelineConfig


class UploadNotification(BaseModel):
    """Object-created notification from the upload bucket."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bucket: str
    name: str
    content_type: str = Field(alias="contentType")


class ModerationRequest(BaseModel):
    """Request routed to the image or video moderation topic."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content_type: str = Field(alias="contentType")
    gcs_url: str = Field(alias="gcsUrl")
    gcs_bucket: str = Field(alias="gcsBucket")
    gcs_file: str = Field(alias="gcsFile")


@dataclass(frozen=True)
class RequestContext:
    """Everything the normalizer needs besides the annotation itself."""
    bucket: str
    file: str
    content_type: str
    source_uri: str
    display_url: str
    recorded_at: datetime

    @classmethod
    def from_request(
        cls,
        request: ModerationRequest,
        config: PipelineConfig,
        recorded_at: datetime
    ) -> "RequestContext":
        return cls(
            bucket=request.gcs_bucket,
            file=request.gcs_file,
            content_type=request.content_type,
            source_uri=request.gcs_url,
            display_url=config.browser_url(request.gcs_bucket, request.gcs_file),
            recorded_at=recorded_at,
        )
