"""
Disposition Engine - keep or quarantine.
Rewrites the record's location fields when the assessment is flagged and
emits the relocation order the caller executes. No I/O here.
"""

from dataclasses import dataclass
from typing import Optional

from media_moderation.lib.config import PipelineConfig
from media_moderation.models.content import ContentRecord
from media_moderation.models.enums import Disposition
from media_moderation.models.messages import RequestContext
from media_moderation.services.aggregator import SafetyAssessment


@dataclass(frozen=True)
class RelocationOrder:
    src_bucket: str
    src_file: str
    dest_bucket: str
    dest_file: str

    @property
    def destination_uri(self) -> str:
        return f"gs://{self.dest_bucket}/{self.dest_file}"


@dataclass(frozen=True)
class DispositionOutcome:
    record: ContentRecord
    disposition: Disposition
    relocation: Optional[RelocationOrder] = None


def dispose(
    record: ContentRecord,
    assessment: SafetyAssessment,
    context: RequestContext,
    config: PipelineConfig
) -> DispositionOutcome:
    """
    KEEP leaves the record at its primary location.
    QUARANTINE points it at the quarantine bucket under the same file name
    and orders exactly one move.
    """
    if record.relocated:
        raise ValueError(f"Record for {record.source_uri} already relocated")

    if not assessment.any_flagged:
        return DispositionOutcome(record=record, disposition=Disposition.KEEP)

    order = RelocationOrder(
        src_bucket=context.bucket,
        src_file=context.file,
        dest_bucket=config.quarantine_bucket,
        dest_file=context.file,
    )
    quarantined = record.relocated_to(
        source_uri=config.gcs_uri(order.dest_bucket, order.dest_file),
        display_url=config.browser_url(order.dest_bucket, order.dest_file),
    )
    return DispositionOutcome(record=quarantined, disposition=Disposition.QUARANTINE, relocation=order)
