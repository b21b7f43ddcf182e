"""
Media moderation pipeline.

Event-driven moderation of uploaded images and videos:
- ingest-and-route: moves uploads into the result bucket and routes them
- image-moderate / video-moderate: annotate, aggregate safe-search
  likelihoods, quarantine flagged content and publish a ContentRecord
- persist-record: writes each ContentRecord to the analytical store

Usage:
    from media_moderation import ModerationService, PipelineConfig

    service = ModerationService(config=PipelineConfig.from_env(), ...)
    asyncio.run(service.moderate_image(event))
"""

from media_moderation.lib.config import PipelineConfig
from media_moderation.models.content import ContentRecord
from media_moderation.services.moderation_service import ModerationService

__all__ = [
    'ContentRecord',
    'ModerationService',
    'PipelineConfig',
]
