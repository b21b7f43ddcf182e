"""
Simulation package for the media moderation pipeline.

- upload_event_producer: publishes object-created notifications for
  synthetic image and video uploads to the ingest topic

Usage:
    from media_moderation.simulation import build_upload_notification, run

    run(PipelineConfig.from_env())
"""

from media_moderation.simulation.upload_event_producer import build_upload_notification, run

__all__ = [
    'build_upload_notification',
    'run',
]
