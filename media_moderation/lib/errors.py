"""
Error taxonomy for the moderation pipeline.
Fatal errors abort the current event and propagate to the runtime.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for errors fatal to a single event."""


class DecodeError(PipelineError):
    """Inbound message body is not valid base64/JSON."""


class InvalidLikelihoodCode(DecodeError, ValueError):
    """Likelihood value outside the six-level scale."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid likelihood value: {value!r}")


class ValidationError(PipelineError):
    """A required field is missing or the content type is unsupported."""

    def __init__(self, entry_point: str, field: str, message: str):
        self.entry_point = entry_point
        self.field = field
        self.message = message
        super().__init__(message)


class UpstreamAnnotationError(PipelineError):
    """The annotation service returned an explicit error object."""

    def __init__(self, code: Optional[int], message: Optional[str], uri: str):
        self.code = code
        self.message = message
        self.uri = uri
        super().__init__(
            f"From Vision API: code:{code}, message: {message} processing file {uri}"
        )


class PublishError(PipelineError):
    """The message broker did not accept a message."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Failed to publish message to {topic}")


class RelocationError(PipelineError):
    """An uploaded object could not be moved into the result bucket."""


class StoreError(PipelineError):
    """The analytical store did not accept a row."""


class MalformedAnnotationShape(UserWarning):
    """
    Expected annotation sub-structure missing.
    Never raised; used to tag warning logs. Processing continues with
    the section treated as empty.
    """
