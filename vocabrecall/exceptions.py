"""Exception hierarchy for VocabRecall."""

from typing import Optional


class VocabRecallError(Exception):
    """Base class for all application errors."""


class ExtractionError(VocabRecallError):
    """The uploaded file could not be read into a grid at all."""


class RepositoryError(VocabRecallError):
    """Reading topics from storage failed."""


class EnrichmentError(VocabRecallError):
    """Base class for enrichment provider failures."""


class MissingCredentialsError(EnrichmentError):
    """No API key (or other provider configuration) is available."""


class RateLimitedError(EnrichmentError):
    """Upstream answered 429 Too Many Requests."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(EnrichmentError):
    """Upstream failed: non-200 status, timeout or connection error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedResponseError(EnrichmentError):
    """Upstream answered, but not with the expected JSON object."""
