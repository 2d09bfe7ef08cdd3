"""Services layer for business logic separation."""

from .ai_service import (
    AIConfig,
    EnrichmentProvider,
    GroqEnrichmentProvider,
    create_enrichment_provider,
)
from .repository import (
    BaseTopicRepository,
    InMemoryTopicRepository,
    JSONTopicRepository,
    SQLiteTopicRepository,
    create_repository,
)
from .retry import RetryPolicy, RetryingEnrichmentProvider
from .session import DiscoverOutcome, VocabStore

__all__ = [
    "AIConfig",
    "EnrichmentProvider",
    "GroqEnrichmentProvider",
    "create_enrichment_provider",
    "BaseTopicRepository",
    "InMemoryTopicRepository",
    "JSONTopicRepository",
    "SQLiteTopicRepository",
    "create_repository",
    "RetryPolicy",
    "RetryingEnrichmentProvider",
    "DiscoverOutcome",
    "VocabStore",
]
