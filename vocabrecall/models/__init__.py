"""Data models."""

from .vocab import (
    EnrichmentResult,
    ExampleSentence,
    GamePhase,
    ItemStatus,
    Phonetics,
    SENTENCE_ORDER,
    SentenceType,
    SessionStats,
    Topic,
    VocabItem,
)

__all__ = [
    'EnrichmentResult',
    'ExampleSentence',
    'GamePhase',
    'ItemStatus',
    'Phonetics',
    'SENTENCE_ORDER',
    'SentenceType',
    'SessionStats',
    'Topic',
    'VocabItem',
]
