"""Shared fixtures: scripted enrichment provider and repositories."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from vocabrecall.exceptions import RepositoryError, UpstreamError
from vocabrecall.models import EnrichmentResult, ExampleSentence, Phonetics, Topic, VocabItem
from vocabrecall.services import EnrichmentProvider, InMemoryTopicRepository, VocabStore


def make_result(tag: str) -> EnrichmentResult:
    """A complete enrichment whose every field mentions the tag."""
    return EnrichmentResult(
        meaning=f"meaning-{tag}",
        phonetics=Phonetics(us=f"/us-{tag}/", uk=f"/uk-{tag}/"),
        examples=[
            ExampleSentence(type=t, text=f"{t} sentence {tag}", translation=f"terjemahan {tag}")
            for t in ("Simple", "Complex", "Compound", "Compound-Complex")
        ],
        synonym_meanings=[f"syn-{tag}"],
    )


class ScriptedProvider(EnrichmentProvider):
    """
    Enrichment provider driven by the test.

    By default answers immediately with make_result(word). Set `error` to
    fail every call, or `manual=True` to get a future per call that the
    test resolves itself.
    """

    def __init__(self, error: Optional[Exception] = None, manual: bool = False):
        self.error = error
        self.manual = manual
        self.calls: List[str] = []
        self.pending: List[asyncio.Future] = []
        self.closed = False

    async def enrich(self, word: str, synonyms: Optional[Sequence[str]] = None) -> EnrichmentResult:
        self.calls.append(word)
        if self.error is not None:
            raise self.error
        if self.manual:
            future = asyncio.get_running_loop().create_future()
            self.pending.append(future)
            return await future
        return make_result(word)

    async def close(self) -> None:
        self.closed = True


class FlakyRepository(InMemoryTopicRepository):
    """In-memory repository whose writes or reads can be made to fail."""

    def __init__(self, fail_saves: bool = False, fail_reads: bool = False, raise_on_save: bool = False):
        super().__init__()
        self.fail_saves = fail_saves
        self.fail_reads = fail_reads
        self.raise_on_save = raise_on_save
        self.save_calls = 0

    async def list_topics(self) -> List[Topic]:
        if self.fail_reads:
            raise RepositoryError("storage offline")
        return await super().list_topics()

    async def save_topic(self, topic: Topic) -> bool:
        self.save_calls += 1
        if self.raise_on_save:
            raise OSError("disk full")
        if self.fail_saves:
            return False
        return await super().save_topic(topic)


@pytest.fixture
def happy_item() -> VocabItem:
    return VocabItem(word="Happy", synonyms=["joyful", "glad"])


@pytest.fixture
def repository() -> InMemoryTopicRepository:
    return InMemoryTopicRepository()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def store(repository, provider) -> VocabStore:
    return VocabStore(repository, provider)


@pytest.fixture
def failing_provider() -> ScriptedProvider:
    return ScriptedProvider(error=UpstreamError("boom", status=502))


def stored_items(repository: InMemoryTopicRepository, topic_id: str) -> Dict[str, VocabItem]:
    topic = repository.get(topic_id)
    return {i.id: i for i in topic.items} if topic else {}
