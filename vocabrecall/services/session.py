"""
Session Engine - topics plus the active recall session.

VocabStore is an explicit state container: it owns the topic list and the
session (phase, active topic, items, score) and drives the
hidden -> discovered -> mastered loop. Transitions are synchronous;
enrichment fetches and persistence writes run as background tasks.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Coroutine, List, Optional, Set

from ..exceptions import RepositoryError
from ..models import GamePhase, ItemStatus, SessionStats, Topic, VocabItem
from ..utils.helpers import new_id, now_ms
from ..utils.parsing import TextParser
from .ai_service import EnrichmentProvider, synonyms_for_prompt
from .repository import BaseTopicRepository

logger = logging.getLogger(__name__)


class DiscoverOutcome(Enum):
    """Result of trying to reveal a word."""
    REVEALED = "revealed"
    ALREADY_REVEALED = "already revealed"
    NOT_FOUND = "not found"


class VocabStore:
    """
    Topics and the active practice session.

    Usage:
        store = VocabStore(JSONTopicRepository("data/topics"), provider)
        await store.load_topics()
        store.select_topic(topic_id)
        store.confirm_preview()
        store.discover_word("happy")
        store.guess_synonym(item.id, "joyful")
        await store.drain()
    """

    def __init__(
        self,
        repository: BaseTopicRepository,
        enrichment: Optional[EnrichmentProvider] = None,
    ):
        """
        Args:
            repository: Where topics are persisted
            enrichment: Provider for examples/phonetics (None disables enrichment)
        """
        self.repository = repository
        self.enrichment = enrichment

        self.topics: List[Topic] = []
        self.load_error: Optional[str] = None

        # Session (ephemeral)
        self.phase: GamePhase = GamePhase.TOPIC_LIST
        self.active_topic_id: Optional[str] = None
        self.items: List[VocabItem] = []
        self.score: int = 0

        self._tasks: Set[asyncio.Task] = set()
        # Owned loop for callers without a running one; sessions and locks stay bound to it
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ==================== Background work ====================

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> Optional[asyncio.Task]:
        """Run a coroutine in the background, or to completion if no loop runs."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._background_loop().run_until_complete(self._run_to_completion(coro))
            return None

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _background_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    async def _run_to_completion(self, coro: Coroutine[Any, Any, Any]) -> None:
        await coro
        await self.drain()

    @property
    def pending_tasks(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    async def drain(self) -> None:
        """Wait for every outstanding enrichment and save, including ones they start."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self.enrichment is not None:
            await self.enrichment.close()
        await self.repository.close()

    def shutdown(self) -> None:
        """
        Close the store from synchronous code.

        Runs close() on the loop background work used, then closes that loop.
        Async callers use `await close()` instead.
        """
        loop = self._background_loop()
        try:
            loop.run_until_complete(self.close())
        finally:
            loop.close()
            self._loop = None

    async def _save(self, topic: Topic) -> None:
        try:
            ok = await self.repository.save_topic(topic)
        except Exception:
            logger.exception("Failed to sync topic %s", topic.id)
            return
        if not ok:
            logger.error("Failed to sync topic %s", topic.id)

    def _sync_topic(self, topic: Optional[Topic]) -> None:
        """Push a full snapshot of the topic; failures are only logged."""
        if topic is not None:
            self._spawn(self._save(topic))

    async def _delete(self, topic_id: str) -> None:
        try:
            ok = await self.repository.delete_topic(topic_id)
        except Exception:
            logger.exception("Failed to delete topic %s from storage", topic_id)
            return
        if not ok:
            logger.error("Failed to delete topic %s from storage", topic_id)

    # ==================== Topics ====================

    async def load_topics(self) -> List[Topic]:
        """
        Replace the in-memory topic list with the repository's, newest first.

        On failure the list is empty and load_error describes why.
        """
        try:
            topics = await self.repository.list_topics()
        except (RepositoryError, OSError) as e:
            logger.error("Failed to fetch topics: %s", e)
            self.load_error = str(e)
            self.topics = []
            return self.topics

        self.load_error = None
        self.topics = sorted(topics, key=lambda t: t.created_at, reverse=True)
        logger.info("Loaded %d topics", len(self.topics))
        return self.topics

    def get_topic(self, topic_id: Optional[str]) -> Optional[Topic]:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    @property
    def active_topic(self) -> Optional[Topic]:
        return self.get_topic(self.active_topic_id)

    def add_topic(self, name: str, items: List[VocabItem]) -> Topic:
        """Create a topic from extracted items and open it for preview."""
        topic = Topic(id=new_id(), name=name, items=list(items), created_at=now_ms())
        logger.info("Adding new topic %r with %d items", name, len(topic.items))
        self.topics.insert(0, topic)
        self._open(topic)
        self._sync_topic(topic)
        return topic

    def delete_topic(self, topic_id: str) -> bool:
        """Remove a topic from memory and storage. Returns False if unknown locally."""
        topic = self.get_topic(topic_id)
        self.topics = [t for t in self.topics if t.id != topic_id]
        if self.active_topic_id == topic_id:
            self.exit_to_list()
        self._spawn(self._delete(topic_id))
        return topic is not None

    # ==================== Session lifecycle ====================

    def _open(self, topic: Topic) -> None:
        self.phase = GamePhase.PREVIEW
        self.active_topic_id = topic.id
        self.items = topic.items
        self.score = 0

    def select_topic(self, topic_id: str) -> bool:
        topic = self.get_topic(topic_id)
        if topic is None:
            logger.info("Topic %s not found", topic_id)
            return False
        logger.info("Selecting topic %r", topic.name)
        self._open(topic)
        return True

    def begin_upload(self) -> None:
        self.phase = GamePhase.UPLOAD

    def confirm_preview(self) -> bool:
        if self.phase != GamePhase.PREVIEW:
            return False
        self.phase = GamePhase.PLAYING
        return True

    def exit_to_list(self) -> None:
        """Leave the session; the topic keeps its progress."""
        self.phase = GamePhase.TOPIC_LIST
        self.active_topic_id = None
        self.items = []

    @property
    def stats(self) -> SessionStats:
        return SessionStats(
            discovered_count=sum(
                1 for i in self.items if i.status in (ItemStatus.DISCOVERED, ItemStatus.MASTERED)
            ),
            mastered_count=sum(1 for i in self.items if i.status == ItemStatus.MASTERED),
            total_count=len(self.items),
        )

    # ==================== Item transitions ====================

    def get_item(self, item_id: str) -> Optional[VocabItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_item_by_word(self, text: str) -> Optional[VocabItem]:
        """Case-insensitive exact match of user input against loaded words."""
        needle = TextParser.fold(text or "")
        if not needle:
            return None
        for item in self.items:
            if TextParser.fold(item.word) == needle:
                return item
        return None

    def discover(self, item_id: str) -> DiscoverOutcome:
        """
        Reveal a hidden item.

        The status flips immediately; enrichment is fetched in the
        background unless the item already carries it.
        """
        item = self.get_item(item_id)
        if item is None:
            return DiscoverOutcome.NOT_FOUND
        if item.status != ItemStatus.HIDDEN:
            return DiscoverOutcome.ALREADY_REVEALED

        item.status = ItemStatus.DISCOVERED
        self._sync_topic(self.active_topic)

        if not item.has_enrichment:
            self._schedule_enrichment(item)
        return DiscoverOutcome.REVEALED

    def discover_word(self, text: str) -> DiscoverOutcome:
        item = self.find_item_by_word(text)
        if item is None:
            return DiscoverOutcome.NOT_FOUND
        return self.discover(item.id)

    def guess_synonym(self, item_id: str, text: str) -> bool:
        """
        Check a guess against the item's synonyms.

        Returns:
            True when the guess matches one of the synonyms
        """
        item = self.get_item(item_id)
        if item is None or item.status == ItemStatus.HIDDEN:
            return False

        guess = (text or "").strip()
        folded = TextParser.fold(guess)
        if not folded or not any(TextParser.fold(s) == folded for s in item.synonyms):
            return False

        if any(TextParser.fold(g) == folded for g in item.user_guesses):
            return True

        item.user_guesses.append(guess)
        self.score += 1
        if len(item.user_guesses) >= len(item.synonyms):
            item.status = ItemStatus.MASTERED
            logger.debug("Mastered %r", item.word)
        self._sync_topic(self.active_topic)
        return True

    def regenerate_enrichment(self, item_id: str) -> Optional[asyncio.Task]:
        """Throw away fetched content for an item and fetch it again."""
        item = self.get_item(item_id)
        if item is None or self.enrichment is None:
            return None
        item.clear_enrichment()
        return self._schedule_enrichment(item)

    def reset_topic_progress(self) -> bool:
        """Hide every item of the active topic again; fetched content stays."""
        topic = self.active_topic
        if topic is None:
            return False
        for item in topic.items:
            item.reset_progress()
        self.score = 0
        self._sync_topic(topic)
        logger.info("Progress reset for topic %r", topic.name)
        return True

    # ==================== Enrichment ====================

    def _schedule_enrichment(self, item: VocabItem) -> Optional[asyncio.Task]:
        if self.enrichment is None or self.active_topic_id is None:
            return None
        return self._spawn(self._enrich(self.active_topic_id, item.id, item.word, list(item.synonyms)))

    async def _enrich(self, topic_id: str, item_id: str, word: str, synonyms: List[str]) -> None:
        try:
            result = await self.enrichment.enrich(word, synonyms_for_prompt(synonyms))
        except Exception as e:
            logger.warning("Enrichment failed for %r: %s", word, e)
            return

        # The session may have moved on; write to the topic itself
        topic = self.get_topic(topic_id)
        item = topic.find_item(item_id) if topic else None
        if item is None:
            logger.debug("Dropping enrichment for %r: topic or item is gone", word)
            return

        item.apply_enrichment(result)
        self._sync_topic(topic)
