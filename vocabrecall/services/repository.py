"""
Repository Pattern - Abstract topic storage layer.

The session engine only sees list/save/delete of whole topics, so the
backend (memory, JSON files, SQLite) can change without touching play logic.
Every write is a full-topic overwrite keyed by topic id: last writer wins.
"""

import asyncio
import copy
import json
import logging
import os
import sqlite3
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Generator, List, Optional

import aiofiles

from ..config import Config
from ..exceptions import RepositoryError
from ..models import Topic
from ..utils.helpers import ensure_dir

logger = logging.getLogger(__name__)


class BaseTopicRepository(ABC):
    """
    Abstract base class for topic repositories.

    Defines the contract for all topic persistence.
    Implementations are not required to order list_topics() results.
    """

    def __init__(self) -> None:
        self._write_locks: Dict[str, asyncio.Lock] = {}

    @abstractmethod
    async def list_topics(self) -> List[Topic]:
        """Load every stored topic. Raises RepositoryError on failure."""
        pass

    @abstractmethod
    async def save_topic(self, topic: Topic) -> bool:
        """Upsert the full topic. Returns True if successful."""
        pass

    @abstractmethod
    async def delete_topic(self, topic_id: str) -> bool:
        """Delete a topic; deleting an unknown id still succeeds."""
        pass

    async def close(self) -> None:
        """Release any open resources."""
        pass

    def _topic_lock(self, topic_id: str) -> asyncio.Lock:
        """Per-topic lock (lazy init) so writes of one topic land in call order."""
        if topic_id not in self._write_locks:
            self._write_locks[topic_id] = asyncio.Lock()
        return self._write_locks[topic_id]


class InMemoryTopicRepository(BaseTopicRepository):
    """
    Process-local repository.

    Stores deep copies so later in-place mutation of a Topic does not leak
    into the "persisted" state until it is saved again.
    """

    def __init__(self, topics: Optional[List[Topic]] = None):
        super().__init__()
        self._topics: Dict[str, Topic] = {}
        for topic in topics or []:
            self._topics[topic.id] = copy.deepcopy(topic)

    async def list_topics(self) -> List[Topic]:
        return [copy.deepcopy(t) for t in self._topics.values()]

    async def save_topic(self, topic: Topic) -> bool:
        self._topics[topic.id] = copy.deepcopy(topic)
        return True

    async def delete_topic(self, topic_id: str) -> bool:
        self._topics.pop(topic_id, None)
        return True

    def get(self, topic_id: str) -> Optional[Topic]:
        """Stored snapshot of a topic (for inspection)."""
        topic = self._topics.get(topic_id)
        return copy.deepcopy(topic) if topic else None


class JSONTopicRepository(BaseTopicRepository):
    """
    One JSON file per topic: <data_dir>/<topic id>.json.

    Files use the camelCase layout of Topic.to_dict(), so topic folders
    written by the web app load as-is.
    """

    def __init__(self, data_dir: Optional[str] = None):
        """
        Initialize JSON repository.

        Args:
            data_dir: Directory holding topic files
        """
        super().__init__()
        self.data_dir = Path(data_dir or Config.DATA_DIR)

    def _path_for(self, topic_id: str) -> Path:
        # Ids are opaque; keep them from escaping the data directory
        safe_id = Path(str(topic_id)).name
        return self.data_dir / f"{safe_id}.json"

    async def list_topics(self) -> List[Topic]:
        """Load all topics; unreadable files are logged and skipped."""
        if not self.data_dir.exists():
            return []

        try:
            files = sorted(self.data_dir.glob("*.json"))
        except OSError as e:
            raise RepositoryError(f"Cannot list {self.data_dir}: {e}") from e

        topics = []
        for file_path in files:
            try:
                async with aiofiles.open(file_path, 'r', encoding='utf-8') as f:
                    content = await f.read()
                topics.append(Topic.from_dict(json.loads(content)))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error("Skipping unreadable topic file %s: %s", file_path.name, e)
        return topics

    async def save_topic(self, topic: Topic) -> bool:
        """Write the topic with temp file + rename so readers never see half a file."""
        async with self._topic_lock(topic.id):
            return await self._write(topic)

    async def _write(self, topic: Topic) -> bool:
        output_path = self._path_for(topic.id)
        temp_path = f"{output_path}.{uuid.uuid4().hex[:8]}.tmp"
        # Snapshot once the lock is held, so the last write carries the latest state
        content = json.dumps(topic.to_dict(), indent=2, ensure_ascii=False)
        try:
            ensure_dir(self.data_dir)
            async with aiofiles.open(temp_path, 'w', encoding='utf-8') as f:
                await f.write(content)
            os.replace(temp_path, output_path)
            return True
        except OSError as e:
            logger.error("Failed to save topic %s: %s", topic.id, e)
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
            return False

    async def delete_topic(self, topic_id: str) -> bool:
        path = self._path_for(topic_id)
        try:
            if path.exists():
                path.unlink()
            return True
        except OSError as e:
            logger.error("Failed to delete topic %s: %s", topic_id, e)
            return False


class SQLiteTopicRepository(BaseTopicRepository):
    """
    SQLite-based repository implementation.

    Each topic is one row; the items travel as a JSON payload because
    they are always read and written whole.
    """

    # Schema version for migrations
    SCHEMA_VERSION = 1

    # Thread pool for blocking sqlite calls
    _executor = ThreadPoolExecutor(max_workers=2)

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite repository.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = Path(db_path or Config.DB_PATH)
        self._schema_ready = False

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        if self._schema_ready:
            return
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS topics (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    payload TEXT NOT NULL,
                    updated_at TEXT
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_topics_created ON topics(created_at)")

            cursor.execute("INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                           (self.SCHEMA_VERSION, datetime.now().isoformat()))
            conn.commit()
        self._schema_ready = True

    def _list_sync(self) -> List[Topic]:
        self._init_schema()
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id, payload FROM topics")
            rows = cursor.fetchall()

        topics = []
        for row in rows:
            try:
                topics.append(Topic.from_dict(json.loads(row["payload"])))
            except (ValueError, KeyError, TypeError) as e:
                logger.error("Skipping corrupt topic row %s: %s", row["id"], e)
        return topics

    def _save_sync(self, topic_id: str, name: str, created_at: int, payload: str) -> None:
        self._init_schema()
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO topics (id, name, created_at, payload, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (topic_id, name, created_at, payload, datetime.now().isoformat()),
            )
            conn.commit()

    def _delete_sync(self, topic_id: str) -> None:
        self._init_schema()
        with self._get_connection() as conn:
            conn.execute("DELETE FROM topics WHERE id = ?", (topic_id,))
            conn.commit()

    async def list_topics(self) -> List[Topic]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self._list_sync)
        except sqlite3.Error as e:
            raise RepositoryError(f"Cannot read topics from {self.db_path}: {e}") from e

    async def save_topic(self, topic: Topic) -> bool:
        loop = asyncio.get_running_loop()
        try:
            async with self._topic_lock(topic.id):
                # Snapshot on the loop thread; the topic keeps changing while we write
                payload = json.dumps(topic.to_dict(), ensure_ascii=False)
                await loop.run_in_executor(
                    self._executor, self._save_sync, topic.id, topic.name, topic.created_at, payload
                )
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to save topic %s: %s", topic.id, e)
            return False

    async def delete_topic(self, topic_id: str) -> bool:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._delete_sync, topic_id)
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to delete topic %s: %s", topic_id, e)
            return False


def create_repository(backend: Optional[str] = None) -> BaseTopicRepository:
    """
    Create the repository selected by Config.STORAGE_BACKEND.

    Args:
        backend: "json" or "sqlite" (defaults to configuration)
    """
    backend = (backend or Config.STORAGE_BACKEND).lower()
    if backend == "sqlite":
        return SQLiteTopicRepository(Config.DB_PATH)
    if backend == "memory":
        return InMemoryTopicRepository()
    return JSONTopicRepository(Config.DATA_DIR)
