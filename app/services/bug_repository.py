"""
Bug Repository
==============
Storage capability set used by BugService: list, get, create, update, delete.

Backends:
    InMemoryBugRepository  — process-local dict, optional simulated latency
    JsonFileBugRepository  — one JSON document holding the whole collection

Write model:
    Every mutation reads the full collection, changes it, and writes it back
    as one operation. There is no locking and no version token, so two
    concurrent updates of the same record race and the later write wins.

Failure model:
    Backends raise StorageError for unreachable or corrupt media. Nothing is
    retried here; retry policy belongs to the caller.
"""
import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pydantic import ValidationError

from app.core import config
from app.core.exceptions import StorageError
from app.models.bug import Bug

logger = logging.getLogger(__name__)


class BugRepository(ABC):
    """Keyed collection of Bug records."""

    @abstractmethod
    async def list(self) -> List[Bug]:
        ...

    @abstractmethod
    async def get(self, bug_id: str) -> Optional[Bug]:
        ...

    @abstractmethod
    async def create(self, bug: Bug) -> Bug:
        ...

    @abstractmethod
    async def update(self, bug: Bug) -> Optional[Bug]:
        """Replace the stored record with the same id. Returns None if absent."""

    @abstractmethod
    async def delete(self, bug_id: str) -> bool:
        """Remove a record. Returns False if absent."""


class InMemoryBugRepository(BugRepository):
    """
    Dict-backed repository.

    Records are copied on the way in and out so callers never hold a
    reference into the store.
    """

    def __init__(self, latency_ms: int = 0, bugs: Optional[List[Bug]] = None) -> None:
        self._latency = max(latency_ms, 0) / 1000.0
        self._bugs: Dict[str, Bug] = {}
        for bug in bugs or []:
            self._bugs[bug.id] = bug.model_copy(deep=True)

    async def _io(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    async def list(self) -> List[Bug]:
        await self._io()
        return [bug.model_copy(deep=True) for bug in self._bugs.values()]

    async def get(self, bug_id: str) -> Optional[Bug]:
        await self._io()
        bug = self._bugs.get(bug_id)
        return bug.model_copy(deep=True) if bug else None

    async def create(self, bug: Bug) -> Bug:
        await self._io()
        if bug.id in self._bugs:
            raise StorageError(f"Duplicate bug id {bug.id}")
        self._bugs[bug.id] = bug.model_copy(deep=True)
        return bug

    async def update(self, bug: Bug) -> Optional[Bug]:
        await self._io()
        if bug.id not in self._bugs:
            return None
        self._bugs[bug.id] = bug.model_copy(deep=True)
        return bug

    async def delete(self, bug_id: str) -> bool:
        await self._io()
        return self._bugs.pop(bug_id, None) is not None

    def __len__(self) -> int:
        return len(self._bugs)


class JsonFileBugRepository(BugRepository):
    """
    Repository persisting the whole collection as a JSON array.

    Writes go to a temporary file in the same directory followed by
    os.replace, so readers see either the old or the new document.
    File I/O runs in a worker thread to keep the event loop free.

    Each mutation is a read-modify-write of the whole document, so two
    overlapping creates can both start from the same snapshot and the later
    write drops the earlier record.
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)

    # ------------------------------------------------------------------
    # Raw document access (blocking)
    # ------------------------------------------------------------------
    def _read_all(self) -> List[Bug]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        except (OSError, ValueError) as e:
            logger.error("Failed to read bug store %s: %s", self.path, e)
            raise StorageError("Failed to read bug store", cause=e) from e

        if not isinstance(raw, list):
            raise StorageError("Bug store is corrupt: expected a JSON array")
        try:
            return [Bug.model_validate(item) for item in raw]
        except ValidationError as e:
            logger.error("Bug store %s holds an invalid record: %s", self.path, e)
            raise StorageError("Bug store is corrupt", cause=e) from e

    def _write_all(self, bugs: List[Bug]) -> None:
        directory = os.path.dirname(self.path)
        data = [bug.model_dump(mode="json", by_alias=True) for bug in bugs]
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".bugs-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            logger.error("Failed to write bug store %s: %s", self.path, e)
            raise StorageError("Failed to write bug store", cause=e) from e

    async def _load(self) -> List[Bug]:
        return await asyncio.to_thread(self._read_all)

    async def _save(self, bugs: List[Bug]) -> None:
        await asyncio.to_thread(self._write_all, bugs)

    # ------------------------------------------------------------------
    # BugRepository
    # ------------------------------------------------------------------
    async def list(self) -> List[Bug]:
        return await self._load()

    async def get(self, bug_id: str) -> Optional[Bug]:
        for bug in await self._load():
            if bug.id == bug_id:
                return bug
        return None

    async def create(self, bug: Bug) -> Bug:
        bugs = await self._load()
        if any(existing.id == bug.id for existing in bugs):
            raise StorageError(f"Duplicate bug id {bug.id}")
        bugs.append(bug)
        await self._save(bugs)
        return bug

    async def update(self, bug: Bug) -> Optional[Bug]:
        bugs = await self._load()
        for index, existing in enumerate(bugs):
            if existing.id == bug.id:
                bugs[index] = bug
                await self._save(bugs)
                return bug
        return None

    async def delete(self, bug_id: str) -> bool:
        bugs = await self._load()
        remaining = [bug for bug in bugs if bug.id != bug_id]
        if len(remaining) == len(bugs):
            return False
        await self._save(remaining)
        return True


def build_repository() -> BugRepository:
    """Create the repository selected by BUG_STORE_BACKEND."""
    backend = config.BUG_STORE_BACKEND
    if backend == "json":
        logger.info("Using JSON bug store at %s", config.BUG_STORE_PATH)
        return JsonFileBugRepository(config.BUG_STORE_PATH)
    if backend != "memory":
        logger.warning("Unknown BUG_STORE_BACKEND '%s', falling back to memory", backend)
    return InMemoryBugRepository(latency_ms=config.STORAGE_LATENCY_MS)
