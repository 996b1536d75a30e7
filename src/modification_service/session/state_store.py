"""Per-session project file map and change log.

The key-value cache is an accelerator only. Every cache failure is logged and
degrades to "cache disabled for this call": the file map is rebuilt from disk and
the change log falls back to a bounded in-process mirror. While the cache is reachable
it is the only source of truth for the change log, so every append re-reads it.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import CacheBackendError
from modification_service.models.modification_models import ChangeLog, ModificationChange, ProjectFile
from modification_service.session.cache import KeyValueCache
from modification_service.session.project_scanner import ProjectScanner

logger = structlog.get_logger(__name__)


def project_files_key(session_id: str) -> str:
    return f"project_files:{session_id}"


def changes_key(session_id: str) -> str:
    return f"mod_changes:{session_id}"


def session_start_key(session_id: str) -> str:
    return f"session_start:{session_id}"


def session_context_key(session_id: str) -> str:
    return f"session_context:{session_id}"


@dataclass
class SessionState:
    """Working state of one session, held by exactly one request at a time."""

    session_id: str
    started_at: datetime
    file_map: dict[str, ProjectFile]


class SessionStateStore:
    def __init__(self, cache: KeyValueCache, scanner: ProjectScanner, settings: ModificationSettings):
        self._cache = cache
        self._scanner = scanner
        self._settings = settings
        self._logs: OrderedDict[str, ChangeLog] = OrderedDict()
        self._started: OrderedDict[str, datetime] = OrderedDict()

    async def load_state(self, session_id: str) -> SessionState:
        started_at = await self.get_session_start(session_id)
        files = await self.get_files(session_id)
        return SessionState(session_id=session_id, started_at=started_at, file_map=files)

    async def get_files(self, session_id: str) -> dict[str, ProjectFile]:
        """Cached file map, or a fresh filesystem scan on miss or cache failure."""
        key = project_files_key(session_id)
        try:
            raw = await self._cache.get(key)
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="get_files", session_id=session_id, error=str(e))
            return await self._scan()

        if raw:
            files = self._decode_files(raw, session_id)
            if files is not None:
                logger.debug("project_files_cache_hit", session_id=session_id, file_count=len(files))
                return files

        files = await self._scan()
        await self.set_files(session_id, files)
        return files

    async def set_files(self, session_id: str, files: dict[str, ProjectFile]) -> bool:
        """Write the file map through to the cache. Returns False when the cache is down."""
        payload = json.dumps({path: f.model_dump() for path, f in files.items()})
        try:
            await self._cache.set_with_ttl(project_files_key(session_id), payload, self._settings.PROJECT_FILES_TTL_SEC)
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="set_files", session_id=session_id, error=str(e))
            return False
        return True

    async def append_change(self, session_id: str, change: ModificationChange) -> None:
        log = await self.get_change_log(session_id)
        log.entries.append(change)

        overflow = len(log.entries) - self._settings.CHANGE_LOG_RETENTION
        if overflow > 0:
            for folded in log.entries[:overflow]:
                log.digest.absorb(folded)
            del log.entries[:overflow]
            logger.debug("change_log_folded", session_id=session_id, folded=overflow, archived=log.digest.count)

        try:
            await self._cache.set_with_ttl(changes_key(session_id), log.model_dump_json(), self._settings.CHANGE_LOG_TTL_SEC)
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="append_change", session_id=session_id, error=str(e))

    async def get_change_log(self, session_id: str) -> ChangeLog:
        """The session's change log as currently stored in the cache.

        Falls back to the in-process mirror only when the cache backend fails.
        """
        try:
            raw = await self._cache.get(changes_key(session_id))
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="get_change_log", session_id=session_id, error=str(e))
            log = self._logs.get(session_id)
            if log is None:
                log = ChangeLog()
            self._remember(self._logs, session_id, log)
            return log

        log = ChangeLog()
        if raw:
            try:
                log = ChangeLog.model_validate_json(raw)
            except ValidationError as e:
                logger.warning("change_log_cache_corrupt", session_id=session_id, error=str(e))
        self._remember(self._logs, session_id, log)
        return log

    async def get_recent_changes_summary(self, session_id: str) -> str:
        """Bounded summary: the latest N changes plus aggregate counts."""
        log = await self.get_change_log(session_id)
        if not log.entries and not log.digest.count:
            return "No modifications yet in this session."

        limit = self._settings.RECENT_CHANGES_IN_SUMMARY
        recent = log.entries[-limit:]
        total = len(log.entries) + log.digest.count
        lines = [f"Recent changes (last {len(recent)} of {total}):"]
        for index, change in enumerate(recent, start=1):
            mark = "ok" if change.success else "failed"
            description = " ".join(change.description.split())[:120]
            lines.append(f"{index}. {change.type.value.upper()} {change.file}: {description} [{mark}] ({change.approach})")

        files = {c.file for c in log.entries if c.success} | set(log.digest.files)
        lines.append(f"Files touched this session: {len(files)}")
        approaches = Counter(c.approach for c in log.entries)
        if approaches:
            lines.append(f"Primary approach: {approaches.most_common(1)[0][0]}")

        started_at = await self.get_session_start(session_id)
        minutes = int((datetime.now(timezone.utc) - started_at).total_seconds() // 60)
        lines.append(f"Session duration: {minutes} min")

        if log.digest.count:
            lines.append(
                f"Earlier history: {log.digest.count} changes archived "
                f"({log.digest.succeeded} succeeded, {log.digest.failed} failed) "
                f"across {len(log.digest.files)} files"
            )
        return "\n".join(lines)

    async def get_session_start(self, session_id: str) -> datetime:
        started_at = self._started.get(session_id)
        if started_at is not None:
            return started_at

        started_at = datetime.now(timezone.utc)
        key = session_start_key(session_id)
        try:
            if await self._cache.exists(key):
                raw = await self._cache.get(key)
                if raw:
                    started_at = datetime.fromisoformat(raw)
            else:
                await self._cache.set_with_ttl(key, started_at.isoformat(), self._settings.PROJECT_FILES_TTL_SEC)
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="get_session_start", session_id=session_id, error=str(e))
        except ValueError:
            logger.warning("session_start_cache_corrupt", session_id=session_id)

        self._remember(self._started, session_id, started_at)
        return started_at

    async def get_session_context(self, session_id: str) -> Optional[str]:
        try:
            return await self._cache.get(session_context_key(session_id))
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="get_session_context", session_id=session_id, error=str(e))
            return None

    async def set_session_context(self, session_id: str, context: str) -> None:
        try:
            await self._cache.set_with_ttl(session_context_key(session_id), context, self._settings.SESSION_CONTEXT_TTL_SEC)
        except CacheBackendError as e:
            logger.warning("cache_unavailable", operation="set_session_context", session_id=session_id, error=str(e))

    async def clear_session(self, session_id: str) -> None:
        """Delete every cached key of the session. Raises ``CacheBackendError`` when the cache is down."""
        self._logs.pop(session_id, None)
        self._started.pop(session_id, None)
        for key in (
            project_files_key(session_id),
            changes_key(session_id),
            session_start_key(session_id),
            session_context_key(session_id),
        ):
            try:
                await self._cache.delete(key)
            except CacheBackendError as e:
                logger.warning("cache_unavailable", operation="clear_session", session_id=session_id, error=str(e))
                raise
        logger.info("session_cleared", session_id=session_id)

    async def _scan(self) -> dict[str, ProjectFile]:
        return await asyncio.to_thread(self._scanner.scan)

    def _decode_files(self, raw: str, session_id: str) -> Optional[dict[str, ProjectFile]]:
        try:
            data = json.loads(raw)
            return {path: ProjectFile.model_validate(item) for path, item in data.items()}
        except (ValueError, AttributeError) as e:
            logger.warning("project_files_cache_corrupt", session_id=session_id, error=str(e))
            return None

    def _remember(self, table: OrderedDict, session_id: str, value) -> None:
        table[session_id] = value
        table.move_to_end(session_id)
        while len(table) > self._settings.MEMORY_FALLBACK_SESSIONS:
            table.popitem(last=False)
