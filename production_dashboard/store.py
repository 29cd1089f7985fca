"""
Record store: owns production entries, off-days, users, activity logs
and the current session.

Every collection lives in the local cache as a JSON list and is replaced
wholesale on save. Saves of remotely-backed collections are mirrored to
the sheet endpoint on a background event loop; the returned future
resolves to the push result and can be waited on or ignored.

sync() pulls production entries and off-days from the endpoint and
overwrites the local copies. There is no merge: the last successful pull
wins, including over local edits that have not reached the sheet yet.
"""

import asyncio
import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable

import httpx

from .cache import JsonFileCache
from .config import (
    CACHE_KEYS,
    DEFAULT_OFF_DAYS,
    DEFAULT_TIMEZONE,
    DEFAULT_USERS,
    MAX_ACTIVITY_LOGS,
    REMOTE_ACTIONS,
    Settings,
    load_settings,
)
from .dates import today_iso, utc_now_iso
from .models import ActivityLog, OffDay, ProductionEntry, User, new_id
from .seed import generate_seed_entries
from .sheets import SheetsAdapter

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]

_RECORD_TYPES = {
    "users": User,
    "entries": ProductionEntry,
    "off_days": OffDay,
    "logs": ActivityLog,
}


@dataclass(frozen=True)
class SyncResult:
    """Which collections were overwritten by a sync pull."""

    entries: bool = False
    off_days: bool = False

    @property
    def any(self) -> bool:
        return self.entries or self.off_days


def _done(result: bool) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


class _MirrorWorker:
    """Runs push coroutines on a private event loop in a daemon thread.

    Coroutines run one at a time in submit order, so an older snapshot
    never reaches the endpoint after a newer one.
    """

    def __init__(self):
        self._loop: asyncio.AbstractEventLoop | None = None
        self._order: asyncio.Lock | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def submit(self, coro) -> Future:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._order = asyncio.Lock()
                self._thread = threading.Thread(
                    target=self._loop.run_forever,
                    name="sheets-mirror",
                    daemon=True,
                )
                self._thread.start()
            return asyncio.run_coroutine_threadsafe(self._in_order(coro), self._loop)

    async def _in_order(self, coro):
        async with self._order:
            return await coro

    def close(self) -> None:
        with self._lock:
            if self._loop is None:
                return
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
            self._loop.close()
            self._loop = None
            self._order = None
            self._thread = None


class RecordStore:
    """Single owner of all dashboard records.

    Parameters
    ----------
    cache : Key-value cache (JsonFileCache or MemoryCache).
    adapter : Sheet endpoint adapter. Defaults to a disabled adapter.
    seed : Write default users, off-days and generated production data
           for any collection missing from the cache.
    timezone : Site timezone, used to date the seed data.
    """

    def __init__(
        self,
        cache,
        adapter: SheetsAdapter | None = None,
        seed: bool = True,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self.cache = cache
        self.adapter = adapter or SheetsAdapter()
        self.timezone = timezone
        self._configured_url = self.adapter.url
        self._listeners: list[Listener] = []
        self._mirror = _MirrorWorker()

        override = self.cache.get(CACHE_KEYS["endpoint"])
        if override:
            self.adapter.url = override

        if seed:
            self._seed_defaults()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "RecordStore":
        settings = settings or load_settings()
        adapter = SheetsAdapter(
            settings.sheets_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        return cls(JsonFileCache(settings.cache_dir), adapter, timezone=settings.timezone)

    def close(self) -> None:
        self._mirror.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------
    def _seed_defaults(self) -> None:
        if CACHE_KEYS["users"] not in self.cache:
            self._write_local("users", [User.from_dict(u) for u in DEFAULT_USERS])
        if CACHE_KEYS["off_days"] not in self.cache:
            self._write_local("off_days", [OffDay.from_dict(d) for d in DEFAULT_OFF_DAYS])
        if CACHE_KEYS["entries"] not in self.cache:
            entries = generate_seed_entries(today_iso(self.timezone), off_days=self.get_off_days())
            self._write_local("entries", entries)
            logger.info("Seeded %d production entries", len(entries))
        if CACHE_KEYS["logs"] not in self.cache:
            self._write_local("logs", [])

    # ------------------------------------------------------------------
    # Raw cache access
    # ------------------------------------------------------------------
    def _read(self, resource: str) -> list:
        raw = self.cache.get(CACHE_KEYS[resource])
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt cache entry for '%s'; treating as empty", resource)
            return []
        if not isinstance(rows, list):
            logger.warning("Cache entry for '%s' is not a list; treating as empty", resource)
            return []

        record_type = _RECORD_TYPES[resource]
        return [record_type.from_dict(row) for row in rows if isinstance(row, dict)]

    def _write_local(self, resource: str, records: list) -> None:
        payload = json.dumps([r.to_dict() for r in records])
        self.cache.set(CACHE_KEYS[resource], payload)
        self._notify(resource)

    def _save(self, resource: str, records: list) -> Future:
        records = list(records)
        self._write_local(resource, records)
        return self._mirror_write(resource, [r.to_dict() for r in records])

    def _mirror_write(self, resource: str, payload: list) -> Future:
        if not self.adapter.is_enabled():
            return _done(False)
        _, action = REMOTE_ACTIONS[resource]
        return self._mirror.submit(self._push(action, payload))

    async def _push(self, action: str, payload: list) -> bool:
        try:
            return await self.adapter.push(action, payload)
        except Exception:
            logger.exception("Mirror write '%s' failed", action)
            return False

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(resource)` after every local write. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, resource: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(resource)
            except Exception:
                logger.exception("Store listener failed for '%s'", resource)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def get_users(self) -> list[User]:
        return self._read("users")

    def save_users(self, users: list[User]) -> Future:
        return self._save("users", users)

    def get_entries(self) -> list[ProductionEntry]:
        return self._read("entries")

    def save_entries(self, entries: list[ProductionEntry]) -> Future:
        return self._save("entries", entries)

    def get_off_days(self) -> list[OffDay]:
        return self._read("off_days")

    def save_off_days(self, off_days: list[OffDay]) -> Future:
        return self._save("off_days", off_days)

    def get_logs(self) -> list[ActivityLog]:
        return self._read("logs")

    def delete_entry(self, entry_id) -> tuple[list[ProductionEntry], ProductionEntry | None]:
        """Remove an entry by id, comparing ids as strings.

        Returns (updated_entries, deleted_entry). deleted_entry is None
        when nothing matched; the collection is saved either way.
        """
        target = str(entry_id)
        entries = self.get_entries()

        deleted = next((e for e in entries if str(e.id) == target), None)
        updated = [e for e in entries if str(e.id) != target]
        self.save_entries(updated)

        if deleted is None:
            logger.info("Delete requested for unknown entry '%s'", target)
        return updated, deleted

    def add_log(self, user_id: str, user_name: str, action: str, details: str) -> ActivityLog:
        """Prepend an activity log entry, keeping the newest MAX_ACTIVITY_LOGS."""
        log = ActivityLog(
            id=new_id(),
            user_id=str(user_id),
            user_name=user_name,
            action=action,
            details=details,
            timestamp=utc_now_iso(),
        )
        logs = self.get_logs()
        logs.insert(0, log)
        del logs[MAX_ACTIVITY_LOGS:]
        self._write_local("logs", logs)
        return log

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def get_session(self) -> User | None:
        raw = self.cache.get(CACHE_KEYS["session"])
        if not raw:
            return None
        try:
            return User.from_dict(json.loads(raw))
        except (json.JSONDecodeError, AttributeError):
            logger.warning("Corrupt session record; ignoring")
            return None

    def set_session(self, user: User | None) -> None:
        if user is None:
            self.cache.delete(CACHE_KEYS["session"])
        else:
            self.cache.set(CACHE_KEYS["session"], json.dumps(user.to_dict()))
        self._notify("session")

    # ------------------------------------------------------------------
    # Remote endpoint
    # ------------------------------------------------------------------
    def set_endpoint(self, url: str | None) -> None:
        """Persist an endpoint override. Empty clears it back to the configured URL."""
        url = (url or "").strip()
        if url:
            self.cache.set(CACHE_KEYS["endpoint"], url)
            self.adapter.url = url
        else:
            self.cache.delete(CACHE_KEYS["endpoint"])
            self.adapter.url = self._configured_url
        logger.info("Sheets endpoint %s", "set" if self.adapter.is_enabled() else "disabled")

    async def sync(self) -> SyncResult:
        """Pull entries and off-days from the endpoint and overwrite local copies.

        A pull that fails leaves its local collection untouched.
        """
        if not self.adapter.is_enabled():
            logger.info("Sync skipped: no sheets endpoint configured")
            return SyncResult()

        entries_action, _ = REMOTE_ACTIONS["entries"]
        off_days_action, _ = REMOTE_ACTIONS["off_days"]
        remote_entries, remote_off_days = await asyncio.gather(
            self.adapter.fetch(entries_action),
            self.adapter.fetch(off_days_action),
        )

        result = SyncResult(
            entries=self._overwrite("entries", remote_entries),
            off_days=self._overwrite("off_days", remote_off_days),
        )
        logger.info("Sync complete: entries=%s off_days=%s", result.entries, result.off_days)
        return result

    def _overwrite(self, resource: str, rows) -> bool:
        if rows is None:
            return False
        if not isinstance(rows, list):
            logger.warning("Ignoring non-list payload for '%s' from sheets", resource)
            return False

        record_type = _RECORD_TYPES[resource]
        records = [record_type.from_dict(row) for row in rows if isinstance(row, dict)]
        if len(records) != len(rows):
            logger.warning("Dropped %d malformed '%s' rows from sheets", len(rows) - len(records), resource)
        self._write_local(resource, records)
        return True
