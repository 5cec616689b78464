"""
Per-user preference storage: favourite feed items and workbench display mode.

Stores are async key/value backends with set-membership toggling. The
in-memory store is the default for local runs and tests; the Redis store
persists across restarts and is shared between workers.

Keys are built by the services as ``{prefix}{user_id}:{name}``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis

from src.db.connection import get_redis
from src.utils.logger import get_logger

logger = get_logger(__name__)

_DEFAULT_KEY_PREFIX = "intel:pref:"
_FAVORITES_KEY = "favorites"
_WORKBENCH_MODE_KEY = "workbench-mode"

# SREM then SADD in one server-side step; returns 1 when the member was added
_TOGGLE_SCRIPT = """
if redis.call("SREM", KEYS[1], ARGV[1]) == 1 then
    return 0
end
redis.call("SADD", KEYS[1], ARGV[1])
return 1
"""


class WorkbenchMode(str, Enum):
    COMPACT = "compact"
    FULL = "full"


DEFAULT_WORKBENCH_MODE = WorkbenchMode.COMPACT


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

@runtime_checkable
class PreferenceStore(Protocol):
    """Async storage backend used by the preference services."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def toggle(self, key: str, member: str) -> bool:
        """Add ``member`` if absent, remove it if present. Returns new membership."""
        ...

    async def members(self, key: str) -> set[str]: ...


class MemoryPreferenceStore:
    """Dict-backed store. State lives only as long as the process."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def toggle(self, key: str, member: str) -> bool:
        bucket = self._sets.setdefault(key, set())
        if member in bucket:
            bucket.discard(member)
            return False
        bucket.add(member)
        return True

    async def members(self, key: str) -> set[str]:
        return set(self._sets.get(key, ()))


class RedisPreferenceStore:
    """Redis-backed store.

    Scalar values are plain string keys; toggled members live in Redis sets
    and are flipped atomically by a Lua script.
    Redis errors propagate to the caller so the API can report them.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis | None = None,
        key_prefix: str = "",
    ) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix

    def _get_redis(self) -> aioredis.Redis:
        """Lazy-load Redis client."""
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        value = await self._get_redis().get(self._make_key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self._get_redis().set(self._make_key(key), value)

    async def toggle(self, key: str, member: str) -> bool:
        added = await self._get_redis().eval(_TOGGLE_SCRIPT, 1, self._make_key(key), member)
        return int(added) == 1

    async def members(self, key: str) -> set[str]:
        raw = await self._get_redis().smembers(self._make_key(key))
        return {m.decode("utf-8") if isinstance(m, bytes) else m for m in raw}


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

def _user_key(prefix: str, user_id: str, name: str) -> str:
    return f"{prefix}{user_id}:{name}"


class FavoritesService:
    """Favourite feed item ids for one user."""

    def __init__(
        self,
        store: PreferenceStore,
        user_id: str,
        key_prefix: str = _DEFAULT_KEY_PREFIX,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._key = _user_key(key_prefix, user_id, _FAVORITES_KEY)

    async def is_favorite(self, item_id: str) -> bool:
        return item_id in await self._store.members(self._key)

    async def toggle_favorite(self, item_id: str) -> bool:
        """Flip the favourite flag of ``item_id`` and return the new state."""
        favorite = await self._store.toggle(self._key, item_id)
        logger.debug(
            "Favorite %s: user=%s item=%s",
            "added" if favorite else "removed",
            self.user_id,
            item_id,
        )
        return favorite

    async def list_favorites(self) -> list[str]:
        """Sorted favourite ids, so responses are stable."""
        return sorted(await self._store.members(self._key))


class WorkbenchModeService:
    """Compact/full workbench display mode for one user."""

    def __init__(
        self,
        store: PreferenceStore,
        user_id: str,
        key_prefix: str = _DEFAULT_KEY_PREFIX,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._key = _user_key(key_prefix, user_id, _WORKBENCH_MODE_KEY)

    async def get_mode(self) -> WorkbenchMode:
        """Stored mode, falling back to compact when unset or unrecognized."""
        raw = await self._store.get(self._key)
        if raw is None:
            return DEFAULT_WORKBENCH_MODE
        try:
            return WorkbenchMode(raw)
        except ValueError:
            logger.warning(
                "Invalid workbench mode %r for user=%s, using %s",
                raw,
                self.user_id,
                DEFAULT_WORKBENCH_MODE.value,
            )
            return DEFAULT_WORKBENCH_MODE

    async def set_mode(self, mode: WorkbenchMode | str) -> WorkbenchMode:
        """Persist ``mode``. Raises ValueError for anything but compact/full."""
        resolved = WorkbenchMode(mode)
        await self._store.set(self._key, resolved.value)
        return resolved


def build_preference_store(
    backend: str = "memory",
    redis_client: aioredis.Redis | None = None,
) -> PreferenceStore:
    """Create the configured store. ``backend`` is "memory" or "redis"."""
    if backend.lower() == "redis":
        logger.info("Preference store: redis")
        return RedisPreferenceStore(redis_client=redis_client)
    if backend.lower() != "memory":
        logger.warning("Unknown preference backend %r, using memory", backend)
    logger.info("Preference store: memory")
    return MemoryPreferenceStore()
