from __future__ import annotations

import json
import logging
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from clinicflow.core.config import settings

logger = logging.getLogger(__name__)


class EntitlementCache(Protocol):
    async def get(self, plan_id: str) -> dict | None: ...

    async def set(self, plan_id: str, payload: dict) -> None: ...

    async def invalidate(self, plan_id: str) -> None: ...


class NullEntitlementCache:
    async def get(self, plan_id: str) -> dict | None:
        return None

    async def set(self, plan_id: str, payload: dict) -> None:
        return None

    async def invalidate(self, plan_id: str) -> None:
        return None


class RedisEntitlementCache:
    """Plan snapshots in Redis under ``entitlements:plan:<plan_id>``.

    Redis errors never fail a lookup: reads fall through to the database and
    writes are dropped with a warning.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        ttl_seconds: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.redis_url = redis_url or settings.redis_url
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.entitlement_cache_ttl_seconds
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.backend_timeout_seconds

    @staticmethod
    def key_for(plan_id: str) -> str:
        return f"entitlements:plan:{plan_id}"

    def _client(self) -> redis.Redis:
        return redis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_timeout=self.timeout_seconds,
            socket_connect_timeout=self.timeout_seconds,
        )

    async def get(self, plan_id: str) -> dict | None:
        redis_client = self._client()
        try:
            raw = await redis_client.get(self.key_for(plan_id))
        except RedisError:
            logger.warning("Entitlement cache read failed for plan=%s", plan_id, exc_info=True)
            return None
        finally:
            await redis_client.aclose()

        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            logger.warning("Discarding corrupt entitlement cache entry for plan=%s", plan_id)
            return None
        return payload

    async def set(self, plan_id: str, payload: dict) -> None:
        redis_client = self._client()
        try:
            await redis_client.set(self.key_for(plan_id), json.dumps(payload), ex=self.ttl_seconds)
        except RedisError:
            logger.warning("Entitlement cache write failed for plan=%s", plan_id, exc_info=True)
        finally:
            await redis_client.aclose()

    async def invalidate(self, plan_id: str) -> None:
        redis_client = self._client()
        try:
            await redis_client.delete(self.key_for(plan_id))
        except RedisError:
            logger.warning("Entitlement cache invalidation failed for plan=%s", plan_id, exc_info=True)
        finally:
            await redis_client.aclose()


def get_entitlement_cache() -> EntitlementCache:
    if not settings.entitlement_cache_enabled:
        return NullEntitlementCache()
    return RedisEntitlementCache()
