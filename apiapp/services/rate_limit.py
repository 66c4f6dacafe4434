# apiapp/services/rate_limit.py
from __future__ import annotations

import time
import uuid
from typing import Callable, Optional, Tuple

from loguru import logger
from redis.asyncio import Redis

from apiapp.core.config import Settings


class LoginRateLimiter:
    """
    登入嘗試的滑動視窗限流（Redis ZSET，score = epoch 秒）。
    兩個維度：IP、username+IP。停用時完全不碰 Redis。
    """

    def __init__(
        self,
        settings: Settings,
        redis: Optional[Redis] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.enabled = bool(settings.RATE_LIMIT_ENABLED)
        self.redis_url = settings.REDIS_URL
        self.window_sec = int(settings.RATE_LIMIT_WINDOW_SEC)
        self.max_per_ip = int(settings.RATE_LIMIT_MAX_PER_IP)
        self.max_per_user_ip = int(settings.RATE_LIMIT_MAX_PER_USER_IP)
        self._redis = redis
        self._clock = clock

    @property
    def redis(self) -> Redis:
        # lazy-init，測試可直接注入假的 client
        if self._redis is None:
            self._redis = Redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        return self._redis

    @staticmethod
    def key_ip(ip: str) -> str:
        return f"rl:login:ip:{ip or 'unknown'}"

    @staticmethod
    def key_user_ip(username: str, ip: str) -> str:
        return f"rl:login:ui:{(username or '').lower()}|{ip or 'unknown'}"

    async def _over_limit(self, key: str, limit: int, now_s: float) -> Optional[int]:
        """超出上限時回傳 retry_after 秒數（>=1），否則 None。"""
        await self.redis.zremrangebyscore(key, "-inf", now_s - self.window_sec)
        if int(await self.redis.zcard(key)) < limit:
            return None
        oldest = await self.redis.zrange(key, 0, 0, withscores=True)
        oldest_ts = float(oldest[0][1]) if oldest else now_s
        return max(1, int(self.window_sec - (now_s - oldest_ts)))

    async def _hit(self, key: str, now_s: float) -> None:
        # member 加上隨機尾碼，同一時間點的多次嘗試各自計數
        await self.redis.zadd(key, {f"{now_s:.6f}:{uuid.uuid4().hex}": now_s})

    async def check_and_hit(self, ip: str, username: Optional[str]) -> Tuple[bool, int]:
        """
        回傳 (allowed, retry_after_seconds)；允許時會順便記一次嘗試。
        先看 IP 維度，再看 username+IP 維度。
        """
        if not self.enabled:
            return True, 0

        now_s = self._clock()
        retry_after = await self._over_limit(self.key_ip(ip), self.max_per_ip, now_s)
        if retry_after is None and username:
            retry_after = await self._over_limit(self.key_user_ip(username, ip), self.max_per_user_ip, now_s)
        if retry_after is not None:
            logger.warning("Login rate limited: ip={} user='{}' retry_after={}s", ip, username, retry_after)
            return False, retry_after

        await self._hit(self.key_ip(ip), now_s)
        if username:
            await self._hit(self.key_user_ip(username, ip), now_s)
        return True, 0

    async def reset(self, ip: str, username: Optional[str]) -> None:
        """登入成功後只清 username+IP 的桶；IP 維度保留以防掃號。"""
        if not self.enabled or not username:
            return
        await self.redis.delete(self.key_user_ip(username, ip))

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
