"""Redis 캐시 모듈

Redis에 연결할 수 없으면 모든 연산은 캐시 미스/락 통과로 동작한다.
"""
import json
import asyncio
import logging
import uuid
import redis.asyncio as redis
from typing import Optional, Any
from functools import wraps
from contextlib import asynccontextmanager
from config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """비동기 Redis 캐시 클래스"""

    _instance: Optional['RedisCache'] = None

    def __init__(self):
        self._client: Optional[redis.Redis] = None
        self._connected = False

    @classmethod
    async def get_instance(cls) -> 'RedisCache':
        if cls._instance is None:
            cls._instance = cls()
            await cls._instance.connect()
        return cls._instance

    async def connect(self) -> bool:
        """Redis 연결"""
        if self._connected:
            return True

        try:
            self._client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                password=settings.REDIS_PASSWORD or None,
                db=settings.REDIS_DB,
                ssl=settings.REDIS_SSL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            # 연결 테스트
            await self._client.ping()
            self._connected = True
            logger.info(f"Redis connected ({settings.REDIS_HOST}:{settings.REDIS_PORT})")
            return True
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}")
            self._connected = False
            return False

    async def close(self):
        """연결 종료"""
        if self._client:
            await self._client.aclose()
            self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def get(self, key: str) -> Optional[Any]:
        """캐시 조회"""
        if not self._connected:
            return None
        try:
            data = await self._client.get(key)
            if data:
                return json.loads(data)
            return None
        except Exception as e:
            logger.warning(f"Cache get error: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 60) -> bool:
        """캐시 저장"""
        if not self._connected:
            return False
        try:
            await self._client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.warning(f"Cache set error: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """패턴으로 캐시 삭제"""
        if not self._connected:
            return 0
        try:
            keys = []
            async for key in self._client.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                await self._client.delete(*keys)
            return len(keys)
        except Exception as e:
            logger.warning(f"Cache delete pattern error: {e}")
            return 0

    async def acquire_lock(self, lock_name: str, ttl: int = 10) -> Optional[str]:
        """분산 락 획득

        Returns:
            lock_token if acquired, None if failed
        """
        if not self._connected:
            return str(uuid.uuid4())  # Redis 연결 안되면 더미 토큰 반환

        lock_token = str(uuid.uuid4())
        try:
            acquired = await self._client.set(
                f"lock:{lock_name}",
                lock_token,
                nx=True,
                ex=ttl
            )
            return lock_token if acquired else None
        except Exception as e:
            logger.warning(f"Lock acquire error: {e}")
            return str(uuid.uuid4())  # 에러 시 더미 토큰 반환 (DB 행 잠금이 최종 보장)

    async def release_lock(self, lock_name: str, lock_token: str) -> bool:
        """분산 락 해제 (토큰 검증으로 안전하게 해제)"""
        if not self._connected:
            return True

        try:
            # Lua 스크립트로 원자적 검증 및 삭제
            script = """
            if redis.call("get", KEYS[1]) == ARGV[1] then
                return redis.call("del", KEYS[1])
            else
                return 0
            end
            """
            result = await self._client.eval(script, 1, f"lock:{lock_name}", lock_token)
            return result == 1
        except Exception as e:
            logger.warning(f"Lock release error: {e}")
            return False

    @asynccontextmanager
    async def distributed_lock(self, lock_name: str, ttl: int = 10, wait_timeout: float = 5.0):
        """분산 락 컨텍스트 매니저

        Usage:
            async with cache.distributed_lock(f"invest:{token}"):
                await service.buy(...)

        Raises:
            TimeoutError: 락 획득 실패 시
        """
        lock_token = None
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        try:
            # 락 획득 시도 (재시도 포함)
            while True:
                lock_token = await self.acquire_lock(lock_name, ttl)
                if lock_token:
                    break

                if loop.time() - start_time >= wait_timeout:
                    raise TimeoutError(f"Failed to acquire lock '{lock_name}' within {wait_timeout}s")

                # 50ms 대기 후 재시도
                await asyncio.sleep(0.05)

            yield lock_token

        finally:
            if lock_token:
                await self.release_lock(lock_name, lock_token)


# 전역 캐시 인스턴스
cache: Optional[RedisCache] = None


async def init_cache() -> Optional[RedisCache]:
    """캐시 초기화"""
    global cache
    if not settings.REDIS_ENABLED:
        logger.info("Redis disabled by configuration")
        return None
    cache = await RedisCache.get_instance()
    return cache


async def get_cache() -> Optional[RedisCache]:
    """캐시 인스턴스 반환"""
    return cache


async def invalidate(pattern: str) -> int:
    """연결되어 있으면 패턴에 해당하는 캐시 삭제"""
    if cache and cache.is_connected:
        return await cache.delete_pattern(pattern)
    return 0


def cached(key_prefix: str, ttl: int = 60):
    """캐시 데코레이터

    키에는 단순 값 인자만 사용한다 (DB 세션 등 객체 인자는 제외).
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            # 캐시 키 생성
            key_parts = [key_prefix]
            key_parts.extend(str(arg) for arg in args if not hasattr(arg, '__dict__'))
            key_parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()) if not hasattr(v, '__dict__'))
            cache_key = ":".join(key_parts)

            # 캐시에서 조회
            if cache and cache.is_connected:
                cached_data = await cache.get(cache_key)
                if cached_data is not None:
                    return cached_data

            # 실제 함수 실행
            result = await func(*args, **kwargs)

            # 캐시에 저장
            if cache and cache.is_connected and result is not None:
                await cache.set(cache_key, result, ttl)

            return result
        return wrapper
    return decorator
