"""
通用缓存工具
基于Redis的JSON缓存，缓存异常一律记录日志并按未命中处理
"""

import json
import logging
from typing import Optional, Any
import redis.asyncio as redis

from app.core.redis import get_redis_client

logger = logging.getLogger(__name__)


class SimpleCache:
    """简单缓存管理器"""

    def __init__(self, redis_client: Optional[redis.Redis] = None, key_prefix: str = ""):
        self.redis_client = redis_client
        self.key_prefix = key_prefix

    def init_redis(self) -> None:
        """绑定全局Redis连接池"""
        if not self.redis_client:
            self.redis_client = get_redis_client()

        if self.redis_client:
            logger.info(f"{self.key_prefix}缓存已绑定Redis连接")
        else:
            logger.warning(f"{self.key_prefix}缓存未绑定Redis连接，将直接访问数据库")

    def _get_key(self, key: str) -> str:
        """获取完整的缓存key"""
        return f"{self.key_prefix}{key}" if self.key_prefix else key

    async def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        if not self.redis_client:
            return None
        try:
            data = await self.redis_client.get(self._get_key(key))

            if data:
                return json.loads(data)

            return None

        except Exception as e:
            logger.error(f"获取缓存失败 {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """设置缓存值"""
        if not self.redis_client:
            return False
        try:
            data = json.dumps(value, default=str, ensure_ascii=False)

            await self.redis_client.setex(self._get_key(key), ttl, data)
            return True

        except Exception as e:
            logger.error(f"设置缓存失败 {key}: {e}")
            return False


# 抽奖结果缓存：记录一旦写入，奖品与兑奖码不再变化
entry_cache = SimpleCache(key_prefix="lottery:entry:")
