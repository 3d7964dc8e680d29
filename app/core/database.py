from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from typing import Any, Dict, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# 创建基础模型类
Base = declarative_base()

# 全局数据库引擎
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


def _engine_options(database_url: str) -> Dict[str, Any]:
    """按数据库类型选择连接池参数"""
    options: Dict[str, Any] = {"echo": settings.debug}

    # SQLite文件库和测试环境不复用连接，每个事务独立连接
    if database_url.startswith("sqlite") or settings.is_testing:
        options["poolclass"] = NullPool
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_pre_ping"] = True

    return options


async def init_database(database_url: Optional[str] = None) -> None:
    """初始化数据库连接"""
    global engine, async_session_maker

    url = database_url or settings.database_url_computed

    try:
        engine = create_async_engine(url, **_engine_options(url))

        # 抽奖记录器在提交后仍会读取记录字段，关闭提交后过期
        async_session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info(f"数据库连接初始化成功: {engine.url.drivername}")

    except Exception as e:
        logger.error(f"数据库连接初始化失败: {e}")
        raise


async def close_database() -> None:
    """关闭数据库连接"""
    global engine, async_session_maker

    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("数据库连接已关闭")


def get_session_maker() -> async_sessionmaker:
    """获取session工厂，抽奖记录器需要自行管理事务"""
    if not async_session_maker:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")
    return async_session_maker


class DatabaseService:
    """数据库服务类"""

    @property
    def engine(self) -> Optional[AsyncEngine]:
        return engine

    async def health_check(self) -> dict:
        """数据库健康检查"""
        if not self.engine:
            return {"status": "error", "message": "数据库引擎未初始化"}

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            return {
                "status": "error",
                "message": f"数据库连接失败: {str(e)}"
            }

        return {
            "status": "healthy",
            "message": "数据库连接正常",
            "dialect": self.engine.dialect.name
        }


# 全局数据库服务实例
database_service = DatabaseService()
