"""
测试配置文件 - pytest fixtures和共用配置
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

import app.models.database  # noqa: F401  注册所有表到 Base.metadata
from app.core.database import Base
from app.models.database.campaign_db import CampaignDB, PrizeDB
from app.models.database.order_db import OrderDB
from app.models.database.shop_credential_db import ShopCredentialDB

TEST_SHOP = "test-shop.myshopify.com"


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """测试数据库引擎 - 每个测试一个临时SQLite文件，支持多连接并发写入"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lottery_test.db'}",
        echo=False,  # 设为True可以看到SQL语句
        poolclass=NullPool
    )

    # 创建表结构
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_db_engine):
    """测试session工厂"""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """测试数据库会话"""
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture
def campaign_factory(session_maker):
    """创建活动及奖品的工厂函数"""

    async def create(prizes=None, **overrides) -> str:
        campaign_id = overrides.pop("id", f"camp_{uuid.uuid4().hex[:8]}")
        data = {
            "id": campaign_id,
            "shop": TEST_SHOP,
            "name": "测试抽奖活动",
            "mode": "order",
            "is_active": True,
            "start_at": datetime.now() - timedelta(days=1),
            "end_at": datetime.now() + timedelta(days=7),
        }
        data.update(overrides)

        async with session_maker() as session:
            session.add(CampaignDB(**data))
            await session.flush()
            for index, prize in enumerate(prizes or []):
                prize_data = {
                    "id": f"{campaign_id}_prize_{index}",
                    "name": f"奖品{index}",
                    "kind": "percent_discount",
                    "discount_value": Decimal("10"),
                    "chance_weight": 0,
                    "display_order": index,
                }
                prize_data.update(prize)
                session.add(PrizeDB(campaign_id=campaign_id, **prize_data))
            await session.commit()

        return campaign_id

    return create


@pytest.fixture
def order_factory(session_maker):
    """创建账本订单的工厂函数"""

    async def create(**overrides) -> str:
        order_id = overrides.pop("order_id", f"gid://shopify/Order/{uuid.uuid4().int % 10**10}")
        data = {
            "order_id": order_id,
            "shop": TEST_SHOP,
            "order_number": "1001",
            "amount": Decimal("100.00"),
            "currency": "USD",
            "financial_status": "paid",
            "customer_id": "gid://shopify/Customer/1",
            "customer_name": "张三",
            "customer_email": "zhangsan@example.com",
        }
        data.update(overrides)

        async with session_maker() as session:
            session.add(OrderDB(**data))
            await session.commit()

        return order_id

    return create


@pytest.fixture
def credential_factory(session_maker):
    """创建店铺凭证的工厂函数"""

    async def create(**overrides) -> str:
        data = {
            "id": f"cred_{uuid.uuid4().hex[:8]}",
            "shop": TEST_SHOP,
            "access_token": "shpat_test_token",
            "created_at": datetime.now(),
        }
        data.update(overrides)

        async with session_maker() as session:
            session.add(ShopCredentialDB(**data))
            await session.commit()

        return data["id"]

    return create
