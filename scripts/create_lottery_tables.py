"""
抽奖引擎数据库表创建脚本
"""

import asyncio
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy import text
from app.core.config import settings
from app.core.database import Base

# 导入所有数据库模型以确保表被注册
from app.models.database import CampaignDB, PrizeDB, PlayEntryDB, OrderDB, ShopCredentialDB  # noqa: F401


async def create_database_if_not_exists():
    """创建数据库（如果不存在）"""
    # 连接到PostgreSQL服务器（不指定数据库）
    server_url = settings.database_url_computed.replace(f"/{settings.db_name}", "/postgres")

    engine = create_async_engine(server_url, isolation_level="AUTOCOMMIT")

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": settings.db_name}
        )

        if not result.fetchone():
            await conn.execute(text(f"CREATE DATABASE {settings.db_name}"))
            print(f"数据库 '{settings.db_name}' 创建成功")
        else:
            print(f"数据库 '{settings.db_name}' 已存在")

    await engine.dispose()


async def create_tables():
    """创建所有数据表"""
    engine = create_async_engine(settings.database_url_computed)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        print("所有数据表创建成功")

    await engine.dispose()


async def insert_sample_campaign(shop: str = "demo-shop.myshopify.com"):
    """插入示例订单抽奖活动"""
    engine = create_async_engine(settings.database_url_computed)

    campaign = {
        "id": "demo_order_lottery",
        "shop": shop,
        "name": "下单抽奖",
        "mode": "order",
        "min_order_amount": 50.00,
        "allowed_order_status": "paid",
        "max_plays_per_customer": 3,
    }
    prizes = [
        {"id": "demo_prize_10off", "name": "九折券", "kind": "percent_discount",
         "discount_value": 10, "chance_weight": 20, "total_stock": 100, "display_order": 1},
        {"id": "demo_prize_ship", "name": "免运费", "kind": "free_shipping",
         "discount_value": None, "chance_weight": 30, "total_stock": None, "display_order": 2},
        {"id": "demo_prize_none", "name": "谢谢参与", "kind": "none",
         "discount_value": None, "chance_weight": 50, "total_stock": None, "display_order": 3},
    ]

    async with engine.begin() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM campaigns WHERE id = :id"),
            {"id": campaign["id"]}
        )

        if result.fetchone():
            print(f"活动已存在: {campaign['name']}")
        else:
            await conn.execute(
                text("""
                    INSERT INTO campaigns (
                        id, shop, name, mode, is_active, min_order_amount,
                        allowed_order_status, max_plays_per_customer,
                        require_name, require_phone, total_plays, total_wins, total_orders
                    ) VALUES (
                        :id, :shop, :name, :mode, TRUE, :min_order_amount,
                        :allowed_order_status, :max_plays_per_customer,
                        FALSE, FALSE, 0, 0, 0
                    )
                """),
                campaign
            )
            for prize in prizes:
                await conn.execute(
                    text("""
                        INSERT INTO prizes (
                            id, campaign_id, name, kind, discount_value, chance_weight,
                            total_stock, used_stock, display_order, is_active
                        ) VALUES (
                            :id, :campaign_id, :name, :kind, :discount_value, :chance_weight,
                            :total_stock, 0, :display_order, TRUE
                        )
                    """),
                    {**prize, "campaign_id": campaign["id"]}
                )
            print(f"插入活动: {campaign['name']}（{len(prizes)}个奖品）")

    await engine.dispose()


async def main():
    """主函数"""
    print("开始初始化抽奖引擎数据库...")

    await create_database_if_not_exists()
    await create_tables()
    await insert_sample_campaign()

    print("数据库初始化完成")


if __name__ == "__main__":
    asyncio.run(main())
