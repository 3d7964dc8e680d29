"""
PlayRecorder原子落库测试 - 使用临时SQLite数据库
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from app.core.exceptions import DuplicatePlayError, StockConflictError, StorageFailureError
from app.models.campaign import PrizeKind
from app.models.database.campaign_db import CampaignDB, PrizeDB
from app.models.database.play_entry_db import PlayEntryDB
from app.models.play import PlayEntry
from app.services.play_recorder import PlayRecorder


def make_entry(campaign_id, prize_id, identity_key="order:1001", **overrides):
    data = {
        "id": str(uuid.uuid4()),
        "campaign_id": campaign_id,
        "shop": "test-shop.myshopify.com",
        "participant_kind": "order",
        "identity_key": identity_key,
        "customer_key": "customer:7",
        "order_id": identity_key.split(":", 1)[1],
        "order_number": "1001",
        "order_amount": Decimal("100.00"),
        "prize_id": prize_id,
        "prize_name": "九折券",
        "prize_kind": PrizeKind.PERCENT_DISCOUNT,
        "is_winner": True,
        "reward_code": "LOTTERY-TEST-000001",
    }
    data.update(overrides)
    return PlayEntry(**data)


@pytest.mark.asyncio
class TestPlayRecorder:
    """PlayRecorder测试类"""

    async def _campaign_counters(self, session_maker, campaign_id):
        async with session_maker() as session:
            campaign = await session.get(CampaignDB, campaign_id)
            return campaign.total_plays, campaign.total_wins, campaign.total_orders

    async def _used_stock(self, session_maker, prize_id):
        async with session_maker() as session:
            prize = await session.get(PrizeDB, prize_id)
            return prize.used_stock

    async def _entry_count(self, session_maker, campaign_id):
        async with session_maker() as session:
            result = await session.execute(
                select(func.count(PlayEntryDB.id)).where(PlayEntryDB.campaign_id == campaign_id)
            )
            return result.scalar()

    async def test_record_winning_entry(self, session_maker, campaign_factory):
        """测试记录中奖结果：扣库存、写记录、更新统计"""
        campaign_id = await campaign_factory(prizes=[{"total_stock": 5, "chance_weight": 100}])
        prize_id = f"{campaign_id}_prize_0"
        recorder = PlayRecorder(session_maker)

        await recorder.record(make_entry(campaign_id, prize_id))

        assert await self._used_stock(session_maker, prize_id) == 1
        assert await self._entry_count(session_maker, campaign_id) == 1
        assert await self._campaign_counters(session_maker, campaign_id) == (1, 1, 1)

    async def test_record_losing_form_entry(self, session_maker, campaign_factory):
        """测试记录未中奖的表单参与：只增加参与次数"""
        campaign_id = await campaign_factory(
            mode="email_form",
            prizes=[{"kind": "none", "name": "谢谢参与", "chance_weight": 100}]
        )
        prize_id = f"{campaign_id}_prize_0"
        entry = make_entry(
            campaign_id,
            prize_id,
            identity_key="email:a@b.com",
            participant_kind="email",
            customer_key="email:a@b.com",
            order_id=None,
            order_number=None,
            order_amount=None,
            email="a@b.com",
            prize_kind=PrizeKind.NONE,
            is_winner=False,
            reward_code=None
        )

        await PlayRecorder(session_maker).record(entry)

        assert await self._campaign_counters(session_maker, campaign_id) == (1, 0, 0)
        # 未中奖奖品同样计入库存使用
        assert await self._used_stock(session_maker, prize_id) == 1

    async def test_stock_conflict_rolls_back(self, session_maker, campaign_factory):
        """测试库存用完时抛出冲突且不写入任何数据"""
        campaign_id = await campaign_factory(prizes=[{"total_stock": 1, "used_stock": 1}])
        prize_id = f"{campaign_id}_prize_0"

        with pytest.raises(StockConflictError) as exc_info:
            await PlayRecorder(session_maker).record(make_entry(campaign_id, prize_id))

        assert exc_info.value.prize_id == prize_id
        assert await self._used_stock(session_maker, prize_id) == 1
        assert await self._entry_count(session_maker, campaign_id) == 0
        assert await self._campaign_counters(session_maker, campaign_id) == (0, 0, 0)

    async def test_duplicate_rolls_back_stock(self, session_maker, campaign_factory):
        """测试重复记录时库存扣减一并回滚"""
        campaign_id = await campaign_factory(prizes=[{"total_stock": 5}])
        prize_id = f"{campaign_id}_prize_0"
        recorder = PlayRecorder(session_maker)
        await recorder.record(make_entry(campaign_id, prize_id))

        with pytest.raises(DuplicatePlayError) as exc_info:
            await recorder.record(make_entry(campaign_id, prize_id))

        assert exc_info.value.identity_key == "order:1001"
        assert await self._used_stock(session_maker, prize_id) == 1
        assert await self._entry_count(session_maker, campaign_id) == 1
        assert await self._campaign_counters(session_maker, campaign_id) == (1, 1, 1)

    async def test_unlimited_stock(self, session_maker, campaign_factory):
        """测试不限库存的奖品可以一直扣减"""
        campaign_id = await campaign_factory(prizes=[{"total_stock": None}])
        prize_id = f"{campaign_id}_prize_0"
        recorder = PlayRecorder(session_maker)

        for i in range(3):
            await recorder.record(make_entry(campaign_id, prize_id, identity_key=f"order:{1000 + i}"))

        assert await self._used_stock(session_maker, prize_id) == 3
        assert await self._campaign_counters(session_maker, campaign_id) == (3, 3, 3)

    async def test_missing_campaign_is_storage_failure(self, session_maker, campaign_factory):
        """测试活动统计更新失败时整体回滚"""
        campaign_id = await campaign_factory(prizes=[{"total_stock": 5}])
        prize_id = f"{campaign_id}_prize_0"
        entry = make_entry("camp_missing", prize_id)

        with pytest.raises(StorageFailureError):
            await PlayRecorder(session_maker).record(entry)

        assert await self._used_stock(session_maker, prize_id) == 0
