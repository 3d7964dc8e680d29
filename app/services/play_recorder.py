"""
抽奖记录器
在同一个事务内完成：条件扣减奖品库存、写入抽奖记录、更新活动统计。
任何一步失败整个事务回滚，不会出现扣了库存却没有记录（或反之）的情况。
"""

import logging
from typing import Optional

from sqlalchemy import update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import DuplicatePlayError, StockConflictError, StorageFailureError
from app.models.database.campaign_db import CampaignDB, PrizeDB
from app.models.play import PlayEntry
from app.repositories.play_entry_repository import PlayEntryRepository

logger = logging.getLogger(__name__)


class PlayRecorder:
    """抽奖结果原子落库"""

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def record(self, entry: PlayEntry, order_backed: Optional[bool] = None) -> PlayEntry:
        """
        原子写入一次抽奖

        Raises:
            StockConflictError: 奖品库存已被并发请求耗尽
            DuplicatePlayError: 同一参与者的记录已存在
            StorageFailureError: 其他存储错误
        """
        if order_backed is None:
            order_backed = entry.order_id is not None

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    if entry.prize_id:
                        await self._consume_stock(session, entry.prize_id)

                    await PlayEntryRepository(session).insert_if_absent(entry)
                    await self._bump_counters(session, entry, order_backed)
        except (StockConflictError, DuplicatePlayError, StorageFailureError):
            raise
        except SQLAlchemyError as e:
            logger.error(f"抽奖记录写入失败: campaign={entry.campaign_id}, identity={entry.identity_key}, error={e}")
            raise StorageFailureError() from e

        logger.info(f"抽奖记录已写入: {entry.id} (prize={entry.prize_id}, winner={entry.is_winner})")
        return entry

    async def _consume_stock(self, session: AsyncSession, prize_id: str) -> None:
        """条件扣减库存：不限量或仍有余量时 used_stock + 1"""
        result = await session.execute(
            update(PrizeDB)
            .where(
                PrizeDB.id == prize_id,
                or_(PrizeDB.total_stock.is_(None), PrizeDB.used_stock < PrizeDB.total_stock)
            )
            .values(used_stock=PrizeDB.used_stock + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StockConflictError(prize_id)

    async def _bump_counters(self, session: AsyncSession, entry: PlayEntry, order_backed: bool) -> None:
        """更新活动统计计数"""
        values = {"total_plays": CampaignDB.total_plays + 1}
        if entry.is_winner:
            values["total_wins"] = CampaignDB.total_wins + 1
        if order_backed:
            values["total_orders"] = CampaignDB.total_orders + 1

        result = await session.execute(
            update(CampaignDB)
            .where(CampaignDB.id == entry.campaign_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StorageFailureError()
