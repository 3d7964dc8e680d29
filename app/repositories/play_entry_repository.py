"""
抽奖记录数据库操作层
"""

import logging
from typing import Optional

from sqlalchemy import select, and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicatePlayError
from app.models.play import PlayEntry
from app.models.database.play_entry_db import PlayEntryDB

logger = logging.getLogger(__name__)

# 唯一约束冲突的识别标记（PostgreSQL约束名 / SQLite列名）
_IDENTITY_CONFLICT_MARKERS = (
    "uq_play_entry_campaign_identity",
    "play_entries.identity_key",
)


class PlayEntryRepository:
    """抽奖记录数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_identity(self, campaign_id: str, identity_key: str) -> Optional[PlayEntryDB]:
        """根据活动和参与者身份查找抽奖记录"""
        result = await self.db.execute(
            select(PlayEntryDB).where(
                and_(
                    PlayEntryDB.campaign_id == campaign_id,
                    PlayEntryDB.identity_key == identity_key
                )
            )
        )
        return result.scalar_one_or_none()

    async def count_by_participant(self, campaign_id: str, customer_key: str) -> int:
        """统计同一客户在活动中的参与次数"""
        result = await self.db.execute(
            select(func.count(PlayEntryDB.id)).where(
                and_(
                    PlayEntryDB.campaign_id == campaign_id,
                    PlayEntryDB.customer_key == customer_key
                )
            )
        )
        return result.scalar() or 0

    async def insert_if_absent(self, entry: PlayEntry) -> PlayEntryDB:
        """插入抽奖记录，唯一键冲突时抛出 DuplicatePlayError"""
        db_entry = self.from_model(entry)
        self.db.add(db_entry)
        try:
            await self.db.flush()
        except IntegrityError as e:
            message = str(e.orig)
            if any(marker in message for marker in _IDENTITY_CONFLICT_MARKERS):
                logger.info(f"抽奖记录已存在: {entry.campaign_id}/{entry.identity_key}")
                raise DuplicatePlayError(entry.campaign_id, entry.identity_key) from e
            raise
        return db_entry

    def from_model(self, entry: PlayEntry) -> PlayEntryDB:
        """Pydantic模型转换为数据库记录"""
        return PlayEntryDB(
            id=entry.id,
            campaign_id=entry.campaign_id,
            shop=entry.shop,
            participant_kind=entry.participant_kind,
            identity_key=entry.identity_key,
            customer_key=entry.customer_key,
            order_id=entry.order_id,
            order_number=entry.order_number,
            order_amount=entry.order_amount,
            email=entry.email,
            customer_id=entry.customer_id,
            customer_name=entry.customer_name,
            phone=entry.phone,
            prize_id=entry.prize_id,
            prize_name=entry.prize_name,
            prize_kind=entry.prize_kind.value if entry.prize_kind else None,
            prize_value=entry.prize_value,
            is_winner=entry.is_winner,
            reward_code=entry.reward_code,
            external_reward_id=entry.external_reward_id,
            reward_sync_error=entry.reward_sync_error,
            status=entry.status.value,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
            claimed_at=entry.claimed_at
        )

    def to_model(self, db_entry: PlayEntryDB) -> PlayEntry:
        """转换为Pydantic模型"""
        return PlayEntry(
            id=db_entry.id,
            campaign_id=db_entry.campaign_id,
            shop=db_entry.shop,
            participant_kind=db_entry.participant_kind,
            identity_key=db_entry.identity_key,
            customer_key=db_entry.customer_key,
            order_id=db_entry.order_id,
            order_number=db_entry.order_number,
            order_amount=db_entry.order_amount,
            email=db_entry.email,
            customer_id=db_entry.customer_id,
            customer_name=db_entry.customer_name,
            phone=db_entry.phone,
            prize_id=db_entry.prize_id,
            prize_name=db_entry.prize_name,
            prize_kind=db_entry.prize_kind,
            prize_value=db_entry.prize_value,
            is_winner=db_entry.is_winner,
            reward_code=db_entry.reward_code,
            external_reward_id=db_entry.external_reward_id,
            reward_sync_error=db_entry.reward_sync_error,
            status=db_entry.status,
            created_at=db_entry.created_at,
            expires_at=db_entry.expires_at,
            claimed_at=db_entry.claimed_at
        )
