"""
抽奖活动数据库操作层（只读）
"""

from typing import List, Optional

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.campaign import Campaign, Prize
from app.models.database.campaign_db import CampaignDB, PrizeDB


class CampaignRepository:
    """抽奖活动数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, campaign_id: str) -> Optional[CampaignDB]:
        """根据活动ID获取活动"""
        result = await self.db.execute(
            select(CampaignDB).where(CampaignDB.id == campaign_id)
        )
        return result.scalar_one_or_none()

    async def get_active_prizes(self, campaign_id: str) -> List[PrizeDB]:
        """获取活动启用中的奖品，按抽奖遍历顺序排列（权重降序，其次显示顺序和ID保证稳定）"""
        query = select(PrizeDB).where(
            and_(
                PrizeDB.campaign_id == campaign_id,
                PrizeDB.is_active.is_(True)
            )
        ).order_by(desc(PrizeDB.chance_weight), PrizeDB.display_order, PrizeDB.id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_with_active_prizes(self, campaign_id: str) -> Optional[Campaign]:
        """获取活动及其启用中的奖品"""
        db_campaign = await self.get_by_id(campaign_id)
        if not db_campaign:
            return None

        db_prizes = await self.get_active_prizes(campaign_id)
        return self.to_model(db_campaign, db_prizes)

    def prize_to_model(self, db_prize: PrizeDB) -> Prize:
        """奖品转换为Pydantic模型"""
        return Prize(
            id=db_prize.id,
            campaign_id=db_prize.campaign_id,
            name=db_prize.name,
            kind=db_prize.kind,
            discount_value=db_prize.discount_value,
            reward_code=db_prize.reward_code,
            gift_product_id=db_prize.gift_product_id,
            gift_variant_id=db_prize.gift_variant_id,
            chance_weight=db_prize.chance_weight or 0,
            total_stock=db_prize.total_stock,
            used_stock=db_prize.used_stock or 0,
            display_order=db_prize.display_order or 0,
            is_active=db_prize.is_active
        )

    def to_model(self, db_campaign: CampaignDB, db_prizes: List[PrizeDB]) -> Campaign:
        """转换为Pydantic模型"""
        return Campaign(
            id=db_campaign.id,
            shop=db_campaign.shop,
            name=db_campaign.name or "",
            mode=db_campaign.mode,
            is_active=db_campaign.is_active,
            start_at=db_campaign.start_at,
            end_at=db_campaign.end_at,
            min_order_amount=db_campaign.min_order_amount,
            allowed_order_status=db_campaign.allowed_order_status,
            max_plays_per_customer=db_campaign.max_plays_per_customer,
            require_name=db_campaign.require_name,
            require_phone=db_campaign.require_phone,
            total_plays=db_campaign.total_plays or 0,
            total_wins=db_campaign.total_wins or 0,
            total_orders=db_campaign.total_orders or 0,
            prizes=[self.prize_to_model(db_prize) for db_prize in db_prizes]
        )
