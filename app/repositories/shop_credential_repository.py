"""
店铺凭证数据库操作层
"""

from typing import Optional
from datetime import datetime

from sqlalchemy import select, and_, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database.shop_credential_db import ShopCredentialDB


class ShopCredentialRepository:
    """店铺凭证数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_latest_valid(
        self,
        shop: str,
        current_time: Optional[datetime] = None
    ) -> Optional[ShopCredentialDB]:
        """获取店铺最新且未过期的凭证"""
        if current_time is None:
            current_time = datetime.now()

        query = select(ShopCredentialDB).where(
            and_(
                ShopCredentialDB.shop == shop,
                or_(
                    ShopCredentialDB.expires_at.is_(None),
                    ShopCredentialDB.expires_at > current_time
                )
            )
        ).order_by(desc(ShopCredentialDB.created_at)).limit(1)

        result = await self.db.execute(query)
        return result.scalars().first()
