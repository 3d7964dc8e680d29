"""
订单账本数据库操作层（只读）
"""

from typing import Optional

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.participant import LedgerCustomer, LedgerOrder
from app.models.database.order_db import OrderDB


def clean_order_number(order_number: str) -> str:
    """去掉订单号前的#号和空白"""
    return order_number.strip().lstrip("#").strip()


class OrderRepository:
    """订单账本数据库操作层"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_order_id(self, shop: str, order_id: str) -> Optional[OrderDB]:
        """根据订单ID获取订单"""
        result = await self.db.execute(
            select(OrderDB).where(
                and_(
                    OrderDB.shop == shop,
                    OrderDB.order_id == order_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_by_order_number(self, shop: str, order_number: str) -> Optional[OrderDB]:
        """根据订单号获取订单，同号时取最新一条"""
        result = await self.db.execute(
            select(OrderDB).where(
                and_(
                    OrderDB.shop == shop,
                    OrderDB.order_number == clean_order_number(order_number)
                )
            ).order_by(desc(OrderDB.created_at)).limit(1)
        )
        return result.scalars().first()

    async def find_by_id(self, shop: str, order_id: str) -> Optional[LedgerOrder]:
        db_order = await self.get_by_order_id(shop, order_id)
        return self.to_model(db_order) if db_order else None

    async def find_by_number(self, shop: str, order_number: str) -> Optional[LedgerOrder]:
        db_order = await self.get_by_order_number(shop, order_number)
        return self.to_model(db_order) if db_order else None

    def to_model(self, db_order: OrderDB) -> LedgerOrder:
        """转换为账本订单模型"""
        return LedgerOrder(
            id=db_order.order_id,
            number=db_order.order_number,
            amount=db_order.amount,
            currency=db_order.currency,
            status=db_order.financial_status,
            customer=LedgerCustomer(
                id=db_order.customer_id,
                name=db_order.customer_name,
                phone=db_order.customer_phone,
                email=db_order.customer_email
            ),
            created_at=db_order.created_at
        )
