"""
订单账本数据库模型（由订单同步任务写入，抽奖引擎只读）
"""

from sqlalchemy import Column, String, Numeric, DateTime, Index
from sqlalchemy.sql import func
from app.core.database import Base


class OrderDB(Base):
    """店铺订单账本表"""

    __tablename__ = "ledger_orders"

    # 主键和店铺信息
    order_id = Column(String(100), primary_key=True, comment="订单ID")
    shop = Column(String(255), nullable=False, comment="店铺域名")
    order_number = Column(String(100), nullable=False, comment="订单号（不含#）")

    # 金额与状态
    amount = Column(Numeric(12, 2), nullable=False, comment="订单总金额")
    currency = Column(String(10), comment="币种")
    financial_status = Column(String(50), nullable=False, comment="支付状态")

    # 客户信息
    customer_id = Column(String(100), comment="客户ID")
    customer_name = Column(String(200), comment="客户姓名")
    customer_phone = Column(String(50), comment="客户电话")
    customer_email = Column(String(255), comment="客户邮箱")

    # 时间戳
    created_at = Column(DateTime, server_default=func.now(), comment="下单时间")
    synced_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="同步时间")

    __table_args__ = (
        Index('idx_ledger_order_shop_number', 'shop', 'order_number'),
        {'comment': '订单账本表'}
    )
