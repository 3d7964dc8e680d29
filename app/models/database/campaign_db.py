"""
抽奖活动与奖品数据库模型
"""

from sqlalchemy import Column, String, Integer, Float, Numeric, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class CampaignDB(Base):
    """抽奖活动数据库表"""

    __tablename__ = "campaigns"

    # 主键和归属店铺
    id = Column(String(50), primary_key=True, comment="活动ID")
    shop = Column(String(255), nullable=False, index=True, comment="店铺域名")
    name = Column(String(200), nullable=False, default="", comment="活动名称")
    mode = Column(String(20), nullable=False, comment="参与方式 order/email_form")

    # 发布与时间窗口
    is_active = Column(Boolean, nullable=False, default=False, comment="是否发布")
    start_at = Column(DateTime, comment="开始时间")
    end_at = Column(DateTime, comment="结束时间")

    # 参与规则
    min_order_amount = Column(Numeric(12, 2), comment="最低订单金额")
    allowed_order_status = Column(String(50), comment="允许的订单状态")
    max_plays_per_customer = Column(Integer, comment="每个客户最大参与次数")
    require_name = Column(Boolean, nullable=False, default=False, comment="是否必填姓名")
    require_phone = Column(Boolean, nullable=False, default=False, comment="是否必填电话")

    # 统计计数（仅由抽奖记录器更新）
    total_plays = Column(Integer, nullable=False, default=0, server_default="0", comment="总参与次数")
    total_wins = Column(Integer, nullable=False, default=0, server_default="0", comment="总中奖次数")
    total_orders = Column(Integer, nullable=False, default=0, server_default="0", comment="订单参与次数")

    # 时间戳
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), comment="更新时间")

    # 关系映射
    prizes = relationship("PrizeDB", back_populates="campaign", cascade="all, delete-orphan")

    __table_args__ = (
        {'comment': '抽奖活动表'}
    )


class PrizeDB(Base):
    """奖品数据库表"""

    __tablename__ = "prizes"

    # 主键和关联信息
    id = Column(String(50), primary_key=True, comment="奖品ID")
    campaign_id = Column(String(50), ForeignKey("campaigns.id"), nullable=False, index=True, comment="活动ID")

    # 奖品信息
    name = Column(String(200), nullable=False, comment="奖品名称")
    kind = Column(String(30), nullable=False, comment="奖品类型")
    discount_value = Column(Numeric(10, 2), comment="折扣值")
    reward_code = Column(String(100), comment="预设兑奖码")
    gift_product_id = Column(String(100), comment="赠品产品ID")
    gift_variant_id = Column(String(100), comment="赠品变体ID")

    # 概率与库存
    chance_weight = Column(Float, nullable=False, default=0, comment="中奖权重(0-100)")
    total_stock = Column(Integer, comment="总库存，为空表示不限")
    used_stock = Column(Integer, nullable=False, default=0, server_default="0", comment="已使用库存")

    display_order = Column(Integer, nullable=False, default=0, comment="显示顺序")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")

    # 关系映射
    campaign = relationship("CampaignDB", back_populates="prizes")

    __table_args__ = (
        Index('idx_prize_campaign_active', 'campaign_id', 'is_active'),
        {'comment': '奖品表'}
    )
