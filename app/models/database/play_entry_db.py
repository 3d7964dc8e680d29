"""
抽奖记录数据库模型
"""

from sqlalchemy import Column, String, Numeric, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from app.core.database import Base


class PlayEntryDB(Base):
    """抽奖记录表，(campaign_id, identity_key) 唯一"""

    __tablename__ = "play_entries"

    # 主键和关联信息
    id = Column(String(50), primary_key=True, comment="记录ID")
    campaign_id = Column(String(50), ForeignKey("campaigns.id"), nullable=False, comment="活动ID")
    shop = Column(String(255), comment="店铺域名")

    # 参与者身份
    participant_kind = Column(String(10), nullable=False, comment="参与者类型 order/email")
    identity_key = Column(String(300), nullable=False, comment="参与者唯一身份键")
    customer_key = Column(String(300), comment="客户次数限制键")

    # 参与者快照
    order_id = Column(String(100), comment="订单ID")
    order_number = Column(String(100), comment="订单号")
    order_amount = Column(Numeric(12, 2), comment="订单金额")
    email = Column(String(255), comment="邮箱")
    customer_id = Column(String(100), comment="客户ID")
    customer_name = Column(String(200), comment="客户姓名")
    phone = Column(String(50), comment="电话")

    # 奖品快照
    prize_id = Column(String(50), comment="奖品ID")
    prize_name = Column(String(200), comment="奖品名称")
    prize_kind = Column(String(30), comment="奖品类型")
    prize_value = Column(String(50), comment="奖品折扣值")
    is_winner = Column(Boolean, nullable=False, default=False, comment="是否中奖")

    # 兑奖码
    reward_code = Column(String(100), comment="兑奖码")
    external_reward_id = Column(String(255), comment="外部折扣码ID")
    reward_sync_error = Column(Text, comment="外部发券失败原因")

    # 生命周期
    status = Column(String(20), nullable=False, default="pending", comment="记录状态")
    created_at = Column(DateTime, server_default=func.now(), comment="创建时间")
    expires_at = Column(DateTime, comment="兑奖码过期时间")
    claimed_at = Column(DateTime, comment="领取时间")

    __table_args__ = (
        UniqueConstraint('campaign_id', 'identity_key', name='uq_play_entry_campaign_identity'),
        Index('idx_play_entry_customer', 'campaign_id', 'customer_key'),
        {'comment': '抽奖记录表'}
    )
