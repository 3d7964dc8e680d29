"""
抽奖活动与奖品数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class CampaignMode(str, Enum):
    """活动参与方式枚举"""
    ORDER = "order"  # 订单抽奖
    EMAIL_FORM = "email_form"  # 邮件表单抽奖


class PrizeKind(str, Enum):
    """奖品类型枚举"""
    NONE = "none"  # 未中奖
    PERCENT_DISCOUNT = "percent_discount"  # 百分比折扣
    FIXED_DISCOUNT = "fixed_discount"  # 固定金额折扣
    FREE_SHIPPING = "free_shipping"  # 免运费
    FREE_GIFT = "free_gift"  # 免费赠品


class Prize(BaseModel):
    """奖品模型"""

    id: str = Field(..., description="奖品ID")
    campaign_id: str = Field(..., description="活动ID")
    name: str = Field(..., description="奖品名称")
    kind: PrizeKind = Field(..., description="奖品类型")
    discount_value: Optional[Decimal] = Field(None, ge=0, description="折扣值")
    reward_code: Optional[str] = Field(None, description="预设兑奖码")
    gift_product_id: Optional[str] = Field(None, description="赠品产品ID")
    gift_variant_id: Optional[str] = Field(None, description="赠品变体ID")
    chance_weight: float = Field(default=0, ge=0, le=100, description="中奖权重(0-100)")
    total_stock: Optional[int] = Field(None, ge=0, description="总库存，为空表示不限")
    used_stock: int = Field(default=0, ge=0, description="已使用库存")
    display_order: int = Field(default=0, description="显示顺序")
    is_active: bool = Field(default=True, description="是否启用")

    @property
    def is_winning(self) -> bool:
        """是否为中奖奖品"""
        return self.kind != PrizeKind.NONE

    @property
    def in_stock(self) -> bool:
        """是否还有库存"""
        return self.total_stock is None or self.used_stock < self.total_stock


class Campaign(BaseModel):
    """抽奖活动模型（由活动配置系统维护，引擎只读）"""

    id: str = Field(..., description="活动ID")
    shop: str = Field(..., description="店铺域名")
    name: str = Field(default="", description="活动名称")
    mode: CampaignMode = Field(..., description="参与方式")
    is_active: bool = Field(default=False, description="是否发布")
    start_at: Optional[datetime] = Field(None, description="开始时间")
    end_at: Optional[datetime] = Field(None, description="结束时间")
    min_order_amount: Optional[Decimal] = Field(None, ge=0, description="最低订单金额")
    allowed_order_status: Optional[str] = Field(None, description="允许的订单状态")
    max_plays_per_customer: Optional[int] = Field(None, description="每个客户最大参与次数，0或空表示不限")
    require_name: bool = Field(default=False, description="是否必填姓名")
    require_phone: bool = Field(default=False, description="是否必填电话")
    total_plays: int = Field(default=0, ge=0)
    total_wins: int = Field(default=0, ge=0)
    total_orders: int = Field(default=0, ge=0)
    prizes: List[Prize] = Field(default_factory=list, description="启用中的奖品")


class CampaignValidity(BaseModel):
    """活动有效性检查结果"""

    valid: bool = Field(..., description="是否可参与")
    reason: Optional[str] = Field(None, description="不可参与原因")
