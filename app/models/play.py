"""
抽奖请求、抽奖记录与响应数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field
from enum import Enum

from app.models.campaign import CampaignMode, Prize, PrizeKind
from app.models.participant import FormParticipant, OrderParticipant


class EntryStatus(str, Enum):
    """抽奖记录状态枚举"""
    PENDING = "pending"  # 待领取
    CLAIMED = "claimed"  # 已领取
    EXPIRED = "expired"  # 已过期


class PlayRequest(BaseModel):
    """抽奖请求"""

    campaign_id: str = Field(..., alias="campaignId", min_length=1, description="活动ID")
    mode: Optional[CampaignMode] = Field(None, description="参与方式")
    order_number: Optional[str] = Field(None, alias="orderNumber", description="订单号")
    order_id: Optional[str] = Field(None, alias="orderId", description="订单ID")
    email: Optional[str] = Field(None, description="邮箱")
    name: Optional[str] = Field(None, description="姓名")
    phone: Optional[str] = Field(None, description="电话")
    shop: Optional[str] = Field(None, description="店铺域名（storefront调用时携带）")

    class Config:
        populate_by_name = True


class PriorOutcome(BaseModel):
    """已有抽奖记录的结果，用于重复请求时原样回放"""

    entry_id: str
    prize_id: Optional[str] = None
    prize_name: Optional[str] = None
    is_winner: bool = False
    reward_code: Optional[str] = None
    created_at: Optional[datetime] = None


class PlayEntry(BaseModel):
    """抽奖记录模型"""

    id: str = Field(..., description="记录ID")
    campaign_id: str = Field(..., description="活动ID")
    shop: Optional[str] = Field(None, description="店铺域名")
    participant_kind: str = Field(..., description="参与者类型 order/email")
    identity_key: str = Field(..., description="参与者唯一身份键")
    customer_key: Optional[str] = Field(None, description="客户次数限制键")
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    order_amount: Optional[Decimal] = None
    email: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    prize_id: Optional[str] = None
    prize_name: Optional[str] = None
    prize_kind: Optional[PrizeKind] = None
    prize_value: Optional[str] = None
    is_winner: bool = False
    reward_code: Optional[str] = None
    external_reward_id: Optional[str] = None
    reward_sync_error: Optional[str] = None
    status: EntryStatus = EntryStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    expires_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None

    def to_outcome(self) -> PriorOutcome:
        return PriorOutcome(
            entry_id=self.id,
            prize_id=self.prize_id,
            prize_name=self.prize_name,
            is_winner=self.is_winner,
            reward_code=self.reward_code,
            created_at=self.created_at,
        )


class Eligibility(BaseModel):
    """资格校验结果：解析出的参与者，以及（如有）已存在的抽奖结果"""

    participant: Union[OrderParticipant, FormParticipant] = Field(..., discriminator="kind")
    duplicate: Optional[PriorOutcome] = None

    @property
    def is_duplicate(self) -> bool:
        return self.duplicate is not None


class RewardSemantics(str, Enum):
    """外部发券服务的折扣语义"""
    PERCENTAGE_OFF = "percentage_off"
    FIXED_AMOUNT_OFF = "fixed_amount_off"
    FREE_SHIPPING = "free_shipping"
    FREE_LINE_ITEM = "free_line_item"


class RewardConstraints(BaseModel):
    """外部折扣码的约束条件"""

    title: str
    value: Decimal = Decimal("0")
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    usage_limit: int = 1
    currency_code: str = "USD"
    gift_product_id: Optional[str] = None
    gift_variant_id: Optional[str] = None


class RewardIssueResult(BaseModel):
    """发券结果"""

    code: str = Field(..., description="兑奖码")
    external_id: Optional[str] = Field(None, description="外部折扣码ID")
    created: bool = Field(default=False, description="是否已在外部服务创建")
    expires_at: Optional[datetime] = Field(None, description="兑奖码过期时间")
    error: Optional[str] = Field(None, description="软失败原因")


class PreviousEntry(BaseModel):
    """重复参与时返回的历史结果"""

    is_winner: bool = Field(..., alias="isWinner")
    prize_name: Optional[str] = Field(None, alias="prizeName")
    reward_code: Optional[str] = Field(None, alias="rewardCode")

    class Config:
        populate_by_name = True


class PlayResponse(BaseModel):
    """抽奖响应"""

    success: bool
    prize_id: Optional[str] = Field(None, alias="prizeId")
    has_played: Optional[bool] = Field(None, alias="hasPlayed")
    previous_entry: Optional[PreviousEntry] = Field(None, alias="previousEntry")
    error: Optional[str] = None
    # 仅用于映射HTTP状态码和日志，不返回给调用方
    error_code: Optional[str] = Field(None, exclude=True)
    status_code: int = Field(default=200, exclude=True)

    class Config:
        populate_by_name = True

    @classmethod
    def won(cls, prize: Prize) -> "PlayResponse":
        return cls(success=True, prize_id=prize.id)

    @classmethod
    def duplicate(cls, outcome: PriorOutcome) -> "PlayResponse":
        return cls(
            success=False,
            has_played=True,
            prize_id=outcome.prize_id,
            previous_entry=PreviousEntry(
                is_winner=outcome.is_winner,
                prize_name=outcome.prize_name,
                reward_code=outcome.reward_code,
            ),
        )

    @classmethod
    def failure(cls, error: str, error_code: str, status_code: int = 400) -> "PlayResponse":
        return cls(success=False, error=error, error_code=error_code, status_code=status_code)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class VerifiedOrder(BaseModel):
    """预检通过的订单摘要"""

    id: str
    number: str
    amount: Decimal
    currency: Optional[str] = None
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_id: Optional[str] = Field(None, alias="customerId")

    class Config:
        populate_by_name = True


class VerifyResponse(BaseModel):
    """抽奖资格预检响应"""

    success: bool
    can_play: Optional[bool] = Field(None, alias="canPlay")
    has_played: Optional[bool] = Field(None, alias="hasPlayed")
    previous_entry: Optional[PreviousEntry] = Field(None, alias="previousEntry")
    order: Optional[VerifiedOrder] = None
    error: Optional[str] = None
    status_code: int = Field(default=200, exclude=True)

    class Config:
        populate_by_name = True

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
