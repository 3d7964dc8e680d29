"""
参与者相关数据模型

参与者是一个显式的二选一类型：订单参与者以订单ID作为唯一身份，
表单参与者以邮箱作为唯一身份，两者的身份键带有不同前缀，互不混用。
"""

from decimal import Decimal
from datetime import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field


class LedgerCustomer(BaseModel):
    """订单账本中的客户信息"""

    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class LedgerOrder(BaseModel):
    """订单账本返回的订单"""

    id: str = Field(..., description="订单ID")
    number: str = Field(..., description="订单号")
    amount: Decimal = Field(..., ge=0, description="订单金额")
    currency: Optional[str] = Field(None, description="币种")
    status: str = Field(..., description="订单支付状态")
    customer: LedgerCustomer = Field(default_factory=LedgerCustomer)
    created_at: Optional[datetime] = None


def normalize_email(email: str) -> str:
    """邮箱统一小写去空格，作为身份键"""
    return email.strip().lower()


class OrderParticipant(BaseModel):
    """订单参与者"""

    kind: Literal["order"] = "order"
    order_id: str
    order_number: str
    amount: Decimal
    status: str
    customer_id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_order(cls, order: LedgerOrder) -> "OrderParticipant":
        return cls(
            order_id=order.id,
            order_number=order.number,
            amount=order.amount,
            status=order.status,
            customer_id=order.customer.id,
            name=order.customer.name,
            phone=order.customer.phone,
            email=order.customer.email,
        )

    @property
    def identity_key(self) -> str:
        return f"order:{self.order_id}"

    @property
    def customer_key(self) -> Optional[str]:
        """用于每客户次数限制；没有客户记录时退回邮箱"""
        if self.customer_id:
            return f"customer:{self.customer_id}"
        if self.email:
            return f"email:{normalize_email(self.email)}"
        return None


class FormParticipant(BaseModel):
    """邮件表单参与者"""

    kind: Literal["email"] = "email"
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None

    @property
    def identity_key(self) -> str:
        return f"email:{normalize_email(self.email)}"

    @property
    def customer_key(self) -> Optional[str]:
        return self.identity_key


Participant = Union[OrderParticipant, FormParticipant]
