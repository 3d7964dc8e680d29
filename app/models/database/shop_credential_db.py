"""
店铺离线凭证数据库模型（由应用安装流程写入）
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class ShopCredentialDB(Base):
    """店铺Admin API凭证表"""

    __tablename__ = "shop_credentials"

    id = Column(String(100), primary_key=True, comment="凭证ID")
    shop = Column(String(255), nullable=False, index=True, comment="店铺域名")
    access_token = Column(Text, nullable=False, comment="Admin API访问令牌")
    scope = Column(Text, comment="授权范围")
    expires_at = Column(DateTime, comment="过期时间，为空表示离线令牌")
    created_at = Column(DateTime, server_default=func.now(), index=True, comment="创建时间")

    __table_args__ = (
        {'comment': '店铺凭证表'}
    )
