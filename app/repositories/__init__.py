"""
仓库包初始化文件 - 数据库访问层
"""

from .campaign_repository import CampaignRepository
from .order_repository import OrderRepository
from .play_entry_repository import PlayEntryRepository
from .shop_credential_repository import ShopCredentialRepository

__all__ = [
    "CampaignRepository",
    "OrderRepository",
    "PlayEntryRepository",
    "ShopCredentialRepository"
]
