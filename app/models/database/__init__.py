"""
数据库模型包初始化文件
"""

from .campaign_db import CampaignDB, PrizeDB
from .order_db import OrderDB
from .play_entry_db import PlayEntryDB
from .shop_credential_db import ShopCredentialDB

__all__ = [
    "CampaignDB",
    "PrizeDB",
    "OrderDB",
    "PlayEntryDB",
    "ShopCredentialDB"
]
