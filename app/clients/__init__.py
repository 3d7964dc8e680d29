"""
外部服务客户端包
"""

from .shopify_admin_client import ShopifyAdminClient, ShopifyAdminError

__all__ = [
    "ShopifyAdminClient",
    "ShopifyAdminError"
]
