"""
接口依赖注入
"""

from typing import Optional

from fastapi import Header

from app.clients.shopify_admin_client import ShopifyAdminClient
from app.services.play_service import PlayService


def get_play_service() -> PlayService:
    """获取抽奖服务实例"""
    return PlayService()


def get_admin_capability(
    authorization: Optional[str] = Header(None),
    x_shopify_shop_domain: Optional[str] = Header(None)
) -> Optional[ShopifyAdminClient]:
    """
    解析请求绑定的Admin能力

    Admin端调用携带 `Authorization: Bearer <token>` 和 `X-Shopify-Shop-Domain`，
    两者缺一即视为storefront未认证调用，返回None。
    """
    if not authorization or not x_shopify_shop_domain:
        return None

    parts = authorization.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None

    return ShopifyAdminClient(shop=x_shopify_shop_domain.strip(), access_token=parts[1].strip())
