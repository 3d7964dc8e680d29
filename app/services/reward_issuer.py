"""
兑奖码发放服务

1. 生成兑奖码（奖品有预设码时直接使用）
2. 获取调用外部发券服务的能力：优先使用当前请求已认证的Admin客户端，
   否则从店铺持久化凭证恢复（storefront未认证请求）
3. 能力不可用、调用失败或超时都属于软失败：只记录日志，返回本地兑奖码，不影响抽奖
"""

import asyncio
import logging
import random
import string
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.clients.shopify_admin_client import ShopifyAdminClient
from app.core.config import settings
from app.models.campaign import Prize, PrizeKind
from app.models.play import RewardConstraints, RewardIssueResult, RewardSemantics
from app.repositories.shop_credential_repository import ShopCredentialRepository

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase

SEMANTICS_BY_KIND = {
    PrizeKind.PERCENT_DISCOUNT: RewardSemantics.PERCENTAGE_OFF,
    PrizeKind.FIXED_DISCOUNT: RewardSemantics.FIXED_AMOUNT_OFF,
    PrizeKind.FREE_SHIPPING: RewardSemantics.FREE_SHIPPING,
    PrizeKind.FREE_GIFT: RewardSemantics.FREE_LINE_ITEM,
}


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_reward_code(prefix: str = "LOTTERY", rng: Optional[random.Random] = None) -> str:
    """生成兑奖码：前缀-毫秒时间戳(36进制)-6位随机串"""
    rng = rng or random
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(rng.choices(BASE36_ALPHABET, k=6))
    return f"{prefix}-{timestamp}-{suffix}"


def calculate_expires_at(days: int = 30, now: Optional[datetime] = None) -> datetime:
    """计算兑奖码过期时间（默认30天）"""
    return (now or datetime.now()) + timedelta(days=days)


class AdminCapabilityResolver:
    """外部发券能力查找：返回可用的Admin客户端，或None表示不可用"""

    def __init__(
        self,
        credential_repo: Optional[ShopCredentialRepository] = None,
        client_factory: Callable[..., ShopifyAdminClient] = ShopifyAdminClient
    ):
        self.credential_repo = credential_repo
        self.client_factory = client_factory

    async def resolve(
        self,
        shop: Optional[str],
        request_capability: Optional[ShopifyAdminClient] = None
    ) -> Optional[ShopifyAdminClient]:
        # 方法1：当前请求已认证的Admin客户端
        if request_capability is not None:
            return request_capability

        # 方法2：通过店铺持久化凭证恢复（未配置凭证仓库时直接视为不可用）
        if not self.credential_repo:
            return None

        if not shop:
            logger.warning("无法获取Admin客户端：未提供shop")
            return None

        try:
            credential = await self.credential_repo.get_latest_valid(shop)
        except Exception as e:
            logger.warning(f"读取店铺凭证失败: shop={shop}, error={e}")
            return None

        if not credential:
            logger.warning(f"未找到店铺有效凭证: shop={shop}")
            return None

        return self.client_factory(shop=shop, access_token=credential.access_token)


class RewardIssuer:
    """兑奖码发放"""

    def __init__(
        self,
        capability_resolver: AdminCapabilityResolver,
        timeout: Optional[float] = None,
        expires_in_days: Optional[int] = None,
        usage_limit: Optional[int] = None,
        code_prefix: Optional[str] = None
    ):
        self.capability_resolver = capability_resolver
        self.timeout = settings.reward_timeout_seconds if timeout is None else timeout
        self.expires_in_days = settings.reward_expires_in_days if expires_in_days is None else expires_in_days
        self.usage_limit = settings.reward_usage_limit if usage_limit is None else usage_limit
        self.code_prefix = settings.reward_code_prefix if code_prefix is None else code_prefix

    def build_constraints(self, prize: Prize, expires_at: datetime) -> RewardConstraints:
        return RewardConstraints(
            title=f"Lottery Prize: {prize.name}",
            value=prize.discount_value or 0,
            starts_at=datetime.now(),
            ends_at=expires_at,
            usage_limit=self.usage_limit,
            currency_code=settings.reward_currency_code,
            gift_product_id=prize.gift_product_id,
            gift_variant_id=prize.gift_variant_id
        )

    async def issue(
        self,
        prize: Prize,
        shop: Optional[str],
        request_capability: Optional[ShopifyAdminClient] = None
    ) -> RewardIssueResult:
        """为中奖奖品生成兑奖码，并尽力在外部服务中登记"""
        code = prize.reward_code or generate_reward_code(self.code_prefix)
        expires_at = calculate_expires_at(self.expires_in_days)

        semantics = SEMANTICS_BY_KIND.get(prize.kind)
        if semantics is None:
            return RewardIssueResult(code=code, expires_at=expires_at)

        client = await self.capability_resolver.resolve(shop, request_capability)
        if client is None:
            logger.warning(f"外部发券能力不可用，仅使用本地兑奖码: shop={shop}, prize={prize.id}")
            return RewardIssueResult(code=code, expires_at=expires_at, error="No admin session available")

        try:
            external_id = await asyncio.wait_for(
                client.create_discount_code(code, semantics, self.build_constraints(prize, expires_at)),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            error = f"Reward service timed out after {self.timeout}s"
            logger.warning(f"外部发券超时: shop={shop}, prize={prize.id}, code={code}")
            return RewardIssueResult(code=code, expires_at=expires_at, error=error)
        except Exception as e:
            logger.warning(f"外部发券失败: shop={shop}, prize={prize.id}, code={code}, error={e}")
            return RewardIssueResult(code=code, expires_at=expires_at, error=str(e) or type(e).__name__)

        return RewardIssueResult(code=code, external_id=external_id, created=True, expires_at=expires_at)

    async def revoke(
        self,
        result: RewardIssueResult,
        shop: Optional[str],
        request_capability: Optional[ShopifyAdminClient] = None
    ) -> None:
        """撤销未能落库的外部兑奖码，失败只记录日志"""
        if not result.external_id:
            return

        client = await self.capability_resolver.resolve(shop, request_capability)
        if client is None:
            logger.warning(f"无法撤销外部兑奖码（能力不可用）: {result.external_id}")
            return

        try:
            await asyncio.wait_for(client.delete_discount_code(result.external_id), timeout=self.timeout)
            logger.info(f"已撤销外部兑奖码: {result.external_id}")
        except Exception as e:
            logger.warning(f"撤销外部兑奖码失败: {result.external_id}, error={e}")
