"""
RewardIssuer兑奖码发放测试
"""

import asyncio
import re
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.clients.shopify_admin_client import ShopifyAdminClient, ShopifyAdminError
from app.core.config import settings
from app.models.campaign import Prize, PrizeKind
from app.models.database.shop_credential_db import ShopCredentialDB
from app.models.play import RewardIssueResult, RewardSemantics
from app.repositories.shop_credential_repository import ShopCredentialRepository
from app.services.reward_issuer import (
    AdminCapabilityResolver,
    RewardIssuer,
    calculate_expires_at,
    generate_reward_code,
)

SHOP = "test-shop.myshopify.com"


def make_prize(kind=PrizeKind.PERCENT_DISCOUNT, **overrides):
    data = {
        "id": "prize_001",
        "campaign_id": "camp_001",
        "name": "九折券",
        "kind": kind,
        "discount_value": Decimal("10"),
        "chance_weight": 50,
    }
    data.update(overrides)
    return Prize(**data)


class TestRewardCode:
    """兑奖码生成测试类"""

    def test_code_format(self):
        code = generate_reward_code()
        assert re.fullmatch(r"LOTTERY-[0-9A-Z]+-[0-9A-Z]{6}", code)

    def test_custom_prefix(self):
        assert generate_reward_code("SPIN").startswith("SPIN-")

    def test_codes_are_unique(self):
        codes = {generate_reward_code() for _ in range(200)}
        assert len(codes) == 200

    def test_expires_at(self):
        now = datetime(2024, 6, 1, 12, 0, 0)
        assert calculate_expires_at(30, now=now) == now + timedelta(days=30)


@pytest.mark.asyncio
class TestAdminCapabilityResolver:
    """外部发券能力查找测试类"""

    @pytest.fixture
    def mock_credential_repo(self):
        return AsyncMock(spec=ShopCredentialRepository)

    async def test_request_capability_first(self, mock_credential_repo):
        """测试优先使用请求已认证的客户端"""
        request_client = ShopifyAdminClient(shop=SHOP, access_token="request_token")
        resolver = AdminCapabilityResolver(mock_credential_repo)

        client = await resolver.resolve(SHOP, request_client)

        assert client is request_client
        mock_credential_repo.get_latest_valid.assert_not_called()

    async def test_fallback_to_stored_credential(self, mock_credential_repo):
        """测试storefront调用时从店铺凭证恢复"""
        mock_credential_repo.get_latest_valid.return_value = ShopCredentialDB(
            id="cred_001", shop=SHOP, access_token="offline_token"
        )
        resolver = AdminCapabilityResolver(mock_credential_repo)

        client = await resolver.resolve(SHOP)

        assert isinstance(client, ShopifyAdminClient)
        assert client.shop == SHOP
        assert client.access_token == "offline_token"

    async def test_unavailable_without_credential(self, mock_credential_repo):
        mock_credential_repo.get_latest_valid.return_value = None
        resolver = AdminCapabilityResolver(mock_credential_repo)

        assert await resolver.resolve(SHOP) is None

    async def test_unavailable_on_credential_error(self, mock_credential_repo):
        """测试读取凭证出错时返回不可用而不是抛出"""
        mock_credential_repo.get_latest_valid.side_effect = RuntimeError("db down")
        resolver = AdminCapabilityResolver(mock_credential_repo)

        assert await resolver.resolve(SHOP) is None

    async def test_unavailable_without_shop(self, mock_credential_repo):
        resolver = AdminCapabilityResolver(mock_credential_repo)

        assert await resolver.resolve(None) is None
        mock_credential_repo.get_latest_valid.assert_not_called()

    async def test_unavailable_without_credential_repo(self):
        """测试未配置凭证仓库时只接受请求已认证的客户端"""
        request_client = ShopifyAdminClient(shop=SHOP, access_token="request_token")
        resolver = AdminCapabilityResolver()

        assert await resolver.resolve(SHOP) is None
        assert await resolver.resolve(SHOP, request_client) is request_client


class TestRewardIssuerOptions:
    """发券参数测试类"""

    def test_defaults_from_settings(self):
        issuer = RewardIssuer(AdminCapabilityResolver())

        assert issuer.timeout == settings.reward_timeout_seconds
        assert issuer.expires_in_days == settings.reward_expires_in_days
        assert issuer.usage_limit == settings.reward_usage_limit
        assert issuer.code_prefix == settings.reward_code_prefix

    def test_explicit_zero_values_kept(self):
        """测试显式传入0不会被配置值覆盖"""
        issuer = RewardIssuer(AdminCapabilityResolver(), timeout=0, expires_in_days=0, usage_limit=0)

        assert issuer.timeout == 0
        assert issuer.expires_in_days == 0
        assert issuer.usage_limit == 0

        now = datetime.now()
        assert issuer.build_constraints(make_prize(), now).usage_limit == 0


@pytest.mark.asyncio
class TestRewardIssuer:
    """RewardIssuer测试类"""

    @pytest.fixture
    def mock_client(self):
        client = AsyncMock(spec=ShopifyAdminClient)
        client.create_discount_code.return_value = "gid://shopify/DiscountCodeNode/1"
        client.delete_discount_code.return_value = True
        return client

    @pytest.fixture
    def issuer(self, mock_client):
        resolver = MagicMock(spec=AdminCapabilityResolver)
        resolver.resolve = AsyncMock(return_value=mock_client)
        return RewardIssuer(resolver, timeout=0.2, expires_in_days=30, usage_limit=1, code_prefix="LOTTERY")

    async def test_issue_registers_external_reward(self, issuer, mock_client):
        """测试发券成功"""
        result = await issuer.issue(make_prize(), SHOP)

        assert result.created is True
        assert result.external_id == "gid://shopify/DiscountCodeNode/1"
        assert result.error is None
        assert result.code.startswith("LOTTERY-")
        assert result.expires_at > datetime.now() + timedelta(days=29)

        code, semantics, constraints = mock_client.create_discount_code.await_args.args
        assert code == result.code
        assert semantics == RewardSemantics.PERCENTAGE_OFF
        assert constraints.title == "Lottery Prize: 九折券"
        assert constraints.value == Decimal("10")
        assert constraints.usage_limit == 1
        assert constraints.ends_at == result.expires_at

    @pytest.mark.parametrize("kind, semantics", [
        (PrizeKind.PERCENT_DISCOUNT, RewardSemantics.PERCENTAGE_OFF),
        (PrizeKind.FIXED_DISCOUNT, RewardSemantics.FIXED_AMOUNT_OFF),
        (PrizeKind.FREE_SHIPPING, RewardSemantics.FREE_SHIPPING),
        (PrizeKind.FREE_GIFT, RewardSemantics.FREE_LINE_ITEM),
    ])
    async def test_kind_to_semantics(self, issuer, mock_client, kind, semantics):
        await issuer.issue(make_prize(kind=kind, gift_variant_id="gid://shopify/ProductVariant/9"), SHOP)

        assert mock_client.create_discount_code.await_args.args[1] == semantics

    async def test_predefined_code_used(self, issuer, mock_client):
        """测试奖品预设兑奖码优先"""
        result = await issuer.issue(make_prize(reward_code="SUMMER10"), SHOP)

        assert result.code == "SUMMER10"
        assert mock_client.create_discount_code.await_args.args[0] == "SUMMER10"

    async def test_capability_unavailable(self, issuer, mock_client):
        """测试能力不可用时只返回本地兑奖码"""
        issuer.capability_resolver.resolve = AsyncMock(return_value=None)

        result = await issuer.issue(make_prize(), SHOP)

        assert result.code.startswith("LOTTERY-")
        assert result.external_id is None
        assert result.created is False
        assert result.error == "No admin session available"
        mock_client.create_discount_code.assert_not_called()

    async def test_external_error_is_soft(self, issuer, mock_client):
        """测试外部服务报错不影响兑奖码"""
        mock_client.create_discount_code.side_effect = ShopifyAdminError("Failed to create discount: Code must be unique")

        result = await issuer.issue(make_prize(), SHOP)

        assert result.code.startswith("LOTTERY-")
        assert result.external_id is None
        assert "Code must be unique" in result.error

    async def test_external_timeout_is_soft(self, issuer, mock_client):
        """测试外部服务超时按软失败处理"""
        async def slow_create(*args, **kwargs):
            await asyncio.sleep(5)
            return "gid://shopify/DiscountCodeNode/late"

        mock_client.create_discount_code.side_effect = slow_create

        result = await issuer.issue(make_prize(), SHOP)

        assert result.external_id is None
        assert "timed out" in result.error

    async def test_revoke_deletes_external_reward(self, issuer, mock_client):
        result = RewardIssueResult(code="LOTTERY-A-B", external_id="gid://shopify/DiscountCodeNode/1", created=True)

        await issuer.revoke(result, SHOP)

        mock_client.delete_discount_code.assert_awaited_once_with("gid://shopify/DiscountCodeNode/1")

    async def test_revoke_skips_local_only_code(self, issuer, mock_client):
        await issuer.revoke(RewardIssueResult(code="LOTTERY-A-B"), SHOP)

        mock_client.delete_discount_code.assert_not_called()

    async def test_revoke_failure_is_swallowed(self, issuer, mock_client):
        """测试撤销失败只记录日志"""
        mock_client.delete_discount_code.side_effect = ShopifyAdminError("HTTP 500")
        result = RewardIssueResult(code="LOTTERY-A-B", external_id="gid://shopify/DiscountCodeNode/1", created=True)

        await issuer.revoke(result, SHOP)

        mock_client.delete_discount_code.assert_awaited_once()
