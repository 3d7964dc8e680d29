"""
ShopifyAdminClient测试 - 使用httpx.MockTransport模拟Admin API
"""

import json
from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest

from app.clients.shopify_admin_client import (
    ShopifyAdminClient,
    ShopifyAdminError,
    build_basic_discount_input,
    build_free_shipping_input,
)
from app.models.play import RewardConstraints, RewardSemantics

SHOP = "test-shop.myshopify.com"


def make_constraints(**overrides):
    data = {
        "title": "Lottery Prize: 九折券",
        "value": Decimal("10"),
        "starts_at": datetime(2024, 6, 1, 12, 0, 0),
        "ends_at": datetime(2024, 6, 1, 12, 0, 0) + timedelta(days=30),
        "usage_limit": 1,
    }
    data.update(overrides)
    return RewardConstraints(**data)


class TestDiscountInput:
    """折扣输入构建测试类"""

    def test_percentage_discount(self):
        fields = build_basic_discount_input("LOTTERY-A-B", RewardSemantics.PERCENTAGE_OFF, make_constraints())

        assert fields["code"] == "LOTTERY-A-B"
        assert fields["title"] == "Lottery Prize: 九折券"
        assert fields["customerGets"]["value"] == {"percentage": 0.1}
        assert fields["customerGets"]["items"] == {"all": True}
        assert fields["usageLimit"] == 1
        assert fields["appliesOncePerCustomer"] is True
        assert fields["endsAt"] == "2024-07-01T12:00:00"

    def test_fixed_amount_discount(self):
        fields = build_basic_discount_input(
            "LOTTERY-A-B", RewardSemantics.FIXED_AMOUNT_OFF, make_constraints(value=Decimal("5.00"))
        )

        assert fields["customerGets"]["value"] == {
            "discountAmount": {"amount": "5.00", "appliesOnEachItem": False}
        }

    def test_free_gift_variant(self):
        fields = build_basic_discount_input(
            "LOTTERY-A-B",
            RewardSemantics.FREE_LINE_ITEM,
            make_constraints(gift_variant_id="gid://shopify/ProductVariant/9")
        )

        assert fields["customerGets"]["value"] == {"percentage": 1.0}
        assert fields["customerGets"]["items"] == {
            "products": {"productVariantsToAdd": ["gid://shopify/ProductVariant/9"]}
        }

    def test_free_shipping(self):
        fields = build_free_shipping_input("LOTTERY-A-B", make_constraints(usage_limit=3))

        assert fields["destination"] == {"all": True}
        assert fields["appliesOncePerCustomer"] is False
        assert "customerGets" not in fields

    def test_free_shipping_not_basic(self):
        with pytest.raises(ValueError):
            build_basic_discount_input("LOTTERY-A-B", RewardSemantics.FREE_SHIPPING, make_constraints())


@pytest.mark.asyncio
class TestShopifyAdminClient:
    """ShopifyAdminClient测试类"""

    def make_client(self, handler):
        return ShopifyAdminClient(
            shop=SHOP,
            access_token="shpat_test",
            api_version="2024-10",
            transport=httpx.MockTransport(handler)
        )

    async def test_create_discount_code(self):
        """测试创建折扣码请求格式和返回ID"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["token"] = request.headers.get("X-Shopify-Access-Token")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "data": {
                    "discountCodeBasicCreate": {
                        "codeDiscountNode": {"id": "gid://shopify/DiscountCodeNode/1"},
                        "userErrors": []
                    }
                }
            })

        client = self.make_client(handler)
        external_id = await client.create_discount_code(
            "LOTTERY-A-B", RewardSemantics.PERCENTAGE_OFF, make_constraints()
        )

        assert external_id == "gid://shopify/DiscountCodeNode/1"
        assert captured["url"] == f"https://{SHOP}/admin/api/2024-10/graphql.json"
        assert captured["token"] == "shpat_test"
        assert "discountCodeBasicCreate" in captured["body"]["query"]
        assert captured["body"]["variables"]["basicCodeDiscount"]["code"] == "LOTTERY-A-B"

    async def test_create_free_shipping_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert "freeShippingCodeDiscount" in body["variables"]
            return httpx.Response(200, json={
                "data": {
                    "discountCodeFreeShippingCreate": {
                        "codeDiscountNode": {"id": "gid://shopify/DiscountCodeNode/2"},
                        "userErrors": []
                    }
                }
            })

        client = self.make_client(handler)
        external_id = await client.create_discount_code(
            "LOTTERY-A-B", RewardSemantics.FREE_SHIPPING, make_constraints()
        )

        assert external_id == "gid://shopify/DiscountCodeNode/2"

    async def test_user_errors_raise(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "data": {
                    "discountCodeBasicCreate": {
                        "codeDiscountNode": None,
                        "userErrors": [{"field": ["code"], "message": "Code must be unique"}]
                    }
                }
            })

        client = self.make_client(handler)

        with pytest.raises(ShopifyAdminError, match="Code must be unique"):
            await client.create_discount_code("DUP", RewardSemantics.PERCENTAGE_OFF, make_constraints())

    async def test_graphql_errors_raise(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"errors": [{"message": "Access denied"}]})

        client = self.make_client(handler)

        with pytest.raises(ShopifyAdminError, match="Access denied"):
            await client.create_discount_code("X", RewardSemantics.PERCENTAGE_OFF, make_constraints())

    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"errors": "Invalid API key or access token"})

        client = self.make_client(handler)

        with pytest.raises(ShopifyAdminError, match="HTTP 401"):
            await client.create_discount_code("X", RewardSemantics.PERCENTAGE_OFF, make_constraints())

    async def test_delete_discount_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["variables"] == {"id": "gid://shopify/DiscountCodeNode/1"}
            return httpx.Response(200, json={
                "data": {
                    "discountCodeDelete": {
                        "deletedCodeDiscountId": "gid://shopify/DiscountCodeNode/1",
                        "userErrors": []
                    }
                }
            })

        client = self.make_client(handler)

        assert await client.delete_discount_code("gid://shopify/DiscountCodeNode/1") is True
