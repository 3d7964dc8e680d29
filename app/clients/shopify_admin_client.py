"""
Shopify Admin GraphQL 客户端
用于在店铺中创建/删除折扣码（外部发券服务）
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.models.play import RewardConstraints, RewardSemantics

logger = logging.getLogger(__name__)


CREATE_BASIC_DISCOUNT_MUTATION = """
mutation discountCodeBasicCreate($basicCodeDiscount: DiscountCodeBasicInput!) {
  discountCodeBasicCreate(basicCodeDiscount: $basicCodeDiscount) {
    codeDiscountNode { id }
    userErrors { field message }
  }
}
"""

CREATE_FREE_SHIPPING_DISCOUNT_MUTATION = """
mutation discountCodeFreeShippingCreate($freeShippingCodeDiscount: DiscountCodeFreeShippingInput!) {
  discountCodeFreeShippingCreate(freeShippingCodeDiscount: $freeShippingCodeDiscount) {
    codeDiscountNode { id }
    userErrors { field message }
  }
}
"""

DELETE_DISCOUNT_MUTATION = """
mutation discountCodeDelete($id: ID!) {
  discountCodeDelete(id: $id) {
    deletedCodeDiscountId
    userErrors { field message }
  }
}
"""


class ShopifyAdminError(Exception):
    """Shopify Admin API 调用失败"""


class ShopifyAdminClient:
    """Shopify Admin GraphQL API 客户端"""

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.shop = shop
        self.access_token = access_token
        self.api_version = api_version or settings.shopify_api_version
        self.timeout = timeout or settings.reward_timeout_seconds
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    async def graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """执行GraphQL请求，返回data部分"""
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    self.endpoint,
                    json={"query": query, "variables": variables},
                    headers=headers
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ShopifyAdminError(f"HTTP {e.response.status_code} from {self.shop}") from e
            except httpx.HTTPError as e:
                raise ShopifyAdminError(f"Request to {self.shop} failed: {e}") from e

        payload = response.json()
        if payload.get("errors"):
            message = payload["errors"][0].get("message", "Unknown error")
            raise ShopifyAdminError(f"GraphQL error: {message}")
        return payload.get("data") or {}

    async def create_discount_code(
        self,
        code: str,
        semantics: RewardSemantics,
        constraints: RewardConstraints
    ) -> str:
        """创建折扣码，返回外部折扣ID"""
        if semantics == RewardSemantics.FREE_SHIPPING:
            mutation_name = "discountCodeFreeShippingCreate"
            data = await self.graphql(
                CREATE_FREE_SHIPPING_DISCOUNT_MUTATION,
                {"freeShippingCodeDiscount": build_free_shipping_input(code, constraints)}
            )
        else:
            mutation_name = "discountCodeBasicCreate"
            data = await self.graphql(
                CREATE_BASIC_DISCOUNT_MUTATION,
                {"basicCodeDiscount": build_basic_discount_input(code, semantics, constraints)}
            )

        result = data.get(mutation_name) or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            raise ShopifyAdminError(f"Failed to create discount: {user_errors[0].get('message')}")

        node = result.get("codeDiscountNode")
        if not node or not node.get("id"):
            raise ShopifyAdminError("Failed to create discount: No discount node returned")

        logger.info(f"Shopify折扣码创建成功: shop={self.shop}, code={code}, id={node['id']}")
        return node["id"]

    async def delete_discount_code(self, external_id: str) -> bool:
        """删除折扣码"""
        data = await self.graphql(DELETE_DISCOUNT_MUTATION, {"id": external_id})
        result = data.get("discountCodeDelete") or {}
        if result.get("userErrors"):
            raise ShopifyAdminError(f"Failed to delete discount: {result['userErrors'][0].get('message')}")
        return bool(result.get("deletedCodeDiscountId"))


def _common_discount_fields(code: str, constraints: RewardConstraints) -> Dict[str, Any]:
    return {
        "title": constraints.title,
        "code": code,
        "startsAt": constraints.starts_at.isoformat() if constraints.starts_at else None,
        "endsAt": constraints.ends_at.isoformat() if constraints.ends_at else None,
        "customerSelection": {"all": True},
        "usageLimit": constraints.usage_limit,
        "appliesOncePerCustomer": constraints.usage_limit == 1,
    }


def build_basic_discount_input(
    code: str,
    semantics: RewardSemantics,
    constraints: RewardConstraints
) -> Dict[str, Any]:
    """构建 DiscountCodeBasicInput"""
    items: Dict[str, Any] = {"all": True}

    if semantics == RewardSemantics.PERCENTAGE_OFF:
        # Shopify 百分比取值范围 0-1
        value: Dict[str, Any] = {"percentage": float(constraints.value) / 100}
    elif semantics == RewardSemantics.FIXED_AMOUNT_OFF:
        value = {"discountAmount": {"amount": str(constraints.value), "appliesOnEachItem": False}}
    elif semantics == RewardSemantics.FREE_LINE_ITEM:
        value = {"percentage": 1.0}
        if constraints.gift_variant_id:
            items = {"products": {"productVariantsToAdd": [constraints.gift_variant_id]}}
        elif constraints.gift_product_id:
            items = {"products": {"productsToAdd": [constraints.gift_product_id]}}
    else:
        raise ValueError(f"Unsupported basic discount semantics: {semantics}")

    fields = _common_discount_fields(code, constraints)
    fields["customerGets"] = {"value": value, "items": items}
    return fields


def build_free_shipping_input(code: str, constraints: RewardConstraints) -> Dict[str, Any]:
    """构建 DiscountCodeFreeShippingInput"""
    fields = _common_discount_fields(code, constraints)
    fields["destination"] = {"all": True}
    return fields
