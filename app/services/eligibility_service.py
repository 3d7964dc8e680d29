"""
抽奖资格校验服务
把抽奖请求解析为具体参与者，检查重复参与、订单状态、金额和次数限制
"""

import logging
import re
from decimal import Decimal
from typing import Optional

from app.core.config import settings
from app.core.exceptions import IneligibleError, NotFoundError, PlayValidationError
from app.models.campaign import Campaign, CampaignMode
from app.models.participant import FormParticipant, OrderParticipant, normalize_email
from app.models.play import Eligibility, PlayRequest, PriorOutcome
from app.repositories.order_repository import OrderRepository
from app.repositories.play_entry_repository import PlayEntryRepository
from app.services.common_cache import SimpleCache

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_PLAYS_REACHED = "Maximum plays per customer reached"


class EligibilityVerifier:
    """抽奖资格校验"""

    def __init__(
        self,
        entry_repo: PlayEntryRepository,
        order_repo: OrderRepository,
        cache: Optional[SimpleCache] = None
    ):
        self.entry_repo = entry_repo
        self.order_repo = order_repo
        self.cache = cache
        self.cache_ttl = settings.entry_cache_ttl

    async def verify(self, campaign: Campaign, request: PlayRequest) -> Eligibility:
        """按活动参与方式选择校验流程"""
        if campaign.mode == CampaignMode.ORDER:
            return await self.verify_order(campaign, request)
        return await self.verify_form(campaign, request)

    async def verify_order(self, campaign: Campaign, request: PlayRequest) -> Eligibility:
        """订单抽奖资格校验"""
        if not request.order_id and not (request.order_number and request.order_number.strip("# ")):
            raise PlayValidationError("Order number or order ID is required")

        # 1. 通过订单账本解析订单
        if request.order_id:
            order = await self.order_repo.find_by_id(campaign.shop, request.order_id)
        else:
            order = await self.order_repo.find_by_number(campaign.shop, request.order_number)

        if not order:
            raise NotFoundError("Order not found")

        participant = OrderParticipant.from_order(order)

        # 2. 已抽过奖：返回原结果供客户端回放
        prior = await self.find_prior_outcome(campaign.id, participant.identity_key)
        if prior:
            return Eligibility(participant=participant, duplicate=prior)

        # 3. 订单状态（不区分大小写）
        allowed_status = campaign.allowed_order_status
        if allowed_status and participant.status.strip().lower() != allowed_status.strip().lower():
            raise IneligibleError(
                f"Order status must be '{allowed_status}', current: '{participant.status}'"
            )

        # 4. 最低订单金额
        if campaign.min_order_amount and participant.amount < Decimal(campaign.min_order_amount):
            raise IneligibleError(
                f"Order amount ({participant.amount}) is below minimum requirement ({campaign.min_order_amount})"
            )

        # 5. 每客户参与次数
        await self._check_play_limit(campaign, participant.customer_key)

        return Eligibility(participant=participant)

    async def verify_form(self, campaign: Campaign, request: PlayRequest) -> Eligibility:
        """邮件表单抽奖资格校验，必填字段校验先于任何数据读取"""
        email = (request.email or "").strip()
        if not email:
            raise PlayValidationError("Email is required")
        if not EMAIL_PATTERN.match(email):
            raise PlayValidationError("Email is invalid")

        name = (request.name or "").strip() or None
        phone = (request.phone or "").strip() or None

        if campaign.require_name and not name:
            raise PlayValidationError("Name is required")

        if campaign.require_phone and not phone:
            raise PlayValidationError("Phone is required")

        participant = FormParticipant(email=normalize_email(email), name=name, phone=phone)

        prior = await self.find_prior_outcome(campaign.id, participant.identity_key)
        if prior:
            return Eligibility(participant=participant, duplicate=prior)

        await self._check_play_limit(campaign, participant.customer_key)

        return Eligibility(participant=participant)

    async def _check_play_limit(self, campaign: Campaign, customer_key: Optional[str]) -> None:
        if not campaign.max_plays_per_customer or not customer_key:
            return

        played = await self.entry_repo.count_by_participant(campaign.id, customer_key)
        if played >= campaign.max_plays_per_customer:
            logger.info(f"客户参与次数已达上限: campaign={campaign.id}, customer={customer_key}, plays={played}")
            raise IneligibleError(MAX_PLAYS_REACHED)

    async def find_prior_outcome(self, campaign_id: str, identity_key: str) -> Optional[PriorOutcome]:
        """查找已有抽奖结果：先查缓存，再查记录表"""
        cache_key = f"{campaign_id}:{identity_key}"

        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached:
                return PriorOutcome(**cached)

        db_entry = await self.entry_repo.find_by_identity(campaign_id, identity_key)
        if not db_entry:
            return None

        outcome = self.entry_repo.to_model(db_entry).to_outcome()
        await self.remember_outcome(campaign_id, identity_key, outcome)
        return outcome

    async def remember_outcome(self, campaign_id: str, identity_key: str, outcome: PriorOutcome) -> None:
        """缓存抽奖结果"""
        if self.cache:
            await self.cache.set(
                f"{campaign_id}:{identity_key}",
                outcome.model_dump(mode="json"),
                ttl=self.cache_ttl
            )
