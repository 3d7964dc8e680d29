"""
抽奖编排服务
串联活动有效性、资格校验、奖品抽取、兑奖码发放与原子落库，
并把各环节的业务异常统一转换为抽奖响应。
"""

import logging
import uuid
from typing import Callable, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.clients.shopify_admin_client import ShopifyAdminClient
from app.core.database import get_session_maker
from app.core.exceptions import (
    BusinessException,
    DuplicatePlayError,
    NotFoundError,
    PlayValidationError,
    IneligibleError,
    StockConflictError,
    StorageFailureError,
)
from app.models.campaign import Campaign, Prize
from app.models.participant import OrderParticipant, Participant
from app.models.play import (
    PlayEntry,
    PlayRequest,
    PlayResponse,
    PreviousEntry,
    RewardIssueResult,
    VerifiedOrder,
    VerifyResponse,
)
from app.repositories.campaign_repository import CampaignRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.play_entry_repository import PlayEntryRepository
from app.repositories.shop_credential_repository import ShopCredentialRepository
from app.services.campaign_validity import check_campaign_validity
from app.services.common_cache import SimpleCache, entry_cache
from app.services.eligibility_service import EligibilityVerifier
from app.services.play_recorder import PlayRecorder
from app.services.prize_selector import PrizeSelector
from app.services.reward_issuer import AdminCapabilityResolver, RewardIssuer

logger = logging.getLogger(__name__)


class PlayService:
    """抽奖业务服务"""

    def __init__(
        self,
        session_maker: Optional[async_sessionmaker] = None,
        selector: Optional[PrizeSelector] = None,
        cache: Optional[SimpleCache] = entry_cache,
        client_factory: Callable[..., ShopifyAdminClient] = ShopifyAdminClient
    ):
        self.session_maker = session_maker or get_session_maker()
        self.selector = selector or PrizeSelector()
        self.recorder = PlayRecorder(self.session_maker)
        self.cache = cache
        self.client_factory = client_factory

    async def play(
        self,
        request: PlayRequest,
        capability: Optional[ShopifyAdminClient] = None
    ) -> PlayResponse:
        """
        执行一次抽奖

        Args:
            request: 抽奖请求
            capability: 当前请求已认证的Admin客户端（storefront调用为None）
        """
        try:
            return await self._play(request, capability)
        except BusinessException as e:
            logger.info(f"抽奖未通过: campaign={request.campaign_id}, code={e.code.value}, error={e.message}")
            return PlayResponse.failure(e.message, e.code.value, e.status_code)

    async def verify(self, request: PlayRequest) -> VerifyResponse:
        """抽奖资格预检：只做活动和资格校验，不抽奖也不写入"""
        try:
            async with self.session_maker() as session:
                campaign = await self._load_campaign(session, request)
                verifier = self._verifier(session)
            eligibility = await verifier.verify(campaign, request)
        except BusinessException as e:
            return VerifyResponse(success=False, error=e.message, status_code=e.status_code)

        order = self._verified_order(eligibility.participant)

        if eligibility.is_duplicate:
            outcome = eligibility.duplicate
            return VerifyResponse(
                success=True,
                can_play=False,
                has_played=True,
                order=order,
                previous_entry=PreviousEntry(
                    is_winner=outcome.is_winner,
                    prize_name=outcome.prize_name,
                    reward_code=outcome.reward_code
                )
            )

        return VerifyResponse(success=True, can_play=True, has_played=False, order=order)

    async def _play(self, request: PlayRequest, capability: Optional[ShopifyAdminClient]) -> PlayResponse:
        # 1. 活动、资格和发券能力：读取完成后立即归还连接，外部发券期间不占用连接
        async with self.session_maker() as session:
            campaign = await self._load_campaign(session, request)
            verifier = self._verifier(session)
            eligibility = await verifier.verify(campaign, request)

            if eligibility.is_duplicate:
                return PlayResponse.duplicate(eligibility.duplicate)

            admin_client = capability
            if any(prize.is_winning for prize in campaign.prizes):
                admin_client = await AdminCapabilityResolver(
                    ShopCredentialRepository(session), self.client_factory
                ).resolve(campaign.shop, capability)

        participant = eligibility.participant
        issuer = RewardIssuer(AdminCapabilityResolver(client_factory=self.client_factory))

        # 2. 抽奖循环：库存被并发抢走时排除该奖品重新抽取
        excluded: Set[str] = set()
        while True:
            prize = self.selector.select(campaign.prizes, excluded)

            reward = None
            if prize.is_winning:
                reward = await issuer.issue(prize, campaign.shop, admin_client)

            entry = self._build_entry(campaign, participant, prize, reward)

            try:
                await self.recorder.record(entry, order_backed=participant.kind == "order")
            except StockConflictError:
                logger.info(f"奖品库存已被抢完，重新抽取: campaign={campaign.id}, prize={prize.id}")
                excluded.add(prize.id)
                if reward:
                    await issuer.revoke(reward, campaign.shop, admin_client)
                continue
            except DuplicatePlayError:
                if reward:
                    await issuer.revoke(reward, campaign.shop, admin_client)
                async with self.session_maker() as session:
                    outcome = await self._verifier(session).find_prior_outcome(
                        campaign.id, participant.identity_key
                    )
                if outcome is None:
                    raise StorageFailureError()
                return PlayResponse.duplicate(outcome)

            break

        await verifier.remember_outcome(campaign.id, participant.identity_key, entry.to_outcome())

        logger.info(
            f"抽奖完成: campaign={campaign.id}, participant={participant.identity_key}, "
            f"prize={prize.id}, winner={entry.is_winner}"
        )
        return PlayResponse.won(prize)

    async def _load_campaign(self, session: AsyncSession, request: PlayRequest) -> Campaign:
        """加载活动并校验归属店铺、参与方式和有效期"""
        campaign = await CampaignRepository(session).get_with_active_prizes(request.campaign_id)
        if not campaign or (request.shop and request.shop != campaign.shop):
            raise NotFoundError("Campaign not found")

        if request.mode and request.mode != campaign.mode:
            raise PlayValidationError("Lottery type does not match campaign")

        validity = check_campaign_validity(campaign)
        if not validity.valid:
            raise IneligibleError(validity.reason)

        return campaign

    def _verifier(self, session: AsyncSession) -> EligibilityVerifier:
        return EligibilityVerifier(
            PlayEntryRepository(session),
            OrderRepository(session),
            self.cache
        )

    def _build_entry(
        self,
        campaign: Campaign,
        participant: Participant,
        prize: Prize,
        reward: Optional[RewardIssueResult]
    ) -> PlayEntry:
        """组装抽奖记录，快照参与者和奖品信息"""
        entry = PlayEntry(
            id=str(uuid.uuid4()),
            campaign_id=campaign.id,
            shop=campaign.shop,
            participant_kind=participant.kind,
            identity_key=participant.identity_key,
            customer_key=participant.customer_key,
            email=participant.email,
            customer_name=participant.name,
            phone=participant.phone,
            prize_id=prize.id,
            prize_name=prize.name,
            prize_kind=prize.kind,
            prize_value=str(prize.discount_value) if prize.discount_value is not None else None,
            is_winner=prize.is_winning
        )

        if isinstance(participant, OrderParticipant):
            entry.order_id = participant.order_id
            entry.order_number = participant.order_number
            entry.order_amount = participant.amount
            entry.customer_id = participant.customer_id

        if reward:
            entry.reward_code = reward.code
            entry.external_reward_id = reward.external_id
            entry.reward_sync_error = reward.error
            entry.expires_at = reward.expires_at

        return entry

    def _verified_order(self, participant: Participant) -> Optional[VerifiedOrder]:
        if not isinstance(participant, OrderParticipant):
            return None
        return VerifiedOrder(
            id=participant.order_id,
            number=participant.order_number,
            amount=participant.amount,
            customer_name=participant.name,
            customer_id=participant.customer_id
        )
