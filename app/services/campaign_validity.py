"""
活动有效性检查
"""

from datetime import datetime
from typing import Optional

from app.models.campaign import Campaign, CampaignValidity


def check_campaign_validity(campaign: Campaign, now: Optional[datetime] = None) -> CampaignValidity:
    """检查活动当前是否可参与：发布状态 → 时间窗口是否倒置 → 开始时间 → 结束时间"""
    if now is None:
        now = datetime.now()

    if not campaign.is_active:
        return CampaignValidity(valid=False, reason="Campaign is not active")

    # 结束早于开始的窗口没有可参与的时刻
    if campaign.start_at and campaign.end_at and campaign.end_at < campaign.start_at:
        return CampaignValidity(valid=False, reason="Campaign has ended")

    if campaign.start_at and now < campaign.start_at:
        return CampaignValidity(valid=False, reason="Campaign has not started yet")

    if campaign.end_at and now > campaign.end_at:
        return CampaignValidity(valid=False, reason="Campaign has ended")

    return CampaignValidity(valid=True)
