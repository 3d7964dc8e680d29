"""
数据模型包初始化文件
"""

from .campaign import Campaign, CampaignMode, CampaignValidity, Prize, PrizeKind
from .participant import (
    FormParticipant,
    LedgerCustomer,
    LedgerOrder,
    OrderParticipant,
    Participant
)
from .play import (
    Eligibility,
    EntryStatus,
    PlayEntry,
    PlayRequest,
    PlayResponse,
    PriorOutcome,
    RewardConstraints,
    RewardIssueResult,
    RewardSemantics,
    VerifyResponse
)

__all__ = [
    "Campaign",
    "CampaignMode",
    "CampaignValidity",
    "Prize",
    "PrizeKind",
    "FormParticipant",
    "LedgerCustomer",
    "LedgerOrder",
    "OrderParticipant",
    "Participant",
    "Eligibility",
    "EntryStatus",
    "PlayEntry",
    "PlayRequest",
    "PlayResponse",
    "PriorOutcome",
    "RewardConstraints",
    "RewardIssueResult",
    "RewardSemantics",
    "VerifyResponse"
]
