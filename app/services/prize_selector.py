"""
奖品抽取算法

按权重累加的区间抽奖：生成 [0, 100) 的随机数 r，按稳定顺序累加奖品权重，
返回第一个累计权重 >= r 的奖品。权重总和不要求等于100：
- 总和不足100时，落在区间外的 r 回退到"未中奖"奖品（没有则取最后一个奖品）；
- 总和超过100时，排在累计权重越过100之后的奖品永远抽不到，这是既有行为，保持不变。
"""

import random
from typing import Iterable, List, Optional

from app.core.exceptions import PrizeExhaustedError
from app.models.campaign import Prize, PrizeKind


class PrizeSelector:
    """奖品抽取器"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def available_prizes(self, prizes: List[Prize], exclude_ids: Iterable[str] = ()) -> List[Prize]:
        """过滤掉库存不足和已排除的奖品，保持原有顺序"""
        excluded = set(exclude_ids)
        return [prize for prize in prizes if prize.in_stock and prize.id not in excluded]

    def draw(self) -> float:
        return self.rng.random() * 100

    def select(
        self,
        prizes: List[Prize],
        exclude_ids: Iterable[str] = (),
        draw: Optional[float] = None
    ) -> Prize:
        """抽取一个奖品，没有可抽取奖品时抛出 PrizeExhaustedError"""
        available = self.available_prizes(prizes, exclude_ids)
        if not available:
            raise PrizeExhaustedError()

        r = self.draw() if draw is None else draw

        cumulative = 0.0
        for prize in available:
            cumulative += prize.chance_weight
            if cumulative >= r:
                return prize

        fallback = next((prize for prize in available if prize.kind == PrizeKind.NONE), None)
        return fallback or available[-1]
