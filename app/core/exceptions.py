"""
抽奖引擎错误分类

业务异常统一继承 BusinessException，携带错误码、面向玩家的错误信息以及HTTP状态码。
StockConflictError / DuplicatePlayError 是存储层并发保护触发的内部信号，
由抽奖编排服务消化，不会直接返回给调用方。
"""

from enum import Enum
from typing import Optional


class PlayErrorCode(str, Enum):
    """抽奖错误码枚举"""
    VALIDATION = "VALIDATION"  # 输入缺失或格式错误
    NOT_FOUND = "NOT_FOUND"  # 活动或订单不存在
    DUPLICATE = "DUPLICATE"  # 已参与过（不是失败）
    INELIGIBLE = "INELIGIBLE"  # 不满足状态/金额/次数规则
    EXHAUSTED = "EXHAUSTED"  # 没有可抽取的奖品
    EXTERNAL_SOFT_FAILURE = "EXTERNAL_SOFT_FAILURE"  # 外部发券服务失败，仅记录日志
    STORAGE_FAILURE = "STORAGE_FAILURE"  # 原子写入失败


class BusinessException(Exception):
    """业务异常基类"""

    code: PlayErrorCode = PlayErrorCode.VALIDATION
    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class PlayValidationError(BusinessException):
    code = PlayErrorCode.VALIDATION
    status_code = 400


class NotFoundError(BusinessException):
    code = PlayErrorCode.NOT_FOUND
    status_code = 404


class IneligibleError(BusinessException):
    code = PlayErrorCode.INELIGIBLE
    status_code = 400


class PrizeExhaustedError(BusinessException):
    code = PlayErrorCode.EXHAUSTED
    status_code = 400

    def __init__(self, message: str = "No prizes available"):
        super().__init__(message)


class StorageFailureError(BusinessException):
    code = PlayErrorCode.STORAGE_FAILURE
    status_code = 500

    def __init__(self, message: str = "Failed to record lottery play"):
        super().__init__(message)


class StockConflictError(Exception):
    """条件扣减库存失败：并发请求已抢走最后一份库存"""

    def __init__(self, prize_id: str):
        super().__init__(f"prize {prize_id} is out of stock")
        self.prize_id = prize_id


class DuplicatePlayError(Exception):
    """唯一键冲突：同一参与者的抽奖记录已被并发请求写入"""

    def __init__(self, campaign_id: str, identity_key: str):
        super().__init__(f"entry already exists for {campaign_id}/{identity_key}")
        self.campaign_id = campaign_id
        self.identity_key = identity_key
