"""
服务包初始化文件
"""

from .common_cache import SimpleCache, entry_cache
from .play_service import PlayService

__all__ = [
    "SimpleCache",
    "entry_cache",
    "PlayService"
]
