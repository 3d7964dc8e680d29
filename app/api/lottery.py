"""
抽奖接口
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_admin_capability, get_play_service
from app.clients.shopify_admin_client import ShopifyAdminClient
from app.models.play import PlayRequest
from app.services.play_service import PlayService

router = APIRouter(prefix="/api/lottery", tags=["抽奖"])


@router.post("/play")
async def play(
    request: PlayRequest,
    service: PlayService = Depends(get_play_service),
    capability: Optional[ShopifyAdminClient] = Depends(get_admin_capability)
):
    """执行抽奖：成功返回奖品ID，重复参与返回上次结果"""
    response = await service.play(request, capability)
    return JSONResponse(content=response.to_payload(), status_code=response.status_code)


@router.post("/verify")
async def verify(
    request: PlayRequest,
    service: PlayService = Depends(get_play_service)
):
    """抽奖资格预检"""
    response = await service.verify(request)
    return JSONResponse(content=response.to_payload(), status_code=response.status_code)
