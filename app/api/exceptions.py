"""
全局异常处理器
所有错误统一返回 {"success": false, "error": "..."}
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import BusinessException

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def business_exception_handler(request: Request, exc: BusinessException):
    """业务异常"""
    logger.info(f"业务异常 {request.url.path}: {exc.code.value} {exc.message}")
    return error_response(exc.message, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求参数校验失败"""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return error_response(message, 400)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """数据库异常"""
    logger.error(f"数据库异常 {request.url.path}: {exc}")
    return error_response("Failed to record lottery play", 500)


async def general_exception_handler(request: Request, exc: Exception):
    """未捕获异常"""
    logger.exception(f"未处理的异常 {request.url.path}: {exc}")
    return error_response("Internal server error", 500)
