"""
响应格式化器模块

BaseClient 先把传输层响应（或流水线异常）整理为标准响应信封
``{header, code, content, raw, error?}``，再交给格式化器做最终处理。
子类可以重写 format 方法，把信封转换成业务需要的结构。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class BaseResponseFormatter(ABC):
    """响应格式化器基类"""

    @abstractmethod
    def format(
        self,
        formated_response: dict,
        **kwargs,
    ) -> dict[str, Any]:
        """
        格式化响应信封

        参数:
           formated_response: 标准响应信封
           **kwargs: 上下文信息（command、request_id、request、response_or_exception、base_client_instance）

        返回:
            格式化后的字典结构
        """


class DefaultResponseFormatter(BaseResponseFormatter):
    """默认响应格式化器，原样返回标准响应信封"""

    def format(
        self,
        formated_response: dict,
        **kwargs,
    ) -> dict[str, Any]:
        request_id = kwargs.get("request_id", "")
        logger.debug(f"[{request_id}] Returning response envelope with code {formated_response.get('code')}")
        return formated_response
