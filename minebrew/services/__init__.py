"""
Minebrew 服务层

包含业务逻辑服务：API 客户端、相似度匹配、交互提示、模组解析。
"""

from minebrew.services.base import ModServiceClient
from minebrew.services.api_client import (
    ModrinthClient,
    SearchRequest,
    ListVersionsRequest,
    HashLookupRequest,
)
from minebrew.services.prompt import Prompter
from minebrew.services.mod_resolver import ModResolver

__all__ = [
    "ModServiceClient",
    "ModrinthClient",
    "SearchRequest",
    "ListVersionsRequest",
    "HashLookupRequest",
    "Prompter",
    "ModResolver",
]
