"""
Modrinth API 客户端

每种请求对应一个构建器，只暴露该请求支持的参数；客户端负责发送请求并转换响应。
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from minebrew.models import SearchResponse, Version
from minebrew.services.base import ModServiceClient
from minebrew.exceptions import (
    APIError,
    APINotFoundError,
    APIRateLimitError,
    APIServerError,
)


MODRINTH_BASE_URL = "https://api.modrinth.com/v2"

SEARCH_INDEXES = ("relevance", "downloads", "follows", "newest", "updated")
HASH_ALGORITHMS = ("sha1", "sha512")


def _json_list(values: List[str]) -> str:
    """Modrinth 的列表型查询参数是 JSON 数组，例如 ["1.19"]"""
    return json.dumps(values)


class SearchRequest:
    """搜索请求构建器"""

    def __init__(self, query: str):
        if not query or not query.strip():
            raise ValueError("搜索关键字不能为空")
        self.query = query
        self._versions: List[str] = []
        self._categories: List[str] = []
        self._index = "relevance"
        self._limit = 5
        self._project_type: Optional[str] = "mod"

    def version(self, version: str) -> "SearchRequest":
        """追加一个游戏版本过滤条件，可多次调用"""
        self._versions.append(version)
        return self

    def category(self, category: str) -> "SearchRequest":
        self._categories.append(category)
        return self

    def index(self, index: str) -> "SearchRequest":
        """设置排序方式，默认 relevance"""
        if index not in SEARCH_INDEXES:
            raise ValueError(f"不支持的排序方式: {index}")
        self._index = index
        return self

    def limit(self, limit: int) -> "SearchRequest":
        if not 0 < limit <= 100:
            raise ValueError("limit 必须在 1 到 100 之间")
        self._limit = limit
        return self

    def project_type(self, project_type: Optional[str]) -> "SearchRequest":
        self._project_type = project_type
        return self

    def facets(self) -> List[List[str]]:
        # 外层数组之间是 AND，内层数组之间是 OR
        facets = [[f"categories:{c}"] for c in self._categories]
        if self._versions:
            facets.append([f"versions:{v}" for v in self._versions])
        if self._project_type:
            facets.append([f"project_type:{self._project_type}"])
        return facets

    def endpoint(self) -> str:
        return f"{MODRINTH_BASE_URL}/search"

    def params(self) -> Dict[str, str]:
        params = {
            "query": self.query,
            "limit": str(self._limit),
            "index": self._index,
        }
        facets = self.facets()
        if facets:
            params["facets"] = json.dumps(facets)
        return params


class ListVersionsRequest:
    """项目版本列表请求构建器"""

    def __init__(self, project_id: str):
        if not project_id:
            raise ValueError("project_id 不能为空")
        self.project_id = project_id
        self._game_versions: List[str] = []
        self._loaders: List[str] = []

    def game_version(self, version: str) -> "ListVersionsRequest":
        self._game_versions.append(version)
        return self

    def loader(self, loader: str) -> "ListVersionsRequest":
        self._loaders.append(loader)
        return self

    def endpoint(self) -> str:
        return f"{MODRINTH_BASE_URL}/project/{self.project_id}/version"

    def params(self) -> Dict[str, str]:
        params = {}
        if self._game_versions:
            params["game_versions"] = _json_list(self._game_versions)
        if self._loaders:
            params["loaders"] = _json_list(self._loaders)
        return params


class HashLookupRequest:
    """按文件哈希查询版本的请求构建器"""

    def __init__(self, file_hash: str):
        if not file_hash:
            raise ValueError("哈希值不能为空")
        self.file_hash = file_hash
        self._algorithm = "sha1"

    def algorithm(self, algorithm: str) -> "HashLookupRequest":
        if algorithm not in HASH_ALGORITHMS:
            raise ValueError(f"不支持的哈希算法: {algorithm}")
        self._algorithm = algorithm
        return self

    def endpoint(self) -> str:
        return f"{MODRINTH_BASE_URL}/version_file/{self.file_hash}"

    def params(self) -> Dict[str, str]:
        return {"algorithm": self._algorithm}


class ModrinthClient(ModServiceClient):
    """Modrinth API 客户端"""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
    ):
        self._session = session
        self._owned_session = session is None
        self._timeout = timeout

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            # 默认不设置超时，未响应的请求会一直等待
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owned_session = True
        return self._session

    async def _request(self, request) -> Optional[Any]:
        """
        发送 API 请求

        Returns:
            解析后的 JSON，资源不存在 (404) 时返回 None
        """
        url = request.endpoint()
        params = request.params()
        logger.debug(f"[API] GET {url} {params}")
        try:
            async with self.session.get(url, params=params) as response:
                if response.status == 200:
                    return await response.json()
                elif response.status == 404:
                    return None
                elif response.status == 429:
                    raise APIRateLimitError(
                        "请求过于频繁，已被 Modrinth 限流", response=response
                    )
                elif response.status >= 500:
                    raise APIServerError(
                        f"Modrinth 服务器错误 (状态码: {response.status})",
                        response=response,
                    )
                else:
                    raise APIError(
                        f"API 请求失败 (状态码: {response.status})",
                        response=response,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise APIError(
                f"无法连接到 Modrinth: {str(e) or type(e).__name__}",
                context={"url": url},
            ) from e

    async def search(
        self, query: str, target_version: str, loader: Optional[str] = None
    ) -> SearchResponse:
        request = SearchRequest(query).version(target_version)
        if loader:
            request.category(loader)
        data = await self._request(request)
        if data is None:
            raise APINotFoundError("搜索接口不存在", context={"query": query})
        try:
            return SearchResponse.from_modrinth(query, data)
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(
                f"无法解析搜索结果: {e}", context={"query": query}
            ) from e

    async def list_versions(
        self, project_id: str, target_version: str, loader: Optional[str] = None
    ) -> List[Version]:
        request = ListVersionsRequest(project_id).game_version(target_version)
        if loader:
            request.loader(loader)
        data = await self._request(request)
        if data is None:
            return []
        try:
            return [Version.from_modrinth(v) for v in data]
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(
                f"无法解析版本列表: {e}", context={"project_id": project_id}
            ) from e

    async def get_version_by_hash(
        self, file_hash: str, algorithm: str = "sha1"
    ) -> Optional[Version]:
        request = HashLookupRequest(file_hash).algorithm(algorithm)
        data = await self._request(request)
        if data is None:
            return None
        try:
            return Version.from_modrinth(data)
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(
                f"无法解析版本信息: {e}", context={"hash": file_hash}
            ) from e

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()
