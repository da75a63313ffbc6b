"""
模组解析服务

把查询词变成确定的版本：并发搜索、相似度过滤、消歧、并发查找可安装版本。
"""

import asyncio
from typing import Dict, Iterable, List, Optional

from loguru import logger

from minebrew.models import SearchResponse, SearchResult, Version
from minebrew.services.base import ModServiceClient
from minebrew.services.prompt import Prompter
from minebrew.services import similarity
from minebrew.exceptions import NotFoundError, VersionNotAcceptableError


class ModResolver:
    """模组解析器"""

    def __init__(
        self,
        client: ModServiceClient,
        prompter: Optional[Prompter] = None,
        loader: Optional[str] = None,
        leniency: int = similarity.LENIENCY,
    ):
        self.client = client
        self.prompter = prompter or Prompter()
        self.loader = loader
        self.leniency = leniency

    async def search(
        self, queries: Iterable[str], target_version: str
    ) -> List[SearchResponse]:
        """
        并发搜索所有查询

        任何一个搜索失败都会向上抛出，不返回部分结果。
        """
        queries = list(queries)
        logger.info(f"正在 Modrinth 上搜索 {len(queries)} 个适用于 {target_version} 的模组...")
        return list(
            await asyncio.gather(
                *(
                    self.client.search(query, target_version, self.loader)
                    for query in queries
                )
            )
        )

    def disambiguate(self, response: SearchResponse) -> SearchResult:
        """
        把一个搜索响应收敛到唯一的项目，会消耗该响应

        Raises:
            NotFoundError: 过滤后没有剩余结果
        """
        query = response.query
        response.retain(lambda hit: similarity.matches(query, hit, self.leniency))
        logger.debug(f"'{query}' 过滤后剩余 {len(response)} 个结果")

        if len(response) == 0:
            raise NotFoundError(query)
        if len(response) == 1:
            return response.take(0)
        return response.take(self.prompter.choose(query, response.hits))

    def select_version(
        self, project_id: str, target_version: str, versions: List[Version]
    ) -> Version:
        """
        选择第一个带主文件且为正式版或测试版的版本

        Raises:
            VersionNotAcceptableError: 没有符合条件的版本
        """
        for version in versions:
            if version.has_primary_file() and version.version_type.is_stable_enough:
                return version
        raise VersionNotAcceptableError(project_id, target_version)

    async def resolve_version(self, project_id: str, target_version: str) -> Version:
        versions = await self.client.list_versions(
            project_id, target_version, self.loader
        )
        version = self.select_version(project_id, target_version, versions)
        logger.debug(f"项目 {project_id} 选定版本 {version.name} ({version})")
        return version

    async def resolve_versions(
        self, project_ids: Iterable[str], target_version: str
    ) -> Dict[str, Version]:
        """并发解析一批项目，结果按 project_id 索引"""
        project_ids = list(dict.fromkeys(project_ids))
        versions = await asyncio.gather(
            *(self.resolve_version(pid, target_version) for pid in project_ids)
        )
        return dict(zip(project_ids, versions))

    async def resolve(
        self, queries: Iterable[str], target_version: str
    ) -> List[Version]:
        """
        完整解析流程：搜索 -> 过滤 -> 选择 -> 查找版本

        多个查询指向同一项目时只解析一次。
        """
        responses = await self.search(queries, target_version)

        # 提示必须依次进行
        project_ids: List[str] = []
        for response in responses:
            hit = self.disambiguate(response)
            logger.info(f"'{response.query}' -> {hit.title} (ID: {hit.project_id})")
            if hit.project_id not in project_ids:
                project_ids.append(hit.project_id)

        resolved = await self.resolve_versions(project_ids, target_version)
        return list(resolved.values())
