from abc import ABC, abstractmethod
from typing import List, Optional

from minebrew.models import SearchResponse, Version


class ModServiceClient(ABC):
    """模组托管服务的抽象接口"""

    @abstractmethod
    async def search(
        self, query: str, target_version: str, loader: Optional[str] = None
    ) -> SearchResponse:
        """
        按文本搜索适用于目标版本的项目。
        """
        pass

    @abstractmethod
    async def list_versions(
        self, project_id: str, target_version: str, loader: Optional[str] = None
    ) -> List[Version]:
        """
        列出项目适用于目标版本的全部版本，按发布时间从新到旧。
        """
        pass

    @abstractmethod
    async def get_version_by_hash(
        self, file_hash: str, algorithm: str = "sha1"
    ) -> Optional[Version]:
        """
        通过文件哈希查找版本，找不到时返回 None。
        """
        pass

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
