"""
API 数据模型

定义搜索结果、版本、文件等数据类，以及判断"是否需要更新"的内容标识规则。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ProjectType(Enum):
    """项目类型"""

    MOD = "mod"
    MODPACK = "modpack"
    RESOURCE_PACK = "resourcepack"
    SHADER = "shader"
    DATAPACK = "datapack"
    PLUGIN = "plugin"


class Support(Enum):
    """客户端/服务端支持情况"""

    REQUIRED = "required"
    OPTIONAL = "optional"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class VersionType(Enum):
    """发布类型"""

    RELEASE = "release"
    BETA = "beta"
    ALPHA = "alpha"

    @property
    def is_stable_enough(self) -> bool:
        """正式版和测试版可以安装，内测版不行"""
        return self is not VersionType.ALPHA


class DependencyType(Enum):
    """依赖类型"""

    REQUIRED = "required"
    OPTIONAL = "optional"
    INCOMPATIBLE = "incompatible"
    EMBEDDED = "embedded"


def _enum_or(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass
class SearchResult:
    """
    一次搜索返回的候选项目。

    project_id 永远不变，slug 由作者设定、可能变化。
    """

    project_id: str
    slug: str
    title: str
    description: str = ""
    client_side: Support = Support.UNKNOWN
    server_side: Support = Support.UNKNOWN
    project_type: ProjectType = ProjectType.MOD
    versions: List[str] = field(default_factory=list)

    @classmethod
    def from_modrinth(cls, data: dict) -> "SearchResult":
        """将 Modrinth 搜索结果转换为 SearchResult 对象。"""
        return cls(
            project_id=data["project_id"],
            slug=data["slug"],
            title=data["title"],
            description=data.get("description", ""),
            client_side=_enum_or(Support, data.get("client_side"), Support.UNKNOWN),
            server_side=_enum_or(Support, data.get("server_side"), Support.UNKNOWN),
            project_type=_enum_or(
                ProjectType, data.get("project_type"), ProjectType.MOD
            ),
            versions=list(data.get("versions", [])),
        )

    def __str__(self) -> str:
        return self.title


@dataclass
class SearchResponse:
    """
    单个查询的搜索响应。

    hits 归本对象独占：过滤会原地修改，选取会移除并返回其中一个元素。
    """

    query: str
    hits: List[SearchResult] = field(default_factory=list)
    offset: int = 0
    limit: int = 0
    total_hits: int = 0

    @classmethod
    def from_modrinth(cls, query: str, data: dict) -> "SearchResponse":
        return cls(
            query=query,
            hits=[SearchResult.from_modrinth(hit) for hit in data.get("hits", [])],
            offset=data.get("offset", 0),
            limit=data.get("limit", 0),
            total_hits=data.get("total_hits", 0),
        )

    def retain(self, predicate: Callable[[SearchResult], bool]) -> None:
        """原地保留满足条件的结果，保持原有顺序"""
        self.hits = [hit for hit in self.hits if predicate(hit)]

    def take(self, index: int) -> SearchResult:
        """移除并返回指定位置（从 0 开始）的结果"""
        return self.hits.pop(index)

    def __len__(self) -> int:
        return len(self.hits)


@dataclass
class Hashes:
    """文件哈希"""

    sha1: Optional[str] = None
    sha512: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"sha1": self.sha1, "sha512": self.sha512}


@dataclass
class ModFile:
    """版本中的一个可下载文件"""

    url: str
    filename: str
    primary: bool = False
    size: int = 0
    hashes: Hashes = field(default_factory=Hashes)

    @classmethod
    def from_dict(cls, data: dict) -> "ModFile":
        hashes = data.get("hashes") or {}
        return cls(
            url=data["url"],
            filename=data["filename"],
            primary=bool(data.get("primary", False)),
            size=int(data.get("size", 0)),
            hashes=Hashes(sha1=hashes.get("sha1"), sha512=hashes.get("sha512")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hashes": self.hashes.to_dict(),
            "url": self.url,
            "filename": self.filename,
            "primary": self.primary,
            "size": self.size,
        }

    @property
    def sha1(self) -> Optional[str]:
        return self.hashes.sha1

    @property
    def sha512(self) -> Optional[str]:
        return self.hashes.sha512

    def __str__(self) -> str:
        return self.filename


@dataclass
class Dependency:
    """依赖信息"""

    dependency_type: DependencyType
    project_id: Optional[str] = None
    version_id: Optional[str] = None
    file_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Dependency":
        return cls(
            dependency_type=_enum_or(
                DependencyType,
                data.get("dependency_type"),
                DependencyType.REQUIRED,
            ),
            project_id=data.get("project_id"),
            version_id=data.get("version_id"),
            file_name=data.get("file_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version_id": self.version_id,
            "project_id": self.project_id,
            "file_name": self.file_name,
            "dependency_type": self.dependency_type.value,
        }


@dataclass
class Version:
    """
    项目的某个发布版本。

    "是否为更新"只看内容标识（主文件哈希，其次是内部版本 ID），
    不看显示名称，名称既不唯一也不稳定。
    """

    project_id: str
    name: str
    version_type: VersionType
    game_versions: List[str]
    files: List[ModFile]
    id: str = ""
    version_number: str = ""
    loaders: List[str] = field(default_factory=list)
    featured: bool = False
    dependencies: Optional[List[Dependency]] = None
    date_published: Optional[str] = None

    def __post_init__(self):
        if not self.files:
            raise ValueError(f"版本 {self.name!r} ({self.project_id}) 没有任何文件")

    @classmethod
    def from_dict(cls, data: dict) -> "Version":
        """
        从字典构建 Version，Modrinth 响应与本地清单共用同一结构。

        未知字段会被忽略。
        """
        dependencies = data.get("dependencies")
        return cls(
            id=data.get("id", ""),
            project_id=data["project_id"],
            name=data.get("name", ""),
            version_number=data.get("version_number", ""),
            version_type=VersionType(data["version_type"]),
            game_versions=list(data.get("game_versions", [])),
            loaders=list(data.get("loaders", [])),
            featured=bool(data.get("featured", False)),
            dependencies=(
                None
                if dependencies is None
                else [Dependency.from_dict(dep) for dep in dependencies]
            ),
            files=[ModFile.from_dict(f) for f in data.get("files", [])],
            date_published=data.get("date_published"),
        )

    # Modrinth 的版本对象和清单格式一致
    from_modrinth = from_dict

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version_number": self.version_number,
            "project_id": self.project_id,
            "version_type": self.version_type.value,
            "game_versions": list(self.game_versions),
            "loaders": list(self.loaders),
            "featured": self.featured,
            "dependencies": (
                None
                if self.dependencies is None
                else [dep.to_dict() for dep in self.dependencies]
            ),
            "files": [f.to_dict() for f in self.files],
            "date_published": self.date_published,
        }

    def file(self) -> ModFile:
        """获取主文件，没有标记主文件时返回第一个文件"""
        for f in self.files:
            if f.primary:
                return f
        return self.files[0]

    def has_primary_file(self) -> bool:
        return any(f.primary for f in self.files)

    def same_content(self, other: Optional["Version"]) -> bool:
        """判断两个版本是否为同一内容"""
        if other is None:
            return False
        mine, theirs = self.file(), other.file()
        # 两边都有的最强哈希优先比较
        for algo in ("sha512", "sha1"):
            a, b = getattr(mine, algo), getattr(theirs, algo)
            if a and b:
                return a == b
        if self.id and other.id:
            return self.id == other.id
        return False

    def __str__(self) -> str:
        return self.file().filename
