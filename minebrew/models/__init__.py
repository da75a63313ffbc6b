"""
Minebrew 数据模型包

包含配置模型和 API 模型定义。
"""

from minebrew.models.config import (
    Command,
    MinebrewConfig,
    DEFAULT_TARGET,
    MANIFEST_FILENAME,
    MODS_DIRNAME,
    validate_target,
    resolve_options,
    load_config_file,
)
from minebrew.models.api import (
    ProjectType,
    Support,
    VersionType,
    DependencyType,
    SearchResult,
    SearchResponse,
    Hashes,
    ModFile,
    Dependency,
    Version,
)

__all__ = [
    # 配置模型
    "Command",
    "MinebrewConfig",
    "DEFAULT_TARGET",
    "MANIFEST_FILENAME",
    "MODS_DIRNAME",
    "validate_target",
    "resolve_options",
    "load_config_file",
    # API 模型
    "ProjectType",
    "Support",
    "VersionType",
    "DependencyType",
    "SearchResult",
    "SearchResponse",
    "Hashes",
    "ModFile",
    "Dependency",
    "Version",
]
