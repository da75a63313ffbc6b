"""
本地模组数据库

以 project_id 为键记录已安装的版本，持久化为 minebrew.json 清单文件。
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from loguru import logger

from minebrew.models import Version
from minebrew.exceptions import DatabaseIOError, ManifestCorruptError

PathLike = Union[str, Path]


class LocalDatabase:
    """
    已安装模组的数据库

    每次运行开始时加载一次，结束时保存一次。运行期间只由协调器独占使用。
    """

    def __init__(self, mods_dir: PathLike, entries: Optional[Dict[str, Version]] = None):
        self.mods_dir = Path(mods_dir)
        self._entries: Dict[str, Version] = dict(entries or {})

    @classmethod
    def load(cls, path: PathLike, mods_dir: PathLike) -> "LocalDatabase":
        """
        从清单文件加载数据库，文件不存在时返回空数据库

        Raises:
            ManifestCorruptError: 文件存在但无法解析
            DatabaseIOError: 文件无法读取
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("未找到本地数据库，将创建新的数据库")
            return cls(mods_dir)
        except OSError as e:
            raise DatabaseIOError(
                f"无法读取本地数据库: {e}", context={"path": str(path)}
            ) from e

        logger.debug(f"已找到本地数据库: {path}")
        try:
            raw = json.loads(text)
            if not isinstance(raw, dict):
                raise ValueError("清单顶层必须是对象")
            entries = {pid: Version.from_dict(data) for pid, data in raw.items()}
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ManifestCorruptError(
                f"本地数据库 {path} 已损坏: {e}", context={"path": str(path)}
            ) from e

        for pid, version in entries.items():
            if version.project_id != pid:
                raise ManifestCorruptError(
                    f"本地数据库 {path} 中的键 {pid} 与版本的 project_id "
                    f"{version.project_id} 不一致",
                    context={"path": str(path)},
                )
        return cls(mods_dir, entries)

    def get(self, project_id: str) -> Optional[Version]:
        return self._entries.get(project_id)

    def contains(self, project_id: str) -> bool:
        return project_id in self._entries

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def project_ids(self):
        return list(self._entries)

    def insert(self, version: Version) -> Optional[Version]:
        """直接写入记录，不触碰磁盘上的文件，返回被覆盖的旧记录"""
        old = self._entries.get(version.project_id)
        self._entries[version.project_id] = version
        return old

    def replace_or_insert(self, version: Version) -> Optional[Version]:
        """
        记录一个已下载成功的版本

        已有记录时删除旧文件再覆盖记录。删除旧文件只是尽力而为，
        文件不存在或无法删除都不会中断，后者记录一条警告；
        新旧文件同名时不删除，因为刚下载的文件已经写在那里。
        """
        old = self.insert(version)
        if old is not None:
            old_name = old.file().filename
            if old_name != version.file().filename:
                old_path = self.mods_dir / old_name
                try:
                    old_path.unlink()
                    logger.debug(f"已删除旧文件: {old_name}")
                except FileNotFoundError:
                    logger.debug(f"旧文件不存在，跳过删除: {old_name}")
                except OSError as e:
                    logger.warning(f"无法删除旧文件 {old_name}，请手动删除: {e}")
            logger.info(f"已更新 {old.file().filename} -> {version.file().filename}")
        return old

    def to_dict(self) -> Dict[str, dict]:
        return {pid: version.to_dict() for pid, version in self._entries.items()}

    def save(self, path: PathLike) -> None:
        """
        保存到清单文件

        先写临时文件再替换，避免中途崩溃留下截断的清单。

        Raises:
            DatabaseIOError: 写入失败
        """
        path = Path(path)
        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise DatabaseIOError(
                f"无法保存本地数据库: {e}", context={"path": str(path)}
            ) from e
        logger.debug(f"本地数据库已保存 ({len(self)} 个模组): {path}")
