"""
主协调器

按子命令编排完整流程：计算目标版本集合、与本地数据库比对、确认、下载、记录并保存。
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from minebrew.models import Command, MinebrewConfig, Version
from minebrew.database import LocalDatabase
from minebrew.services import ModrinthClient, ModResolver, ModServiceClient, Prompter
from minebrew.download import DownloadManager, FileVerifier
from minebrew.exceptions import ConfigError, DownloadError, FileSystemError

PACKAGE_EXTENSION = ".jar"


@dataclass
class SyncReport:
    """一次运行的结果"""

    installed: List[Version] = field(default_factory=list)
    up_to_date: List[Version] = field(default_factory=list)
    failed: List[Tuple[Version, DownloadError]] = field(default_factory=list)
    scanned: List[Version] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    cancelled: bool = False


class MinebrewOrchestrator:
    """Minebrew 主协调器"""

    def __init__(
        self,
        config: MinebrewConfig,
        client: Optional[ModServiceClient] = None,
        downloader: Optional[DownloadManager] = None,
        prompter: Optional[Prompter] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self._owns_downloader = downloader is None
        self.client = client or ModrinthClient(timeout=config.timeout)
        self.prompter = prompter or Prompter()
        self.resolver = ModResolver(self.client, self.prompter, loader=config.loader)
        self.download_manager = downloader or DownloadManager(
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            timeout=config.timeout,
        )
        self.report = SyncReport()

    async def run(self) -> SyncReport:
        """运行当前子命令"""
        try:
            db = LocalDatabase.load(self.config.manifest_path, self.config.mods_dir)

            if self.config.command is Command.INSTALL:
                await self.install(db)
            elif self.config.command is Command.UPDATE:
                await self.update(db)
            elif self.config.command is Command.SCAN:
                await self.scan(db)
            else:
                raise ConfigError(f"未知的子命令: {self.config.command}")

            return self.report
        finally:
            if self._owns_client:
                await self.client.close()
            if self._owns_downloader:
                await self.download_manager.close()

    async def install(self, db: LocalDatabase):
        """搜索并安装用户指定的模组"""
        candidates = await self.resolver.resolve(
            self.config.queries, self.config.target
        )
        await self._sync(db, candidates)

    async def update(self, db: LocalDatabase):
        """为数据库中的每个项目重新查找最新可用版本"""
        if len(db) == 0:
            logger.info("本地数据库中没有已安装的模组")
            return

        logger.info(f"正在检查 {len(db)} 个模组的更新...")
        resolved = await self.resolver.resolve_versions(
            db.project_ids(), self.config.target
        )
        await self._sync(db, list(resolved.values()))

    def retain_outdated(
        self, db: LocalDatabase, candidates: Sequence[Version]
    ) -> List[Version]:
        """去掉与已安装版本内容相同的候选项"""
        pending = []
        for version in candidates:
            if version.same_content(db.get(version.project_id)):
                logger.info(f"'{version}' 已是最新版本，跳过")
                self.report.up_to_date.append(version)
            else:
                pending.append(version)
        return pending

    async def _sync(self, db: LocalDatabase, candidates: Sequence[Version]):
        pending = self.retain_outdated(db, candidates)
        if not pending:
            logger.success("所有模组均已是最新版本")
            return

        if not self.prompter.confirm(pending):
            self.report.cancelled = True
            logger.info("已取消安装，未做任何修改")
            return

        mods_dir = self.config.mods_dir
        if not mods_dir.exists():
            logger.info(f"未找到 mods 目录，正在创建: {mods_dir}")
            try:
                mods_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileSystemError(
                    f"无法创建 mods 目录: {e}", context={"path": str(mods_dir)}
                ) from e

        # 每个下载成功后立即记录，部分失败时也能保留已成功的结果
        succeeded, failed = await self.download_manager.download_all(
            pending, mods_dir, on_success=db.replace_or_insert
        )
        self.report.installed.extend(succeeded)
        self.report.failed.extend(failed)

        db.save(self.config.manifest_path)

        if failed:
            names = ", ".join(str(version) for version, _ in failed)
            raise DownloadError(
                f"{len(failed)} 个文件下载失败: {names}",
                context={"failed": [str(version) for version, _ in failed]},
            )
        logger.success(f"完成! 已安装 {len(succeeded)} 个模组")

    async def _lookup(self, file_hash: Optional[str]) -> Optional[Version]:
        # 文件在扫描期间被删除时没有哈希
        if file_hash is None:
            return None
        return await self.client.get_version_by_hash(file_hash)

    async def scan(self, db: LocalDatabase):
        """
        扫描 mods 目录，通过文件哈希识别已有的模组并写入数据库

        无法识别的文件直接跳过，不删除也不下载任何文件。
        """
        mods_dir = self.config.mods_dir
        if not mods_dir.is_dir():
            logger.warning(f"mods 目录不存在: {mods_dir}")
            return

        try:
            paths = sorted(
                p
                for p in mods_dir.iterdir()
                if p.is_file() and p.suffix.lower() == PACKAGE_EXTENSION
            )
        except OSError as e:
            raise FileSystemError(
                f"无法读取 mods 目录: {e}", context={"path": str(mods_dir)}
            ) from e

        logger.info(f"正在识别 {len(paths)} 个文件...")
        try:
            hashes = await asyncio.gather(
                *(FileVerifier.calc_sha1(str(p)) for p in paths)
            )
        except OSError as e:
            raise FileSystemError(
                f"无法读取模组文件: {e}", context={"path": str(mods_dir)}
            ) from e
        versions = await asyncio.gather(*(self._lookup(h) for h in hashes))

        for path, version in zip(paths, versions):
            if version is None:
                logger.debug(f"无法识别 '{path.name}'，跳过")
                self.report.unmatched.append(path.name)
                continue
            db.insert(version)
            self.report.scanned.append(version)
            logger.info(f"已识别 '{path.name}' (ID: {version.project_id})")

        db.save(self.config.manifest_path)
        logger.success(
            f"扫描完成: 识别 {len(self.report.scanned)} 个, "
            f"未识别 {len(self.report.unmatched)} 个"
        )
