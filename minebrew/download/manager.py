"""
下载管理器

并发下载一批版本的规范文件。每个文件先写入 .part，校验通过后再改名到位；
失败按指数退避重试，单个文件失败不会影响同批其他文件。
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import aiohttp
import aiofiles
from loguru import logger

from minebrew.models import ModFile, Version
from minebrew.download.verifier import FileVerifier
from minebrew.exceptions import (
    DownloadError,
    DownloadNetworkError,
    DownloadChecksumError,
)

CHUNK_SIZE = 8192
PART_SUFFIX = ".part"
# 进度回调的最小步长（百分比）
PROGRESS_STEP = 5

RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError, DownloadError)

ProgressCallback = Callable[[str, float], None]
FailedDownload = Tuple[Version, DownloadError]


@dataclass
class DownloadStats:
    """一次运行内的下载计数"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    bytes_downloaded: int = 0


class DownloadManager:
    """
    模组文件下载器

    Args:
        max_retries: 首次尝试之外的最大重试次数
        retry_delay: 第一次重试前的等待秒数，之后每次翻倍
        session: 外部传入的 aiohttp session，不会被关闭
        progress_callback: 以 (文件名, 百分比) 调用
        timeout: 单个请求的总超时秒数，None 表示不限
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
        progress_callback: Optional[ProgressCallback] = None,
        timeout: Optional[float] = None,
    ):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.stats = DownloadStats()
        self._session = session
        self._owns_session = session is None
        self._on_progress = progress_callback
        self._timeout = timeout
        self._failed: List[str] = []

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            self._owns_session = True
        return self._session

    async def _already_present(self, path: str, mod_file: ModFile) -> bool:
        # 没有哈希时无法确认已有文件就是这个版本
        if not (mod_file.sha1 or mod_file.sha512):
            return False
        return await FileVerifier.is_valid(path, mod_file)

    async def _fetch(self, mod_file: ModFile, part_path: str) -> int:
        """把文件流式写入 part_path，返回写入的字节数"""
        async with self.session.get(mod_file.url) as response:
            if response.status != 200:
                raise DownloadNetworkError(
                    f"HTTP {response.status}",
                    context={"url": mod_file.url, "status": response.status},
                )

            expected = int(response.headers.get("Content-Length", mod_file.size or 0))
            written = 0
            reported = 0.0
            async with aiofiles.open(part_path, "wb") as out:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    await out.write(chunk)
                    written += len(chunk)
                    self.stats.bytes_downloaded += len(chunk)

                    if self._on_progress and expected > 0:
                        percent = written * 100 / expected
                        if percent - reported >= PROGRESS_STEP:
                            self._on_progress(mod_file.filename, percent)
                            reported = percent
            return written

    @staticmethod
    def _discard(part_path: str):
        try:
            os.remove(part_path)
        except FileNotFoundError:
            pass

    async def download(self, version: Version, download_dir: Union[str, Path]) -> Path:
        """
        下载一个版本的规范文件到 download_dir

        目标位置已有校验通过的同名文件时直接返回。

        Raises:
            DownloadChecksumError: 重试用尽后内容仍与记录的哈希不符
            DownloadNetworkError: 重试用尽后仍无法取得文件
        """
        mod_file = version.file()
        target = os.path.join(download_dir, mod_file.filename)
        part_path = target + PART_SUFFIX

        if await self._already_present(target, mod_file):
            self.stats.skipped += 1
            logger.info(f"'{mod_file.filename}' 已存在且校验通过，跳过下载")
            return Path(target)

        logger.debug(f"下载 {mod_file.filename} <- {mod_file.url}")
        attempt = 0
        while True:
            try:
                size = await self._fetch(mod_file, part_path)
                if not await FileVerifier.verify(part_path, mod_file):
                    raise DownloadChecksumError(
                        f"哈希校验失败: {mod_file.filename}",
                        context={"file": mod_file.filename, "url": mod_file.url},
                    )
                os.replace(part_path, target)
            except RETRYABLE_ERRORS as e:
                self._discard(part_path)
                if attempt >= self.max_retries:
                    return self._give_up(mod_file.filename, e)
                delay = self.retry_delay * (2**attempt)
                attempt += 1
                logger.warning(
                    f"下载 '{mod_file.filename}' 失败: {e}，{delay:.1f}s 后第 {attempt} 次重试"
                )
                await asyncio.sleep(delay)
                continue

            self.stats.completed += 1
            logger.debug(f"'{mod_file.filename}' 已写入 ({size} 字节)")
            return Path(target)

    def _give_up(self, filename: str, error: Exception):
        self.stats.failed += 1
        self._failed.append(filename)
        logger.error(f"下载 '{filename}' 失败: {error}")
        if isinstance(error, DownloadError):
            raise error
        raise DownloadNetworkError(
            f"下载失败: {filename}", context={"error": str(error) or type(error).__name__}
        ) from error

    async def _attempt(
        self, version: Version, download_dir: Union[str, Path]
    ) -> Tuple[Version, Optional[DownloadError]]:
        try:
            await self.download(version, download_dir)
        except DownloadError as e:
            return version, e
        return version, None

    async def download_all(
        self,
        versions: Sequence[Version],
        download_dir: Union[str, Path],
        on_success: Optional[Callable[[Version], None]] = None,
    ) -> Tuple[List[Version], List[FailedDownload]]:
        """
        并发下载全部版本

        on_success 在事件循环所在线程中按完成顺序逐个调用，
        调用方可以在其中直接修改共享状态。

        Returns:
            (成功的版本, [(失败的版本, 错误)])
        """
        total = len(versions)
        self.stats.total += total
        succeeded: List[Version] = []
        failed: List[FailedDownload] = []

        pending = [
            asyncio.ensure_future(self._attempt(version, download_dir))
            for version in versions
        ]
        for done, next_finished in enumerate(asyncio.as_completed(pending), start=1):
            version, error = await next_finished
            if error is None and on_success is not None:
                error = self._record(version, on_success)
            if error is not None:
                failed.append((version, error))
            else:
                succeeded.append(version)
            logger.info(f"Downloaded\t[{done}/{total}]")

        return succeeded, failed

    @staticmethod
    def _record(
        version: Version, on_success: Callable[[Version], None]
    ) -> Optional[DownloadError]:
        # 回调出错只算这一个文件失败，同批其他文件继续
        try:
            on_success(version)
        except Exception as e:
            logger.error(f"记录 '{version}' 失败: {e}")
            error = DownloadError(
                f"已下载但无法记录: {version}", context={"error": str(e)}
            )
            error.__cause__ = e
            return error
        return None

    def get_stats(self) -> DownloadStats:
        return self.stats

    def get_failed(self) -> List[str]:
        """重试用尽后仍失败的文件名"""
        return list(self._failed)

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
