"""
文件校验器

计算文件哈希，校验下载结果。
"""

import hashlib
import os
from typing import Optional

import aiofiles

from minebrew.models import ModFile

CHUNK_SIZE = 65536


class FileVerifier:
    """文件校验器"""

    @staticmethod
    async def calc_hash(file_path: str, algorithm: str = "sha1") -> Optional[str]:
        """
        计算文件的哈希值

        Args:
            file_path: 文件路径
            algorithm: sha1 或 sha512

        Returns:
            十六进制哈希值，文件不存在时返回 None
        """
        if not os.path.exists(file_path):
            return None

        digest = hashlib.new(algorithm)
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                data = await f.read(CHUNK_SIZE)
                if not data:
                    break
                digest.update(data)
        return digest.hexdigest()

    @staticmethod
    async def calc_sha1(file_path: str) -> Optional[str]:
        return await FileVerifier.calc_hash(file_path, "sha1")

    @staticmethod
    async def verify(file_path: str, mod_file: ModFile) -> bool:
        """
        按文件记录的哈希校验，优先 sha1，其次 sha512

        没有任何哈希可比较时视为通过。
        """
        for algorithm in ("sha1", "sha512"):
            expected = getattr(mod_file, algorithm)
            if expected:
                current = await FileVerifier.calc_hash(file_path, algorithm)
                return current is not None and current.lower() == expected.lower()
        return True

    @staticmethod
    async def is_valid(file_path: str, mod_file: ModFile) -> bool:
        """文件存在且校验通过"""
        if not os.path.exists(file_path):
            return False
        return await FileVerifier.verify(file_path, mod_file)
