"""
校验和分派

按算法标签把校验请求交给对应的校验实现，新算法通过 register 注册。
"""

import hashlib
import os
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

import aiofiles
import click
from loguru import logger

from distfetch.manifest.models import ChecksumStatus


class ChecksumAlgorithm(ABC):
    """校验算法接口"""

    tag: str = ""

    @abstractmethod
    async def verify(self, expected_hex: str, file_path: str) -> ChecksumStatus:
        """校验文件当前内容是否与预期值一致"""
        pass


class HashlibChecksum(ChecksumAlgorithm):
    """基于 hashlib 的整文件摘要校验"""

    def __init__(self, tag: str, hash_name: str, chunk_size: int = 65536):
        self.tag = tag
        self.hash_name = hash_name
        self.chunk_size = chunk_size

    async def calc_digest(self, file_path: str) -> Optional[str]:
        """
        计算文件摘要

        Returns:
            十六进制摘要，文件不存在或无法读取时返回 None
        """
        if not os.path.isfile(file_path):
            return None

        digest = hashlib.new(self.hash_name)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    data = await f.read(self.chunk_size)
                    if not data:
                        break
                    digest.update(data)
            return digest.hexdigest()
        except (IOError, OSError) as e:
            logger.warning(f"[校验] 读取 {file_path} 失败: {e}")
            return None

    async def verify(self, expected_hex: str, file_path: str) -> ChecksumStatus:
        current = await self.calc_digest(file_path)
        if current is None:
            return ChecksumStatus.FAIL
        if current == expected_hex.strip().lower():
            return ChecksumStatus.PASS
        return ChecksumStatus.FAIL


def default_algorithms() -> List[ChecksumAlgorithm]:
    return [
        HashlibChecksum("MD5", "md5"),
        HashlibChecksum("SHA1", "sha1"),
        HashlibChecksum("SHA256", "sha256"),
        HashlibChecksum("SHA512", "sha512"),
        HashlibChecksum("BLAKE2B", "blake2b"),
    ]


class ChecksumDispatcher:
    """校验和分派器"""

    def __init__(
        self,
        algorithms: Optional[Iterable[ChecksumAlgorithm]] = None,
        quiet: bool = False,
        echo: Callable[[str], None] = click.echo,
    ):
        self.quiet = quiet
        self._echo = echo
        self._algorithms: Dict[str, ChecksumAlgorithm] = {}
        for algorithm in default_algorithms() if algorithms is None else algorithms:
            self.register(algorithm)

    def register(self, algorithm: ChecksumAlgorithm) -> None:
        """注册（或替换）一个校验算法"""
        if not algorithm.tag:
            raise ValueError("校验算法必须声明 tag")
        self._algorithms[algorithm.tag] = algorithm

    def supports(self, tag: str) -> bool:
        return tag in self._algorithms

    @property
    def tags(self) -> List[str]:
        return list(self._algorithms)

    async def verify(
        self, tag: str, expected_hex: str, file_path: str
    ) -> ChecksumStatus:
        """
        执行单个校验

        Args:
            tag: 算法标签，如 SHA256
            expected_hex: manifest 中声明的十六进制摘要
            file_path: 待校验文件

        Returns:
            PASS / FAIL，未知算法返回 UNSUPPORTED
        """
        algorithm = self._algorithms.get(tag)
        if algorithm is None:
            logger.debug(f"[校验] 不支持的算法 {tag}，跳过")
            status = ChecksumStatus.UNSUPPORTED
        else:
            status = await algorithm.verify(expected_hex, file_path)
            logger.debug(f"[校验] {file_path} {tag}: {status.name}")

        if not self.quiet:
            self._echo(f"  {tag}: {status.value}")
        return status
