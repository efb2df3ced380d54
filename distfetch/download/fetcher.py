"""
下载器

Fetcher 负责把 URL 的内容续传到目标路径，返回 wget 风格的退出码。
"""

import asyncio
import os
import shutil
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import unquote, urlparse

import aiofiles
import aiohttp
from loguru import logger

# 与 wget 一致的退出码
EXIT_OK = 0
EXIT_GENERIC = 1
EXIT_FILE_IO = 3
EXIT_NETWORK = 4
EXIT_SERVER = 8


class Fetcher(ABC):
    """可续传下载器接口"""

    @abstractmethod
    async def fetch(self, url: str, target: str) -> int:
        """
        下载 url 到 target，若 target 已有部分内容则在其后续传

        Returns:
            退出码，0 表示成功
        """
        pass

    async def close(self) -> None:
        pass


class HttpFetcher(Fetcher):
    """基于 aiohttp 的 HTTP(S) 续传下载器，同时支持 file:// 本地复制"""

    def __init__(
        self,
        timeout: float = 300.0,
        chunk_size: int = 8192,
        user_agent: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        fallback: Optional[Fetcher] = None,
    ):
        self.timeout = timeout
        self.fallback = fallback
        self.chunk_size = chunk_size
        self.user_agent = user_agent
        self.bytes_downloaded = 0
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout), headers=headers
            )
        return self._session

    async def fetch(self, url: str, target: str) -> int:
        scheme = urlparse(url).scheme.lower()
        if scheme == "file":
            return self._copy_local_file(url, target)
        if scheme not in ("http", "https"):
            if self.fallback is not None:
                return await self.fallback.fetch(url, target)
            logger.error(f"[下载] 不支持的协议 '{scheme}': {url}")
            return EXIT_GENERIC

        offset = os.path.getsize(target) if os.path.isfile(target) else 0
        headers = {"Range": f"bytes={offset}-"} if offset else {}

        try:
            async with self.session.get(url, headers=headers) as response:
                if response.status == 416 and offset:
                    logger.info(f"[跳过] {os.path.basename(target)} 已完整下载")
                    return EXIT_OK
                if response.status not in (200, 206):
                    logger.error(f"[下载] HTTP {response.status}: {url}")
                    return EXIT_SERVER

                if response.status == 206:
                    mode = "ab"
                    if offset:
                        logger.info(f"[续传] 从 {offset} 字节处继续")
                else:
                    mode = "wb"
                    offset = 0

                total_size = response.content_length
                if total_size:
                    total_size += offset
                    logger.info(
                        f"[信息] 文件大小: {total_size / (1024 * 1024):.2f} MB"
                    )

                async with aiofiles.open(target, mode) as f:
                    downloaded = offset
                    last_percent = 0.0

                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        downloaded += len(chunk)
                        self.bytes_downloaded += len(chunk)

                        if total_size:
                            percent = (downloaded / total_size) * 100
                            if percent - last_percent >= 5:
                                logger.info(
                                    f"[进度] {os.path.basename(target)}: {percent:.1f}%"
                                )
                                last_percent = percent

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[下载] 网络错误 {url}: {e}")
            return EXIT_NETWORK
        except OSError as e:
            logger.error(f"[下载] 写入 {target} 失败: {e}")
            return EXIT_FILE_IO

        return EXIT_OK

    def _copy_local_file(self, url: str, target: str) -> int:
        """复制本地文件"""
        src_path = unquote(urlparse(url).path)
        logger.info(f"[复制] 本地文件: {src_path}")
        if not os.path.isfile(src_path):
            logger.error(f"[复制] 源文件不存在: {src_path}")
            return EXIT_FILE_IO
        try:
            shutil.copyfile(src_path, target)
        except OSError as e:
            logger.error(f"[复制] 复制文件失败: {e}")
            return EXIT_FILE_IO
        self.bytes_downloaded += os.path.getsize(target)
        return EXIT_OK

    async def close(self) -> None:
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()


class CommandFetcher(Fetcher):
    """
    调用外部下载命令（如 wget -c）

    命令模板中的 {url} 与 {output} 会被替换，退出码原样返回。
    """

    def __init__(self, command: List[str]):
        self.command = list(command)

    def build_command(self, url: str, target: str) -> List[str]:
        return [
            arg.replace("{url}", url).replace("{output}", target)
            for arg in self.command
        ]

    async def fetch(self, url: str, target: str) -> int:
        command = self.build_command(url, target)
        logger.debug(f"[下载] 执行: {' '.join(command)}")
        try:
            process = await asyncio.create_subprocess_exec(*command)
        except FileNotFoundError:
            logger.error(f"[下载] 找不到下载命令: {command[0]}")
            return EXIT_GENERIC
        return await process.wait()
