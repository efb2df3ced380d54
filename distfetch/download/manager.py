"""
下载编排

读取 .src-uri 取得下载地址，续传到 <dest>.download，成功后原子替换为 <dest>。
"""

import os
import shutil
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from distfetch.config import DistFetchConfig
from distfetch.download.fetcher import CommandFetcher, Fetcher, HttpFetcher
from distfetch.download.source import SourceDescriptor
from distfetch.exceptions import DownloadError

DOWNLOAD_SUFFIX = ".download"


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


def build_fetcher(config: DistFetchConfig) -> Fetcher:
    """按配置构建下载器，配置了外部命令时用于 HTTP 以外的协议"""
    fallback = CommandFetcher(config.fetch_command) if config.fetch_command else None
    return HttpFetcher(
        timeout=config.timeout,
        chunk_size=config.chunk_size,
        user_agent=config.user_agent,
        fallback=fallback,
    )


class DownloadOrchestrator:
    """下载编排器"""

    def __init__(self, config: DistFetchConfig, fetcher: Optional[Fetcher] = None):
        self.config = config
        self.fetcher = fetcher or build_fetcher(config)
        self.stats = DownloadStats()

    @staticmethod
    def temp_path(dest_file: str) -> str:
        return f"{dest_file}{DOWNLOAD_SUFFIX}"

    async def fetch(self, dest_file: str) -> None:
        """
        下载单个目标文件

        Raises:
            SourceError: 描述文件缺失或没有 URL
            DownloadError: 下载器返回非零退出码，exit_code 为该退出码
        """
        source = SourceDescriptor.from_sidecar(dest_file)
        temp_file = self.temp_path(dest_file)
        self.stats.total += 1

        # 先创建目标文件，保证续传有基础，失败时也有可隔离的文件
        if not os.path.exists(dest_file):
            open(dest_file, "ab").close()

        # 已有内容作为续传起点
        if not os.path.exists(temp_file) and os.path.getsize(dest_file) > 0:
            shutil.copyfile(dest_file, temp_file)
        offset = os.path.getsize(temp_file) if os.path.exists(temp_file) else 0

        logger.info(f"[开始] 下载: {os.path.basename(dest_file)} <- {source.url}")
        exit_code = await self.fetcher.fetch(source.url, temp_file)

        if exit_code != 0:
            self.stats.failed += 1
            logger.error(
                f"[错误] 下载 '{os.path.basename(dest_file)}' 失败 (退出码 {exit_code})"
            )
            raise DownloadError(
                f"下载失败: {dest_file}",
                context={"url": source.url, "file": dest_file},
                exit_code=exit_code,
            )

        self.stats.bytes_downloaded += max(os.path.getsize(temp_file) - offset, 0)
        os.replace(temp_file, dest_file)
        self.stats.completed += 1
        logger.success(f"[完成] '{os.path.basename(dest_file)}' 下载完成")

    async def close(self) -> None:
        await self.fetcher.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
