"""
主流程

get: 下载 -> 校验 -> 失败则隔离；verify: 仅校验。
多个文件依次处理，最终退出码为最后一个非零退出码。
"""

import os
from dataclasses import dataclass
from typing import Iterable, Optional

from loguru import logger

from distfetch.config import DistFetchConfig
from distfetch.download import DownloadOrchestrator, Fetcher
from distfetch.exceptions import DownloadError
from distfetch.manifest import ManifestStore
from distfetch.verify import ChecksumDispatcher, FileVerifier

QUARANTINE_SUFFIX = ".verify-failed"


@dataclass
class RunStats:
    """运行统计"""

    checked: int = 0
    passed: int = 0
    failed: int = 0
    quarantined: int = 0


class VerifyWorkflow:
    """verify 子命令"""

    def __init__(
        self,
        config: DistFetchConfig,
        manifest: ManifestStore,
        dispatcher: Optional[ChecksumDispatcher] = None,
    ):
        self.config = config
        self.manifest = manifest
        self.dispatcher = dispatcher or ChecksumDispatcher(quiet=config.quiet)
        self.verifier = FileVerifier(manifest, self.dispatcher)
        self.stats = RunStats()

    async def verify_one(self, dest_file: str) -> int:
        outcome = await self.verifier.verify(dest_file)
        self.stats.checked += 1
        if outcome.ok:
            self.stats.passed += 1
        else:
            self.stats.failed += 1
        return outcome.exit_code

    async def run(self, files: Iterable[str]) -> int:
        result = 0
        for dest_file in files:
            code = await self.verify_one(dest_file)
            if code:
                result = code
        self._log_summary()
        return result

    def _log_summary(self):
        logger.info(
            f"[统计] 校验 {self.stats.checked} 个, 通过 {self.stats.passed} 个, "
            f"失败 {self.stats.failed} 个"
        )


class GetWorkflow(VerifyWorkflow):
    """get 子命令"""

    def __init__(
        self,
        config: DistFetchConfig,
        manifest: ManifestStore,
        dispatcher: Optional[ChecksumDispatcher] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        super().__init__(config, manifest, dispatcher)
        self.downloader = DownloadOrchestrator(config, fetcher)

    @staticmethod
    def quarantine(dest_file: str) -> str:
        """将校验失败的文件重命名为 <dest>.verify-failed"""
        target = f"{dest_file}{QUARANTINE_SUFFIX}"
        os.replace(dest_file, target)
        logger.warning(f"[隔离] {dest_file} -> {target}")
        return target

    async def get_one(self, dest_file: str) -> int:
        try:
            await self.downloader.fetch(dest_file)
        except DownloadError as e:
            self.stats.failed += 1
            return e.exit_code

        code = await self.verify_one(dest_file)
        if code:
            self.quarantine(dest_file)
            self.stats.quarantined += 1
        return code

    async def run(self, files: Iterable[str]) -> int:
        result = 0
        try:
            for dest_file in files:
                code = await self.get_one(dest_file)
                if code:
                    result = code
        finally:
            await self.downloader.close()
        self._log_summary()
        return result

    def _log_summary(self):
        stats = self.downloader.stats
        logger.info(
            f"[统计] 下载 {stats.total} 个: {stats.completed} 成功, "
            f"{stats.failed} 失败, "
            f"{stats.bytes_downloaded / (1024 * 1024):.2f} MB; "
            f"校验 {self.stats.passed} 通过, 隔离 {self.stats.quarantined} 个"
        )
