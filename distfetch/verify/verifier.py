"""
文件校验器

按文件名查找 DIST 记录，依次检查大小和各校验和，得出单个文件的校验结论。
"""

import os
from typing import Callable, Optional

import click
from loguru import logger

from distfetch.manifest import ChecksumStatus, ManifestStore, VerificationOutcome
from distfetch.verify.checksums import ChecksumDispatcher


class FileVerifier:
    """文件校验器"""

    def __init__(
        self,
        manifest: ManifestStore,
        dispatcher: ChecksumDispatcher,
        echo: Callable[[str], None] = click.echo,
    ):
        self.manifest = manifest
        self.dispatcher = dispatcher
        self._echo = echo

    @staticmethod
    def get_size(file_path: str) -> Optional[int]:
        """获取文件大小，文件不存在时返回 None"""
        try:
            return os.path.getsize(file_path)
        except (IOError, OSError):
            return None

    async def check(self, file_path: str) -> VerificationOutcome:
        """
        计算校验结论，不输出报告行

        同名记录按 manifest 顺序逐条检查：大小不符或任一校验和失败时立即停止，
        否则以最后一条检查过的记录为准。
        """
        actual_size = self.get_size(file_path)
        outcome = VerificationOutcome.NOT_FOUND

        for record in self.manifest.find(os.path.basename(file_path)):
            if record.size is not None and record.size != actual_size:
                logger.debug(
                    f"[校验] {file_path}: 大小 {actual_size} != {record.size} "
                    f"(行 {record.line_no})"
                )
                outcome = VerificationOutcome.SIZE_MISMATCH
                break

            failed = False
            for tag, expected in record.checksums:
                status = await self.dispatcher.verify(tag, expected, file_path)
                if status is ChecksumStatus.FAIL:
                    failed = True
                    break
            if failed:
                outcome = VerificationOutcome.CHECKSUM_FAILURE
                break

            outcome = VerificationOutcome.OK

        return outcome

    async def verify(self, file_path: str) -> VerificationOutcome:
        """校验文件并输出 "<路径>: <结论>" 报告行"""
        outcome = await self.check(file_path)
        self._echo(f"{file_path}: {self.describe(outcome)}")
        return outcome

    def describe(self, outcome: VerificationOutcome) -> str:
        if outcome is VerificationOutcome.NOT_FOUND:
            return f"{outcome.label} {self.manifest.path}"
        return outcome.label
