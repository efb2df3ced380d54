"""
Manifest 存储

加载 Manifest2 格式的 DIST 记录，并按文件名提供查询。加载后只读。
"""

import os
from collections import OrderedDict
from typing import Dict, List, Optional

from loguru import logger

from distfetch.exceptions import ManifestParseError, ManifestReadError
from distfetch.manifest.models import DIST_TAG, ManifestRecord


class ManifestStore:
    """Manifest 记录集合"""

    def __init__(self, records: List[ManifestRecord], path: Optional[str] = None):
        self.path = path
        self._records = list(records)
        self._index: Dict[str, List[ManifestRecord]] = OrderedDict()
        for record in self._records:
            if record.is_dist:
                self._index.setdefault(record.filename, []).append(record)

    @classmethod
    def load(cls, path: str) -> "ManifestStore":
        """
        从文件加载 Manifest

        Args:
            path: Manifest 文件路径

        Returns:
            ManifestStore 实例

        Raises:
            ManifestReadError: 文件无法读取
            ManifestParseError: DIST 记录的大小字段格式错误
        """
        try:
            with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
                lines = f.readlines()
        except OSError as e:
            raise ManifestReadError(
                f"无法读取 Manifest: {path} ({e})", context={"path": path}
            ) from e

        records = []
        for line_no, line in enumerate(lines, start=1):
            record = cls._parse_line(line, line_no, path)
            if record is not None:
                records.append(record)

        store = cls(records, path=path)
        store._warn_duplicates()
        logger.debug(f"[Manifest] 从 {path} 加载了 {len(records)} 条 DIST 记录")
        return store

    @staticmethod
    def _parse_line(line: str, line_no: int, path: str) -> Optional[ManifestRecord]:
        fields = line.split()
        if not fields or fields[0] != DIST_TAG:
            return None

        if len(fields) < 3:
            raise ManifestParseError(
                f"{path}:{line_no}: DIST 记录缺少文件名或大小字段",
                context={"path": path, "line": line_no},
            )

        filename, raw_size = fields[1], fields[2]
        if raw_size == "-":
            size = None
        elif raw_size.isascii() and raw_size.isdigit():
            size = int(raw_size)
        else:
            raise ManifestParseError(
                f"{path}:{line_no}: 无效的文件大小 '{raw_size}'",
                context={"path": path, "line": line_no, "size": raw_size},
            )

        rest = fields[3:]
        if len(rest) % 2:
            logger.warning(
                f"[Manifest] {path}:{line_no}: 校验算法 '{rest[-1]}' 缺少值，已忽略"
            )
            rest = rest[:-1]
        checksums = tuple(zip(rest[0::2], rest[1::2]))

        return ManifestRecord(
            filename=filename, size=size, checksums=checksums, line_no=line_no
        )

    def _warn_duplicates(self):
        for filename, records in self._index.items():
            if len(records) > 1:
                lines = ", ".join(str(r.line_no) for r in records)
                logger.warning(
                    f"[Manifest] '{filename}' 存在 {len(records)} 条 DIST 记录 "
                    f"(行 {lines})，以最后一条通过检查的记录为准"
                )

    @staticmethod
    def is_manifest_file(path: str) -> bool:
        """判断路径是否为 Manifest 文件（可读且前 4 字节为 DIST）"""
        if not os.path.isfile(path):
            return False
        try:
            with open(path, "rb") as f:
                return f.read(4) == DIST_TAG.encode("ascii")
        except OSError:
            return False

    def find(self, filename: str) -> List[ManifestRecord]:
        """按文件名查找全部 DIST 记录，保持 manifest 中的顺序"""
        return list(self._index.get(filename, ()))

    @property
    def records(self) -> List[ManifestRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, filename: str) -> bool:
        return filename in self._index
