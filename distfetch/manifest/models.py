"""
Manifest 数据模型

定义 DIST 记录、校验结果等数据类。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

DIST_TAG = "DIST"


@dataclass(frozen=True)
class ManifestRecord:
    """
    Manifest 中的一条分发文件记录。

    size 为 None 表示记录中写的是 "-"，即不校验大小。
    checksums 保持 manifest 行内的顺序。
    """

    filename: str
    size: Optional[int] = None
    checksums: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    tag: str = DIST_TAG
    line_no: int = 0

    @property
    def is_dist(self) -> bool:
        return self.tag == DIST_TAG


class ChecksumStatus(Enum):
    """单个校验和的结果"""

    PASS = "OK"
    FAIL = "FAILED"
    UNSUPPORTED = "not supported, skipped"


class VerificationOutcome(Enum):
    """单个文件的校验结论"""

    OK = ("OK", 0)
    SIZE_MISMATCH = ("Size mismatch", 2)
    CHECKSUM_FAILURE = ("Checksum failure", 1)
    NOT_FOUND = ("Not found in manifest", 8)

    def __init__(self, label: str, exit_code: int):
        self.label = label
        self.exit_code = exit_code

    @property
    def ok(self) -> bool:
        return self is VerificationOutcome.OK
