"""
下载源描述

从 <dest>.src-uri 描述文件中解析下载地址。
"""

import os
from dataclasses import dataclass
from typing import Iterable, Optional

from distfetch.exceptions import SourceError

SIDECAR_SUFFIX = ".src-uri"


def sidecar_path(dest_file: str) -> str:
    return f"{dest_file}{SIDECAR_SUFFIX}"


def effective_url(lines: Iterable[str]) -> Optional[str]:
    """
    取最后一个有效行作为 URL

    空行和以 # 开头的注释行被忽略，后出现的行覆盖前面的行。
    """
    url = None
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        url = line
    return url


@dataclass
class SourceDescriptor:
    """目标文件的下载源"""

    dest_file: str
    url: str

    @classmethod
    def from_sidecar(cls, dest_file: str) -> "SourceDescriptor":
        """
        读取目标文件的描述文件

        Raises:
            SourceError: 描述文件不存在，或其中没有有效 URL
        """
        path = sidecar_path(dest_file)
        if not os.path.isfile(path):
            raise SourceError(f"{path}: not a file", context={"sidecar": path})

        try:
            with open(path, "r", encoding="utf-8") as f:
                url = effective_url(f)
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(
                f"{path}: 无法读取 ({e})", context={"sidecar": path}
            ) from e

        if not url:
            raise SourceError(f"{path}: missing URL", context={"sidecar": path})
        return cls(dest_file=dest_file, url=url)
