"""
distfetch 统一异常体系

分层的异常结构，携带错误代码、上下文信息和进程退出码。
"""

from typing import Any, Dict, Optional


class DistFetchError(Exception):
    """distfetch 基础异常类"""

    default_exit_code = 1

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}
        self.exit_code = self.default_exit_code if exit_code is None else exit_code

    def _get_default_code(self) -> str:
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "exit_code": self.exit_code,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(DistFetchError):
    """配置相关错误（致命）"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置文件解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class SourceError(ConfigError):
    """.src-uri 描述文件缺失或没有有效 URL"""

    def _get_default_code(self) -> str:
        return "E103"


class UsageError(ConfigError):
    """命令行用法错误"""

    def _get_default_code(self) -> str:
        return "E104"


class ManifestError(DistFetchError):
    """Manifest 相关错误（致命）"""

    def _get_default_code(self) -> str:
        return "E200"


class ManifestReadError(ManifestError):
    """Manifest 无法读取"""

    def _get_default_code(self) -> str:
        return "E201"


class ManifestParseError(ManifestError):
    """Manifest 记录格式错误"""

    def _get_default_code(self) -> str:
        return "E202"


class DownloadError(DistFetchError):
    """下载失败，exit_code 为下载器返回的退出码"""

    def _get_default_code(self) -> str:
        return "E300"


class NotImplementedCommandError(DistFetchError):
    """尚未实现的子命令"""

    default_exit_code = 2

    def _get_default_code(self) -> str:
        return "E900"


__all__ = [
    "DistFetchError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    "SourceError",
    "UsageError",
    # Manifest 异常
    "ManifestError",
    "ManifestReadError",
    "ManifestParseError",
    # 下载异常
    "DownloadError",
    # 子命令
    "NotImplementedCommandError",
]
