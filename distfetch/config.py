"""
配置模型

DistFetchConfig 在进程启动时构建一次，显式传给各组件的构造函数。
"""

import json
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import toml
import yaml

from distfetch import __version__
from distfetch.exceptions import ConfigParseError, ConfigValidationError

DEFAULT_MANIFEST = "Manifest"
DEFAULT_CONFIG_FILE = "distfetch.toml"


@dataclass
class DistFetchConfig:
    """distfetch 运行配置"""

    manifest: str = DEFAULT_MANIFEST
    quiet: bool = False
    timeout: float = 300.0
    chunk_size: int = 8192
    user_agent: str = f"distfetch/{__version__}"
    fetch_command: Optional[List[str]] = field(default=None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DistFetchConfig":
        """从字典构建配置，并校验各字段"""
        if not isinstance(data, dict):
            raise ConfigValidationError("配置内容必须是键值表")

        unknown = set(data) - {
            "manifest",
            "quiet",
            "timeout",
            "chunk_size",
            "user_agent",
            "fetch_command",
        }
        if unknown:
            raise ConfigValidationError(
                f"未知的配置项: {', '.join(sorted(unknown))}",
                context={"keys": sorted(unknown)},
            )

        config = cls()
        if "manifest" in data:
            config.manifest = str(data["manifest"])
        if "quiet" in data:
            if not isinstance(data["quiet"], bool):
                raise ConfigValidationError("quiet 必须为布尔值")
            config.quiet = data["quiet"]
        if "timeout" in data:
            timeout = data["timeout"]
            if (
                isinstance(timeout, bool)
                or not isinstance(timeout, (int, float))
                or timeout <= 0
            ):
                raise ConfigValidationError("timeout 必须为正数")
            config.timeout = float(timeout)
        if "chunk_size" in data:
            chunk_size = data["chunk_size"]
            if (
                isinstance(chunk_size, bool)
                or not isinstance(chunk_size, int)
                or chunk_size <= 0
            ):
                raise ConfigValidationError("chunk_size 必须为正整数")
            config.chunk_size = chunk_size
        if "user_agent" in data:
            config.user_agent = str(data["user_agent"])
        if data.get("fetch_command") is not None:
            config.fetch_command = _parse_command(data["fetch_command"])
        return config


def _parse_command(value: Union[str, List[str]]) -> List[str]:
    if isinstance(value, str):
        command = shlex.split(value)
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        command = list(value)
    else:
        raise ConfigValidationError("fetch_command 必须为字符串或字符串列表")

    if not command:
        raise ConfigValidationError("fetch_command 不能为空")
    joined = " ".join(command)
    if "{url}" not in joined or "{output}" not in joined:
        raise ConfigValidationError(
            "fetch_command 必须包含 {url} 和 {output} 占位符",
            context={"fetch_command": command},
        )
    return command


def load_config(config_path: str) -> dict:
    """加载配置文件，按扩展名选择解析器"""
    path = Path(config_path)

    if not path.exists():
        raise ConfigParseError(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text())
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text()) or {}
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"配置文件解析失败: {e}", context={"path": config_path}
        ) from e

    raise ConfigParseError(f"不支持的配置文件格式: {suffix}")


def resolve_config(config_path: Optional[str] = None) -> DistFetchConfig:
    """
    解析运行配置

    未指定配置文件时，若工作目录下存在 distfetch.toml 则使用它，否则使用默认值。
    """
    if config_path is None:
        if not Path(DEFAULT_CONFIG_FILE).is_file():
            return DistFetchConfig()
        config_path = DEFAULT_CONFIG_FILE
    return DistFetchConfig.from_dict(load_config(config_path))
