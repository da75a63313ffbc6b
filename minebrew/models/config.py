"""
配置模型

定义运行配置，以及命令行参数、配置文件、默认值三层合并的规则。
"""

import json
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import toml
import yaml

from minebrew.exceptions import ConfigError, ConfigParseError, ConfigValidationError


DEFAULT_TARGET = "1.19"
CONFIG_FILENAME = "config.toml"
MANIFEST_FILENAME = "minebrew.json"
MODS_DIRNAME = "mods"


class Command(Enum):
    """子命令"""

    INSTALL = "install"
    UPDATE = "update"
    SCAN = "scan"


def validate_target(target: str) -> str:
    """
    校验 Minecraft 版本号，例如 1.19 或 1.18.2

    Raises:
        ConfigValidationError: 版本号格式不合法
    """
    if (
        "." not in target
        or not any(c.isdigit() for c in target)
        or not target[0].isdigit()
        or not target[-1].isdigit()
        or target.count(".") >= 3
    ):
        raise ConfigValidationError(
            f"目标版本 '{target}' 不是有效的版本号", context={"target": target}
        )

    # 只允许数字和单个点
    if not all(part.isdigit() for part in target.split(".")):
        raise ConfigValidationError(
            f"目标版本 '{target}' 包含无效的字符序列", context={"target": target}
        )

    return target


def default_game_dir() -> Path:
    """按操作系统定位 .minecraft 目录"""
    home = Path.home()
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / ".minecraft"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "minecraft"
    return home / ".minecraft"


def default_config_path() -> Path:
    """默认配置文件位置，例如 ~/.config/minebrew/config.toml"""
    return Path(click.get_app_dir("minebrew")) / CONFIG_FILENAME


def load_config_file(path: Optional[str] = None) -> Dict[str, Any]:
    """
    加载配置文件

    未指定路径时读取默认位置，默认文件不存在不算错误。

    Raises:
        ConfigError: 指定的文件不存在或格式不支持
        ConfigParseError: 文件内容无法解析
    """
    if path is None:
        config_path = default_config_path()
        if not config_path.exists():
            return {}
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {path}")

    suffix = config_path.suffix.lower()
    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(config_path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        else:
            raise ConfigError(f"不支持的配置文件格式: {suffix}")
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"配置文件解析失败: {e}", context={"path": str(config_path)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            "配置文件顶层必须是键值表", context={"path": str(config_path)}
        )

    # mc_dir 是旧的键名
    if "directory" not in data and "mc_dir" in data:
        data["directory"] = data.pop("mc_dir")
    return data


def resolve_options(*layers: Dict[str, Any]) -> Dict[str, Any]:
    """
    按优先级合并多层配置，每个键取第一个非 None 的值

    用法: resolve_options(命令行参数, 配置文件, 默认值)
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if merged.get(key) is None and value is not None:
                merged[key] = value
    return merged


@dataclass
class MinebrewConfig:
    """一次运行的完整配置"""

    command: Command
    target: str
    directory: Path
    queries: List[str] = field(default_factory=list)
    loader: Optional[str] = None
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: Optional[float] = None

    @property
    def mods_dir(self) -> Path:
        return self.directory / MODS_DIRNAME

    @property
    def manifest_path(self) -> Path:
        return self.directory / MANIFEST_FILENAME

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        return {
            "target": DEFAULT_TARGET,
            "directory": default_game_dir(),
            "loader": None,
            "max_retries": 3,
            "retry_delay": 1.0,
            "timeout": None,
        }

    @classmethod
    def build(
        cls,
        command: Command,
        cli_options: Dict[str, Any],
        file_options: Optional[Dict[str, Any]] = None,
    ) -> "MinebrewConfig":
        """
        合并三层配置并校验

        Raises:
            ConfigValidationError: 合并后的值不合法
        """
        opts = resolve_options(cli_options, file_options or {}, cls.defaults())

        queries = list(opts.get("queries") or [])
        if command is Command.INSTALL and not queries:
            raise ConfigValidationError("install 至少需要一个模组名称")

        try:
            max_retries = int(opts["max_retries"])
            retry_delay = float(opts["retry_delay"])
            timeout = opts.get("timeout")
            timeout = None if timeout is None else float(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"配置值类型错误: {e}") from e
        if max_retries < 0:
            raise ConfigValidationError("max_retries 不能为负数")

        return cls(
            command=command,
            target=validate_target(str(opts["target"])),
            directory=Path(opts["directory"]).expanduser().resolve(),
            queries=queries,
            loader=opts.get("loader"),
            max_retries=max_retries,
            retry_delay=retry_delay,
            timeout=timeout,
        )
