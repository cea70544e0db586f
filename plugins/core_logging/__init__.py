# plugins/core_logging/__init__.py
import os
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from backend.core.contracts import Container, HookManager

PLUGIN_DIR = Path(__file__).parent
DEFAULT_CONFIG = PLUGIN_DIR / "logging_config.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_logging_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    读取 YAML 日志配置。
    CARDS_LOG_CONFIG 可指向另一份配置文件；LOG_LEVEL 覆盖根日志级别。
    """
    path = Path(config_path or os.getenv("CARDS_LOG_CONFIG") or DEFAULT_CONFIG)
    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    level = (os.getenv("LOG_LEVEL") or "").upper()
    if level in LOG_LEVELS:
        config.setdefault("root", {})["level"] = level
    return config


def register_plugin(container: Container, hook_manager: HookManager):
    # 日志系统此时尚未配置
    print("--> 正在注册 [core_logging] 插件...")
    logging.config.dictConfig(load_logging_config())
    logging.getLogger(__name__).info("插件 [core_logging] 注册成功。")
