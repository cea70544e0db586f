# plugins/core_resources/audit.py

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from .contracts import (
    ConfigurationLogEntry,
    ConfigurationLoggerInterface,
    ConfigurationOperation,
)
from .files import delete_file, rename_path

logger = logging.getLogger(__name__)


class ConfigurationLogger(ConfigurationLoggerInterface):
    """
    配置变更的审计日志（JSON Lines）。
    每条记录：{timestamp, operation, target, parameters?}。
    写日志失败只记录错误，绝不中断正在进行的资源操作。
    """
    def __init__(self, log_file: Path):
        self._log_file = Path(log_file)

    @property
    def log_file(self) -> Path:
        return self._log_file

    async def log(
        self,
        operation: ConfigurationOperation,
        target: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": ConfigurationOperation(operation).value,
            "target": target,
        }
        if parameters:
            entry["parameters"] = parameters
        try:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self._log_file, mode="a", encoding="utf-8") as f:
                await f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            logger.error(f"Failed to write configuration log entry for '{target}': {e}")

    async def entries(self) -> List[ConfigurationLogEntry]:
        if not self._log_file.is_file():
            return []
        async with aiofiles.open(self._log_file, mode="r", encoding="utf-8") as f:
            lines = await f.readlines()
        result = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                result.append(ConfigurationLogEntry.model_validate_json(line))
            except ValueError as e:
                logger.warning(f"Skipping malformed configuration log line: {e}")
        return result

    def has_log(self) -> bool:
        return self._log_file.is_file()

    async def clear_log(self) -> None:
        await delete_file(self._log_file)

    async def create_version(self, version: str) -> Path:
        """把当前日志归档为 migrationLog_<version>.jsonl，之后的记录写入新文件。"""
        versioned = self._log_file.with_name(f"{self._log_file.stem}_{version}{self._log_file.suffix}")
        if self.has_log():
            await rename_path(self._log_file, versioned)
            logger.info(f"Configuration log archived as '{versioned.name}'")
        return versioned
