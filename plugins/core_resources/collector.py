# plugins/core_resources/collector.py

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .contracts import Resource
from .names import RESOURCE_FOLDER_TYPES, strip_extension
from .paths import ProjectPaths

logger = logging.getLogger(__name__)

_RESOURCE_FILE_SUFFIXES = (".json", ".lp")


class ResourceCollector:
    """
    扫描磁盘上的资源目录，生成存在性索引条目。
    只读取目录结构，不加载任何资源内容。
    """
    def __init__(self, paths: ProjectPaths, project_prefix: str):
        self._paths = paths
        self._project_prefix = project_prefix

    @property
    def project_prefix(self) -> str:
        return self._project_prefix

    def module_names(self) -> List[str]:
        folder = self._paths.modules_folder
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir() if p.is_dir() and not p.name.startswith("."))

    def collect_local(self) -> List[Resource]:
        return self._collect(self._paths.local_folder, self._project_prefix, "local", None)

    def collect_modules(self, module_name: Optional[str] = None) -> List[Resource]:
        modules = [module_name] if module_name else self.module_names()
        collected: List[Resource] = []
        for module in modules:
            collected.extend(
                self._collect(self._paths.modules_folder / module, module, "module", module)
            )
        return collected

    def _collect(
        self,
        base_folder: Path,
        prefix: str,
        source: str,
        module_name: Optional[str],
    ) -> List[Resource]:
        found: Dict[str, Resource] = {}
        for resource_type in RESOURCE_FOLDER_TYPES:
            type_folder = base_folder / resource_type
            if not type_folder.is_dir():
                continue
            for entry in sorted(type_folder.iterdir()):
                if entry.name.startswith(".") or not entry.is_file():
                    continue
                if entry.suffix not in _RESOURCE_FILE_SUFFIXES:
                    continue
                name = f"{prefix}/{resource_type}/{strip_extension(entry.name)}"
                # 同名的 .json 与 .lp 视为同一个资源
                found.setdefault(
                    name,
                    Resource(
                        name=name,
                        type=resource_type,
                        path=str(type_folder),
                        source=source,
                        module_name=module_name,
                    ),
                )
        logger.debug(f"Collected {len(found)} {source} resources from '{base_folder}'")
        return list(found.values())
