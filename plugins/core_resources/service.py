# plugins/core_resources/service.py

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .contracts import (
    ConfigurationLogEntry,
    CreateResourceRequest,
    Resource,
    ResourcesFrom,
    UpdateKey,
)
from .errors import InvalidResourceNameError
from .names import is_resource_folder_type
from .project import Project
from .resource_object import ResourceObject

logger = logging.getLogger(__name__)


class ResourceCommandService:
    """
    资源操作的唯一入口。
    所有调用（包括只读调用）都在同一把 asyncio.Lock 下串行执行，
    因此缓存、磁盘与审计日志之间不会出现交错写入。
    """
    def __init__(self, project: Project):
        self.project = project
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        async with self._lock:
            self.project.initialize()

    def _object(self, resource_type: str, name: str) -> ResourceObject:
        if not is_resource_folder_type(resource_type):
            raise InvalidResourceNameError(f"Unknown resource type '{resource_type}'")
        full = self.project.full_name(resource_type, name)
        return self.project.resource_cache.resource_by_type(full, resource_type)

    # --- 查询 ---

    async def list_resources(
        self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL
    ) -> List[Resource]:
        if not is_resource_folder_type(resource_type):
            raise InvalidResourceNameError(f"Unknown resource type '{resource_type}'")
        async with self._lock:
            return self.project.resources(resource_type, source)

    async def show(self, resource_type: str, name: str) -> Dict[str, Any]:
        async with self._lock:
            return self._object(resource_type, name).show()

    async def usage(self, resource_type: str, name: str) -> List[str]:
        async with self._lock:
            return await self._object(resource_type, name).usage()

    async def audit_entries(self) -> List[ConfigurationLogEntry]:
        async with self._lock:
            return await self.project.configuration_logger.entries()

    # --- 命令 ---

    async def create(self, resource_type: str, request: CreateResourceRequest) -> Dict[str, Any]:
        if not is_resource_folder_type(resource_type):
            raise InvalidResourceNameError(f"Unknown resource type '{resource_type}'")
        async with self._lock:
            resource = await self.project.create_resource(
                resource_type,
                request.identifier,
                content=request.content,
                workflow=request.workflow,
                data_type=request.data_type,
            )
            return resource.show()

    async def update(self, resource_type: str, name: str, update_key: UpdateKey, operation: Any) -> Dict[str, Any]:
        async with self._lock:
            resource = self._object(resource_type, name)
            await resource.update(update_key, operation)
            return resource.show()

    async def rename(self, resource_type: str, name: str, new_name: str) -> Dict[str, Any]:
        async with self._lock:
            resource = self._object(resource_type, name)
            await resource.rename(self.project.full_name(resource_type, new_name))
            return resource.show()

    async def delete(self, resource_type: str, name: str) -> None:
        async with self._lock:
            await self._object(resource_type, name).delete()

    async def refresh(self) -> int:
        async with self._lock:
            self.project.initialize()
            return len(self.project.resource_cache.names())

    async def file_changed(self, path: Union[str, Path]) -> Optional[str]:
        async with self._lock:
            return self.project.resource_cache.handle_file_system_change(path)
