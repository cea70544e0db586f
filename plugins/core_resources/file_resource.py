# plugins/core_resources/file_resource.py

from __future__ import annotations
import copy
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from .contracts import ConfigurationOperation, Resource
from .errors import (
    ModuleResourceError,
    ResourceError,
    ResourceExistsError,
    ResourceInUseError,
    ResourceNotFoundError,
)
from .files import delete_file, read_json_sync, rename_path, write_json
from .names import (
    ResourceName,
    resource_folder,
    resource_name,
    resource_name_to_string,
    valid_identifier,
    valid_resource_name,
)
from .resource_object import ResourceObject

if TYPE_CHECKING:
    from .project import Project

logger = logging.getLogger(__name__)


class FileResource(ResourceObject):
    """
    以单个 JSON 文件存储的资源。
    本地资源（前缀等于项目前缀）可修改；模块资源对所有修改操作只读。
    """

    def __init__(self, project: "Project", name: ResourceName):
        super().__init__(project, name)
        self.resource_folder: Path = resource_folder(project.paths, self.resource_name, project.prefix)
        self.file_path: Path = self.resource_folder / f"{self.resource_name.identifier}.json"
        self._load()

    def _load(self) -> None:
        if not self.file_path.is_file():
            return
        try:
            self.content = self._normalize_content(read_json_sync(self.file_path))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read resource file '{self.file_path}': {e}")

    def _normalize_content(self, content: Dict[str, Any]) -> Dict[str, Any]:
        """加载或创建后对内容做的补全（缺省容器等）。"""
        return content

    def exists(self) -> bool:
        # 缓存只是快速路径；缓存可能过期，以文件系统为准
        return self.project.resource_cache.has(self.name) or self.file_path.is_file()

    def _registry_entry(self) -> Resource:
        return Resource(
            name=self.name,
            type=self.resource_type,
            path=str(self.resource_folder),
            source="module" if self.module_resource else "local",
            module_name=self.resource_name.prefix if self.module_resource else None,
        )

    def _default_content(self) -> Dict[str, Any]:
        return {"description": "", "displayName": ""}

    async def create(self, content: Optional[Dict[str, Any]] = None) -> None:
        identifier = self.resource_name.identifier
        valid_identifier(identifier)
        if self.exists():
            raise ResourceExistsError(f"Resource '{identifier}' already exists in the project")
        if self.module_resource:
            raise ModuleResourceError("Cannot change module resources")
        valid_name = valid_resource_name(self.resource_type, self.name, self.project.project_prefixes())

        new_content = copy.deepcopy(content) if content else self._default_content()
        new_content["name"] = valid_name
        new_content = self._normalize_content(new_content)
        self.validate(new_content)

        self.content = new_content
        await self.write()
        self.project.resource_cache.add(self._registry_entry(), self)
        await self._log(ConfigurationOperation.RESOURCE_CREATE, valid_name)
        logger.info(f"Created resource '{valid_name}'")

    async def _move_storage(self, old_identifier: str, new_identifier: str) -> None:
        old_file = self.resource_folder / f"{old_identifier}.json"
        new_file = self.resource_folder / f"{new_identifier}.json"
        if old_file.is_file():
            await rename_path(old_file, new_file)
        self.file_path = new_file

    async def write(self) -> None:
        if self.module_resource:
            raise ModuleResourceError("Cannot change module resources")
        # 内容名只能改变标识符，前缀和类型必须与资源一致
        content_name = resource_name(self.content["name"])
        if (content_name.prefix, content_name.type) != (self.resource_name.prefix, self.resource_name.type):
            raise ResourceError(
                f"Content name '{self.content['name']}' does not belong to resource '{self.name}'"
            )
        self.resource_folder.mkdir(parents=True, exist_ok=True)
        await write_json(
            self.resource_folder / ".schema",
            [{"id": self.schema_id, "version": 1}],
            exclusive=True,
        )

        # 内容中的名称与当前文件名不一致：这次写入同时完成重命名
        new_identifier = content_name.identifier
        old_identifier = self.resource_name.identifier
        if new_identifier != old_identifier:
            old_name = self.name
            await self._move_storage(old_identifier, new_identifier)
            self.resource_name = replace(self.resource_name, identifier=new_identifier)
            self.project.resource_cache.move(old_name, self.name)

        await write_json(self.file_path, self.content)
        logger.debug(f"Wrote resource '{self.name}' to {self.file_path}")

    async def rename(self, new_name: Union[str, ResourceName]) -> None:
        new = resource_name(new_name) if isinstance(new_name, str) else new_name
        if self.module_resource:
            raise ModuleResourceError("Cannot rename module resources")
        if not self.exists() or self.data is None:
            raise ResourceNotFoundError(f"Resource '{self.resource_name.identifier}' does not exist")
        if new.prefix != self.project.prefix:
            raise ResourceError("Can only rename project resources")
        if new.type != self.resource_name.type:
            raise ResourceError("Cannot change resource type")
        new_string = valid_resource_name(
            self.resource_type, resource_name_to_string(new), self.project.project_prefixes()
        )
        if new_string == self.name:
            return
        target_file = self.resource_folder / f"{new.identifier}.json"
        if self.project.resource_cache.has(new_string) or target_file.exists():
            raise ResourceExistsError(f"Resource '{new.identifier}' already exists in the project")

        existing_name = self.name
        await self._run_name_change(existing_name, new_string, move=True)
        await self._log(
            ConfigurationOperation.RESOURCE_RENAME,
            new_string,
            {"oldName": existing_name, "newName": new_string},
        )
        logger.info(f"Renamed resource '{existing_name}' -> '{new_string}'")

    async def _delete_storage(self) -> None:
        await delete_file(self.file_path)

    async def delete(self) -> None:
        if self.module_resource:
            raise ModuleResourceError(f"Cannot delete resource {self.name}: It is a module resource")
        if not self.exists():
            raise ResourceNotFoundError(
                f"Resource '{self.resource_name.identifier}' does not exist in the project"
            )
        used_in = await self.usage()
        if used_in:
            raise ResourceInUseError(
                f"Cannot delete resource {self.name}. It is used by: {', '.join(used_in)}",
                used_in,
            )
        name = self.name
        await self._delete_storage()
        self.project.resource_cache.remove(name)
        self.content = {"name": ""}
        await self._log(ConfigurationOperation.RESOURCE_DELETE, name)
        logger.info(f"Deleted resource '{name}'")
