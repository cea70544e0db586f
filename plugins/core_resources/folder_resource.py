# plugins/core_resources/folder_resource.py

from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .contracts import ConfigurationOperation, FolderKey, UpdateKey
from .errors import OperationError, ResourceError
from .file_resource import FileResource
from .files import delete_tree, read_text, rename_path, write_text
from .names import ResourceName

if TYPE_CHECKING:
    from .project import Project

logger = logging.getLogger(__name__)

# 内容文件名 -> 逻辑属性名
FILE_MAPPINGS: Dict[str, str] = {
    "index.adoc.hbs": "contentTemplate",
    "query.lp.hbs": "queryTemplate",
    "parameterSchema.json": "schema",
    "model.lp": "model",
    "view.lp.hbs": "viewTemplate",
    "calculation.lp": "calculation",
}
REVERSE_FILE_MAPPINGS: Dict[str, str] = {prop: file for file, prop in FILE_MAPPINGS.items()}
VALID_FOLDER_RESOURCE_FILES = tuple(FILE_MAPPINGS.keys())
JSON_CONTENT_FILES = ("parameterSchema.json",)


def content_property_name(file_name: str) -> Optional[str]:
    return FILE_MAPPINGS.get(file_name)


def content_file_name(property_name: str) -> str:
    """逻辑属性名 -> 文件名；未知属性原样返回，交给 update_file 的白名单检查。"""
    return REVERSE_FILE_MAPPINGS.get(property_name, property_name)


def _format_json(value: Any) -> str:
    return json.dumps(value, indent=4, ensure_ascii=False) + "\n"


class FolderResource(FileResource):
    """
    除元数据 JSON 外还拥有一个同名内容目录的资源（报告、模板、图模型等）。
    内容文件只能是白名单中的文件名，且必须直接位于资源自己的目录下。
    """
    type_label = "folder resource"
    update_keys = FolderKey
    update_handlers = {
        FolderKey.NAME: "_update_scalar",
        FolderKey.DISPLAY_NAME: "_update_scalar",
        FolderKey.DESCRIPTION: "_update_scalar",
        FolderKey.CONTENT: "_update_content",
    }

    def __init__(self, project: "Project", name: ResourceName):
        self._content_files: Dict[str, str] = {}
        super().__init__(project, name)

    @property
    def internal_folder(self) -> Path:
        return self.resource_folder / self.resource_name.identifier

    def _load(self) -> None:
        super()._load()
        self._content_files = self._read_content_files_sync()

    def _read_content_files_sync(self) -> Dict[str, str]:
        files: Dict[str, str] = {}
        if not self.internal_folder.is_dir():
            return files
        for entry in sorted(self.internal_folder.iterdir()):
            if entry.is_file() and entry.name in VALID_FOLDER_RESOURCE_FILES:
                files[entry.name] = entry.read_text(encoding="utf-8")
        return files

    async def load_content_files(self) -> None:
        files: Dict[str, str] = {}
        if self.internal_folder.is_dir():
            for entry in sorted(self.internal_folder.iterdir()):
                if entry.is_file() and entry.name in VALID_FOLDER_RESOURCE_FILES:
                    files[entry.name] = await read_text(entry)
        self.set_content_files(files)

    def set_content_files(self, files: Dict[str, str]) -> None:
        self._content_files = {name: text for name, text in files.items() if name in VALID_FOLDER_RESOURCE_FILES}

    def content_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for file_name, text in self._content_files.items():
            prop = content_property_name(file_name)
            if prop is None:
                continue
            if file_name in JSON_CONTENT_FILES:
                try:
                    data[prop] = json.loads(text)
                except json.JSONDecodeError:
                    logger.warning(f"Content file '{file_name}' of '{self.name}' is not valid JSON")
                    data[prop] = text
            else:
                data[prop] = text
        return data

    def show_file_names(self) -> List[str]:
        if not self.internal_folder.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.internal_folder.iterdir()
            if entry.is_file() and entry.name in VALID_FOLDER_RESOURCE_FILES
        )

    def show(self) -> Dict[str, Any]:
        result = super().show()
        result["content"] = self.content_data()
        return result

    async def create(self, content: Optional[Dict[str, Any]] = None) -> None:
        await super().create(content)
        self.internal_folder.mkdir(parents=True, exist_ok=True)
        await self._create_content_files()
        await self.load_content_files()

    async def _create_content_files(self) -> None:
        """新建资源时写入的默认内容文件；已存在的文件不覆盖。"""

    async def update_file(self, file_name: str, content: str) -> None:
        internal = Path(os.path.normpath(self.internal_folder))
        file_path = Path(os.path.normpath(internal / file_name))
        if file_path.parent != internal:
            raise ResourceError(f"File '{file_name}' is not in the resource")
        if file_path.name != file_name:
            raise ResourceError(f"File '{file_name}' is not in the resource")
        if file_name not in VALID_FOLDER_RESOURCE_FILES:
            raise ResourceError(f"File '{file_name}' is not allowed to be updated")

        text = content
        if file_name in JSON_CONTENT_FILES:
            key = content_property_name(file_name)
            try:
                text = _format_json(json.loads(content))
            except json.JSONDecodeError as e:
                raise ResourceError(f"Invalid JSON content for '{key}' update: {e}") from e

        await write_text(file_path, text)
        self._content_files[file_name] = text
        logger.debug(f"Updated content file '{file_name}' of '{self.name}'")

    async def update_content_files(self, files: Dict[str, Any]) -> None:
        for file_name, value in files.items():
            text = value if isinstance(value, str) else _format_json(value)
            await self.update_file(file_name, text)

    async def _update_content(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> bool:
        if not update_key.sub_key:
            raise OperationError("Cannot update 'content' without a sub key")
        value = self.handle_scalar(op)
        text = value if isinstance(value, str) else _format_json(value)
        await self.update_file(content_file_name(update_key.sub_key), text)
        await self._log(
            ConfigurationOperation.RESOURCE_UPDATE,
            self.name,
            {"type": self.resource_type, "operation": op.name, "key": "content", "subKey": update_key.sub_key},
        )
        return False

    async def _move_storage(self, old_identifier: str, new_identifier: str) -> None:
        old_folder = self.resource_folder / old_identifier
        if old_folder.is_dir():
            await rename_path(old_folder, self.resource_folder / new_identifier)
        await super()._move_storage(old_identifier, new_identifier)

    async def _delete_storage(self) -> None:
        await super()._delete_storage()
        await delete_tree(self.internal_folder)

    def handlebar_files(self, name_only: bool = False) -> List[str]:
        if not self.internal_folder.is_dir():
            return []
        files = sorted(self.internal_folder.rglob("*.hbs"))
        return [f.name if name_only else str(f) for f in files]
