# plugins/core_resources/resource_object.py

from __future__ import annotations
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from plugins.core_cards.contracts import Card

from .array_handler import ArrayHandler
from .contracts import (
    ConfigurationOperation,
    UpdateKey,
    operation_value,
    parse_operation,
)
from .errors import (
    ModuleResourceError,
    OperationError,
    ResourceError,
    ResourceExistsError,
    ResourceNotFoundError,
    ResourceValidationError,
)
from .files import read_text, replace_in_file
from .names import (
    ResourceName,
    path_to_resource_name,
    resource_name,
    resource_name_to_string,
    valid_resource_name,
)
from .saga import RenameSaga

if TYPE_CHECKING:
    from .project import Project

logger = logging.getLogger(__name__)

BASE_PROPERTIES = ("name", "displayName", "description", "category")

# 引用其他资源名的 handlebars 模板所在的本地资源类型
_HANDLEBAR_RESOURCE_TYPES = ("reports", "graphViews", "templates")


def _coerce_update_key(update_key: Union[UpdateKey, Dict[str, Any], str]) -> UpdateKey:
    if isinstance(update_key, UpdateKey):
        return update_key
    if isinstance(update_key, str):
        return UpdateKey(key=update_key)
    return UpdateKey.model_validate(update_key)


class ResourceObject(ABC):
    """
    所有资源的生命周期契约：create / show / update / rename / delete / usage / validate / migrate。

    更新分派：子类声明 `update_keys`（一个 str Enum）和 `update_handlers`
    （键 -> 方法名）。类定义时即检查处理表是否覆盖全部键；
    运行时无法转换为枚举的键以 "Unknown property" 失败。

    处理器签名为 `async def handler(content, update_key, op)`，就地修改 content 的副本。
    返回 False 表示处理器已自行持久化（例如文件夹内容文件），不再走 post_update。
    """
    resource_type: str = ""
    schema_id: str = ""
    type_label: str = "Resource"
    update_keys: Optional[Type[Enum]] = None
    update_handlers: Dict[Any, str] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.update_keys is None:
            return
        missing = [key.value for key in cls.update_keys if key not in cls.update_handlers]
        if missing:
            raise TypeError(f"{cls.__name__} has no update handler for: {', '.join(missing)}")
        for method_name in cls.update_handlers.values():
            if not callable(getattr(cls, method_name, None)):
                raise TypeError(f"{cls.__name__}.{method_name} is not a method")

    def __init__(self, project: "Project", name: ResourceName):
        self.project = project
        if not name.type:
            name = replace(name, type=self.resource_type)
        if not name.prefix:
            name = replace(name, prefix=project.prefix)
        self.resource_name = name
        self.module_resource = name.prefix != project.prefix
        self.content: Dict[str, Any] = {"name": ""}
        self._array_handler = ArrayHandler()

    # --- 基本属性 ---

    @property
    def name(self) -> str:
        return resource_name_to_string(self.resource_name)

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        """内存中的当前内容；资源尚未加载（或不存在）时为 None。"""
        return self.content if self.content.get("name") else None

    @property
    def type_display_name(self) -> str:
        # 'cardTypes' -> 'CardType'
        return f"{self.resource_type[:1].upper()}{self.resource_type[1:-1]}"

    @abstractmethod
    def exists(self) -> bool:
        raise NotImplementedError

    def assert_exists(self) -> None:
        if not self.exists():
            raise ResourceNotFoundError(
                f"{self.type_display_name} '{self.name}' does not exist in the project"
            )

    # --- 生命周期 ---

    @abstractmethod
    async def create(self, content: Optional[Dict[str, Any]] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def write(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rename(self, new_name: Union[str, ResourceName]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self) -> None:
        raise NotImplementedError

    def show(self) -> Dict[str, Any]:
        self.assert_exists()
        return copy.deepcopy(self.content)

    async def update(self, update_key: Union[UpdateKey, Dict[str, Any], str], op: Any) -> None:
        update_key = _coerce_update_key(update_key)
        op = parse_operation(op)
        self._check_updatable(update_key)
        key = self._coerce_key(update_key.key)

        existing_name = self.name
        content = copy.deepcopy(self.content)
        handler = getattr(self, self.update_handlers[key])
        handled = await handler(content, update_key, op)
        if handled is False:
            return
        await self.post_update(content, update_key, op)
        await self._after_update(key, op, existing_name)

    async def migrate(self, update_key: Union[UpdateKey, Dict[str, Any], str], op: Any) -> None:
        """
        可重复执行的迁移钩子。基类只处理名称变更：重新执行级联替换，
        替换完成后再次执行不会产生任何改动。
        """
        update_key = _coerce_update_key(update_key)
        op = parse_operation(op)
        if update_key.key == "name" and op.name == "change" and op.target and op.to:
            if op.target != op.to:
                await self._run_name_change(str(op.target), str(op.to), move=False)

    def validate(self, content: Optional[Dict[str, Any]] = None) -> None:
        errors = self.project.validator.validate(
            content if content is not None else self.content, self.schema_id
        )
        if errors:
            raise ResourceValidationError(f"Invalid content JSON: {'; '.join(errors)}")

    # --- 更新辅助 ---

    def _check_updatable(self, update_key: UpdateKey) -> None:
        if self.data is None:
            raise ResourceNotFoundError(f"Resource '{self.name}' does not exist")
        if self.module_resource:
            raise ModuleResourceError("Cannot update module resources")
        if not update_key.key:
            raise OperationError("Cannot update empty key")

    def _coerce_key(self, key: str) -> Any:
        try:
            return self.update_keys(key)
        except ValueError:
            raise ResourceError(f"Unknown property '{key}' for {self.type_label}") from None

    def handle_scalar(self, op: Any) -> Any:
        if op.name != "change":
            raise OperationError(f"Cannot do operation {op.name} on scalar value")
        return op.to

    def handle_array(self, op: Any, array_name: str, values: Optional[List[Any]]) -> List[Any]:
        try:
            return self._array_handler.handle(op, values)
        except OperationError as e:
            raise OperationError(f"Cannot perform operation on '{array_name}'. {e}") from e

    async def _update_scalar(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        content[update_key.key] = self.handle_scalar(op)

    async def _update_array(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        content[update_key.key] = self.handle_array(op, update_key.key, content.get(update_key.key))

    async def post_update(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        """子类修改完成后调用：校验名称与 schema，写盘，记审计日志。"""
        if op.name == "change" and update_key.key == "name":
            new_name = valid_resource_name(self.resource_type, str(op.to), self.project.project_prefixes())
            if resource_name(new_name).prefix != self.project.prefix:
                raise ResourceError("Can only rename project resources")
            if new_name != self.name and self.project.resource_cache.has(new_name):
                raise ResourceExistsError(f"Resource '{new_name}' already exists in the project")
            content["name"] = new_name

        errors = self.project.validator.validate(content, self.schema_id)
        if errors:
            raise ResourceValidationError(
                f"Cannot {op.name} '{update_key.key}' --> '{operation_value(op)}': {'; '.join(errors)}"
            )

        self.content = content
        await self.write()
        await self._log(
            ConfigurationOperation.RESOURCE_UPDATE,
            self.name,
            {"type": self.resource_type, "operation": op.name, "key": update_key.key},
        )

    async def _after_update(self, key: Any, op: Any, existing_name: str) -> None:
        if key.value == "name" and existing_name != self.name:
            await self._run_name_change(existing_name, self.name, move=False)

    # --- 重命名级联 (saga) ---

    async def _apply_name(self, name: str) -> None:
        self.content["name"] = name
        await self.write()

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        """子类追加自己的级联步骤；基类只在最后持久化一次。"""
        saga.add_step("write", self.write)

    def _add_replace_step(
        self,
        saga: RenameSaga,
        step_name: str,
        replace_func: Callable[[str, str], Awaitable[Any]],
        existing_name: str,
        new_name: str,
    ) -> None:
        saga.add_step(
            step_name,
            lambda: replace_func(existing_name, new_name),
            lambda: replace_func(new_name, existing_name),
        )

    async def _run_name_change(self, existing_name: str, new_name: str, move: bool) -> List[str]:
        saga = RenameSaga(name=f"{existing_name} -> {new_name}")
        if move:
            saga.add_step(
                "move",
                lambda: self._apply_name(new_name),
                lambda: self._apply_name(existing_name),
            )
        self._name_change_steps(saga, existing_name, new_name)
        return await saga.run()

    # --- 使用情况与引用 ---

    async def _cards(self) -> List[Card]:
        """项目卡片 + 模板卡片。"""
        project_cards, template_cards = await asyncio.gather(
            self.project.cards(), self.project.template_cards()
        )
        return [*project_cards, *template_cards]

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        """内容或元数据中包含本资源名的卡片 key（已排序）。纯子串匹配。"""
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        name = self.name
        return sorted(card.key for card in all_cards if name in card.serialized())

    def _calculation_files(self, local_only: bool = False) -> Dict[str, List[Path]]:
        files: Dict[str, List[Path]] = {}
        source = "local" if local_only else "all"
        for entry in self.project.resource_cache.entries("calculations", source):
            identifier = entry.name.split("/")[-1]
            folder = Path(entry.path)
            candidates = [folder / identifier / "calculation.lp", folder / f"{identifier}.lp"]
            files[entry.name] = [p for p in candidates if p.is_file()]
        return files

    async def calculations(self) -> List[str]:
        """内容中引用本资源名的计算资源名。"""
        name = self.name
        references = []
        for calculation, files in self._calculation_files().items():
            if calculation == name:
                continue
            for file in files:
                try:
                    text = await read_text(file)
                except OSError as e:
                    raise ResourceError(f"Failed to process file {file}: {e}") from e
                if name in text:
                    references.append(calculation)
                    break
        return references

    @staticmethod
    def _check_replace_arguments(func_name: str, from_name: str, to_name: str) -> None:
        if not from_name or not to_name:
            raise OperationError(f'{func_name}: "from" and "to" parameters must not be empty')

    async def update_calculations(self, from_name: str, to_name: str) -> None:
        self._check_replace_arguments("update_calculations", from_name, to_name)
        targets = [
            (calculation, file)
            for calculation, files in self._calculation_files(local_only=True).items()
            for file in files
        ]
        results = await asyncio.gather(*(replace_in_file(file, from_name, to_name) for _, file in targets))
        for (calculation, _), changed in zip(targets, results):
            if changed:
                self.project.resource_cache.invalidate(calculation)

    def _handlebar_files(self) -> List[Path]:
        files: List[Path] = []
        for resource_type in _HANDLEBAR_RESOURCE_TYPES:
            folder = self.project.paths.resource_path(resource_type)
            if folder.is_dir():
                files.extend(sorted(folder.rglob("*.hbs")))
        return files

    async def update_handlebars(self, from_name: str, to_name: str, files: Optional[List[Path]] = None) -> None:
        self._check_replace_arguments("update_handlebars", from_name, to_name)
        candidates = files if files is not None else self._handlebar_files()
        targets = [Path(file) for file in candidates if Path(file).is_file()]
        results = await asyncio.gather(*(replace_in_file(file, from_name, to_name) for file in targets))
        for file, changed in zip(targets, results):
            if changed:
                self._invalidate_file_owner(file)

    def _invalidate_file_owner(self, file: Path) -> None:
        """让拥有该内容文件的已加载资源失效；自身的内容文件由调用方重新读取。"""
        owner = path_to_resource_name(self.project.paths, file, self.project.prefix)
        if owner is None:
            return
        owner_name = resource_name_to_string(owner)
        if owner_name != self.name:
            self.project.resource_cache.invalidate(owner_name)

    async def update_card_content_references(self, from_name: str, to_name: str) -> None:
        self._check_replace_arguments("update_card_content_references", from_name, to_name)
        cards = await self._cards()
        await asyncio.gather(
            *(
                self.project.update_card_content(card, card.content.replace(from_name, to_name))
                for card in cards
                if card.content and from_name in card.content
            )
        )

    async def _log(self, operation: ConfigurationOperation, target: str, parameters: Optional[Dict[str, Any]] = None) -> None:
        await self.project.configuration_logger.log(operation, target, parameters)
