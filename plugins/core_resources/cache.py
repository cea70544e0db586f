# plugins/core_resources/cache.py

from __future__ import annotations
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

from .collector import ResourceCollector
from .contracts import Resource, ResourcesFrom
from .errors import InvalidResourceNameError
from .names import ResourceName, path_to_resource_name, resource_name, resource_name_to_string
from .paths import ProjectPaths

if TYPE_CHECKING:
    from .resource_object import ResourceObject

logger = logging.getLogger(__name__)

ResourceFactory = Callable[[ResourceName], "ResourceObject"]


class ResourceCache:
    """
    两层缓存：
      - 存在性索引 (_index)：name -> Resource，只含元数据，可随时整体重建；
      - 对象区 (_arena)：name -> 已实例化的资源对象，跨重命名保持对象身份。

    不变式：_arena 的键始终是 _index 键的子集。
    两张表只通过 add / move / invalidate / remove 系列方法修改。
    """
    def __init__(self, paths: ProjectPaths, collector: ResourceCollector, factory: Optional[ResourceFactory] = None):
        self._paths = paths
        self._collector = collector
        self._factory = factory
        self._index: Dict[str, Resource] = {}
        self._arena: Dict[str, "ResourceObject"] = {}

    # --- 唯一的修改入口 ---

    def add(self, resource: Resource, instance: Optional["ResourceObject"] = None) -> None:
        """登记一个资源；只有在条目不存在时才写入实例。"""
        self._index[resource.name] = resource
        if instance is not None and resource.name not in self._arena:
            self._arena[resource.name] = instance
        self._check_arena()
        logger.debug(f"Resource '{resource.name}' registered ({resource.source}).")

    def move(self, old_name: str, new_name: str) -> None:
        """把索引条目和已加载实例一起移到新键下，实例对象身份不变。"""
        if old_name == new_name:
            return
        entry = self._index.pop(old_name, None)
        instance = self._arena.pop(old_name, None)
        if entry is None:
            logger.debug(f"Move of unknown resource '{old_name}' -> '{new_name}', registering new entry only.")
            entry = self._entry_for(resource_name(new_name))
        else:
            new_parsed = resource_name(new_name)
            entry = entry.model_copy(update={"name": new_name, "type": new_parsed.type})
        self._index[new_name] = entry
        if instance is not None:
            self._arena[new_name] = instance
        self._check_arena()
        logger.debug(f"Resource cache entry moved '{old_name}' -> '{new_name}'.")

    def invalidate(self, name: str) -> None:
        """丢弃已加载的实例，但保留存在性条目；下次访问时从磁盘重新读取。"""
        if self._arena.pop(name, None) is not None:
            logger.debug(f"Resource instance '{name}' invalidated.")

    def remove(self, name: str) -> None:
        self._arena.pop(name, None)
        if self._index.pop(name, None) is not None:
            logger.debug(f"Resource '{name}' removed from cache.")

    def remove_module(self, module_name: str) -> None:
        for name in self.module_resource_names(module_name):
            self.remove(name)

    def clear(self) -> None:
        self._arena.clear()
        self._index.clear()

    # --- 查询 ---

    def has(self, name: str) -> bool:
        return name in self._index

    def entry(self, name: str) -> Optional[Resource]:
        return self._index.get(name)

    def cached_instance(self, name: str) -> Optional["ResourceObject"]:
        return self._arena.get(name)

    def names(self) -> List[str]:
        return list(self._index.keys())

    def module_names(self) -> List[str]:
        return sorted({r.module_name for r in self._index.values() if r.module_name})

    def module_resource_names(self, module_name: str) -> List[str]:
        return [n for n, r in self._index.items() if r.module_name == module_name]

    def entries(self, resource_type: Optional[str] = None, source: ResourcesFrom = ResourcesFrom.ALL) -> List[Resource]:
        source = ResourcesFrom(source)
        result = []
        for entry in self._index.values():
            if resource_type and entry.type != resource_type:
                continue
            if source == ResourcesFrom.LOCAL and entry.source != "local":
                continue
            if source == ResourcesFrom.IMPORTED and entry.source != "module":
                continue
            result.append(entry)
        return sorted(result, key=lambda r: r.name)

    def resources(self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL) -> List["ResourceObject"]:
        return [self.resource_by_name(entry.name) for entry in self.entries(resource_type, source)]

    def resource_by_name(self, name: Union[str, ResourceName]) -> "ResourceObject":
        """
        获取或创建资源对象。
        构造总是允许的（用于两阶段创建），但只有索引确认存在时才放入对象区。
        """
        key = name if isinstance(name, str) else resource_name_to_string(name)
        instance = self._arena.get(key)
        if instance is not None:
            return instance
        if self._factory is None:
            raise RuntimeError("ResourceCache has no resource factory configured.")
        parsed = resource_name(key)
        instance = self._factory(parsed)
        if key in self._index:
            self._arena[key] = instance
        return instance

    def resource_by_type(self, name: Union[str, ResourceName], resource_type: str) -> "ResourceObject":
        parsed = name if isinstance(name, ResourceName) else resource_name(name)
        if parsed.type and parsed.type != resource_type:
            raise InvalidResourceNameError(
                f"Resource '{resource_name_to_string(parsed)}' is not of type '{resource_type}'"
            )
        return self.resource_by_name(parsed)

    # --- 整体重建 ---

    def collect_local_resources(self) -> None:
        for resource in self._collector.collect_local():
            self._index[resource.name] = resource

    def collect_module_resources(self, module_name: Optional[str] = None) -> None:
        for resource in self._collector.collect_modules(module_name):
            self._index[resource.name] = resource

    def changed(self) -> None:
        """本地资源在外部发生了变化：丢弃全部本地条目并重新扫描。"""
        for name in [n for n, r in self._index.items() if r.source == "local"]:
            self.remove(name)
        self.collect_local_resources()

    def changed_modules(self, module_name: Optional[str] = None) -> None:
        """模块被导入/移除/更新：丢弃对应模块（或全部模块）的条目并重新扫描。"""
        stale = [
            n for n, r in self._index.items()
            if r.source == "module" and (module_name is None or r.module_name == module_name)
        ]
        for name in stale:
            self.remove(name)
        self.collect_module_resources(module_name)

    # --- 文件系统监听 ---

    def handle_file_system_change(self, file_path: Union[str, Path]) -> Optional[str]:
        """
        单个文件变更的增量更新：登记（或刷新）索引条目并使已加载实例失效。
        无法映射为资源名的路径只记录警告。
        """
        parsed = path_to_resource_name(self._paths, Path(file_path), self._collector_prefix())
        if parsed is None:
            logger.warning(f"Ignoring file system change for non-resource path '{file_path}'")
            return None
        name = resource_name_to_string(parsed)
        entry = self._entry_for(parsed)
        folder = Path(entry.path)
        if (folder / f"{parsed.identifier}.json").exists() or (folder / f"{parsed.identifier}.lp").exists():
            self._index[name] = entry
            self.invalidate(name)
        else:
            # 元数据文件已不存在：资源被外部删除
            self.remove(name)
        return name

    # --- 内部工具 ---

    def _check_arena(self) -> None:
        assert self._arena.keys() <= self._index.keys(), "resource arena holds names missing from the index"

    def _collector_prefix(self) -> str:
        return self._collector.project_prefix

    def _entry_for(self, parsed: ResourceName) -> Resource:
        is_local = parsed.prefix == self._collector_prefix()
        folder = (
            self._paths.resource_path(parsed.type)
            if is_local
            else self._paths.module_resource_path(parsed.prefix, parsed.type)
        )
        return Resource(
            name=resource_name_to_string(parsed),
            type=parsed.type,
            path=str(folder),
            source="local" if is_local else "module",
            module_name=None if is_local else parsed.prefix,
        )
