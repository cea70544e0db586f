# plugins/core_resources/project.py

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from plugins.core_cards.contracts import Card, CardIndexInterface

from .cache import ResourceCache
from .collector import ResourceCollector
from .contracts import (
    ConfigurationLoggerInterface,
    Resource,
    ResourcesFrom,
    SchemaValidatorInterface,
)
from .audit import ConfigurationLogger
from .errors import InvalidResourceNameError, ResourceNotFoundError
from .files import read_json_sync
from .names import ResourceName, resource_name, resource_name_to_string
from .paths import ProjectPaths
from .resource_object import ResourceObject
from .resources import RESOURCE_CLASSES

logger = logging.getLogger(__name__)


class Project:
    """
    一个卡片项目的资源视图。
    持有路径、前缀、资源缓存、校验器、卡片索引与审计日志；
    所有协作者都通过构造函数注入，便于在测试中替换。
    """
    def __init__(
        self,
        root: Union[str, Path],
        validator: SchemaValidatorInterface,
        card_index: CardIndexInterface,
        configuration_logger: Optional[ConfigurationLoggerInterface] = None,
        prefix: Optional[str] = None,
    ):
        self.paths = ProjectPaths(root)
        self.settings = self._read_settings(prefix)
        self.prefix: str = self.settings["cardKeyPrefix"]
        self.validator = validator
        self.card_index = card_index
        self.configuration_logger = configuration_logger or ConfigurationLogger(self.paths.migration_log)
        self._collector = ResourceCollector(self.paths, self.prefix)
        self.resource_cache = ResourceCache(self.paths, self._collector, self._construct)

    def _read_settings(self, prefix: Optional[str]) -> Dict[str, Any]:
        config_file = self.paths.config_file
        if config_file.is_file():
            settings = read_json_sync(config_file)
            if prefix and settings.get("cardKeyPrefix") != prefix:
                logger.warning(
                    f"Prefix '{prefix}' from environment ignored; project uses '{settings.get('cardKeyPrefix')}'"
                )
            return settings
        if prefix:
            return {"cardKeyPrefix": prefix, "name": prefix}
        raise ResourceNotFoundError(f"Project configuration not found at '{config_file}'")

    def initialize(self) -> None:
        """从磁盘（重新）建立资源存在性索引。"""
        self.resource_cache.clear()
        self.resource_cache.collect_local_resources()
        self.resource_cache.collect_module_resources()
        logger.info(
            f"Project '{self.prefix}' initialized with {len(self.resource_cache.names())} resources "
            f"from {self.paths.root}"
        )

    # --- 名称 ---

    def project_prefixes(self) -> List[str]:
        return [self.prefix, *self._collector.module_names()]

    def full_name(self, resource_type: str, name: str) -> str:
        """'identifier' -> 'prefix/type/identifier'；完整名称原样返回。"""
        if "/" in name:
            return name
        return f"{self.prefix}/{resource_type}/{name}"

    def _construct(self, name: ResourceName) -> ResourceObject:
        resource_class = RESOURCE_CLASSES.get(name.type)
        if resource_class is None:
            raise InvalidResourceNameError(
                f"Unknown resource type '{name.type}' in '{resource_name_to_string(name)}'"
            )
        return resource_class(self, name)

    # --- 资源查询 ---

    def resource_object(self, name: Union[str, ResourceName]) -> ResourceObject:
        return self.resource_cache.resource_by_name(name)

    def resource(self, name: str) -> Optional[Dict[str, Any]]:
        """资源内容的副本；不存在时为 None。"""
        if not self.resource_cache.has(name):
            return None
        data = self.resource_object(name).data
        return copy.deepcopy(data) if data is not None else None

    def resource_exists(self, resource_type: str, name: str) -> bool:
        full = self.full_name(resource_type, name)
        if resource_name(full).type != resource_type:
            return False
        return self.resource_cache.has(full)

    def resources(self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL) -> List[Resource]:
        return self.resource_cache.entries(resource_type, source)

    async def create_resource(
        self,
        resource_type: str,
        identifier: str,
        content: Optional[Dict[str, Any]] = None,
        workflow: Optional[str] = None,
        data_type: Optional[str] = None,
    ) -> ResourceObject:
        """按类型创建资源：卡片类型需要工作流，字段类型可只给数据类型。"""
        name = ResourceName(prefix=self.prefix, type=resource_type, identifier=identifier)
        resource = self.resource_cache.resource_by_type(name, resource_type)
        if resource_type == "cardTypes" and content is None:
            await resource.create_card_type(workflow or "")
        elif resource_type == "fieldTypes" and content is None:
            await resource.create_field_type(data_type or "shortText")
        else:
            await resource.create(content)
        return resource

    # --- 卡片（委托给卡片索引） ---

    async def cards(self) -> List[Card]:
        return await self.card_index.cards()

    async def template_cards(self) -> List[Card]:
        return await self.card_index.template_cards()

    async def update_card_metadata(self, card: Card, metadata: Dict[str, Any]) -> None:
        await self.card_index.update_card_metadata(card, metadata)

    async def update_card_content(self, card: Card, content: str) -> None:
        await self.card_index.update_card_content(card, content)

