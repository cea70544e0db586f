# plugins/core_resources/resources/field_type.py

import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..contracts import ChangeOperation, FieldTypeKey, ResourcesFrom, UpdateKey
from ..defaults import DATA_TYPES, DefaultContent
from ..errors import OperationError, ResourceError
from ..file_resource import FileResource
from ..saga import RenameSaga

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_LIST_ITEM_PATTERN = re.compile(r"([^,()]+)")


class FieldTypeResource(FileResource):
    resource_type = "fieldTypes"
    schema_id = "fieldTypeSchema"
    type_label = "FieldType"
    update_keys = FieldTypeKey
    update_handlers = {
        FieldTypeKey.NAME: "_update_scalar",
        FieldTypeKey.DISPLAY_NAME: "_update_scalar",
        FieldTypeKey.DESCRIPTION: "_update_scalar",
        FieldTypeKey.DATA_TYPE: "_update_data_type",
        FieldTypeKey.ENUM_VALUES: "_update_array",
        FieldTypeKey.FIELD_DESCRIPTION: "_update_scalar",
    }

    @staticmethod
    def field_data_types() -> List[str]:
        return list(DATA_TYPES)

    @staticmethod
    def from_query_result(value: Optional[str], data_type: str) -> Any:
        """
        把查询引擎返回的字符串值转换为字段数据类型对应的 Python 值。
        列表以 "(a, b)" 形式返回。无法转换时返回 None。
        """
        if not value:
            return value
        if value == "null":
            return None
        try:
            if data_type == "list":
                return [item.strip() for item in _LIST_ITEM_PATTERN.findall(value)]
            if data_type == "boolean":
                return value == "true"
            if data_type == "date":
                return datetime.fromisoformat(value).date().isoformat()
            if data_type == "dateTime":
                return datetime.fromisoformat(value).isoformat()
            if data_type == "integer":
                return int(float(value))
            if data_type == "number":
                return float(value)
            if data_type == "person":
                return value if _EMAIL_PATTERN.match(value) else None
            return value
        except ValueError as e:
            logger.error(f"Failed to convert value '{value}' to field '{data_type}': {e}")
            return None

    async def create_field_type(self, data_type: str) -> None:
        if data_type not in DATA_TYPES:
            raise ResourceError(
                f"Field type '{data_type}' not supported. Supported types {', '.join(DATA_TYPES)}"
            )
        await self.create(DefaultContent.field_type(self.name, data_type))

    async def _update_data_type(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        new_type = self.handle_scalar(op)
        if new_type not in DATA_TYPES:
            raise OperationError(f"Cannot change '{update_key.key}' to unknown type '{new_type}'")
        if content.get("dataType") == new_type:
            raise OperationError(f"'{update_key.key}' is already '{new_type}'")
        content["dataType"] = new_type

    async def _after_update(self, key: Any, op: Any, existing_name: str) -> None:
        await super()._after_update(key, op, existing_name)
        if key == FieldTypeKey.DATA_TYPE:
            # TODO: 转换使用该字段的卡片中已有的值（文本 -> 数字/日期等）
            logger.warning(f"Data type of '{self.name}' changed; existing card values were not converted")

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self.update_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)
        self._add_replace_step(saga, "card-types", self._update_card_types, existing_name, new_name)

    def _card_types_using(self, field_name: str, source: ResourcesFrom) -> List[Any]:
        result = []
        for card_type in self.project.resource_cache.resources("cardTypes", source):
            fields = (card_type.data or {}).get("customFields", [])
            if any(isinstance(f, dict) and f.get("name") == field_name for f in fields):
                result.append(card_type)
        return result

    async def _update_card_types(self, old_name: str, new_name: str) -> None:
        for card_type in self._card_types_using(old_name, ResourcesFrom.LOCAL):
            await card_type.update(UpdateKey(key="customFields"), ChangeOperation(target=old_name, to=new_name))

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        name = self.name
        with_field = [c.key for c in all_cards if (c.metadata or {}).get(name)]
        content_references, calculations = await asyncio.gather(
            super().usage(all_cards), self.calculations()
        )
        card_types = [ct.name for ct in self._card_types_using(name, ResourcesFrom.ALL)]
        card_references = sorted([*with_field, *content_references])
        return list(dict.fromkeys([*card_references, *card_types, *calculations]))
