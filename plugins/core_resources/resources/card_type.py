# plugins/core_resources/resources/card_type.py

import asyncio
import logging
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..array_handler import is_json_collection_string, normalize_operation, try_parse_json
from ..contracts import (
    CardTypeKey,
    ChangeOperation,
    ResourcesFrom,
    UpdateKey,
)
from ..defaults import DefaultContent
from ..errors import ResourceError, ResourceNotFoundError
from ..file_resource import FileResource
from ..names import valid_resource_name
from ..saga import RenameSaga

logger = logging.getLogger(__name__)

_VISIBLE_FIELD_ARRAYS = ("alwaysVisibleFields", "optionallyVisibleFields")


def _field_name(target: Any) -> Optional[str]:
    """更新目标可以是字段对象、JSON 字符串或裸字段名。"""
    parsed = try_parse_json(target)
    if isinstance(parsed, dict):
        return parsed.get("name")
    if isinstance(parsed, str):
        return parsed
    return None


class CardTypeResource(FileResource):
    resource_type = "cardTypes"
    schema_id = "cardTypeSchema"
    type_label = "CardType"
    update_keys = CardTypeKey
    update_handlers = {
        CardTypeKey.NAME: "_update_scalar",
        CardTypeKey.DISPLAY_NAME: "_update_scalar",
        CardTypeKey.DESCRIPTION: "_update_scalar",
        CardTypeKey.WORKFLOW: "_update_workflow",
        CardTypeKey.CUSTOM_FIELDS: "_update_custom_fields",
        CardTypeKey.ALWAYS_VISIBLE_FIELDS: "_update_visible_fields",
        CardTypeKey.OPTIONALLY_VISIBLE_FIELDS: "_update_visible_fields",
    }

    def _normalize_content(self, content: Dict[str, Any]) -> Dict[str, Any]:
        content.setdefault("customFields", [])
        for array_name in _VISIBLE_FIELD_ARRAYS:
            content.setdefault(array_name, [])
        for field in content["customFields"]:
            if isinstance(field, dict):
                field.setdefault("isCalculated", False)
        return content

    async def create(self, content: Optional[Dict[str, Any]] = None) -> None:
        if not content:
            raise ResourceError("Cannot create cardType without providing workflow for it")
        await super().create(content)

    async def create_card_type(self, workflow_name: str) -> None:
        if not workflow_name:
            raise ResourceError("Cannot create cardType without providing workflow for it")
        workflow = valid_resource_name(
            "workflows", self.project.full_name("workflows", workflow_name), self.project.project_prefixes()
        )
        if not self.project.resource_exists("workflows", workflow):
            raise ResourceNotFoundError(f"Workflow '{workflow_name}' does not exist in the project")
        await self.create(DefaultContent.card_type(self.name, workflow))

    # --- 更新处理器 ---

    async def _update_workflow(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        new_workflow = self.handle_scalar(op)
        if not self.project.resource_exists("workflows", new_workflow):
            raise ResourceNotFoundError(f"Workflow '{new_workflow}' does not exist in the project")
        mapping = self._state_mapping(op)
        if mapping:
            self._verify_state_mapping(mapping, content["workflow"], new_workflow)
        content["workflow"] = new_workflow

    async def _update_custom_fields(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        op = normalize_operation(op)
        fields = content.get("customFields", [])
        if isinstance(op, ChangeOperation) and isinstance(op.to, str) and not is_json_collection_string(op.to):
            # 只给出新字段名时，保留原字段的其他属性
            index = self._array_handler.find_index(op.target, fields)
            if index >= 0:
                op = op.model_copy(update={"to": {**fields[index], "name": op.to}})
        self._validate_field_type(update_key.key, op, content)
        content["customFields"] = self.handle_array(op, update_key.key, fields)
        for field in content["customFields"]:
            if isinstance(field, dict):
                field.setdefault("isCalculated", False)
        if op.name == "remove":
            removed = _field_name(op.target)
            for array_name in _VISIBLE_FIELD_ARRAYS:
                content[array_name] = [f for f in content.get(array_name, []) if f != removed]
        elif op.name == "change":
            old, new = _field_name(op.target), _field_name(op.to)
            for array_name in _VISIBLE_FIELD_ARRAYS:
                content[array_name] = [new if f == old else f for f in content.get(array_name, [])]

    async def _update_visible_fields(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        op = normalize_operation(op)
        self._validate_field_type(update_key.key, op, content)
        await self._update_array(content, update_key, op)

    def _validate_field_type(self, key: str, op: Any, content: Dict[str, Any]) -> None:
        """新增/修改的字段必须是项目中存在的字段类型；可见字段还必须已定义在本卡片类型中。"""
        if op.name == "add":
            candidates = [op.target]
        elif op.name == "change":
            candidates = [op.to]
        elif op.name == "replaceAll":
            candidates = list(op.to)
        else:
            return
        defined = {f.get("name") for f in content.get("customFields", []) if isinstance(f, dict)}
        for candidate in candidates:
            field = _field_name(candidate)
            if not field or not self.project.resource_exists("fieldTypes", field):
                raise ResourceNotFoundError(f"Field type '{field}' does not exist in the project")
            if key in _VISIBLE_FIELD_ARRAYS and field not in defined:
                raise ResourceError(f"Field type '{field}' is not defined in card type '{self.name}'")

    @staticmethod
    def _state_mapping(op: Any) -> Dict[str, str]:
        if isinstance(op, ChangeOperation) and op.mapping_table:
            return dict(op.mapping_table.state_mapping)
        return {}

    def _workflow_states(self, workflow_name: str) -> List[str]:
        workflow = self.project.resource(workflow_name)
        if workflow is None:
            raise ResourceNotFoundError(f"Workflow '{workflow_name}' does not exist in the project")
        return [state.get("name") for state in workflow.get("states", [])]

    def _verify_state_mapping(self, mapping: Dict[str, str], current_workflow: str, new_workflow: str) -> None:
        current_states = self._workflow_states(current_workflow)
        new_states = self._workflow_states(new_workflow)
        unmapped = [state for state in current_states if state not in mapping]
        if unmapped:
            raise ResourceError(
                f"State mapping validation failed: The following states exist in the current workflow "
                f"'{current_workflow}' but are not mapped from in the state mapping: {', '.join(unmapped)}."
            )
        invalid = [state for state in mapping.values() if state not in new_states]
        if invalid:
            raise ResourceError(
                f"State mapping validation failed: The following target states in the mapping do not exist "
                f"in the new workflow '{new_workflow}': {', '.join(invalid)}."
            )

    # --- 更新后的级联 ---

    async def _after_update(self, key: Any, op: Any, existing_name: str) -> None:
        await super()._after_update(key, op, existing_name)
        if key == CardTypeKey.CUSTOM_FIELDS:
            await self._handle_custom_fields_change(op)
        elif key == CardTypeKey.WORKFLOW:
            mapping = self._state_mapping(op)
            if mapping:
                await self._handle_workflow_change(mapping)

    async def _collect_cards(self) -> List[Card]:
        return [c for c in await self._cards() if (c.metadata or {}).get("cardType") == self.name]

    async def _handle_custom_fields_change(self, op: Any) -> None:
        if op.name not in ("add", "change", "remove"):
            return
        cards = await self._collect_cards()
        updates = []
        for card in cards:
            metadata = dict(card.metadata or {})
            if op.name == "add":
                metadata[_field_name(op.target)] = None
            elif op.name == "remove":
                removed = _field_name(op.target)
                if removed not in metadata:
                    continue
                del metadata[removed]
            else:
                old, new = _field_name(op.target), _field_name(op.to)
                if not old or not new or old not in metadata:
                    continue
                metadata[new] = metadata.pop(old)
            updates.append(self.project.update_card_metadata(card, metadata))
        await asyncio.gather(*updates)

    async def _handle_workflow_change(self, mapping: Dict[str, str]) -> None:
        unmapped: List[str] = []
        updates = []
        for card in await self._collect_cards():
            current = (card.metadata or {}).get("workflowState")
            if not current:
                continue
            new_state = mapping.get(current)
            if new_state and new_state != current:
                logger.info(f"Updating card '{card.key}': {current} -> {new_state}")
                updates.append(
                    self.project.update_card_metadata(card, {**card.metadata, "workflowState": new_state})
                )
            elif not new_state and current not in unmapped:
                unmapped.append(current)
        await asyncio.gather(*updates)
        if unmapped:
            logger.warning(f"Found unmapped states that were not updated: {', '.join(unmapped)}")

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self.update_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)
        self._add_replace_step(saga, "link-types", self._update_link_types, existing_name, new_name)

    async def _update_link_types(self, old_name: str, new_name: str) -> None:
        """本地链接类型的 sourceCardTypes / destinationCardTypes 中的旧名称改为新名称。"""
        updates = []
        for link_type in self.project.resource_cache.resources("linkTypes", ResourcesFrom.LOCAL):
            data = link_type.data
            if data is None:
                continue
            for field in ("destinationCardTypes", "sourceCardTypes"):
                if old_name in data.get(field, []):
                    updates.append(
                        link_type.update(UpdateKey(key=field), ChangeOperation(target=old_name, to=new_name))
                    )
        # 同一链接类型的两个字段更新会写同一个文件，因此逐个等待
        for update in updates:
            await update

    # --- 使用情况 ---

    def _relevant_link_types(self) -> List[str]:
        result = []
        for link_type in self.project.resource_cache.resources("linkTypes", ResourcesFrom.ALL):
            data = link_type.data or {}
            if self.name in data.get("destinationCardTypes", []) or self.name in data.get("sourceCardTypes", []):
                result.append(link_type.name)
        return result

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        with_card_type = [c.key for c in all_cards if (c.metadata or {}).get("cardType") == self.name]
        content_references = await super().usage(all_cards)
        card_references = sorted([*with_card_type, *content_references])
        calculations = await self.calculations()
        # 去重并保持顺序：卡片 -> 链接类型 -> 计算
        return list(dict.fromkeys([*card_references, *self._relevant_link_types(), *calculations]))
