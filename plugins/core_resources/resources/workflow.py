# plugins/core_resources/resources/workflow.py

import asyncio
import logging
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..array_handler import try_parse_json
from ..contracts import ChangeOperation, ResourcesFrom, UpdateKey, WorkflowKey
from ..defaults import DefaultContent
from ..file_resource import FileResource
from ..saga import RenameSaga

logger = logging.getLogger(__name__)


def _state_name(value: Any) -> Optional[str]:
    parsed = try_parse_json(value)
    if isinstance(parsed, dict):
        return parsed.get("name")
    if isinstance(parsed, str):
        return parsed
    return None


class WorkflowResource(FileResource):
    resource_type = "workflows"
    schema_id = "workflowSchema"
    type_label = "Workflow"
    update_keys = WorkflowKey
    update_handlers = {
        WorkflowKey.NAME: "_update_scalar",
        WorkflowKey.DISPLAY_NAME: "_update_scalar",
        WorkflowKey.DESCRIPTION: "_update_scalar",
        WorkflowKey.STATES: "_update_states",
        WorkflowKey.TRANSITIONS: "_update_array",
    }

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.workflow(self.name)

    def _normalize_content(self, content: Dict[str, Any]) -> Dict[str, Any]:
        content.setdefault("states", [])
        content.setdefault("transitions", [])
        return content

    async def _update_states(self, content: Dict[str, Any], update_key: UpdateKey, op: Any) -> None:
        content["states"] = self.handle_array(op, update_key.key, content.get("states"))
        if op.name == "remove":
            # 被删除的状态不能再出现在转换中
            removed = _state_name(op.target)
            transitions = []
            for transition in content.get("transitions", []):
                if transition.get("toState") == removed:
                    continue
                from_states = [s for s in transition.get("fromState", []) if s != removed]
                transitions.append({**transition, "fromState": from_states})
            content["transitions"] = transitions

    async def _after_update(self, key: Any, op: Any, existing_name: str) -> None:
        await super()._after_update(key, op, existing_name)
        if key == WorkflowKey.STATES and op.name == "remove" and op.replacement_value:
            await self._replace_card_states(_state_name(op.target), _state_name(op.replacement_value))

    def _card_types_using(self, workflow_name: str, source: ResourcesFrom) -> List[Any]:
        return [
            card_type
            for card_type in self.project.resource_cache.resources("cardTypes", source)
            if (card_type.data or {}).get("workflow") == workflow_name
        ]

    async def _replace_card_states(self, removed: Optional[str], replacement: Optional[str]) -> None:
        if not removed or not replacement:
            return
        card_type_names = {ct.name for ct in self._card_types_using(self.name, ResourcesFrom.ALL)}
        cards = [
            card for card in await self._cards()
            if (card.metadata or {}).get("cardType") in card_type_names
            and card.metadata.get("workflowState") == removed
        ]
        await asyncio.gather(
            *(
                self.project.update_card_metadata(card, {**card.metadata, "workflowState": replacement})
                for card in cards
            )
        )
        if cards:
            logger.info(f"Moved {len(cards)} card(s) from state '{removed}' to '{replacement}'")

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self.update_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)
        self._add_replace_step(saga, "card-types", self._update_card_types, existing_name, new_name)

    async def _update_card_types(self, old_name: str, new_name: str) -> None:
        for card_type in self._card_types_using(old_name, ResourcesFrom.LOCAL):
            # 卡片类型更新会检查工作流存在，因此此时新名称必须已经写盘
            await card_type.update(UpdateKey(key="workflow"), ChangeOperation(target=old_name, to=new_name))

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        """卡片引用在前，然后是使用本工作流的卡片类型，最后是计算。"""
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_types = [ct.name for ct in self._card_types_using(self.name, ResourcesFrom.ALL)]
        relevant_cards, calculations = await asyncio.gather(super().usage(all_cards), self.calculations())
        return list(dict.fromkeys([*relevant_cards, *card_types, *calculations]))
