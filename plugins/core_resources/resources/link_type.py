# plugins/core_resources/resources/link_type.py

import asyncio
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..contracts import LinkTypeKey
from ..defaults import DefaultContent
from ..file_resource import FileResource
from ..saga import RenameSaga


class LinkTypeResource(FileResource):
    resource_type = "linkTypes"
    schema_id = "linkTypeSchema"
    type_label = "LinkType"
    update_keys = LinkTypeKey
    update_handlers = {
        LinkTypeKey.NAME: "_update_scalar",
        LinkTypeKey.DISPLAY_NAME: "_update_scalar",
        LinkTypeKey.DESCRIPTION: "_update_scalar",
        LinkTypeKey.OUTBOUND_DISPLAY_NAME: "_update_scalar",
        LinkTypeKey.INBOUND_DISPLAY_NAME: "_update_scalar",
        LinkTypeKey.SOURCE_CARD_TYPES: "_update_array",
        LinkTypeKey.DESTINATION_CARD_TYPES: "_update_array",
        LinkTypeKey.ENABLE_LINK_DESCRIPTION: "_update_scalar",
    }

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.link_type(self.name)

    def _normalize_content(self, content: Dict[str, Any]) -> Dict[str, Any]:
        content.setdefault("sourceCardTypes", [])
        content.setdefault("destinationCardTypes", [])
        return content

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self.update_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)
        self._add_replace_step(saga, "card-links", self._update_card_links, existing_name, new_name)

    async def _update_card_links(self, old_name: str, new_name: str) -> None:
        """卡片元数据 links[].linkType 中的旧名称改为新名称。"""
        updates = []
        for card in await self._cards():
            links = (card.metadata or {}).get("links") or []
            if not any(link.get("linkType") == old_name for link in links):
                continue
            new_links = [
                {**link, "linkType": new_name} if link.get("linkType") == old_name else link
                for link in links
            ]
            updates.append(self.project.update_card_metadata(card, {**card.metadata, "links": new_links}))
        await asyncio.gather(*updates)

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references, calculations = await asyncio.gather(super().usage(all_cards), self.calculations())
        return list(dict.fromkeys([*card_references, *calculations]))
