# plugins/core_resources/resources/template.py

from pathlib import Path
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..contracts import TemplateKey
from ..defaults import DefaultContent
from ..files import write_json
from ..folder_resource import FolderResource
from ..saga import RenameSaga

CARDS_FOLDER = "c"


class TemplateResource(FolderResource):
    """模板：内容目录下的 c/ 保存模板卡片。"""
    resource_type = "templates"
    schema_id = "templateSchema"
    type_label = "Template"
    update_keys = TemplateKey
    update_handlers = {
        TemplateKey.NAME: "_update_scalar",
        TemplateKey.DISPLAY_NAME: "_update_scalar",
        TemplateKey.DESCRIPTION: "_update_scalar",
        TemplateKey.CATEGORY: "_update_scalar",
    }

    @property
    def cards_folder(self) -> Path:
        return self.internal_folder / CARDS_FOLDER

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.template(self.name)

    async def write(self) -> None:
        await super().write()
        self.cards_folder.mkdir(parents=True, exist_ok=True)
        await write_json(self.cards_folder / ".schema", [{"id": "cardBaseSchema", "version": 1}], exclusive=True)

    def number_of_cards(self) -> int:
        if not self.cards_folder.is_dir():
            return 0
        return sum(1 for _ in self.cards_folder.rglob("index.json"))

    def show(self) -> Dict[str, Any]:
        result = super().show()
        result.pop("content", None)
        result["numberOfCards"] = self.number_of_cards()
        return result

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self.update_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references = await super().usage(all_cards)
        return list(dict.fromkeys([*card_references, *await self.calculations()]))
