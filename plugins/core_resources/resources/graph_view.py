# plugins/core_resources/resources/graph_view.py

from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..contracts import CategorizedFolderKey
from ..defaults import DefaultContent
from ..files import write_text
from ..folder_resource import FolderResource
from ..saga import RenameSaga

VIEW_FILE = "view.lp.hbs"


class GraphViewResource(FolderResource):
    resource_type = "graphViews"
    schema_id = "graphViewSchema"
    type_label = "GraphView"
    update_keys = CategorizedFolderKey
    update_handlers = {
        CategorizedFolderKey.NAME: "_update_scalar",
        CategorizedFolderKey.DISPLAY_NAME: "_update_scalar",
        CategorizedFolderKey.DESCRIPTION: "_update_scalar",
        CategorizedFolderKey.CATEGORY: "_update_scalar",
        CategorizedFolderKey.CONTENT: "_update_content",
    }

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.graph_view(self.name)

    async def _create_content_files(self) -> None:
        await write_text(
            self.internal_folder / VIEW_FILE,
            f"% add your view here for '{self.resource_name.identifier}'\n",
            exclusive=True,
        )

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self._replace_in_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)

    async def _replace_in_handlebars(self, from_name: str, to_name: str) -> None:
        await self.update_handlebars(from_name, to_name)
        await self.load_content_files()

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references = await super().usage(all_cards)
        return list(dict.fromkeys([*card_references, *await self.calculations()]))
