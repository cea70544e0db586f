# plugins/core_resources/resources/graph_model.py

from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..defaults import DefaultContent
from ..files import write_text
from ..folder_resource import FolderResource
from ..saga import RenameSaga

MODEL_FILE = "model.lp"


class GraphModelResource(FolderResource):
    resource_type = "graphModels"
    schema_id = "graphModelSchema"
    type_label = "GraphModel"

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.graph_model(self.name)

    async def _create_content_files(self) -> None:
        await write_text(
            self.internal_folder / MODEL_FILE,
            f"% add your calculations here for '{self.resource_name.identifier}'",
            exclusive=True,
        )

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "model", self._replace_in_model, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        self._add_replace_step(
            saga, "card-content", self.update_card_content_references, existing_name, new_name
        )
        saga.add_step("write", self.write)

    async def _replace_in_model(self, from_name: str, to_name: str) -> None:
        await self.update_handlebars(from_name, to_name, [self.internal_folder / MODEL_FILE])
        await self.load_content_files()

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references = await super().usage(all_cards)
        return list(dict.fromkeys([*card_references, *await self.calculations()]))
