# plugins/core_resources/resources/calculation.py

import asyncio
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..defaults import DefaultContent
from ..files import write_text
from ..folder_resource import FolderResource
from ..saga import RenameSaga

CALCULATION_FILE = "calculation.lp"


class CalculationResource(FolderResource):
    """逻辑程序片段。内容文件只有 calculation.lp。"""
    resource_type = "calculations"
    schema_id = "calculationSchema"
    type_label = "Calculation"

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.calculation(self.name)

    async def _create_content_files(self) -> None:
        await write_text(
            self.internal_folder / CALCULATION_FILE,
            f"% add your calculations here for '{self.resource_name.identifier}'",
            exclusive=True,
        )

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references, calculations = await asyncio.gather(super().usage(all_cards), self.calculations())
        return list(dict.fromkeys([*card_references, *calculations]))
