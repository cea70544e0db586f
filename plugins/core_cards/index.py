# plugins/core_cards/index.py

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles

from .contracts import Card, CardIndexInterface

logger = logging.getLogger(__name__)

METADATA_FILE = "index.json"
CONTENT_FILE = "index.adoc"
CHILDREN_FOLDER = "c"


class FileCardIndex(CardIndexInterface):
    """
    从磁盘读取卡片的索引。
    项目卡片位于 <root>/cardRoot/<KEY>/，子卡片位于父卡片的 c/ 目录；
    模板卡片位于 <root>/.cards/local/templates/<id>/c/。
    每次调用都重新读取磁盘，不做缓存。
    """
    def __init__(self, project_root: Union[str, Path], prefix: Optional[str] = None):
        self.root = Path(project_root).resolve()
        self.card_root = self.root / "cardRoot"
        self.templates_folder = self.root / ".cards" / "local" / "templates"
        self.prefix = prefix or self._configured_prefix()

    def _configured_prefix(self) -> Optional[str]:
        config_file = self.root / ".cards" / "local" / "cardsConfig.json"
        if not config_file.is_file():
            return None
        try:
            return json.loads(config_file.read_text(encoding="utf-8")).get("cardKeyPrefix")
        except json.JSONDecodeError as e:
            logger.warning(f"Cannot read card key prefix from {config_file}: {e}")
            return None

    async def cards(self) -> List[Card]:
        return await self._read_tree(self.card_root)

    async def template_cards(self) -> List[Card]:
        if not self.templates_folder.is_dir():
            return []
        result: List[Card] = []
        for template_folder in sorted(p for p in self.templates_folder.iterdir() if p.is_dir()):
            template_name = f"{self.prefix}/templates/{template_folder.name}" if self.prefix else template_folder.name
            result.extend(
                await self._read_tree(template_folder / CHILDREN_FOLDER, template=template_name)
            )
        return result

    async def _read_tree(self, folder: Path, template: Optional[str] = None) -> List[Card]:
        if not folder.is_dir():
            return []
        card_folders = [p for p in sorted(folder.iterdir()) if p.is_dir() and not p.name.startswith(".")]
        cards = await asyncio.gather(*(self._read_card(p, template) for p in card_folders))
        result: List[Card] = []
        for card_folder, card in zip(card_folders, cards):
            if card is not None:
                result.append(card)
            result.extend(await self._read_tree(card_folder / CHILDREN_FOLDER, template))
        return result

    async def _read_card(self, folder: Path, template: Optional[str]) -> Optional[Card]:
        metadata_file = folder / METADATA_FILE
        if not metadata_file.is_file():
            return None
        metadata: Optional[Dict[str, Any]] = None
        try:
            async with aiofiles.open(metadata_file, mode="r", encoding="utf-8") as f:
                metadata = json.loads(await f.read())
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid metadata in card '{folder.name}': {e}")
        content: Optional[str] = None
        content_file = folder / CONTENT_FILE
        if content_file.is_file():
            async with aiofiles.open(content_file, mode="r", encoding="utf-8") as f:
                content = await f.read()
        return Card(key=folder.name, path=str(folder), metadata=metadata, content=content, template=template)

    async def update_card_metadata(self, card: Card, metadata: Dict[str, Any]) -> None:
        metadata_file = Path(card.path) / METADATA_FILE
        async with aiofiles.open(metadata_file, mode="w", encoding="utf-8") as f:
            await f.write(json.dumps(metadata, indent=4, ensure_ascii=False) + "\n")
        card.metadata = metadata
        logger.debug(f"Updated metadata of card '{card.key}'")

    async def update_card_content(self, card: Card, content: str) -> None:
        content_file = Path(card.path) / CONTENT_FILE
        async with aiofiles.open(content_file, mode="w", encoding="utf-8") as f:
            await f.write(content)
        card.content = content
        logger.debug(f"Updated content of card '{card.key}'")
