# plugins/core_cards/contracts.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class Card(BaseModel):
    """一张卡片：元数据 (index.json) + AsciiDoc 内容 (index.adoc)。"""
    key: str
    path: str = Field(..., description="卡片目录的绝对路径。")
    metadata: Optional[Dict[str, Any]] = None
    content: Optional[str] = None
    template: Optional[str] = Field(default=None, description="模板卡片所属的模板资源名。")

    def serialized(self) -> str:
        """用于引用搜索的扁平文本。"""
        return f"{self.model_dump_json(include={'metadata'})}\n{self.content or ''}"


class CardIndexInterface(ABC):
    """项目范围的卡片索引；资源引擎只通过此接口访问卡片。"""

    @abstractmethod
    async def cards(self) -> List[Card]:
        """项目卡片（cardRoot 下的全部卡片，含子卡片）。"""
        raise NotImplementedError

    @abstractmethod
    async def template_cards(self) -> List[Card]:
        """所有本地模板中的模板卡片。"""
        raise NotImplementedError

    @abstractmethod
    async def update_card_metadata(self, card: Card, metadata: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def update_card_content(self, card: Card, content: str) -> None:
        raise NotImplementedError
