# plugins/core_cards/__init__.py
import os
import logging

from backend.core.contracts import Container, HookManager
from .index import FileCardIndex

logger = logging.getLogger(__name__)

def _create_card_index() -> FileCardIndex:
    return FileCardIndex(
        os.getenv("CARDS_PROJECT_PATH", "."),
        prefix=os.getenv("CARDS_PROJECT_PREFIX"),
    )

def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_cards] 插件...")
    container.register("card_index", _create_card_index, singleton=True)
    logger.info("插件 [core_cards] 注册成功。")
