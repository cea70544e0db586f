# plugins/core_resources/paths.py

from pathlib import Path
from typing import Union


class ProjectPaths:
    """项目在磁盘上的固定布局。"""
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    @property
    def cards_folder(self) -> Path:
        return self.root / ".cards"

    @property
    def local_folder(self) -> Path:
        return self.cards_folder / "local"

    @property
    def modules_folder(self) -> Path:
        return self.cards_folder / "modules"

    @property
    def card_root(self) -> Path:
        return self.root / "cardRoot"

    @property
    def config_file(self) -> Path:
        return self.local_folder / "cardsConfig.json"

    @property
    def migration_log(self) -> Path:
        return self.local_folder / "migrationLog.jsonl"

    def resource_path(self, resource_type: str) -> Path:
        return self.local_folder / resource_type

    def module_resource_path(self, module_name: str, resource_type: str) -> Path:
        return self.modules_folder / module_name / resource_type
