# plugins/core_resources/resources/report.py

import json
import logging
from typing import Any, Dict, List, Optional

from plugins.core_cards.contracts import Card

from ..contracts import CategorizedFolderKey
from ..defaults import DefaultContent
from ..errors import ResourceValidationError
from ..files import write_text
from ..folder_resource import FolderResource
from ..saga import RenameSaga

logger = logging.getLogger(__name__)

PARAMETER_SCHEMA_FILE = "parameterSchema.json"

# 新报告的默认内容文件
_DEFAULT_REPORT_FILES = {
    "index.adoc.hbs": "{{#each results}}\n* {{this.title}}\n{{/each}}\n",
    "query.lp.hbs": "#include \"queryLanguage.lp\".\n\nselect(1, \"title\").\n",
    PARAMETER_SCHEMA_FILE: json.dumps(
        {
            "title": "Report",
            "type": "object",
            "properties": {"cardKey": {"type": "string"}},
            "additionalProperties": False,
        },
        indent=4,
    ) + "\n",
}


class ReportResource(FolderResource):
    resource_type = "reports"
    schema_id = "reportMetadataSchema"
    type_label = "Report"
    update_keys = CategorizedFolderKey
    update_handlers = {
        CategorizedFolderKey.NAME: "_update_scalar",
        CategorizedFolderKey.DISPLAY_NAME: "_update_scalar",
        CategorizedFolderKey.DESCRIPTION: "_update_scalar",
        CategorizedFolderKey.CATEGORY: "_update_scalar",
        CategorizedFolderKey.CONTENT: "_update_content",
    }

    def _default_content(self) -> Dict[str, Any]:
        return DefaultContent.report(self.name)

    async def _create_content_files(self) -> None:
        for file_name, text in _DEFAULT_REPORT_FILES.items():
            await write_text(self.internal_folder / file_name, text, exclusive=True)

    def parameter_schema(self) -> Optional[Dict[str, Any]]:
        schema = self.content_data().get("schema")
        return schema if isinstance(schema, dict) else None

    def validate(self, content: Optional[Dict[str, Any]] = None) -> None:
        schema = self.parameter_schema()
        if schema is not None:
            errors = self.project.validator.check_schema(schema)
            if errors:
                raise ResourceValidationError(f"Invalid parameter schema: {'; '.join(errors)}")
        super().validate(content)

    async def update_file(self, file_name: str, content: str) -> None:
        if file_name == PARAMETER_SCHEMA_FILE:
            try:
                errors = self.project.validator.check_schema(json.loads(content))
            except json.JSONDecodeError:
                # 非法 JSON 交给基类给出统一的错误消息
                errors = []
            if errors:
                raise ResourceValidationError(f"Invalid parameter schema: {'; '.join(errors)}")
        await super().update_file(file_name, content)

    def _name_change_steps(self, saga: RenameSaga, existing_name: str, new_name: str) -> None:
        self._add_replace_step(saga, "handlebars", self._replace_in_own_handlebars, existing_name, new_name)
        self._add_replace_step(saga, "calculations", self.update_calculations, existing_name, new_name)
        saga.add_step("write", self.write)

    async def _replace_in_own_handlebars(self, from_name: str, to_name: str) -> None:
        await self.update_handlebars(from_name, to_name, self.handlebar_files())
        await self.load_content_files()

    async def usage(self, cards: Optional[List[Card]] = None) -> List[str]:
        self.assert_exists()
        all_cards = cards if cards is not None else await self._cards()
        card_references = await super().usage(all_cards)
        return list(dict.fromkeys([*card_references, *await self.calculations()]))
