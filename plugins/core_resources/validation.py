# plugins/core_resources/validation.py

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from .contracts import SchemaValidatorInterface
from .errors import ResourceValidationError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"


class JsonSchemaValidator(SchemaValidatorInterface):
    """
    按 schema id 校验资源内容。
    schema 文件为 <schema_dir>/<schemaId>.json；编译后的校验器按 id 缓存。
    通过容器注入到 Project，不存在全局单例。
    """
    def __init__(self, schema_dir: Union[str, Path] = SCHEMA_DIR):
        self._schema_dir = Path(schema_dir)
        self._validators: Dict[str, Draft7Validator] = {}

    def _load(self, schema_id: str) -> Optional[Draft7Validator]:
        if schema_id in self._validators:
            return self._validators[schema_id]
        schema_file = self._schema_dir / f"{schema_id}.json"
        if not schema_file.is_file():
            return None
        schema = json.loads(schema_file.read_text(encoding="utf-8"))
        Draft7Validator.check_schema(schema)
        validator = Draft7Validator(schema)
        self._validators[schema_id] = validator
        logger.debug(f"Loaded schema '{schema_id}' from {schema_file}")
        return validator

    def has_schema(self, schema_id: str) -> bool:
        return self._load(schema_id) is not None

    def check_schema(self, schema: Dict[str, Any]) -> List[str]:
        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            return [e.message]
        return []

    def validate(self, content: Dict[str, Any], schema_id: str) -> List[str]:
        validator = self._load(schema_id)
        if validator is None:
            raise ResourceValidationError(f"Unknown schema '{schema_id}'")
        messages = []
        for error in sorted(validator.iter_errors(content), key=lambda e: ".".join(str(p) for p in e.absolute_path)):
            path = ".".join(str(p) for p in error.absolute_path) or "root"
            messages.append(f"{path}: {error.message}")
        return messages
