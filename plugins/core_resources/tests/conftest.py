# plugins/core_resources/tests/conftest.py

from pathlib import Path

import pytest

from plugins.core_cards.index import FileCardIndex
from plugins.core_resources.audit import ConfigurationLogger
from plugins.core_resources.project import Project
from plugins.core_resources.validation import JsonSchemaValidator
from tests.conftest_data import build_project_tree


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    return build_project_tree(tmp_path / "project")


@pytest.fixture
def validator() -> JsonSchemaValidator:
    return JsonSchemaValidator()


@pytest.fixture
def project(project_root: Path, validator: JsonSchemaValidator) -> Project:
    """已完成初始扫描的项目。"""
    project = Project(
        project_root,
        validator=validator,
        card_index=FileCardIndex(project_root),
        configuration_logger=ConfigurationLogger(project_root / ".cards" / "local" / "migrationLog.jsonl"),
    )
    project.initialize()
    return project


@pytest.fixture
def local_folder(project_root: Path) -> Path:
    return project_root / ".cards" / "local"
