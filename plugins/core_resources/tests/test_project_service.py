# plugins/core_resources/tests/test_project_service.py

import asyncio

import pytest

from plugins.core_cards.index import FileCardIndex
from plugins.core_resources.contracts import CreateResourceRequest, UpdateKey
from plugins.core_resources.errors import InvalidResourceNameError, ResourceNotFoundError
from plugins.core_resources.project import Project
from plugins.core_resources.service import ResourceCommandService


def make_project(root, validator, prefix=None):
    return Project(root, validator=validator, card_index=FileCardIndex(root, prefix=prefix), prefix=prefix)


class TestProjectSettings:
    def test_prefix_from_configuration(self, project):
        assert project.prefix == "test"
        assert project.settings["name"] == "Test project"

    def test_configuration_wins_over_argument(self, project_root, validator):
        assert make_project(project_root, validator, prefix="env").prefix == "test"

    def test_prefix_argument_without_configuration(self, tmp_path, validator):
        project = make_project(tmp_path, validator, prefix="fresh")
        project.initialize()
        assert project.prefix == "fresh"
        assert project.resource_cache.names() == []

    def test_missing_configuration_and_prefix(self, tmp_path, validator):
        with pytest.raises(ResourceNotFoundError, match="Project configuration not found"):
            make_project(tmp_path, validator)

    def test_full_name(self, project):
        assert project.full_name("workflows", "simple") == "test/workflows/simple"
        assert project.full_name("workflows", "base/workflows/x") == "base/workflows/x"


@pytest.fixture
def service(project) -> ResourceCommandService:
    return ResourceCommandService(project)


@pytest.mark.asyncio
class TestResourceCommandService:
    async def test_create_and_show(self, service):
        shown = await service.create("calculations", CreateResourceRequest(identifier="extra"))
        assert shown["name"] == "test/calculations/extra"
        assert (await service.show("calculations", "extra"))["content"]["calculation"]

    async def test_unknown_type(self, service):
        with pytest.raises(InvalidResourceNameError):
            await service.create("cards", CreateResourceRequest(identifier="x"))
        with pytest.raises(InvalidResourceNameError):
            await service.show("cards", "x")

    async def test_concurrent_commands_are_serialised(self, service, project):
        await asyncio.gather(
            service.create("fieldTypes", CreateResourceRequest(identifier="a")),
            service.create("fieldTypes", CreateResourceRequest(identifier="b")),
            service.update(
                "workflows",
                "simple",
                UpdateKey(key="states"),
                {"name": "add", "target": {"name": "Blocked", "category": "active"}},
            ),
            service.update(
                "workflows",
                "simple",
                UpdateKey(key="states"),
                {"name": "add", "target": {"name": "Parked", "category": "none"}},
            ),
        )
        states = [s["name"] for s in project.resource("test/workflows/simple")["states"]]
        assert states[-2:] in (["Blocked", "Parked"], ["Parked", "Blocked"])
        assert project.resource_exists("fieldTypes", "a")
        assert project.resource_exists("fieldTypes", "b")
        assert len(await service.audit_entries()) == 4

    async def test_rename_accepts_identifier(self, service):
        shown = await service.rename("fieldTypes", "size", "points")
        assert shown["name"] == "test/fieldTypes/points"

    async def test_refresh_counts_resources(self, service):
        assert await service.refresh() == 10
