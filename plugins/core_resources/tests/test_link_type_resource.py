# plugins/core_resources/tests/test_link_type_resource.py

import pytest

from plugins.core_resources.contracts import AddOperation, ChangeOperation, RemoveOperation
from plugins.core_resources.errors import OperationError
from tests.conftest_data import read_json

pytestmark = pytest.mark.asyncio

BLOCKS = "test/linkTypes/blocks"


async def test_create_uses_name_as_display_names(project):
    link_type = await project.create_resource("linkTypes", "relates")
    assert link_type.data["outboundDisplayName"] == "test/linkTypes/relates"
    assert link_type.data["enableLinkDescription"] is False


async def test_card_type_lists(project):
    link_type = project.resource_object(BLOCKS)
    await link_type.update("sourceCardTypes", RemoveOperation(target="test/cardTypes/task"))
    assert link_type.data["sourceCardTypes"] == []

    with pytest.raises(OperationError, match="already exists"):
        await link_type.update("destinationCardTypes", AddOperation(target="test/cardTypes/task"))


async def test_toggle_link_description(project):
    link_type = project.resource_object(BLOCKS)
    await link_type.update("enableLinkDescription", ChangeOperation(target=False, to=True))
    assert link_type.data["enableLinkDescription"] is True


async def test_usage(project):
    assert await project.resource_object(BLOCKS).usage() == ["test_1"]


async def test_rename_updates_card_links(project, project_root, local_folder):
    link_type = project.resource_object(BLOCKS)
    await link_type.rename("test/linkTypes/depends")

    card = read_json(project_root / "cardRoot" / "test_1" / "index.json")
    assert card["links"] == [{"linkType": "test/linkTypes/depends", "cardKey": "test_2"}]
    assert (local_folder / "linkTypes" / "depends.json").is_file()
