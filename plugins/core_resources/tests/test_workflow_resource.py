# plugins/core_resources/tests/test_workflow_resource.py

import pytest

from plugins.core_resources.contracts import AddOperation, ChangeOperation, RemoveOperation
from plugins.core_resources.errors import OperationError, ResourceInUseError, ResourceValidationError
from tests.conftest_data import read_json

pytestmark = pytest.mark.asyncio

SIMPLE = "test/workflows/simple"


class TestStates:
    async def test_add_state(self, project, local_folder):
        workflow = project.resource_object(SIMPLE)
        await workflow.update("states", AddOperation(target={"name": "Blocked", "category": "active"}))

        states = read_json(local_folder / "workflows" / "simple.json")["states"]
        assert states[-1] == {"name": "Blocked", "category": "active"}

    async def test_add_invalid_state_category_fails_validation(self, project):
        workflow = project.resource_object(SIMPLE)
        with pytest.raises(ResourceValidationError, match="Cannot add 'states'"):
            await workflow.update("states", AddOperation(target={"name": "Odd", "category": "weird"}))
        assert len(workflow.data["states"]) == 3

    async def test_remove_state_cleans_transitions(self, project):
        workflow = project.resource_object(SIMPLE)
        await workflow.update("states", RemoveOperation(target={"name": "Review"}))

        assert [s["name"] for s in workflow.data["states"]] == ["Draft", "Done"]
        assert workflow.data["transitions"] == [
            {"name": "Create", "fromState": [""], "toState": "Draft"},
            {"name": "Finish", "fromState": ["Draft"], "toState": "Done"},
        ]

    async def test_remove_state_with_replacement_moves_cards(self, project, project_root):
        workflow = project.resource_object(SIMPLE)
        await workflow.update(
            "states",
            RemoveOperation(target={"name": "Review"}, replacement_value={"name": "Draft"}),
        )
        card = read_json(project_root / "cardRoot" / "test_1" / "c" / "test_2" / "index.json")
        assert card["workflowState"] == "Draft"

    async def test_change_state(self, project):
        workflow = project.resource_object(SIMPLE)
        await workflow.update(
            "states", ChangeOperation(target={"name": "Done"}, to={"name": "Closed", "category": "closed"})
        )
        assert workflow.data["states"][-1] == {"name": "Closed", "category": "closed"}

    async def test_remove_unknown_state_fails(self, project):
        workflow = project.resource_object(SIMPLE)
        with pytest.raises(OperationError, match="Cannot perform operation on 'states'"):
            await workflow.update("states", RemoveOperation(target={"name": "Nope"}))


class TestTransitions:
    async def test_rank_transition(self, project):
        workflow = project.resource_object(SIMPLE)
        await workflow.update("transitions", {"name": "rank", "target": {"name": "Finish"}, "newIndex": 0})
        assert [t["name"] for t in workflow.data["transitions"]] == ["Finish", "Create", "Submit"]


class TestUsageAndRename:
    async def test_usage_lists_card_types(self, project):
        assert await project.resource_object(SIMPLE).usage() == ["test/cardTypes/task"]

    async def test_used_workflow_cannot_be_deleted(self, project):
        with pytest.raises(ResourceInUseError, match="It is used by: test/cardTypes/task"):
            await project.resource_object(SIMPLE).delete()

    async def test_unused_workflow_can_be_deleted(self, project):
        await project.resource_object("test/workflows/other").delete()
        assert not project.resource_cache.has("test/workflows/other")

    async def test_rename_updates_card_types(self, project, local_folder):
        workflow = project.resource_object(SIMPLE)
        await workflow.rename("test/workflows/flow")

        assert read_json(local_folder / "cardTypes" / "task.json")["workflow"] == "test/workflows/flow"
        assert project.resource_object("test/cardTypes/task").data["workflow"] == "test/workflows/flow"
        assert await workflow.usage() == ["test/cardTypes/task"]
