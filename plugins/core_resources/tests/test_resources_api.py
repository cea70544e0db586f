# plugins/core_resources/tests/test_resources_api.py

import pytest
from httpx import AsyncClient

from tests.conftest_data import read_json, write_json

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]

API = "/api/resources"


class TestQueries:
    async def test_list_resources(self, client: AsyncClient):
        response = await client.get(f"{API}/fieldTypes")
        assert response.status_code == 200
        names = [r["name"] for r in response.json()]
        assert names == ["base/fieldTypes/shared", "test/fieldTypes/priority", "test/fieldTypes/size"]

    async def test_list_resources_by_source(self, client: AsyncClient):
        response = await client.get(f"{API}/fieldTypes", params={"from": "imported"})
        assert [r["name"] for r in response.json()] == ["base/fieldTypes/shared"]
        assert response.json()[0]["source"] == "module"

    async def test_list_unknown_type(self, client: AsyncClient):
        response = await client.get(f"{API}/cards")
        assert response.status_code == 400
        assert "Unknown resource type 'cards'" in response.json()["detail"]

    async def test_show_resource(self, client: AsyncClient):
        response = await client.get(f"{API}/test/reports/summary")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "test/reports/summary"
        assert body["content"]["schema"] == {"type": "object"}

    async def test_show_missing_resource(self, client: AsyncClient):
        response = await client.get(f"{API}/test/workflows/missing")
        assert response.status_code == 404

    async def test_usage(self, client: AsyncClient):
        response = await client.get(f"{API}/test/linkTypes/blocks/usage")
        assert response.status_code == 200
        assert response.json() == ["test_1"]


class TestCommands:
    async def test_create_field_type(self, client: AsyncClient, e2e_project):
        response = await client.post(f"{API}/fieldTypes", json={"identifier": "effort", "dataType": "number"})
        assert response.status_code == 201
        assert response.json()["name"] == "test/fieldTypes/effort"
        assert (e2e_project / ".cards" / "local" / "fieldTypes" / "effort.json").is_file()

    async def test_create_duplicate(self, client: AsyncClient):
        response = await client.post(f"{API}/workflows", json={"identifier": "simple"})
        assert response.status_code == 409

    async def test_create_card_type_needs_workflow(self, client: AsyncClient):
        response = await client.post(f"{API}/cardTypes", json={"identifier": "bug"})
        assert response.status_code == 400
        response = await client.post(f"{API}/cardTypes", json={"identifier": "bug", "workflow": "simple"})
        assert response.status_code == 201
        assert response.json()["workflow"] == "test/workflows/simple"

    async def test_update_resource(self, client: AsyncClient):
        response = await client.patch(
            f"{API}/test/workflows/simple",
            json={"updateKey": {"key": "displayName"}, "operation": {"name": "change", "target": "Simple", "to": "Flow"}},
        )
        assert response.status_code == 200
        assert response.json()["displayName"] == "Flow"

    async def test_update_module_resource_is_forbidden(self, client: AsyncClient):
        response = await client.patch(
            f"{API}/base/fieldTypes/shared",
            json={"updateKey": {"key": "displayName"}, "operation": {"name": "change", "target": "", "to": "x"}},
        )
        assert response.status_code == 403

    async def test_update_with_unknown_operation_is_rejected(self, client: AsyncClient):
        response = await client.patch(
            f"{API}/test/workflows/simple",
            json={"updateKey": {"key": "states"}, "operation": {"name": "shuffle", "target": "x"}},
        )
        assert response.status_code == 422

    async def test_update_folder_content(self, client: AsyncClient, e2e_project):
        response = await client.patch(
            f"{API}/test/reports/summary",
            json={
                "updateKey": {"key": "content", "subKey": "contentTemplate"},
                "operation": {"name": "change", "target": "", "to": "= Summary"},
            },
        )
        assert response.status_code == 200
        assert response.json()["content"]["contentTemplate"] == "= Summary"

    async def test_rename_resource(self, client: AsyncClient, e2e_project):
        response = await client.post(f"{API}/test/linkTypes/blocks/rename", json={"newName": "depends"})
        assert response.status_code == 200
        assert response.json()["name"] == "test/linkTypes/depends"

        card = read_json(e2e_project / "cardRoot" / "test_1" / "index.json")
        assert card["links"][0]["linkType"] == "test/linkTypes/depends"

    async def test_delete_resource(self, client: AsyncClient):
        response = await client.delete(f"{API}/test/fieldTypes/size")
        assert response.status_code == 204
        response = await client.get(f"{API}/test/fieldTypes/size")
        assert response.status_code == 404

    async def test_delete_used_resource_reports_usages(self, client: AsyncClient):
        response = await client.delete(f"{API}/test/workflows/simple")
        assert response.status_code == 409
        assert response.json()["detail"]["usages"] == ["test/cardTypes/task"]

    async def test_audit_log(self, client: AsyncClient):
        await client.post(f"{API}/workflows", json={"identifier": "release"})
        response = await client.get(f"{API}/audit")
        assert response.status_code == 200
        assert [e["operation"] for e in response.json()] == ["resource_create"]
        assert response.json()[0]["target"] == "test/workflows/release"


class TestSynchronisation:
    async def test_refresh(self, client: AsyncClient, e2e_project):
        write_json(e2e_project / ".cards" / "local" / "graphModels" / "deps.json", {"name": "test/graphModels/deps"})
        response = await client.post(f"{API}/refresh")
        assert response.status_code == 200
        assert response.json() == {"resources": 11}

    async def test_file_changed(self, client: AsyncClient, e2e_project):
        path = e2e_project / ".cards" / "local" / "workflows" / "simple.json"
        data = read_json(path)
        data["displayName"] = "Edited outside"
        write_json(path, data)

        response = await client.post(f"{API}/file-changed", json={"path": str(path)})
        assert response.json() == {"resource": "test/workflows/simple"}

        response = await client.get(f"{API}/test/workflows/simple")
        assert response.json()["displayName"] == "Edited outside"
