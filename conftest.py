# conftest.py

import pytest
from pathlib import Path
from typing import AsyncGenerator

from httpx import AsyncClient
from httpx import ASGITransport
from asgi_lifespan import LifespanManager

from backend.app import create_app
from tests.conftest_data import build_project_tree


@pytest.fixture
def e2e_project(tmp_path: Path, monkeypatch) -> Path:
    """为端到端测试准备一个示例项目，并通过环境变量指向它。"""
    root = build_project_tree(tmp_path / "e2e_project")
    monkeypatch.setenv("CARDS_PROJECT_PATH", str(root))
    monkeypatch.delenv("CARDS_PROJECT_PREFIX", raising=False)
    return root


@pytest.fixture
async def client(e2e_project: Path) -> AsyncGenerator[AsyncClient, None]:
    """
    一个用于端到端测试的、正确处理应用生命周期的 AsyncClient fixture。
    每个测试都使用全新的应用实例和全新的项目目录。
    """
    app = create_app()
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
