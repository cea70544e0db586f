# plugins/core_resources/dependencies.py

from fastapi import Request

from .service import ResourceCommandService


def get_resource_service(request: Request) -> ResourceCommandService:
    """FastAPI 依赖注入函数，用于从容器中获取 ResourceCommandService。"""
    return request.app.state.container.resolve("resource_service")
