# plugins/core_resources/api.py

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from .contracts import (
    ConfigurationLogEntry,
    CreateResourceRequest,
    FileChangedRequest,
    RenameResourceRequest,
    Resource,
    ResourcesFrom,
    UpdateResourceRequest,
)
from .dependencies import get_resource_service
from .errors import (
    ModuleResourceError,
    RenameCascadeError,
    ResourceError,
    ResourceExistsError,
    ResourceInUseError,
    ResourceNotFoundError,
)
from .service import ResourceCommandService

logger = logging.getLogger(__name__)

resources_router = APIRouter(
    prefix="/api/resources",
    tags=["Core-Resources"]
)


def _to_http_error(e: ResourceError) -> HTTPException:
    if isinstance(e, ResourceNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ResourceInUseError):
        return HTTPException(status_code=409, detail={"message": str(e), "usages": e.usages})
    if isinstance(e, ResourceExistsError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ModuleResourceError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, RenameCascadeError):
        logger.error(f"Rename cascade failed at step '{e.failed_step}': {e}")
        return HTTPException(
            status_code=500,
            detail={"message": str(e), "failedStep": e.failed_step, "completed": e.completed, "compensated": e.compensated},
        )
    return HTTPException(status_code=400, detail=str(e))


# 固定路径必须先于 /{resource_type} 声明

@resources_router.get("/audit", response_model=List[ConfigurationLogEntry])
async def list_audit_entries(service: ResourceCommandService = Depends(get_resource_service)):
    """配置变更审计日志中的全部记录。"""
    return await service.audit_entries()


@resources_router.post("/refresh")
async def refresh_resources(service: ResourceCommandService = Depends(get_resource_service)):
    """从磁盘重新扫描全部资源。"""
    count = await service.refresh()
    return {"resources": count}


@resources_router.post("/file-changed")
async def file_changed(
    request_body: FileChangedRequest,
    service: ResourceCommandService = Depends(get_resource_service)
):
    """外部文件监听器通知单个文件发生变化。"""
    name = await service.file_changed(request_body.path)
    return {"resource": name}


@resources_router.get("/{resource_type}", response_model=List[Resource])
async def list_resources(
    resource_type: str,
    source: ResourcesFrom = Query(ResourcesFrom.ALL, alias="from"),
    service: ResourceCommandService = Depends(get_resource_service)
):
    try:
        return await service.list_resources(resource_type, source)
    except ResourceError as e:
        raise _to_http_error(e) from e


@resources_router.post("/{resource_type}", status_code=201)
async def create_resource(
    resource_type: str,
    request_body: CreateResourceRequest,
    service: ResourceCommandService = Depends(get_resource_service)
) -> Dict[str, Any]:
    try:
        return await service.create(resource_type, request_body)
    except ResourceError as e:
        logger.info(f"Create of '{resource_type}/{request_body.identifier}' rejected: {e}")
        raise _to_http_error(e) from e


@resources_router.get("/{prefix}/{resource_type}/{identifier}")
async def show_resource(
    prefix: str,
    resource_type: str,
    identifier: str,
    service: ResourceCommandService = Depends(get_resource_service)
) -> Dict[str, Any]:
    try:
        return await service.show(resource_type, f"{prefix}/{resource_type}/{identifier}")
    except ResourceError as e:
        raise _to_http_error(e) from e


@resources_router.get("/{prefix}/{resource_type}/{identifier}/usage", response_model=List[str])
async def resource_usage(
    prefix: str,
    resource_type: str,
    identifier: str,
    service: ResourceCommandService = Depends(get_resource_service)
):
    try:
        return await service.usage(resource_type, f"{prefix}/{resource_type}/{identifier}")
    except ResourceError as e:
        raise _to_http_error(e) from e


@resources_router.patch("/{prefix}/{resource_type}/{identifier}")
async def update_resource(
    prefix: str,
    resource_type: str,
    identifier: str,
    request_body: UpdateResourceRequest,
    service: ResourceCommandService = Depends(get_resource_service)
) -> Dict[str, Any]:
    name = f"{prefix}/{resource_type}/{identifier}"
    try:
        return await service.update(resource_type, name, request_body.update_key, request_body.operation)
    except ResourceError as e:
        logger.info(f"Update of '{name}' rejected: {e}")
        raise _to_http_error(e) from e


@resources_router.post("/{prefix}/{resource_type}/{identifier}/rename")
async def rename_resource(
    prefix: str,
    resource_type: str,
    identifier: str,
    request_body: RenameResourceRequest,
    service: ResourceCommandService = Depends(get_resource_service)
) -> Dict[str, Any]:
    name = f"{prefix}/{resource_type}/{identifier}"
    try:
        return await service.rename(resource_type, name, request_body.new_name)
    except ResourceError as e:
        logger.info(f"Rename of '{name}' rejected: {e}")
        raise _to_http_error(e) from e


@resources_router.delete("/{prefix}/{resource_type}/{identifier}", status_code=204)
async def delete_resource(
    prefix: str,
    resource_type: str,
    identifier: str,
    service: ResourceCommandService = Depends(get_resource_service)
):
    try:
        await service.delete(resource_type, f"{prefix}/{resource_type}/{identifier}")
    except ResourceError as e:
        raise _to_http_error(e) from e
