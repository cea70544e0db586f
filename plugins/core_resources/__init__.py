# plugins/core_resources/__init__.py
import os
import logging

from backend.core.contracts import Container, HookManager
from .api import resources_router
from .audit import ConfigurationLogger
from .paths import ProjectPaths
from .project import Project
from .service import ResourceCommandService
from .validation import JsonSchemaValidator

logger = logging.getLogger(__name__)

def _project_root() -> str:
    return os.getenv("CARDS_PROJECT_PATH", ".")

def _create_schema_validator() -> JsonSchemaValidator:
    return JsonSchemaValidator()

def _create_configuration_logger() -> ConfigurationLogger:
    return ConfigurationLogger(ProjectPaths(_project_root()).migration_log)

def _create_project(container: Container) -> Project:
    return Project(
        _project_root(),
        validator=container.resolve("schema_validator"),
        card_index=container.resolve("card_index"),
        configuration_logger=container.resolve("configuration_logger"),
        prefix=os.getenv("CARDS_PROJECT_PREFIX"),
    )

def _create_resource_service(container: Container) -> ResourceCommandService:
    return ResourceCommandService(container.resolve("resource_project"))

async def provide_router(routers: list) -> list:
    routers.append(resources_router)
    logger.debug("Provided 'resources_router' to the application.")
    return routers

async def initialize_project(container: Container):
    """钩子实现: 在所有服务注册后，扫描项目目录建立资源索引。"""
    logger.info("Initializing resource project...")
    service: ResourceCommandService = container.resolve("resource_service")
    await service.initialize()

def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_resources] 插件...")
    container.register("schema_validator", _create_schema_validator, singleton=True)
    container.register("configuration_logger", _create_configuration_logger, singleton=True)
    container.register("resource_project", _create_project, singleton=True)
    container.register("resource_service", _create_resource_service, singleton=True)
    logger.debug("Registered 'resource_project' and 'resource_service'.")
    hook_manager.add_implementation(
        "collect_api_routers", provide_router, plugin_name="core_resources"
    )
    hook_manager.add_implementation(
        "services_post_register",
        initialize_project,
        priority=50,
        plugin_name="core_resources",
    )
    logger.info("插件 [core_resources] 注册成功。")
