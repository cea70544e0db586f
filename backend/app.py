# backend/app.py
import os
import logging
from contextlib import asynccontextmanager
from typing import List, Tuple

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from backend.container import Container
from backend.core.hooks import HookManager
from backend.core.loader import PluginLoader

logger = logging.getLogger(__name__)


def _build_platform() -> Tuple[Container, HookManager]:
    """创建容器与钩子总线，并同步加载全部插件。"""
    container = Container()
    hook_manager = HookManager(container)
    container.register("container", lambda: container)
    container.register("hook_manager", lambda: hook_manager)
    PluginLoader(container, hook_manager).load_plugins()
    return container, hook_manager


async def _mount_plugin_routers(app: FastAPI, hook_manager: HookManager) -> None:
    routers: List[APIRouter] = await hook_manager.filter("collect_api_routers", [])
    if not routers:
        logger.warning("No API routers were provided by plugins.")
        return
    for router in routers:
        app.include_router(router)
        logger.debug(f"Mounted router prefix='{router.prefix}' tags={router.tags}")
    logger.info(f"Mounted {len(routers)} plugin router(s).")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container, hook_manager = _build_platform()
    app.state.container = container
    hook_manager.add_shared_context("app", app)

    # 插件在这里完成异步初始化（例如扫描项目资源），路由依赖这些服务
    await hook_manager.trigger("services_post_register")
    await _mount_plugin_routers(app, hook_manager)
    await hook_manager.trigger("app_startup_complete")
    logger.info("Cards resource engine ready.")

    yield

    logger.info("Cards resource engine shutting down.")
    await hook_manager.trigger("app_shutdown")


def _cors_origins() -> List[str]:
    raw = os.getenv("CARDS_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    app = FastAPI(title="Cards Resource Engine", version="0.3.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app
