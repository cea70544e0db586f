# backend/container.py

import inspect
import logging
import threading
from typing import Any, Callable, Dict, List

from backend.core.contracts import Container as ContainerInterface

logger = logging.getLogger(__name__)


def _wants_container(factory: Callable) -> bool:
    """工厂声明了必填的位置参数时，把容器本身作为该参数传入。"""
    try:
        parameters = inspect.signature(factory).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
        for p in parameters
    )


class Container(ContainerInterface):
    """
    插件之间共享服务的容器。
    服务以工厂函数注册，默认单例；解析时按线程记录解析链以发现循环依赖。
    """
    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, bool] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self._local = threading.local()

    def _resolution_chain(self) -> List[str]:
        chain = getattr(self._local, "chain", None)
        if chain is None:
            chain = self._local.chain = []
        return chain

    def register(self, name: str, factory: Callable, singleton: bool = True) -> None:
        if name in self._factories:
            logger.warning(f"Overwriting service registration for '{name}'")
            self._instances.pop(name, None)
        self._factories[name] = factory
        self._singletons[name] = singleton

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def _build(self, name: str) -> Any:
        factory = self._factories[name]
        return factory(self) if _wants_container(factory) else factory()

    def resolve(self, name: str) -> Any:
        chain = self._resolution_chain()
        if name in chain:
            raise RuntimeError(f"Circular dependency detected: {' -> '.join(chain + [name])}")
        if name not in self._factories:
            raise ValueError(f"Service '{name}' not found in container.")

        chain.append(name)
        try:
            if not self._singletons[name]:
                return self._build(name)
            with self._lock:
                if name not in self._instances:
                    self._instances[name] = self._build(name)
                    logger.debug(f"Resolved singleton service '{name}'.")
                return self._instances[name]
        finally:
            chain.pop()
