# backend/core/hooks.py
import asyncio
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Tuple, TypeVar

from backend.core.contracts import HookManager as HookManagerInterface, Container

logger = logging.getLogger(__name__)

T = TypeVar('T')

HookCallable = Callable[..., Awaitable[Any]]

_NO_DATA = object()


@dataclass(order=True)
class HookImplementation:
    priority: int
    func: HookCallable = field(compare=False)
    plugin_name: str = field(compare=False, default="<core>")


def _call_arguments(func: HookCallable, context: Dict[str, Any], data: Any = _NO_DATA) -> Tuple[list, dict]:
    """
    filter 钩子的数据作为第一个位置参数传入；
    其余参数按名字从上下文中取值，上下文里没有的参数保持默认。
    """
    parameters = list(inspect.signature(func).parameters.values())
    args: list = []
    if data is not _NO_DATA:
        args.append(data)
        parameters = parameters[1:]
    kwargs = {
        p.name: context[p.name]
        for p in parameters
        if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY) and p.name in context
    }
    return args, kwargs


class HookManager(HookManagerInterface):
    """
    插件之间的事件总线。
    - trigger: 通知型，同一钩子的全部实现并发执行，异常只记录；
    - filter: 过滤型，按优先级（数字小者先）串联处理数据，出错的实现被跳过。
    钩子函数按参数名接收共享上下文（container、hook_manager 以及启动时追加的服务）。
    """
    def __init__(self, container: Container):
        self._hooks: Dict[str, List[HookImplementation]] = defaultdict(list)
        self._shared_context: Dict[str, Any] = {
            "container": container,
            "hook_manager": self,
        }

    def add_shared_context(self, name: str, service: Any) -> None:
        if name in self._shared_context:
            logger.warning(f"Overwriting shared context for hooks: '{name}'")
        self._shared_context[name] = service

    def add_implementation(
        self,
        hook_name: str,
        implementation: HookCallable,
        priority: int = 10,
        plugin_name: str = "<core>"
    ):
        if not asyncio.iscoroutinefunction(implementation):
            raise TypeError(f"Hook implementation for '{hook_name}' must be an async function.")
        self._hooks[hook_name].append(
            HookImplementation(priority=priority, func=implementation, plugin_name=plugin_name)
        )
        self._hooks[hook_name].sort()
        logger.debug(f"Registered hook '{hook_name}' from plugin '{plugin_name}' with priority {priority}.")

    def implementations(self, hook_name: str) -> List[HookImplementation]:
        return list(self._hooks.get(hook_name, []))

    async def trigger(self, hook_name: str, **kwargs: Any) -> None:
        implementations = self.implementations(hook_name)
        if not implementations:
            return
        context = {**self._shared_context, **kwargs}
        calls = []
        for impl in implementations:
            args, call_kwargs = _call_arguments(impl.func, context)
            calls.append(impl.func(*args, **call_kwargs))

        results = await asyncio.gather(*calls, return_exceptions=True)
        for impl, result in zip(implementations, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Error in NOTIFICATION hook '{hook_name}' from plugin '{impl.plugin_name}': {result}",
                    exc_info=result
                )

    async def filter(self, hook_name: str, data: T, **kwargs: Any) -> T:
        context = {**self._shared_context, **kwargs}
        current = data
        for impl in self.implementations(hook_name):
            try:
                args, call_kwargs = _call_arguments(impl.func, context, current)
                current = await impl.func(*args, **call_kwargs)
            except Exception as e:
                logger.error(
                    f"Error in FILTER hook '{hook_name}' from plugin '{impl.plugin_name}'. Skipping. Error: {e}",
                    exc_info=e
                )
        return current
