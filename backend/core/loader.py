# backend/core/loader.py

import json
import logging
import importlib
import importlib.resources
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List

from backend.core.contracts import Container, HookManager, PluginRegisterFunc

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 100


@dataclass
class PluginInfo:
    name: str
    import_path: str
    priority: int = DEFAULT_PRIORITY
    manifest: Dict[str, Any] = field(default_factory=dict)


class PluginLoader:
    """
    发现 plugins/ 下带 manifest.json 的插件，按 (priority, name) 排序后依次注册。
    日志插件通常优先级最高，因此在它注册之前只能使用 print。
    """
    def __init__(self, container: Container, hook_manager: HookManager, package: str = "plugins"):
        self._container = container
        self._hook_manager = hook_manager
        self._package = package

    def load_plugins(self) -> List[PluginInfo]:
        print("\n--- Cards 插件系统：开始加载 ---")
        plugins = sorted(self.discover(), key=lambda p: (p.priority, p.name))
        if not plugins:
            print("警告：未发现任何插件。")
        else:
            print("插件加载顺序：")
            for i, plugin in enumerate(plugins, start=1):
                print(f"  {i}. {plugin.name} (优先级: {plugin.priority})")
            self._register(plugins)
            logger.info(f"已注册 {len(plugins)} 个插件。")
        print("--- Cards 插件系统：加载完成 ---\n")
        return plugins

    def discover(self) -> List[PluginInfo]:
        """只读取 manifest，不导入插件代码；无法解析的 manifest 被忽略。"""
        try:
            package_root = importlib.resources.files(self._package)
        except ModuleNotFoundError:
            return []

        found: List[PluginInfo] = []
        for plugin_dir in package_root.iterdir():
            if not plugin_dir.is_dir() or plugin_dir.name.startswith(("__", ".")):
                continue
            manifest_file = plugin_dir / "manifest.json"
            if not manifest_file.is_file():
                continue
            try:
                manifest = json.loads(manifest_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                print(f"警告：忽略插件 '{plugin_dir.name}'，manifest 无法解析: {e}")
                continue
            found.append(PluginInfo(
                name=manifest.get("name", plugin_dir.name),
                import_path=f"{self._package}.{plugin_dir.name}",
                priority=manifest.get("priority", DEFAULT_PRIORITY),
                manifest=manifest,
            ))
        return found

    def _register(self, plugins: List[PluginInfo]) -> None:
        for plugin in plugins:
            try:
                module = importlib.import_module(plugin.import_path)
                register_func: PluginRegisterFunc = getattr(module, "register_plugin")
                register_func(self._container, self._hook_manager)
            except Exception as e:
                # 插件依赖链已被破坏，停止启动
                print("\n" + "=" * 80)
                print(f"!!! 致命错误：加载插件 '{plugin.name}' ({plugin.import_path}) 失败 !!!")
                print("=" * 80)
                traceback.print_exc()
                print("=" * 80)
                raise RuntimeError(f"无法加载插件 {plugin.name}") from e
