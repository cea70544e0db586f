# plugins/core_resources/array_handler.py

import copy
import json
from typing import Any, Callable, Dict, List, Optional

from .contracts import (
    AddOperation,
    ChangeOperation,
    RankOperation,
    RemoveOperation,
    ReplaceAllOperation,
)
from .errors import OperationError


def _as_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def try_parse_json(value: Any) -> Any:
    """仅当字符串以 '[' 或 '{' 开头时才尝试解析；解析失败则原样返回。"""
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if trimmed.startswith(("[", "{")):
        try:
            return json.loads(trimmed)
        except json.JSONDecodeError:
            pass
    return value


def is_json_collection_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip().startswith(("[", "{"))


def normalize_operation(op: Any) -> Any:
    """
    将“to 是 JSON 数组/对象字符串”的 change 操作转换为显式的 ReplaceAll。
    解析出的单个对象被包装为只含该对象的数组。
    """
    if isinstance(op, ChangeOperation) and is_json_collection_string(op.to):
        parsed = try_parse_json(op.to)
        if isinstance(parsed, (list, dict)):
            items = parsed if isinstance(parsed, list) else [parsed]
            return ReplaceAllOperation(to=items, target=op.target)
    return op


class ArrayHandler:
    """
    将单个操作应用到有序集合上，返回新的集合。
    纯函数式：不修改调用者的列表，也没有共享状态。
    """

    def __init__(self):
        self._handlers: Dict[str, Callable[[Any, List[Any]], List[Any]]] = {
            "add": self._handle_add,
            "change": self._handle_change,
            "rank": self._handle_rank,
            "remove": self._handle_remove,
            "replaceAll": self._handle_replace_all,
        }

    def handle(self, op: Any, values: Optional[List[Any]]) -> List[Any]:
        op = normalize_operation(op)
        handler = self._handlers.get(op.name)
        if handler is None:
            raise OperationError(f"Unknown operation '{op.name}'")
        return handler(op, list(values or []))

    # --- 身份解析 ---

    @staticmethod
    def _tiers(target: Any) -> List[Callable[[Any], bool]]:
        """按优先级返回匹配谓词：深度相等 > {name} 匹配 > 裸字符串按 name 匹配。"""
        tiers: List[Callable[[Any], bool]] = [lambda element: element == target]
        if isinstance(target, dict) and set(target.keys()) == {"name"}:
            tiers.append(
                lambda element: isinstance(element, dict) and element.get("name") == target["name"]
            )
        if isinstance(target, str):
            tiers.append(
                lambda element: isinstance(element, dict) and element.get("name") == target
            )
        return tiers

    def _matcher(self, target: Any, values: List[Any]) -> Optional[Callable[[Any], bool]]:
        for predicate in self._tiers(target):
            if any(predicate(element) for element in values):
                return predicate
        return None

    def find_index(self, target: Any, values: List[Any]) -> int:
        matcher = self._matcher(try_parse_json(target), values)
        if matcher is None:
            return -1
        return next(index for index, element in enumerate(values) if matcher(element))

    # --- 操作 ---

    def _handle_add(self, op: AddOperation, values: List[Any]) -> List[Any]:
        item = try_parse_json(op.target)
        if any(element == item for element in values):
            raise OperationError(f"Item '{_as_json(item)}' already exists")
        return values + [item]

    def _handle_change(self, op: ChangeOperation, values: List[Any]) -> List[Any]:
        target = try_parse_json(op.target)
        matcher = self._matcher(target, values)
        if matcher is None:
            raise OperationError(f"Item '{_as_json(op.target)}' not found")
        replacement = try_parse_json(op.to)
        result = [copy.deepcopy(replacement) if matcher(element) else element for element in values]
        if result == values:
            raise OperationError(f"Item '{_as_json(op.target)}' not found")
        return result

    def _handle_replace_all(self, op: ReplaceAllOperation, values: List[Any]) -> List[Any]:
        if op.target is not None and self._matcher(try_parse_json(op.target), values) is None:
            raise OperationError(f"Item '{_as_json(op.target)}' not found")
        return copy.deepcopy(list(op.to))

    def _handle_rank(self, op: RankOperation, values: List[Any]) -> List[Any]:
        from_index = self.find_index(op.target, values)
        if from_index == -1:
            raise OperationError(f"Item '{_as_json(op.target)}' not found")
        if not 0 <= op.new_index < len(values):
            raise OperationError(f"Invalid target index: {op.new_index}")
        result = list(values)
        item = result.pop(from_index)
        result.insert(op.new_index, item)
        return result

    def _handle_remove(self, op: RemoveOperation, values: List[Any]) -> List[Any]:
        index = self.find_index(op.target, values)
        if index == -1:
            raise OperationError(f"Item '{_as_json(op.target)}' not found")
        return [element for i, element in enumerate(values) if i != index]
