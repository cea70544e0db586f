# plugins/core_resources/names.py

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .errors import InvalidResourceNameError
from .paths import ProjectPaths

RESOURCE_FOLDER_TYPES = (
    "calculations",
    "cardTypes",
    "fieldTypes",
    "graphModels",
    "graphViews",
    "linkTypes",
    "reports",
    "templates",
    "workflows",
)

# 这些类型除了元数据文件外，还拥有一个同名的内容目录
FOLDER_RESOURCE_TYPES = ("calculations", "graphModels", "graphViews", "reports", "templates")

_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
_STRIPPED_EXTENSIONS = (".json", ".lp")


@dataclass(frozen=True)
class ResourceName:
    prefix: str
    type: str
    identifier: str

    def __str__(self) -> str:
        return resource_name_to_string(self)


def is_resource_folder_type(value: str) -> bool:
    return value in RESOURCE_FOLDER_TYPES


def strip_extension(identifier: str) -> str:
    for extension in _STRIPPED_EXTENSIONS:
        if identifier.endswith(extension):
            return identifier[: -len(extension)]
    return identifier


def resource_name(name: str) -> ResourceName:
    """
    解析资源名字符串。
    'id' -> ('', '', 'id')；'prefix/type/id' -> 三段，id 去掉扩展名。
    """
    parts = name.split("/")
    if len(parts) == 1 and parts[0]:
        return ResourceName(prefix="", type="", identifier=parts[0])
    if len(parts) == 3:
        prefix, resource_type, identifier = parts
        return ResourceName(prefix=prefix, type=resource_type, identifier=strip_extension(identifier))
    raise InvalidResourceNameError(f"Name '{name}' is not valid resource name")


def resource_name_to_string(name: ResourceName) -> str:
    if not name.prefix and not name.type:
        return name.identifier
    return f"{name.prefix}/{name.type}/{name.identifier}"


def resource_folder(paths: ProjectPaths, name: ResourceName, project_prefix: str) -> Path:
    """资源所在的类型目录：本地资源在 .cards/local 下，模块资源在 .cards/modules/<prefix> 下。"""
    if name.prefix == project_prefix:
        return paths.resource_path(name.type)
    return paths.module_resource_path(name.prefix, name.type)


def resource_name_to_path(
    paths: ProjectPaths,
    name: ResourceName,
    project_prefix: str,
    extension: str = ".json",
) -> Path:
    return resource_folder(paths, name, project_prefix) / f"{name.identifier}{extension}"


def path_to_resource_name(
    paths: ProjectPaths, path: Path, project_prefix: str
) -> Optional[ResourceName]:
    """
    将磁盘路径映射回资源名；不属于任何资源的路径返回 None。
    文件夹资源内部的内容文件映射到其所属资源。
    """
    try:
        relative = Path(path).resolve().relative_to(paths.cards_folder)
    except ValueError:
        return None
    parts = relative.parts
    if len(parts) >= 3 and parts[0] == "local":
        prefix, rest = project_prefix, parts[1:]
    elif len(parts) >= 4 and parts[0] == "modules":
        prefix, rest = parts[1], parts[2:]
    else:
        return None
    resource_type, identifier = rest[0], rest[1]
    if not is_resource_folder_type(resource_type) or identifier.startswith("."):
        return None
    # 只有文件夹资源可以在内部嵌套内容文件
    if len(rest) > 2 and resource_type not in FOLDER_RESOURCE_TYPES:
        return None
    if len(rest) == 2 and Path(identifier).suffix not in _STRIPPED_EXTENSIONS:
        if resource_type not in FOLDER_RESOURCE_TYPES:
            return None
    return ResourceName(prefix=prefix, type=resource_type, identifier=strip_extension(identifier))


def valid_identifier(identifier: str) -> str:
    if not identifier or not _IDENTIFIER_PATTERN.match(identifier):
        raise InvalidResourceNameError(
            f"Resource identifier must follow naming rules. Identifier '{identifier}' is invalid"
        )
    return identifier


def valid_resource_name(resource_type: str, name: str, prefixes: Iterable[str]) -> str:
    """检查完整资源名是否指向期望的类型和已知前缀；返回其规范字符串形式。"""
    parsed = resource_name(name)
    if not parsed.prefix or not parsed.type:
        raise InvalidResourceNameError(
            f"Resource name must be a valid name (<prefix>/<type>/<identifier>) when calling 'update' with 'name'. Name '{name}' is not valid"
        )
    if parsed.type != resource_type:
        raise InvalidResourceNameError(
            f"Resource name '{name}' is not of type '{resource_type}'"
        )
    known = list(prefixes)
    if parsed.prefix not in known:
        raise InvalidResourceNameError(
            f"Resource name can only refer to project that it is part of. Prefix '{parsed.prefix}' is not included in '[{','.join(known)}]'"
        )
    valid_identifier(parsed.identifier)
    return resource_name_to_string(parsed)
