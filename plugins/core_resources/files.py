# plugins/core_resources/files.py

import asyncio
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Union

import aiofiles

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


async def read_text(path: PathLike) -> str:
    async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
        return await f.read()


async def read_json(path: PathLike) -> Any:
    return json.loads(await read_text(path))


def read_json_sync(path: PathLike) -> Any:
    """资源对象在构造时同步加载内容，此时不在协程上下文中。"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def write_text(path: PathLike, content: str, exclusive: bool = False) -> bool:
    """
    写入文本文件并自动创建父目录。
    exclusive=True 时仅在文件不存在时创建（'x' 模式），文件已存在则返回 False。
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    try:
        async with aiofiles.open(path, mode="x" if exclusive else "w", encoding="utf-8") as f:
            await f.write(content)
    except FileExistsError:
        if not exclusive:
            raise
        return False
    return True


async def write_json(path: PathLike, data: Any, exclusive: bool = False) -> bool:
    return await write_text(path, json.dumps(data, indent=4, ensure_ascii=False) + "\n", exclusive=exclusive)


async def rename_path(source: PathLike, destination: PathLike) -> None:
    Path(destination).parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(os.replace, source, destination)
    logger.debug(f"Renamed '{source}' -> '{destination}'")


async def delete_file(path: PathLike) -> None:
    if Path(path).is_file():
        await asyncio.to_thread(os.remove, path)


async def delete_tree(path: PathLike) -> None:
    if Path(path).is_dir():
        await asyncio.to_thread(shutil.rmtree, path)
        logger.debug(f"Deleted directory: {path}")


async def replace_in_file(path: PathLike, old: str, new: str) -> bool:
    """在单个文件中做全量字符串替换；有改动时返回 True。"""
    content = await read_text(path)
    if old not in content:
        return False
    await write_text(path, content.replace(old, new))
    return True
