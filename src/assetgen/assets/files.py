"""File store

FileStore 是文件操作的外部协作接口；LocalFileManager 是本地文件系统实现。

资源根目录由文档路径推导：
- /work/banner.psd  → /work/banner-assets
- Untitled-1（未保存）→ <FALLBACK_BASE_DIR>/Untitled-1-assets
"""

import asyncio
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from .. import config
from ..errors import InvalidDestinationError
from ..telemetry import get_logger

logger = get_logger(__name__)


def assets_dir_for(document_file: str) -> str:
    """根据文档路径计算资源根目录

    Args:
        document_file: 文档文件路径

    Returns:
        资源根目录的绝对路径
    """
    path = Path(document_file)
    directory = path.parent if path.is_absolute() else Path(config.FALLBACK_BASE_DIR)
    return str(directory / f"{path.stem}{config.ASSETS_DIR_SUFFIX}")


class FileStore(ABC):
    """文件操作接口"""

    @property
    @abstractmethod
    def base_path(self) -> str | None:
        """当前资源根目录"""
        pass

    @abstractmethod
    def set_base_path(self, document_file: str) -> None:
        """根据文档路径更新资源根目录"""
        pass

    @abstractmethod
    async def move_file_into(
        self,
        temp_path: str,
        relative_path: str,
        base_path: str | None = None,
    ) -> str:
        """把临时文件移动到资源目录下

        Args:
            temp_path: 临时文件绝对路径
            relative_path: 相对资源根目录的目标路径
            base_path: 资源根目录（None 使用当前 base_path）

        Returns:
            目标绝对路径
        """
        pass

    @abstractmethod
    async def remove_file_within(self, relative_path: str, base_path: str | None = None) -> bool:
        """删除资源目录下的文件，文件不存在时返回 False"""
        pass

    @abstractmethod
    async def remove_file_absolute(self, path: str) -> bool:
        """删除任意位置的文件（用于临时文件），文件不存在时返回 False"""
        pass


class LocalFileManager(FileStore):
    """本地文件系统实现

    阻塞 IO 通过 asyncio.to_thread 执行。
    """

    def __init__(self, base_path: str | None = None):
        self._base_path = base_path

    @property
    def base_path(self) -> str | None:
        return self._base_path

    def set_base_path(self, document_file: str) -> None:
        base_path = assets_dir_for(document_file)
        if base_path != self._base_path:
            logger.info(f"[Files] Base path: {base_path}")
        self._base_path = base_path

    def resolve(self, relative_path: str, base_path: str | None = None) -> Path:
        """解析目标路径，拒绝跳出资源根目录的路径

        会访问文件系统（解析符号链接），异步方法中在工作线程里调用。

        Raises:
            InvalidDestinationError: 无资源根目录或路径越界
        """
        base = base_path or self._base_path
        if not base:
            raise InvalidDestinationError("No base path set")

        root = Path(base).resolve()
        target = (root / relative_path).resolve()
        if target == root or not target.is_relative_to(root):
            raise InvalidDestinationError(f"Destination escapes asset directory: {relative_path}")
        return target

    async def move_file_into(
        self,
        temp_path: str,
        relative_path: str,
        base_path: str | None = None,
    ) -> str:
        target = await asyncio.to_thread(self.resolve, relative_path, base_path)
        await asyncio.to_thread(_move, temp_path, target)
        logger.debug(f"[Files] Moved {temp_path} -> {target}")
        return str(target)

    async def remove_file_within(self, relative_path: str, base_path: str | None = None) -> bool:
        target = await asyncio.to_thread(self.resolve, relative_path, base_path)
        return await asyncio.to_thread(_remove, target)

    async def remove_file_absolute(self, path: str) -> bool:
        return await asyncio.to_thread(_remove, Path(path))


def _move(source: str, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(source, target)


def _remove(target: Path) -> bool:
    try:
        os.remove(target)
    except FileNotFoundError:
        return False
    return True
