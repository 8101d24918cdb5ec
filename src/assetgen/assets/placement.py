"""Asset placement

Moves finished render output to a component's destination, or throws it
away when the component has nowhere to go.
"""

import posixpath
from typing import TYPE_CHECKING

from ..telemetry import get_logger

if TYPE_CHECKING:
    from ..components.types import Component
    from .files import FileStore

logger = get_logger(__name__)


def resolve_asset_path(component: "Component") -> str | None:
    """Destination of a component relative to the asset directory.

    Returns:
        "folder/file", "file", or None when no file is configured
    """
    if not component.file:
        return None
    if component.folder:
        return posixpath.join(component.folder, component.file)
    return component.file


class AssetPlacement:
    """Places and removes assets through a FileStore."""

    def __init__(self, files: "FileStore"):
        self.files = files

    @property
    def base_path(self) -> str | None:
        return self.files.base_path

    async def place(
        self,
        component: "Component",
        temp_path: str,
        base_path: str | None = None,
    ) -> str | None:
        """Move a render result into place.

        Args:
            component: The rendered component
            temp_path: Temporary render output
            base_path: Asset directory captured when the render was issued

        Returns:
            Absolute destination, or None if the output was discarded

        Raises:
            Whatever the file store raises while moving
        """
        asset_path = resolve_asset_path(component)
        if asset_path is None:
            await self.discard_temp(temp_path)
            return None

        return await self.files.move_file_into(temp_path, asset_path, base_path=base_path)

    async def discard(self, component: "Component") -> bool:
        """Delete a previously placed asset, if there is one."""
        asset_path = resolve_asset_path(component)
        if asset_path is None:
            return False
        return await self.remove_asset(asset_path)

    async def remove_asset(self, asset_path: str) -> bool:
        try:
            return await self.files.remove_file_within(asset_path)
        except Exception as e:
            logger.warning(f"[Placement] Failed to remove asset {asset_path}: {e}")
            return False

    async def discard_temp(self, temp_path: str) -> bool:
        try:
            return await self.files.remove_file_absolute(temp_path)
        except Exception as e:
            logger.warning(f"[Placement] Failed to remove temp file {temp_path}: {e}")
            return False
